"""SQLite history of convergence runs using SQLModel."""

from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator

from sqlmodel import Field, Session, SQLModel, create_engine, select

from .convergence import ConvergenceResult


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Run(SQLModel, table=True):
    id: int | None = Field(default=None, primary_key=True)
    run_id: str = Field(index=True, unique=True)
    function: str
    a: float
    b: float
    workers: int
    tasks: int | None = None
    converged: bool
    estimate: float
    final_n: int
    exact: float | None = None
    created_at: datetime = Field(default_factory=_utcnow)


class RunStep(SQLModel, table=True):
    id: int | None = Field(default=None, primary_key=True)
    run_id: str = Field(foreign_key="run.run_id", index=True)
    n: int
    estimate: float
    delta: float | None = None
    elapsed_ms: float


class RunStore:
    """Thin wrapper around SQLModel sessions."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.engine = create_engine(f"sqlite:///{self.path}", echo=False)
        SQLModel.metadata.create_all(self.engine)

    @contextmanager
    def session(self) -> Iterator[Session]:
        with Session(self.engine) as session:
            yield session

    def record_convergence(
        self,
        run_id: str,
        result: ConvergenceResult,
        *,
        function: str,
        a: float,
        b: float,
        workers: int,
        tasks: int | None = None,
    ) -> Run:
        with self.session() as session:
            run = Run(
                run_id=run_id,
                function=function,
                a=a,
                b=b,
                workers=workers,
                tasks=tasks,
                converged=result.converged,
                estimate=result.estimate,
                final_n=result.n,
                exact=result.exact,
            )
            session.add(run)
            for step in result.steps:
                session.add(
                    RunStep(
                        run_id=run_id,
                        n=step.n,
                        estimate=step.estimate,
                        delta=step.delta,
                        elapsed_ms=step.elapsed_ms,
                    )
                )
            session.commit()
            session.refresh(run)
            return run

    def get_run(self, run_id: str) -> Run | None:
        with self.session() as session:
            return session.exec(select(Run).where(Run.run_id == run_id)).first()

    def list_runs(self, limit: int = 20) -> list[Run]:
        with self.session() as session:
            statement = select(Run).order_by(Run.id.desc()).limit(limit)
            return list(session.exec(statement).all())

    def get_steps(self, run_id: str) -> list[RunStep]:
        with self.session() as session:
            statement = select(RunStep).where(RunStep.run_id == run_id).order_by(RunStep.n)
            return list(session.exec(statement).all())

    def close(self) -> None:
        self.engine.dispose()
