"""Wires the SQLite-backed stores, the LiteLLM evaluator and the orchestrator."""

import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager

from qjudge.admin.application.service import AdminService
from qjudge.assignment.domain.assignment import JudgeAssignmentEntity
from qjudge.config.domain.config import AppConfig
from qjudge.core.db import get_connection
from qjudge.evaluation.domain.evaluation import EvaluationEntity
from qjudge.eventstore.application.repository import EntityRepository
from qjudge.eventstore.infrastructure.observer import StructlogEntityObserver
from qjudge.eventstore.infrastructure.sqlite import SqliteEventLog
from qjudge.judge.application.task_evaluator import TaskEvaluator
from qjudge.judge.domain.evaluator import JudgeEvaluator
from qjudge.judge.domain.judge import JudgeEntity
from qjudge.judge.infrastructure.litellm import LiteLLMEvaluator
from qjudge.judge.infrastructure.observer import StructlogJudgeObserver
from qjudge.orchestration.application.orchestrator import RunOrchestrator
from qjudge.orchestration.domain.observer import OrchestratorObserver
from qjudge.orchestration.infrastructure.checkpoint import SqliteCheckpointStore
from qjudge.orchestration.infrastructure.observer import StructlogOrchestratorObserver
from qjudge.run.domain.run import RunEntity
from qjudge.submission.domain.submission import SubmissionEntity
from qjudge.submission.infrastructure.json_loader import JsonSubmissionLoader
from qjudge.submission.infrastructure.observer import StructlogSubmissionObserver
from qjudge.views.infrastructure.observer import StructlogProjectorObserver
from qjudge.views.infrastructure.projector import ViewProjector
from qjudge.views.infrastructure.queries import ViewQueries


def build_admin_service(
    conn: sqlite3.Connection,
    config: AppConfig,
    evaluator: JudgeEvaluator | None = None,
    orchestrator_observer: OrchestratorObserver | None = None,
) -> AdminService:
    """Assemble an AdminService over one open connection.

    The evaluator defaults to LiteLLM configured from config.evaluator.
    """
    log = SqliteEventLog(conn=conn)
    entity_observer = StructlogEntityObserver()
    judges = EntityRepository(log=log, entity=JudgeEntity(), observer=entity_observer)
    submissions = EntityRepository(
        log=log, entity=SubmissionEntity(), observer=entity_observer
    )
    assignments = EntityRepository(
        log=log, entity=JudgeAssignmentEntity(), observer=entity_observer
    )
    runs = EntityRepository(log=log, entity=RunEntity(), observer=entity_observer)
    evaluations = EntityRepository(
        log=log, entity=EvaluationEntity(), observer=entity_observer
    )

    if evaluator is None:
        evaluator = LiteLLMEvaluator(
            config=config.evaluator, observer=StructlogJudgeObserver()
        )
    task_evaluator = TaskEvaluator(
        judges=judges, submissions=submissions, evaluator=evaluator
    )

    views = ViewQueries(conn=conn)
    projector = ViewProjector(
        conn=conn,
        log=log,
        observer=StructlogProjectorObserver(),
        batch_size=config.projector.batch_size,
        poll_interval=config.projector.poll_interval_seconds,
    )
    orchestrator = RunOrchestrator(
        checkpoints=SqliteCheckpointStore(conn=conn),
        views=views,
        assignments=assignments,
        runs=runs,
        evaluations=evaluations,
        task_evaluator=task_evaluator,
        observer=orchestrator_observer or StructlogOrchestratorObserver(),
        timeout_seconds=config.evaluator.timeout_seconds,
    )
    return AdminService(
        judges=judges,
        submissions=submissions,
        assignments=assignments,
        runs=runs,
        submission_loader=JsonSubmissionLoader(observer=StructlogSubmissionObserver()),
        orchestrator=orchestrator,
        projector=projector,
        views=views,
        default_model=config.evaluator.default_model,
    )


@contextmanager
def open_admin_service(
    config: AppConfig,
    evaluator: JudgeEvaluator | None = None,
    orchestrator_observer: OrchestratorObserver | None = None,
) -> Iterator[AdminService]:
    """Open the configured database and yield a service bound to it."""
    config.database.path.parent.mkdir(parents=True, exist_ok=True)
    conn = get_connection(db_path=config.database.path)
    try:
        yield build_admin_service(
            conn=conn,
            config=config,
            evaluator=evaluator,
            orchestrator_observer=orchestrator_observer,
        )
    finally:
        conn.close()
