"""Builds one repository per entity over a shared event log, for tests."""

from dataclasses import dataclass
from typing import Any

from qjudge.assignment.domain.assignment import JudgeAssignment, JudgeAssignmentEntity
from qjudge.evaluation.domain.evaluation import Evaluation, EvaluationEntity
from qjudge.eventstore.application.repository import EntityRepository
from qjudge.eventstore.domain.log import EventLog
from qjudge.judge.domain.judge import Judge, JudgeEntity
from qjudge.run.domain.run import Run, RunEntity
from qjudge.submission.domain.submission import Submission, SubmissionEntity
from tests.eventstore.fake_event_log import InMemoryEventLog
from tests.eventstore.fake_observer import FakeEntityObserver


@dataclass
class Repositories:
    log: EventLog
    observer: FakeEntityObserver
    judges: EntityRepository[Judge | None, Any]
    submissions: EntityRepository[Submission | None, Any]
    assignments: EntityRepository[JudgeAssignment, Any]
    runs: EntityRepository[Run | None, Any]
    evaluations: EntityRepository[Evaluation | None, Any]


def make_repositories(log: EventLog | None = None) -> Repositories:
    log = log if log is not None else InMemoryEventLog()
    observer = FakeEntityObserver()
    return Repositories(
        log=log,
        observer=observer,
        judges=EntityRepository(log=log, entity=JudgeEntity(), observer=observer),
        submissions=EntityRepository(
            log=log, entity=SubmissionEntity(), observer=observer
        ),
        assignments=EntityRepository(
            log=log, entity=JudgeAssignmentEntity(), observer=observer
        ),
        runs=EntityRepository(log=log, entity=RunEntity(), observer=observer),
        evaluations=EntityRepository(
            log=log, entity=EvaluationEntity(), observer=observer
        ),
    )
