"""Tests for CompositeOrchestratorObserver."""

from qjudge.orchestration.infrastructure.composite_observer import (
    CompositeOrchestratorObserver,
)
from tests.orchestration.fake_observer import FakeOrchestratorObserver


def _make_composite(
    *observers: FakeOrchestratorObserver,
) -> CompositeOrchestratorObserver:
    return CompositeOrchestratorObserver(observers=list(observers))


class TestCompositeOrchestratorObserverFanOut:
    """Every event is forwarded to all observers in order."""

    def test_run_lifecycle_forwarded_to_all(self) -> None:
        obs_a = FakeOrchestratorObserver()
        obs_b = FakeOrchestratorObserver()
        composite = _make_composite(obs_a, obs_b)

        composite.run_started(run_id="r1", queue_id="q1")
        composite.run_planned(run_id="r1", planned_count=3)
        composite.run_suspended(run_id="r1", state="PROCESSING", pending=2)
        composite.run_done(run_id="r1", completed_count=2, failed_count=1)
        composite.run_errored(run_id="r2", reason="boom")

        for obs in (obs_a, obs_b):
            assert obs.started == ["r1"]
            assert obs.planned == [("r1", 3)]
            assert obs.suspended == [("r1", "PROCESSING", 2)]
            assert obs.done == [("r1", 2, 1)]
            assert obs.errored == [("r2", "boom")]

    def test_task_events_preserve_fields(self) -> None:
        obs = FakeOrchestratorObserver()
        composite = _make_composite(obs)

        composite.task_started(run_id="r1", task_key="s|q|j")
        composite.task_completed(run_id="r1", task_key="s|q|j", verdict="PASS")
        composite.task_failed(run_id="r1", task_key="s|q|k", reason="timeout")
        composite.step_replayed(run_id="r1", step="mark-task", reason="already counted")

        assert obs.tasks_started == ["s|q|j"]
        assert obs.completed[0].detail == "PASS"
        assert obs.failed[0].task_key == "s|q|k"
        assert obs.failed[0].detail == "timeout"
        assert obs.replayed[0].step == "mark-task"

    def test_no_observers_is_a_no_op(self) -> None:
        composite = _make_composite()

        composite.run_started(run_id="r1", queue_id="q1")
        composite.run_done(run_id="r1", completed_count=0, failed_count=0)
