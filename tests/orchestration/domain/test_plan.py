"""Tests for task planning and RunPlan transitions."""

from qjudge.orchestration.domain.plan import (
    EvaluationTask,
    OrchestratorState,
    RunPlan,
    plan_tasks,
)


def _keys(tasks: list[EvaluationTask]) -> list[str]:
    return [task.key for task in tasks]


class TestPlanTasks:
    def test_questions_outermost_then_submissions_then_judges(self) -> None:
        tasks = plan_tasks(
            question_ids=["Q1", "Q2"],
            submission_ids=["S1", "S2"],
            assigned_judges={"Q1": ["J1"], "Q2": ["J2"]},
            active_judge_ids={"J1", "J2"},
        )

        assert _keys(tasks) == [
            "S1|Q1|J1",
            "S2|Q1|J1",
            "S1|Q2|J2",
            "S2|Q2|J2",
        ]

    def test_inactive_judges_are_skipped(self) -> None:
        tasks = plan_tasks(
            question_ids=["Q1"],
            submission_ids=["S1"],
            assigned_judges={"Q1": ["J1", "J2"]},
            active_judge_ids={"J2"},
        )

        assert _keys(tasks) == ["S1|Q1|J2"]

    def test_unassigned_question_contributes_nothing(self) -> None:
        tasks = plan_tasks(
            question_ids=["Q1", "Q2"],
            submission_ids=["S1"],
            assigned_judges={"Q2": ["J1"]},
            active_judge_ids={"J1"},
        )

        assert _keys(tasks) == ["S1|Q2|J1"]

    def test_several_judges_per_question_keep_their_order(self) -> None:
        tasks = plan_tasks(
            question_ids=["Q1"],
            submission_ids=["S1", "S2"],
            assigned_judges={"Q1": ["J1", "J2"]},
            active_judge_ids={"J1", "J2"},
        )

        assert _keys(tasks) == ["S1|Q1|J1", "S1|Q1|J2", "S2|Q1|J1", "S2|Q1|J2"]

    def test_no_submissions_means_no_tasks(self) -> None:
        assert (
            plan_tasks(
                question_ids=["Q1"],
                submission_ids=[],
                assigned_judges={"Q1": ["J1"]},
                active_judge_ids={"J1"},
            )
            == []
        )


class TestRunPlan:
    def _plan(self, n: int) -> RunPlan:
        tasks = [
            EvaluationTask(submission_id=f"s{i}", question_id="q", judge_id="j")
            for i in range(n)
        ]
        return RunPlan(
            run_id="r1", queue_id="q1", state=OrchestratorState.PROCESSING
        ).with_tasks(tasks)

    def test_with_tasks_fixes_planned_count(self) -> None:
        plan = self._plan(3)

        assert plan.planned_count == 3
        assert len(plan.pending_tasks) == 3

    def test_after_task_counts_and_pops_head(self) -> None:
        plan = self._plan(2).after_task(succeeded=False)

        assert plan.failed_count == 1
        assert plan.completed_count == 0
        assert [t.submission_id for t in plan.pending_tasks] == ["s1"]
        assert plan.state == OrchestratorState.PROCESSING

    def test_last_task_moves_to_done(self) -> None:
        plan = self._plan(1).after_task(succeeded=True)

        assert plan.is_done
        assert plan.completed_count == 1
        assert plan.planned_count == 1

    def test_survives_json_round_trip(self) -> None:
        plan = self._plan(2)

        assert RunPlan.model_validate_json(plan.model_dump_json()) == plan
