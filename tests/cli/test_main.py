"""Tests for the typer CLI, end to end over a temporary database."""

import json
from collections.abc import Iterator
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
import structlog
from typer.testing import CliRunner

from qjudge.cli.main import app

FIXTURES = Path(__file__).parent.parent / "fixtures"

runner = CliRunner()


@pytest.fixture(autouse=True)
def _reset_structlog() -> Iterator[None]:
    # Each invocation binds structlog to the runner's stderr, which closes afterwards.
    yield
    structlog.reset_defaults()


@pytest.fixture
def config_path(tmp_path: Path) -> Path:
    path = tmp_path / "qjudge.yaml"
    path.write_text(
        f"database:\n  path: {tmp_path / 'data' / 'qjudge.db'}\n", encoding="utf-8"
    )
    return path


def _invoke(config_path: Path, *args: str) -> str:
    result = runner.invoke(app, ["--config", str(config_path), *args])
    assert result.exit_code == 0, result.output
    return result.output


def _make_acompletion_response(verdict: str) -> MagicMock:
    message = MagicMock()
    message.content = json.dumps({"verdict": verdict, "reasoning": "Checked."})
    choice = MagicMock()
    choice.message = message
    response = MagicMock()
    response.choices = [choice]
    return response


def _seed(config_path: Path) -> None:
    _invoke(config_path, "judges", "create", "Strict", "--prompt", "Be strict.", "--id", "j1")
    _invoke(config_path, "submissions", "import", str(FIXTURES / "submissions.json"))
    _invoke(config_path, "assignments", "set", "queue_1", "q_template_1", "j1")


class TestJudges:
    def test_create_and_list(self, config_path: Path) -> None:
        output = _invoke(
            config_path, "judges", "create", "Strict", "--prompt", "Be strict.", "--id", "j1"
        )
        assert "Created judge j1" in output

        listing = _invoke(config_path, "judges", "list")
        assert "j1" in listing
        assert "Strict" in listing

    def test_prompt_from_file(self, config_path: Path, tmp_path: Path) -> None:
        prompt = tmp_path / "rubric.txt"
        prompt.write_text("Reward brevity.", encoding="utf-8")

        output = _invoke(
            config_path, "judges", "create", "Brief", "--prompt-file", str(prompt)
        )

        assert "Created judge" in output

    def test_create_requires_prompt(self, config_path: Path) -> None:
        result = runner.invoke(app, ["--config", str(config_path), "judges", "create", "X"])

        assert result.exit_code == 1
        assert "--prompt" in result.output

    def test_deactivated_judge_leaves_active_list(self, config_path: Path) -> None:
        _invoke(config_path, "judges", "create", "A", "--prompt", "p", "--id", "j1")
        _invoke(config_path, "judges", "deactivate", "j1")

        assert "j1" not in _invoke(config_path, "judges", "list", "--active")

    def test_unknown_judge_is_a_clean_error(self, config_path: Path) -> None:
        result = runner.invoke(
            app, ["--config", str(config_path), "judges", "activate", "missing"]
        )

        assert result.exit_code == 1
        assert "Failed to apply command to judge 'missing': not found" in result.output


class TestAssignments:
    def test_set_add_show(self, config_path: Path) -> None:
        assert "q1/t1: j1, j2" in _invoke(
            config_path, "assignments", "set", "q1", "t1", "j2", "j1"
        )
        _invoke(config_path, "assignments", "add", "q1", "t1", "j3")

        assert "q1/t1: j1, j2, j3" in _invoke(config_path, "assignments", "show", "q1", "t1")

    def test_clear(self, config_path: Path) -> None:
        _invoke(config_path, "assignments", "set", "q1", "t1", "j1")
        _invoke(config_path, "assignments", "clear", "q1", "t1")

        assert "(none)" in _invoke(config_path, "assignments", "show", "q1", "t1")


class TestSubmissions:
    def test_import_and_inspect(self, config_path: Path) -> None:
        output = _invoke(
            config_path, "submissions", "import", str(FIXTURES / "submissions.json")
        )
        assert "Imported 2 submission(s)" in output

        assert "queue_1" in _invoke(config_path, "queues", "list")
        assert "q_template_2" in _invoke(config_path, "queues", "questions", "queue_1")
        assert "sub_2" in _invoke(config_path, "submissions", "list", "queue_1")

    def test_missing_file_fails(self, config_path: Path, tmp_path: Path) -> None:
        result = runner.invoke(
            app,
            [
                "--config",
                str(config_path),
                "submissions",
                "import",
                str(tmp_path / "absent.json"),
            ],
        )

        assert result.exit_code == 1
        assert "Failed to load submissions" in result.output


class TestRuns:
    def test_start_runs_to_completion(self, config_path: Path) -> None:
        _seed(config_path)

        with patch(
            "qjudge.judge.infrastructure.litellm.litellm.acompletion",
            new=AsyncMock(return_value=_make_acompletion_response("pass")),
        ) as acompletion:
            output = _invoke(
                config_path, "--log-format", "json", "runs", "start", "queue_1", "--run-id", "r1"
            )

        assert "Run r1: DONE planned=2 completed=2 failed=0 pending=0" in output
        assert acompletion.await_count == 2
        assert "r1" in _invoke(config_path, "runs", "list", "--queue", "queue_1")
        assert "COMPLETED 2/2" in _invoke(config_path, "runs", "show", "r1")

    def test_detach_then_resume(self, config_path: Path) -> None:
        _seed(config_path)

        detached = _invoke(config_path, "runs", "start", "queue_1", "--run-id", "r1", "--detach")
        assert "Run r1: PLANNING planned=-" in detached

        with patch(
            "qjudge.judge.infrastructure.litellm.litellm.acompletion",
            new=AsyncMock(return_value=_make_acompletion_response("fail")),
        ):
            resumed = _invoke(config_path, "--log-format", "json", "runs", "resume")

        assert "Run r1: DONE planned=2 completed=2" in resumed
        assert "No unfinished runs." in _invoke(config_path, "runs", "resume")

    def test_failed_calls_are_counted(self, config_path: Path) -> None:
        _seed(config_path)

        with patch(
            "qjudge.judge.infrastructure.litellm.litellm.acompletion",
            new=AsyncMock(side_effect=ConnectionError("offline")),
        ):
            output = _invoke(
                config_path, "--log-format", "json", "runs", "start", "queue_1", "--run-id", "r1"
            )

        assert "completed=0 failed=2" in output
        assert "r1" in _invoke(config_path, "runs", "list", "--status", "FAILED")

    def test_empty_queue_completes_immediately(self, config_path: Path) -> None:
        output = _invoke(config_path, "runs", "start", "nothing", "--run-id", "r1")

        assert "Run r1: DONE planned=0" in output

    def test_show_unknown_run(self, config_path: Path) -> None:
        result = runner.invoke(app, ["--config", str(config_path), "runs", "show", "nope"])

        assert result.exit_code == 1
        assert "not found" in result.output


class TestEvaluations:
    def test_list_and_summary(self, config_path: Path) -> None:
        _seed(config_path)
        with patch(
            "qjudge.judge.infrastructure.litellm.litellm.acompletion",
            new=AsyncMock(return_value=_make_acompletion_response("pass")),
        ):
            _invoke(config_path, "--log-format", "json", "runs", "start", "queue_1")

        listing = _invoke(config_path, "evaluations", "list", "--verdict", "pass")
        assert "sub_1" in listing
        assert "Checked." in listing
        assert "sub_1" not in _invoke(config_path, "evaluations", "list", "--verdict", "fail")

        summary = _invoke(config_path, "evaluations", "summary", "queue_1", "--by", "question")
        assert "q_template_1" in summary
        assert "100%" in summary

    def test_bad_verdict_filter(self, config_path: Path) -> None:
        result = runner.invoke(
            app, ["--config", str(config_path), "evaluations", "list", "--verdict", "maybe"]
        )

        assert result.exit_code == 1
        assert "Failed to parse verdict" in result.output


class TestProject:
    def test_project_then_rebuild(self, config_path: Path) -> None:
        _invoke(config_path, "judges", "create", "A", "--prompt", "p", "--id", "j1")

        assert "Projected 1 event(s)" in _invoke(config_path, "project")
        assert "Projected 0 event(s)" in _invoke(config_path, "project")
        assert "Projected 1 event(s)" in _invoke(config_path, "project", "--rebuild")


def test_invalid_log_format() -> None:
    result = runner.invoke(app, ["--log-format", "xml", "queues", "list"])

    assert result.exit_code == 1
    assert "Invalid log format" in result.output
