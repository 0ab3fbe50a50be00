"""CLI entrypoint for qjudge — typer app over the administrative surface."""

import asyncio
import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

import structlog
import typer
from rich.console import Console
from rich.table import Table

from qjudge.admin.application.service import AdminService
from qjudge.admin.infrastructure.factory import open_admin_service
from qjudge.config.infrastructure.observer import StructlogConfigObserver
from qjudge.config.infrastructure.yaml_loader import YamlConfigLoader
from qjudge.core.errors import QJudgeError
from qjudge.judge.domain.verdict import parse_verdict
from qjudge.orchestration.domain.observer import OrchestratorObserver
from qjudge.orchestration.domain.plan import RunPlan
from qjudge.orchestration.infrastructure.composite_observer import (
    CompositeOrchestratorObserver,
)
from qjudge.orchestration.infrastructure.observer import StructlogOrchestratorObserver
from qjudge.orchestration.infrastructure.progress_observer import (
    ProgressOrchestratorObserver,
)
from qjudge.run.domain.run import RunStatus
from qjudge.views.domain.rows import EvaluationFilters, GroupBy

app = typer.Typer(add_completion=False, help="Run LLM judges over queued submissions.")
judges_app = typer.Typer(help="Create, edit and toggle judges.")
assignments_app = typer.Typer(help="Assign judges to questions within a queue.")
submissions_app = typer.Typer(help="Import and inspect submissions.")
queues_app = typer.Typer(help="Inspect queues and their questions.")
runs_app = typer.Typer(help="Start, resume and inspect evaluation runs.")
evaluations_app = typer.Typer(help="Query recorded evaluations.")
app.add_typer(judges_app, name="judges")
app.add_typer(assignments_app, name="assignments")
app.add_typer(submissions_app, name="submissions")
app.add_typer(queues_app, name="queues")
app.add_typer(runs_app, name="runs")
app.add_typer(evaluations_app, name="evaluations")


@dataclass(frozen=True)
class _CliState:
    config_path: Path | None
    log_format: str


def _configure_structlog(log_format: str) -> None:
    """Configure structlog based on the requested format."""
    if log_format == "console":
        renderer: structlog.types.Processor = structlog.dev.ConsoleRenderer()
    elif log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        typer.echo(f"Invalid log format: {log_format!r}. Must be 'console' or 'json'.")
        raise typer.Exit(code=1)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.INFO),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    )


@app.callback()
def main(
    ctx: typer.Context,
    config_path: Path | None = typer.Option(
        None, "--config", "-c", help="Path to qjudge config YAML"
    ),
    log_format: str = typer.Option(
        "console",
        "--log-format",
        help="Log format: 'console' or 'json'",
    ),
) -> None:
    _configure_structlog(log_format=log_format)
    ctx.obj = _CliState(config_path=config_path, log_format=log_format)


@contextmanager
def _service(
    ctx: typer.Context, with_progress: bool = False
) -> Iterator[AdminService]:
    """Load config, open the database and report errors the way every command does."""
    state: _CliState = ctx.obj
    try:
        config = YamlConfigLoader(observer=StructlogConfigObserver()).load(
            path=state.config_path
        )
        observers: list[OrchestratorObserver] = [StructlogOrchestratorObserver()]
        if with_progress and state.log_format != "json":
            observers.append(ProgressOrchestratorObserver())
        with open_admin_service(
            config=config,
            orchestrator_observer=CompositeOrchestratorObserver(observers=observers),
        ) as service:
            yield service
    except typer.Exit:
        raise
    except KeyboardInterrupt:
        typer.echo("Interrupted.")
        sys.exit(1)
    except QJudgeError as exc:
        typer.echo(str(exc))
        sys.exit(1)
    except Exception as exc:  # noqa: BLE001
        typer.echo(f"Unexpected error: {exc}\nPlease report this bug.")
        sys.exit(1)


def _print_table(title: str, columns: list[str], rows: list[list[str]]) -> None:
    table = Table(title=title)
    for column in columns:
        table.add_column(column)
    for row in rows:
        table.add_row(*row)
    Console().print(table)


def _print_plan(plan: RunPlan) -> None:
    typer.echo(
        f"Run {plan.run_id}: {plan.state.value}"
        f" planned={plan.planned_count if plan.planned_count is not None else '-'}"
        f" completed={plan.completed_count} failed={plan.failed_count}"
        f" pending={len(plan.pending_tasks)}"
    )


# ---------------------------------------------------------------------------
# Judges
# ---------------------------------------------------------------------------


@judges_app.command("create")
def create_judge(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Display name"),
    prompt: str | None = typer.Option(None, "--prompt", help="Rubric / system prompt"),
    prompt_file: Path | None = typer.Option(
        None, "--prompt-file", help="Read the system prompt from a file"
    ),
    model: str | None = typer.Option(None, "--model", help="Target model"),
    judge_id: str | None = typer.Option(None, "--id", help="Judge id (generated if omitted)"),
    inactive: bool = typer.Option(False, "--inactive", help="Create deactivated"),
) -> None:
    """Create a judge."""
    if prompt_file is not None:
        prompt = prompt_file.read_text(encoding="utf-8")
    if not prompt:
        typer.echo("Either --prompt or --prompt-file is required.")
        raise typer.Exit(code=1)
    with _service(ctx) as service:
        judge = service.create_judge(
            name=name,
            system_prompt=prompt,
            target_model=model,
            active=not inactive,
            judge_id=judge_id,
        )
        typer.echo(f"Created judge {judge.judge_id}")


@judges_app.command("update")
def update_judge(
    ctx: typer.Context,
    judge_id: str = typer.Argument(...),
    name: str | None = typer.Option(None, "--name"),
    prompt: str | None = typer.Option(None, "--prompt"),
    model: str | None = typer.Option(None, "--model"),
) -> None:
    """Edit a judge; omitted fields keep their value."""
    with _service(ctx) as service:
        service.update_judge(
            judge_id=judge_id, name=name, system_prompt=prompt, target_model=model
        )
        typer.echo(f"Updated judge {judge_id}")


@judges_app.command("activate")
def activate_judge(ctx: typer.Context, judge_id: str = typer.Argument(...)) -> None:
    with _service(ctx) as service:
        service.activate_judge(judge_id=judge_id)
        typer.echo(f"Activated judge {judge_id}")


@judges_app.command("deactivate")
def deactivate_judge(ctx: typer.Context, judge_id: str = typer.Argument(...)) -> None:
    with _service(ctx) as service:
        service.deactivate_judge(judge_id=judge_id)
        typer.echo(f"Deactivated judge {judge_id}")


@judges_app.command("delete")
def delete_judge(ctx: typer.Context, judge_id: str = typer.Argument(...)) -> None:
    with _service(ctx) as service:
        service.delete_judge(judge_id=judge_id)
        typer.echo(f"Deleted judge {judge_id}")


@judges_app.command("list")
def list_judges(
    ctx: typer.Context,
    active_only: bool = typer.Option(False, "--active", help="Only active judges"),
) -> None:
    with _service(ctx) as service:
        service.refresh_views()
        judges = service.views.active_judges() if active_only else service.views.all_judges()
        _print_table(
            title="Judges",
            columns=["ID", "Name", "Model", "Active"],
            rows=[
                [j.judge_id, j.name, j.target_model, "yes" if j.active else "no"]
                for j in judges
            ],
        )


# ---------------------------------------------------------------------------
# Assignments
# ---------------------------------------------------------------------------


@assignments_app.command("set")
def set_assignments(
    ctx: typer.Context,
    queue_id: str = typer.Argument(...),
    question_id: str = typer.Argument(...),
    judge_ids: list[str] = typer.Argument(..., help="Judges replacing the current set"),
) -> None:
    with _service(ctx) as service:
        assignment = service.set_assignments(
            queue_id=queue_id, question_id=question_id, judge_ids=set(judge_ids)
        )
        typer.echo(f"{queue_id}/{question_id}: {', '.join(assignment.judge_ids)}")


@assignments_app.command("add")
def add_assignment(
    ctx: typer.Context,
    queue_id: str = typer.Argument(...),
    question_id: str = typer.Argument(...),
    judge_id: str = typer.Argument(...),
) -> None:
    with _service(ctx) as service:
        assignment = service.add_judge_to_question(
            queue_id=queue_id, question_id=question_id, judge_id=judge_id
        )
        typer.echo(f"{queue_id}/{question_id}: {', '.join(assignment.judge_ids)}")


@assignments_app.command("remove")
def remove_assignment(
    ctx: typer.Context,
    queue_id: str = typer.Argument(...),
    question_id: str = typer.Argument(...),
    judge_id: str = typer.Argument(...),
) -> None:
    with _service(ctx) as service:
        assignment = service.remove_judge_from_question(
            queue_id=queue_id, question_id=question_id, judge_id=judge_id
        )
        typer.echo(f"{queue_id}/{question_id}: {', '.join(assignment.judge_ids)}")


@assignments_app.command("clear")
def clear_assignments(
    ctx: typer.Context,
    queue_id: str = typer.Argument(...),
    question_id: str = typer.Argument(...),
) -> None:
    with _service(ctx) as service:
        service.clear_assignments(queue_id=queue_id, question_id=question_id)
        typer.echo(f"Cleared assignments for {queue_id}/{question_id}")


@assignments_app.command("show")
def show_assignment(
    ctx: typer.Context,
    queue_id: str = typer.Argument(...),
    question_id: str = typer.Argument(...),
) -> None:
    with _service(ctx) as service:
        assignment = service.get_assignment(queue_id=queue_id, question_id=question_id)
        typer.echo(
            f"{queue_id}/{question_id}: {', '.join(assignment.judge_ids) or '(none)'}"
        )


# ---------------------------------------------------------------------------
# Submissions and queues
# ---------------------------------------------------------------------------


@submissions_app.command("import")
def import_submissions(
    ctx: typer.Context,
    path: Path = typer.Argument(..., help="JSON file with one submission or a list"),
) -> None:
    """Import submissions from a JSON file."""
    with _service(ctx) as service:
        imported = service.import_submissions(path=path)
        service.refresh_views()
        typer.echo(f"Imported {len(imported)} submission(s)")


@submissions_app.command("list")
def list_submissions(ctx: typer.Context, queue_id: str = typer.Argument(...)) -> None:
    with _service(ctx) as service:
        service.refresh_views()
        _print_table(
            title=f"Submissions in {queue_id}",
            columns=["ID", "Queue"],
            rows=[
                [s.submission_id, s.queue_id]
                for s in service.views.submissions_by_queue(queue_id)
            ],
        )


@queues_app.command("list")
def list_queues(ctx: typer.Context) -> None:
    with _service(ctx) as service:
        service.refresh_views()
        _print_table(
            title="Queues",
            columns=["Queue"],
            rows=[[q.queue_id] for q in service.views.list_queues()],
        )


@queues_app.command("questions")
def list_questions(ctx: typer.Context, queue_id: str = typer.Argument(...)) -> None:
    with _service(ctx) as service:
        service.refresh_views()
        _print_table(
            title=f"Questions in {queue_id}",
            columns=["ID", "Text"],
            rows=[
                [q.question_id, q.question_text]
                for q in service.views.questions_by_queue(queue_id)
            ],
        )


# ---------------------------------------------------------------------------
# Runs
# ---------------------------------------------------------------------------


@runs_app.command("start")
def start_run(
    ctx: typer.Context,
    queue_id: str = typer.Argument(...),
    run_id: str | None = typer.Option(None, "--run-id"),
    detach: bool = typer.Option(
        False, "--detach", help="Only checkpoint the run; 'runs resume' drives it"
    ),
) -> None:
    """Plan and process a run over the queue."""
    with _service(ctx, with_progress=True) as service:
        if detach:
            plan = service.start_run(queue_id=queue_id, run_id=run_id)
        else:
            plan = asyncio.run(service.run_queue(queue_id=queue_id, run_id=run_id))
        _print_plan(plan)


@runs_app.command("resume")
def resume_runs(
    ctx: typer.Context,
    run_id: str | None = typer.Argument(None, help="Run to resume (all if omitted)"),
) -> None:
    """Continue unfinished runs from their last checkpoint."""
    with _service(ctx, with_progress=True) as service:
        if run_id is not None:
            plans = [asyncio.run(service.resume_run(run_id=run_id))]
        else:
            plans = asyncio.run(service.resume_runs())
        if not plans:
            typer.echo("No unfinished runs.")
        for plan in plans:
            _print_plan(plan)


@runs_app.command("list")
def list_runs(
    ctx: typer.Context,
    queue_id: str | None = typer.Option(None, "--queue"),
    status: RunStatus | None = typer.Option(None, "--status"),
) -> None:
    with _service(ctx) as service:
        service.refresh_views()
        if queue_id is not None:
            runs = service.views.runs_by_queue(queue_id)
        elif status is not None:
            runs = service.views.runs_by_status(status)
        else:
            runs = service.views.all_runs()
        if queue_id is not None and status is not None:
            runs = [r for r in runs if r.status == status]
        _print_table(
            title="Runs",
            columns=["ID", "Queue", "Status", "Planned", "Completed", "Failed", "Started"],
            rows=[
                [
                    r.run_id,
                    r.queue_id,
                    r.status.value,
                    str(r.planned_count),
                    str(r.completed_count),
                    str(r.failed_count),
                    r.started_at.isoformat(timespec="seconds"),
                ]
                for r in runs
            ],
        )


@runs_app.command("show")
def show_run(ctx: typer.Context, run_id: str = typer.Argument(...)) -> None:
    with _service(ctx) as service:
        run = service.get_run(run_id=run_id)
        typer.echo(
            f"Run {run.run_id} ({run.queue_id}): {run.status.value}"
            f" {run.total_processed}/{run.planned_count}"
            f" completed={run.completed_count} failed={run.failed_count}"
            f" progress={run.progress_percent:.0f}%"
        )


# ---------------------------------------------------------------------------
# Evaluations and views
# ---------------------------------------------------------------------------


@evaluations_app.command("list")
def list_evaluations(
    ctx: typer.Context,
    queue_id: str | None = typer.Option(None, "--queue"),
    judge_id: str | None = typer.Option(None, "--judge"),
    question_id: str | None = typer.Option(None, "--question"),
    verdict: str | None = typer.Option(None, "--verdict"),
    run_id: str | None = typer.Option(None, "--run"),
) -> None:
    with _service(ctx) as service:
        filters = EvaluationFilters(
            queue_id=queue_id,
            judge_id=judge_id,
            question_id=question_id,
            verdict=parse_verdict(verdict) if verdict is not None else None,
            run_id=run_id,
        )
        service.refresh_views()
        _print_table(
            title="Evaluations",
            columns=["Submission", "Question", "Judge", "Verdict", "Reasoning"],
            rows=[
                [e.submission_id, e.question_id, e.judge_id, e.verdict.value, e.reasoning]
                for e in service.views.evaluations(filters)
            ],
        )


@evaluations_app.command("summary")
def summarize_evaluations(
    ctx: typer.Context,
    queue_id: str = typer.Argument(...),
    group_by: GroupBy = typer.Option(GroupBy.JUDGE, "--by"),
) -> None:
    """Pass rates per judge or per question."""
    with _service(ctx) as service:
        service.refresh_views()
        _print_table(
            title=f"Verdicts in {queue_id} by {group_by.value}",
            columns=[group_by.value.title(), "Pass", "Fail", "Inconclusive", "Pass rate"],
            rows=[
                [
                    c.key,
                    str(c.passed),
                    str(c.failed),
                    str(c.inconclusive),
                    f"{c.pass_rate:.0%}",
                ]
                for c in service.views.verdict_counts(queue_id=queue_id, group_by=group_by)
            ],
        )


@app.command("project")
def project_views(
    ctx: typer.Context,
    rebuild: bool = typer.Option(False, "--rebuild", help="Re-project from scratch"),
    watch: bool = typer.Option(
        False, "--watch", help="Keep projecting new events until interrupted"
    ),
) -> None:
    """Bring the view tables up to date with the event log."""
    with _service(ctx) as service:
        applied = service.rebuild_views() if rebuild else service.refresh_views()
        typer.echo(f"Projected {applied} event(s)")
        if watch:
            try:
                asyncio.run(service.watch_views(stop=asyncio.Event()))
            except KeyboardInterrupt:
                typer.echo("Stopped watching.")


if __name__ == "__main__":
    app()
