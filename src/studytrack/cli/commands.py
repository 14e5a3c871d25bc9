"""CLI commands for the study tracker.

Commands:
- init: Create the database
- semester-create / semester-list / semester-delete
- tracker-create / tracker-list / progress / toggle
- schedule-test / tests / test-details / priority (with --watch)
- export / import-json / validate-syllabus
- serve: Run the web API

Entity ids may be abbreviated to any unique prefix.
"""

import json
import time
from datetime import datetime
from pathlib import Path
from typing import NoReturn

import typer
from rich.console import Console
from rich.table import Table

from studytrack.config.app_config import load_app_config
from studytrack.core.dashboard import describe_test, recompute
from studytrack.core.errors import StudyTrackError, ValidationError
from studytrack.core.models import PriorityTest, TestType, TrackerProgress, Urgency
from studytrack.core.priority import normalize_test_time
from studytrack.core.syllabus import SyllabusDocument, decode_syllabus_report
from studytrack.db.database import init_db
from studytrack.db.schedule_repository import (
    fetch_coverage,
    fetch_tests,
    get_test,
    load_tracker_snapshot,
    parse_coverage_ids,
    schedule_test as do_schedule_test,
)
from studytrack.db.tracker_repository import (
    create_semester,
    create_tracker,
    delete_semester,
    export_syllabus_document,
    export_syllabus_text,
    fetch_tracker_tree,
    import_syllabus_document,
    list_ids,
    list_semesters,
    list_trackers,
    require_tracker,
    toggle_topic,
)
from studytrack.utils.validators import (
    AmbiguousIdError,
    IdNotFoundError,
    resolve_id,
    short_id,
)

app = typer.Typer(
    name="track",
    help="Track syllabus completion and upcoming tests across semesters.",
    no_args_is_help=True,
)

console = Console()

URGENCY_STYLES = {
    Urgency.CRITICAL: "bold red",
    Urgency.HIGH: "dark_orange",
    Urgency.ELEVATED: "magenta",
    Urgency.NORMAL: "cyan",
}


@app.callback()
def main() -> None:
    """Ensure the database schema exists before any command runs."""
    init_db()


def _resolve_or_exit(prefix: str, kind: str) -> str:
    """Resolve an id prefix to a full id, or exit with a helpful error."""
    try:
        return resolve_id(prefix, list_ids(kind), kind)
    except (IdNotFoundError, AmbiguousIdError) as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1)


def _fail(error: Exception) -> NoReturn:
    console.print(f"[red]✗ {error}[/red]")
    raise typer.Exit(code=1)


def _now() -> datetime:
    return datetime.now().astimezone()


def _print_progress(progress: TrackerProgress) -> None:
    console.print(
        f"\n[bold]Overall:[/bold] {progress.completed_topics}/{progress.total_topics} "
        f"topics ({progress.percentage:.1f}%)\n"
    )
    for subject in progress.subjects:
        console.print(
            f"  [bold]{subject.subject_name}[/bold]  "
            f"{subject.completed_topics}/{subject.total_topics} ({subject.percentage:.1f}%)"
        )
        for unit in subject.units:
            console.print(
                f"    [dim]-[/dim] {unit.unit_name}  "
                f"{unit.completed_topics}/{unit.total_topics} ({unit.percentage:.1f}%)"
            )


def _priority_table(feed: list[PriorityTest]) -> Table:
    table = Table(title="Upcoming tests")
    table.add_column("Test")
    table.add_column("Type")
    table.add_column("Date")
    table.add_column("Remaining")
    table.add_column("Topics")
    for entry in feed:
        style = URGENCY_STYLES[entry.urgency]
        table.add_row(
            entry.test.name,
            entry.test.test_type.value,
            entry.test.scheduled_at.strftime("%Y-%m-%d %H:%M"),
            f"[{style}]{entry.time_remaining}[/{style}]",
            ", ".join(entry.covered_topics) or "-",
        )
    return table


# =============================================================================
# SETUP / SEMESTERS
# =============================================================================


@app.command()
def init() -> None:
    """Create the database (idempotent)."""
    console.print("[green]✓ Database ready[/green]")


@app.command(name="semester-create")
def semester_create(
    name: str = typer.Argument(..., help="Semester name, e.g. 'Fall 2026'"),
) -> None:
    """Create a semester."""
    try:
        semester = create_semester(name)
    except ValidationError as e:
        _fail(e)

    console.print("[green]✓ Semester created[/green]")
    console.print(f"  [dim]id:[/dim]   {semester.id}")
    console.print(f"  [dim]name:[/dim] {semester.name}")


@app.command(name="semester-list")
def semester_list() -> None:
    """List semesters, newest first."""
    semesters = list_semesters()
    if not semesters:
        console.print("[yellow]No semesters yet[/yellow]")
        console.print("  Use: track semester-create <name>")
        return

    for semester in semesters:
        trackers = list_trackers(semester.id)
        console.print(
            f"  [bold]{short_id(semester.id)}[/bold]  {semester.name}  "
            f"[dim]({len(trackers)} tracker(s))[/dim]"
        )


@app.command(name="semester-delete")
def semester_delete(
    semester_id: str = typer.Argument(..., help="Semester id or prefix"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation prompt"),
) -> None:
    """Delete a semester and all of its trackers."""
    semester_id = _resolve_or_exit(semester_id, "semester")
    if not yes and not typer.confirm(f"Delete semester {short_id(semester_id)} and its trackers?"):
        console.print("[yellow]Aborted[/yellow]")
        raise typer.Exit(code=1)

    delete_semester(semester_id)
    console.print("[green]✓ Semester deleted[/green]")


# =============================================================================
# TRACKERS
# =============================================================================


@app.command(name="tracker-create")
def tracker_create(
    semester_id: str = typer.Argument(..., help="Semester id or prefix"),
    name: str = typer.Argument(..., help="Tracker name"),
    file: Path | None = typer.Option(None, "--file", "-f", help="Syllabus text file"),
    text: str | None = typer.Option(None, "--text", "-t", help="Syllabus text"),
    description: str | None = typer.Option(None, "--description", "-d"),
    color: str | None = typer.Option(None, "--color"),
) -> None:
    """Create a tracker from syllabus text ('Subject >>> Unit >>> t1, t2')."""
    semester_id = _resolve_or_exit(semester_id, "semester")

    if file is not None:
        try:
            syllabus = file.read_text(encoding="utf-8")
        except OSError as e:
            _fail(e)
    elif text is not None:
        syllabus = text.replace("\\n", "\n")
    else:
        console.print("[red]✗ Provide the syllabus with --file or --text[/red]")
        raise typer.Exit(code=1)

    try:
        tracker = create_tracker(semester_id, name, syllabus, description, color)
    except StudyTrackError as e:
        _fail(e)

    console.print(f"[green]✓ Tracker '{tracker.name}' created[/green]")
    console.print(f"  [dim]id:[/dim]       {tracker.id}")
    console.print(
        f"  [dim]contents:[/dim] {tracker.total_subjects} subject(s), "
        f"{tracker.total_units} unit(s), {tracker.total_topics} topic(s)"
    )


@app.command(name="tracker-list")
def tracker_list(
    semester_id: str | None = typer.Option(None, "--semester", "-s", help="Filter by semester"),
) -> None:
    """List trackers."""
    if semester_id is not None:
        semester_id = _resolve_or_exit(semester_id, "semester")

    trackers = list_trackers(semester_id)
    if not trackers:
        console.print("[yellow]No trackers yet[/yellow]")
        return

    for tracker in trackers:
        console.print(
            f"  [bold]{short_id(tracker.id)}[/bold]  {tracker.name}  "
            f"[dim]{tracker.total_subjects} subjects / {tracker.total_units} units / "
            f"{tracker.total_topics} topics[/dim]"
        )


@app.command()
def progress(
    tracker_id: str = typer.Argument(..., help="Tracker id or prefix"),
    show_topics: bool = typer.Option(False, "--topics", help="List topic ids and state"),
) -> None:
    """Show completion progress of a tracker."""
    tracker_id = _resolve_or_exit(tracker_id, "tracker")
    tracker = require_tracker(tracker_id)
    dashboard = recompute(load_tracker_snapshot(tracker_id), _now())

    console.print(f"[bold]{tracker.name}[/bold]")
    _print_progress(dashboard.progress)

    if show_topics:
        console.print()
        for subject in fetch_tracker_tree(tracker_id):
            for unit_node in subject.units:
                for topic in unit_node.topics:
                    mark = "[green]✓[/green]" if topic.completed else " "
                    console.print(
                        f"  [{mark}] [dim]{short_id(topic.id)}[/dim] "
                        f"{subject.subject.name} / {unit_node.unit.name} / {topic.name}"
                    )


@app.command()
def toggle(
    topic_id: str = typer.Argument(..., help="Topic id or prefix"),
) -> None:
    """Toggle a topic between done and not done."""
    topic_id = _resolve_or_exit(topic_id, "topic")
    topic = toggle_topic(topic_id)
    if topic is None:
        _fail(IdNotFoundError(topic_id, "topic"))

    state = "[green]done[/green]" if topic.completed else "[yellow]not done[/yellow]"
    console.print(f"✓ {topic.name}: {state}")


# =============================================================================
# TESTS
# =============================================================================


@app.command(name="schedule-test")
def schedule_test(
    tracker_id: str = typer.Argument(..., help="Tracker id or prefix"),
    name: str = typer.Argument(..., help="Test name"),
    date: datetime = typer.Option(..., "--date", formats=["%Y-%m-%d"], help="Test date"),
    test_type: TestType = typer.Option(TestType.CLASS_TEST, "--type", help="Test type"),
    unit: list[str] | None = typer.Option(None, "--unit", "-u", help="Covered unit id (repeatable)"),
    topic: list[str] | None = typer.Option(None, "--topic", help="Covered topic id (repeatable)"),
) -> None:
    """Schedule a test on a date (held at the configured hour, 20:00 by default)."""
    tracker_id = _resolve_or_exit(tracker_id, "tracker")
    unit_ids = [_resolve_or_exit(u, "unit") for u in (unit or [])]
    topic_ids = [_resolve_or_exit(t, "topic") for t in (topic or [])]

    config = load_app_config()
    scheduled_at = normalize_test_time(date.date(), hour=config.schedule.test_hour)

    try:
        test = do_schedule_test(
            tracker_id,
            name,
            test_type,
            scheduled_at,
            parse_coverage_ids(unit_ids, topic_ids),
        )
    except StudyTrackError as e:
        _fail(e)

    console.print(f"[green]✓ Test '{test.name}' scheduled[/green]")
    console.print(f"  [dim]id:[/dim]   {test.id}")
    console.print(f"  [dim]when:[/dim] {test.scheduled_at.strftime('%Y-%m-%d %H:%M')}")


@app.command()
def tests(
    tracker_id: str = typer.Argument(..., help="Tracker id or prefix"),
) -> None:
    """List all tests of a tracker with their countdown and coverage."""
    tracker_id = _resolve_or_exit(tracker_id, "tracker")
    all_tests = fetch_tests(tracker_id)
    if not all_tests:
        console.print("[yellow]No tests scheduled[/yellow]")
        return

    tree = fetch_tracker_tree(tracker_id)
    now = _now()
    for test in all_tests:
        details = describe_test(test, fetch_coverage(test.id), tree, now)
        console.print(
            f"  [bold]{short_id(test.id)}[/bold]  {test.name} [dim]({test.test_type.value})[/dim]  "
            f"{test.scheduled_at.strftime('%Y-%m-%d %H:%M')}  {details.time_remaining}"
        )
        if details.covered_topics:
            console.print(f"    [dim]covers:[/dim] {', '.join(details.covered_topics)}")


@app.command()
def test_details(
    test_id: str = typer.Argument(..., help="Test id or prefix"),
) -> None:
    """Show one test with its resolved coverage."""
    test_id = _resolve_or_exit(test_id, "test")
    test = get_test(test_id)
    if test is None:
        _fail(IdNotFoundError(test_id, "test"))

    details = describe_test(test, fetch_coverage(test_id), fetch_tracker_tree(test.tracker_id), _now())
    console.print(f"[bold]{test.name}[/bold] [dim]({test.test_type.value})[/dim]")
    console.print(f"  [dim]when:[/dim]      {test.scheduled_at.strftime('%Y-%m-%d %H:%M')}")
    console.print(f"  [dim]remaining:[/dim] {details.time_remaining}")
    console.print(f"  [dim]coverage:[/dim]  {len(details.coverage)} row(s)")
    for name in details.covered_topics:
        console.print(f"    - {name}")


@app.command()
def priority(
    tracker_id: str = typer.Argument(..., help="Tracker id or prefix"),
    window: int | None = typer.Option(None, "--window", "-w", help="Window in days"),
    watch: bool = typer.Option(False, "--watch", help="Refresh until interrupted"),
    count: int = typer.Option(0, "--count", help="With --watch: stop after N refreshes (0 = never)"),
) -> None:
    """Show upcoming tests inside the alert window, soonest first."""
    tracker_id = _resolve_or_exit(tracker_id, "tracker")
    config = load_app_config()
    window_days = window if window is not None else config.schedule.window_days

    refreshes = 0
    try:
        while True:
            dashboard = recompute(load_tracker_snapshot(tracker_id), _now(), window_days)
            if watch:
                console.clear()
            if dashboard.priority_tests:
                console.print(_priority_table(dashboard.priority_tests))
            else:
                console.print(f"[green]No tests in the next {window_days} day(s)[/green]")

            refreshes += 1
            if not watch or (count and refreshes >= count):
                break
            time.sleep(config.schedule.refresh_interval_seconds)
    except KeyboardInterrupt:
        console.print("[dim]Stopped[/dim]")


# =============================================================================
# SYLLABUS IMPORT / EXPORT
# =============================================================================


@app.command()
def export(
    tracker_id: str = typer.Argument(..., help="Tracker id or prefix"),
    as_json: bool = typer.Option(False, "--json", help="Export the JSON document"),
    output: Path | None = typer.Option(None, "--output", "-o", help="Write to file"),
) -> None:
    """Export a tracker's syllabus as text (default) or JSON."""
    tracker_id = _resolve_or_exit(tracker_id, "tracker")
    if as_json:
        content = json.dumps(export_syllabus_document(tracker_id).to_dict(), indent=2, ensure_ascii=False)
    else:
        content = export_syllabus_text(tracker_id)

    if output is None:
        console.print(content, markup=False, highlight=False)
        return

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(content, encoding="utf-8")
    console.print(f"[green]✓ Exported to {output}[/green]")


@app.command(name="import-json")
def import_json(
    semester_id: str = typer.Argument(..., help="Semester id or prefix"),
    file: Path = typer.Argument(..., help="Syllabus JSON document"),
) -> None:
    """Create a tracker from an exported JSON syllabus document."""
    semester_id = _resolve_or_exit(semester_id, "semester")
    try:
        data = json.loads(file.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        _fail(e)

    try:
        tracker = import_syllabus_document(semester_id, SyllabusDocument.from_dict(data))
    except StudyTrackError as e:
        _fail(e)

    console.print(f"[green]✓ Imported tracker '{tracker.name}'[/green]")
    console.print(f"  [dim]id:[/dim] {tracker.id}")


@app.command(name="validate-syllabus")
def validate_syllabus(
    file: Path = typer.Argument(..., help="Syllabus text file"),
) -> None:
    """Check a syllabus file and report lines that would be skipped."""
    try:
        text = file.read_text(encoding="utf-8")
    except OSError as e:
        _fail(e)

    result = decode_syllabus_report(text)

    console.print(
        f"{len(result.subjects)} subject(s), {result.total_units} unit(s), "
        f"{result.total_topics} topic(s)"
    )
    for skipped in result.skipped:
        console.print(
            f"[yellow]⚠ line {skipped.line_number}: {skipped.reason}[/yellow]  "
            f"[dim]{skipped.text.strip()}[/dim]",
        )

    if not result.subjects:
        console.print("[red]✗ No valid entries[/red]")
        raise typer.Exit(code=1)


# =============================================================================
# WEB
# =============================================================================


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host"),
    port: int = typer.Option(8000, "--port", "-p"),
) -> None:
    """Run the web API with uvicorn."""
    import uvicorn

    uvicorn.run("studytrack.web.api:app", host=host, port=port)
