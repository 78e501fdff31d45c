"""Main CLI entry point for pace-tracker."""

from contextlib import closing
from pathlib import Path

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape

from pace_tracker.config.messages import (
    HELP_TEXT,
    INFO_MESSAGES,
    PROJECT_TAGLINE,
    SUCCESS_MESSAGES,
    WARNING_MESSAGES,
)
from pace_tracker.config.paths import get_config_path, get_pace_home
from pace_tracker.constants import VERSION
from pace_tracker.models import (
    Activity,
    AdjustOptions,
    BeginOptions,
    EndOptions,
    HoldOptions,
    IntermissionAction,
    PaceDateTime,
    ResumeOptions,
)
from pace_tracker.models.config import PaceConfig
from pace_tracker.services import ActivityService
from pace_tracker.store import ActivityStore, MigrationRunner
from pace_tracker.store.core import connect
from pace_tracker.utils import (
    configure_logging,
    handle_pace_errors,
    print_info,
    print_success,
    print_table,
    print_warning,
)

# Load .env file from current directory if it exists
load_dotenv(Path.cwd() / ".env", verbose=False)

app = typer.Typer(
    name="pace",
    help=PROJECT_TAGLINE,
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

console = Console()


def _load_config() -> tuple[PaceConfig, Path]:
    """Load the config file and set up logging from it."""
    home = get_pace_home()
    config = PaceConfig.load(get_config_path())
    configure_logging(config.logging.level, config.logging.file, config.logging.rotation)
    return config, home


def _service() -> ActivityService:
    config, home = _load_config()
    return ActivityService.from_config(config, home)


def _parse_at(service: ActivityService, text: str | None) -> PaceDateTime | None:
    """Parse a ``--at`` value; None leaves the choice of "now" to the service."""
    if text is None:
        return None
    return PaceDateTime.from_user_input(text, service.time_zone)


def _parse_tags(text: str | None) -> frozenset[str]:
    if not text:
        return frozenset()
    return frozenset(part.strip() for part in text.split(",") if part.strip())


def _show_time(service: ActivityService, moment: PaceDateTime) -> str:
    return str(moment.astimezone(service.time_zone) if service.time_zone else moment)


def _label(activity: Activity) -> str:
    return escape(activity.description.text)


@app.command("setup")
@handle_pace_errors
def setup(
    force: bool = typer.Option(
        False,
        "--force",
        "-f",
        help="Overwrite an existing configuration with the defaults",
    ),
) -> None:
    """Write a default configuration and create the database."""
    config_path = get_config_path()
    if config_path.exists() and not force:
        print_info(INFO_MESSAGES["config_exists"].format(path=config_path))
        config = PaceConfig.load(config_path)
    else:
        config = PaceConfig()
        config.save(config_path)
        print_success(SUCCESS_MESSAGES["setup"].format(path=config_path))

    db_path = config.database_path(get_pace_home())
    store = ActivityStore(db_path, tag_delete_policy=config.database.tag_delete_policy)
    try:
        version = store.schema_version()
    finally:
        store.close()
    print_success(SUCCESS_MESSAGES["schema_ready"].format(path=db_path, version=version))


@app.command("begin")
@handle_pace_errors
def begin(
    description: str = typer.Argument(..., help="What you are working on"),
    category: str | None = typer.Option(None, "--category", "-c", help="Category name"),
    tags: str | None = typer.Option(None, "--tags", "-t", help="Comma-separated tag names"),
    at: str | None = typer.Option(None, "--at", help="Start time (HH:MM or ISO-8601)"),
    force: bool = typer.Option(
        False,
        "--force",
        "-f",
        help="End the current activity instead of refusing to begin",
    ),
) -> None:
    """Start a new activity."""
    service = _service()
    activity, previous = service.begin_replacing(
        BeginOptions(
            description=description,
            begin_time=_parse_at(service, at),
            category=category,
            tags=_parse_tags(tags),
            force=force,
        )
    )
    if previous is not None:
        print_warning(WARNING_MESSAGES["force_closed"].format(description=_label(previous)))
    print_success(
        SUCCESS_MESSAGES["began"].format(
            description=_label(activity), time=_show_time(service, activity.begin)
        )
    )


@app.command("hold")
@handle_pace_errors
def hold(
    at: str | None = typer.Option(None, "--at", help="Pause time (HH:MM or ISO-8601)"),
    reason: str | None = typer.Option(None, "--reason", "-r", help="Why you are pausing"),
    new_if_exists: bool = typer.Option(
        False,
        "--new-if-exists",
        help="Ask for a new intermission; fails if the activity is already held",
    ),
) -> None:
    """Pause the current activity."""
    service = _service()
    action = IntermissionAction.NEW if new_if_exists else IntermissionAction.EXTEND
    activity = service.hold(
        HoldOptions(action=action, begin_time=_parse_at(service, at), reason=reason)
    )
    intermission = activity.open_intermission()
    since = intermission.begin if intermission is not None else activity.begin
    print_success(
        SUCCESS_MESSAGES["held"].format(
            description=_label(activity), time=_show_time(service, since)
        )
    )


@app.command("resume")
@handle_pace_errors
def resume(
    at: str | None = typer.Option(None, "--at", help="Resume time (HH:MM or ISO-8601)"),
) -> None:
    """Resume the held activity."""
    service = _service()
    activity = service.resume(ResumeOptions(resume_time=_parse_at(service, at)))
    closed = activity.intermissions[-1].end if activity.intermissions else None
    print_success(
        SUCCESS_MESSAGES["resumed"].format(
            description=_label(activity),
            time=_show_time(service, closed or activity.begin),
        )
    )


@app.command("end")
@handle_pace_errors
def end(
    at: str | None = typer.Option(None, "--at", help="End time (HH:MM or ISO-8601)"),
) -> None:
    """End the current activity."""
    service = _service()
    activity = service.end(EndOptions(end_time=_parse_at(service, at)))
    print_success(
        SUCCESS_MESSAGES["ended"].format(
            description=_label(activity),
            time=_show_time(service, activity.end or activity.begin),
            duration=service.worked_duration(activity),
        )
    )


@app.command("now")
@handle_pace_errors
def now() -> None:
    """Show the current activity."""
    service = _service()
    activity = service.current()
    if activity is None:
        print_info(INFO_MESSAGES["no_current"])
        return

    tags = ", ".join(sorted(escape(tag.name) for tag in activity.tags))
    print_table(
        "Current activity",
        ["Description", "Status", "Category", "Tags", "Since", "Worked"],
        [
            [
                _label(activity),
                activity.status.value,
                escape(activity.category.name) if activity.category else "-",
                tags or "-",
                _show_time(service, activity.begin),
                str(service.worked_duration(activity)),
            ]
        ],
    )


@app.command("adjust")
@handle_pace_errors
def adjust(
    description: str | None = typer.Option(None, "--description", "-d", help="New description"),
    category: str | None = typer.Option(None, "--category", "-c", help="New category"),
    tags: str | None = typer.Option(None, "--tags", "-t", help="Comma-separated tag names"),
    override_tags: bool = typer.Option(
        False,
        "--override-tags",
        help="Replace the tag set instead of adding to it",
    ),
    at: str | None = typer.Option(None, "--at", help="New begin time (HH:MM or ISO-8601)"),
) -> None:
    """Edit the current activity."""
    service = _service()
    activity = service.adjust(
        AdjustOptions(
            description=description,
            category=category,
            tags=_parse_tags(tags),
            override_tags=override_tags,
            begin_time=_parse_at(service, at),
        )
    )
    print_success(SUCCESS_MESSAGES["adjusted"].format(description=_label(activity)))


@app.command("migrate")
@handle_pace_errors
def migrate(
    down_to: str | None = typer.Option(
        None,
        "--down-to",
        help="Revert migrations newer than this version",
    ),
) -> None:
    """Apply pending schema migrations, or revert them with --down-to."""
    config, home = _load_config()
    db_path = config.database_path(home)
    db_path.parent.mkdir(parents=True, exist_ok=True)

    with closing(connect(db_path)) as conn:
        runner = MigrationRunner(conn)
        if down_to is not None:
            reverted = runner.rollback(down_to)
            if reverted:
                print_success(SUCCESS_MESSAGES["reverted"].format(count=len(reverted)))
            else:
                print_info(INFO_MESSAGES["nothing_to_revert"])
            return

        applied = runner.run()
        if applied:
            print_success(
                SUCCESS_MESSAGES["migrated"].format(count=len(applied), version=applied[-1])
            )
        else:
            print_info(INFO_MESSAGES["up_to_date"].format(version=runner.latest_version))


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version_flag: bool | None = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version information",
        is_eager=True,
    ),
) -> None:
    """pace - track activities and their intermissions."""
    if version_flag:
        console.print(f"[bold cyan]pace-tracker[/bold cyan] version [green]{VERSION}[/green]")
        raise typer.Exit()

    if ctx.invoked_subcommand is None:
        console.print(HELP_TEXT)
        raise typer.Exit()
