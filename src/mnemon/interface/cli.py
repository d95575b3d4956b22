"""mnemon CLI: review, forecast, insights and stats over a card snapshot file."""

import asyncio
import dataclasses
import json
import logging
import sys
from datetime import date, datetime
from pathlib import Path
from typing import Annotated, Any

import typer
from pydantic import ValidationError

from mnemon.application.config import AppConfig, resolve_config
from mnemon.application.factory import get_service
from mnemon.application.stats.history import milestone_progress, streak_message
from mnemon.domain.constants import TARGET_RETENTION_RATE
from mnemon.domain.errors import CardNotFound, InvalidInput, SnapshotError

# ---------------------------------------------------------------------------
# Root app
# ---------------------------------------------------------------------------

app = typer.Typer(
    help="mnemon: spaced-repetition scheduling and review analytics.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

config_app = typer.Typer(help="Manage mnemon configuration.")
app.add_typer(config_app, name="config")

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.WARNING,
    format="%(levelname)s:%(name)s:%(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)

_LOG_LEVELS = {0: logging.WARNING, 1: logging.WARNING, 2: logging.INFO}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def humanize_error(e: Exception) -> str:
    if isinstance(e, InvalidInput):
        return f"Invalid input: {e}"
    if isinstance(e, CardNotFound):
        return str(e)
    if isinstance(e, SnapshotError):
        return f"Snapshot error: {e}"
    if isinstance(e, ValidationError):
        return f"Invalid configuration:\n{e}"
    return str(e)


def _resolve(ctx: typer.Context, **overrides: Any) -> AppConfig:
    obj = ctx.obj or {}
    overrides.setdefault("cards_file", obj.get("cards_file"))
    overrides["verbose"] = obj.get("verbose", 1)
    try:
        config = resolve_config(overrides)
    except ValidationError as e:
        typer.secho(humanize_error(e), fg="red", err=True)
        raise typer.Exit(2) from None
    logging.getLogger("mnemon").setLevel(_LOG_LEVELS.get(config.verbose, logging.DEBUG))
    return config


def _now(ctx: typer.Context) -> datetime:
    return (ctx.obj or {}).get("now") or datetime.now().astimezone()


def _run(coro):
    """Run a service coroutine, turning engine errors into exit codes."""
    try:
        return asyncio.run(coro)
    except InvalidInput as e:
        typer.secho(humanize_error(e), fg="red", err=True)
        raise typer.Exit(2) from None
    except (CardNotFound, SnapshotError) as e:
        typer.secho(humanize_error(e), fg="red", err=True)
        raise typer.Exit(1) from None


def _to_jsonable(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: _to_jsonable(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, (frozenset, set)):
        return sorted(value)
    if isinstance(value, (list, tuple)):
        return [_to_jsonable(v) for v in value]
    if isinstance(value, dict):
        return {k: _to_jsonable(v) for k, v in value.items()}
    return value


def _echo_json(data: Any) -> None:
    typer.echo(json.dumps(_to_jsonable(data), indent=2))


# ---------------------------------------------------------------------------
# Global callback
# ---------------------------------------------------------------------------


@app.callback()
def main_callback(
    ctx: typer.Context,
    cards_file: Annotated[
        Path | None,
        typer.Option(
            "--cards", "-c", help="Card snapshot file (YAML or JSON). Defaults to ./cards.yaml."
        ),
    ] = None,
    now: Annotated[
        datetime | None,
        typer.Option(help="Pretend the current time is this (YYYY-MM-DD[THH:MM:SS], local time)."),
    ] = None,
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose", "-v", count=True, help="Increase verbosity. Repeat for more detail."
        ),
    ] = 1,
):
    """Global settings for mnemon."""
    ctx.ensure_object(dict)
    ctx.obj["cards_file"] = cards_file
    ctx.obj["now"] = now.astimezone() if now is not None else None
    ctx.obj["verbose"] = verbose


# ---------------------------------------------------------------------------
# Root commands
# ---------------------------------------------------------------------------


@app.command()
def review(
    ctx: typer.Context,
    card_id: Annotated[str, typer.Argument(help="Card to review.")],
    quality: Annotated[
        int, typer.Argument(help="Recall quality: 0=Again, 3=Hard, 4=Good, 5=Easy (0-5).")
    ],
    minutes: Annotated[float, typer.Option(help="Minutes spent on this review.")] = 0.0,
):
    """[bold green]Review[/bold green] a card and reschedule it."""
    config = _resolve(ctx)
    service = get_service(config)
    card = _run(service.review(card_id, quality, _now(ctx), minutes=minutes))

    typer.echo(f"{card.id}: next review in {card.interval} day(s)")
    typer.echo(f"  Due: {card.next_review_date.isoformat(timespec='minutes')}")
    typer.echo(f"  Ease: {card.ease_factor:.2f}  Repetitions: {card.repetitions}")


@app.command()
def add(
    ctx: typer.Context,
    card_id: Annotated[str, typer.Argument(help="Identifier for the new card.")],
    source_id: Annotated[str, typer.Option(help="Content item the card refers to.")] = "",
    source_type: Annotated[str, typer.Option(help="milestone or concept.")] = "concept",
    pack: Annotated[list[str] | None, typer.Option(help="Pack id; repeat for several.")] = None,
):
    """Add a new card, due immediately."""
    config = _resolve(ctx)
    service = get_service(config)
    card = _run(
        service.add_card(
            card_id,
            _now(ctx),
            source_type=source_type,
            source_id=source_id,
            pack_ids=set(pack or []),
        )
    )
    typer.secho(f"Added {card.id}; due now.", fg="green")


@app.command()
def due(
    ctx: typer.Context,
    pack: Annotated[str | None, typer.Option(help="Only cards in this pack.")] = None,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """List cards that are due now."""
    config = _resolve(ctx)
    service = get_service(config)
    cards = _run(service.get_due_cards(_now(ctx), pack_id=pack))

    if json_output:
        _echo_json(cards)
        return
    if not cards:
        typer.secho("Nothing due. All caught up!", fg="green")
        return
    typer.echo(f"Due now: {len(cards)}")
    for card in cards:
        typer.echo(f"  {card.id}  {card.display_name}")


@app.command()
def forecast(
    ctx: typer.Context,
    days: Annotated[int | None, typer.Option(help="Days to project. Defaults to config.")] = None,
    pack: Annotated[str | None, typer.Option(help="Only cards in this pack.")] = None,
    include_overdue: Annotated[
        bool,
        typer.Option("--include-overdue", help="Count overdue and new cards on today."),
    ] = False,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """Show how many reviews fall due on each upcoming day."""
    config = _resolve(ctx)
    service = get_service(config)
    result = _run(
        service.get_forecast(_now(ctx), days=days, pack_id=pack, include_overdue=include_overdue)
    )

    if json_output:
        _echo_json(
            {
                "days": result.days,
                "total": result.total,
                "total_estimate": result.total_estimate,
                "heavy_days": result.heavy_days,
                "heavy_days_summary": result.heavy_days_summary,
                "is_empty": result.is_empty,
            }
        )
        return

    typer.echo(f"Next {len(result.days)} days")
    if result.is_empty:
        typer.secho(result.empty_message, fg="yellow")
        return

    for day in result.days:
        noun = "card" if day.count == 1 else "cards"
        line = f"  {day.label:<9} {day.count:>4} {noun:<5} {day.time_estimate}"
        typer.secho(line.rstrip(), fg="yellow" if day.is_heavy else None)
    typer.echo(f"  {'Total':<9} {result.total:>4}       {result.total_estimate}".rstrip())
    if result.planning_tip:
        typer.secho(result.planning_tip, fg="yellow")


@app.command()
def insights(
    ctx: typer.Context,
    limit: Annotated[
        int | None, typer.Option(help="Cards per section. Defaults to config.")
    ] = None,
    pack: Annotated[str | None, typer.Option(help="Only cards in this pack.")] = None,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """Show the most challenging, well known and overdue cards."""
    config = _resolve(ctx)
    service = get_service(config)
    report = _run(service.get_insights(_now(ctx), limit=limit, pack_id=pack))

    sections = [
        ("Most Challenging", report.challenging),
        ("Needs Review", report.overdue),
        ("Well Known", report.well_known),
    ]

    if json_output:
        _echo_json(
            {
                "is_empty": report.is_empty,
                "can_study_weak_cards": report.can_study_weak_cards,
                **{
                    section.category: [
                        {"id": e.card.id, "name": e.card.display_name, "value": e.value}
                        for e in section.entries
                    ]
                    for _, section in sections
                },
            }
        )
        return

    if report.is_empty:
        typer.secho(report.empty_message, fg="yellow")
        return

    for title, section in sections:
        typer.secho(f"\n{title}", bold=True)
        if section.is_empty:
            typer.echo(f"  {section.empty_message}")
        for entry in section.entries:
            typer.echo(f"  {entry.card.display_name:<40} {entry.value}")

    if report.can_study_weak_cards:
        typer.secho("\nTip: study your weak cards first.", fg="cyan")


@app.command()
def stats(
    ctx: typer.Context,
    pack: Annotated[str | None, typer.Option(help="Only cards in this pack.")] = None,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """Summarize card counts, retention, streak and upcoming workload."""
    config = _resolve(ctx)
    service = get_service(config)
    now = _now(ctx)
    summary = _run(service.get_summary(now, pack_id=pack))

    if json_output:
        _echo_json(summary)
        return

    typer.echo(
        f"Cards: {summary.total_cards}  (new {summary.new_cards}, "
        f"learning {summary.learning_cards}, mastered {summary.mastered_cards})"
    )
    typer.echo(
        f"Retention: 7d {summary.retention_rate_7d:.0%}  30d {summary.retention_rate_30d:.0%}  "
        f"(target {TARGET_RETENTION_RATE:.0%})"
    )
    typer.echo(f"Average ease: {summary.average_ease_factor:.2f}")
    typer.echo(
        f"Due: today {summary.due_today}, tomorrow {summary.due_tomorrow}, "
        f"this week {summary.due_this_week}"
    )

    studied_today = summary.last_study_date == now.date()
    message = streak_message(summary.current_streak, studied_today)
    typer.echo(f"Streak: {summary.current_streak} day(s). {message}")
    if summary.longest_streak > summary.current_streak:
        typer.echo(f"  Best: {summary.longest_streak} days")
    upcoming, progress, _ = milestone_progress(summary.current_streak)
    if upcoming is not None:
        typer.echo(f"  Next milestone: {upcoming} days ({progress}%)")


@app.command()
def retention(
    ctx: typer.Context,
    days: Annotated[int, typer.Option(min=1, help="Number of days to chart.")] = 30,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """Show daily retention, averaged over a 7-day window centred on each day."""
    config = _resolve(ctx)
    service = get_service(config)
    trend = _run(service.get_retention_trend(_now(ctx), days=days))

    if json_output:
        _echo_json([{"date": day, "retention_rate": rate} for day, rate in trend])
        return

    for day, rate in trend:
        typer.echo(f"  {day.isoformat()}  {rate:>4.0%}")


# ---------------------------------------------------------------------------
# Config subgroup
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show(ctx: typer.Context):
    """Display final resolved configuration."""
    config = _resolve(ctx)
    _echo_json(config.model_dump())
