"""Operator commands for Wealthline."""

from __future__ import annotations

import json
from datetime import date
from typing import Any, Optional

import click

from .clock import to_utc_naive
from .config import BaseConfig
from .context import AppContext, create_app_context
from .domain.repositories import EventFilters
from .errors import ReplayCorruptionError, WealthlineError
from .logging_config import setup_logging
from .services.analysis import INTERVALS


class DayOrInstant(click.DateTime):
    """A bare ``YYYY-MM-DD`` stays a date (the end of that day); anything else is a datetime."""

    name = "date"

    def convert(self, value, param, ctx):
        if isinstance(value, str):
            try:
                return date.fromisoformat(value.strip())
            except ValueError:
                pass
        return super().convert(value, param, ctx)


MOMENT = DayOrInstant()


def _context(ctx: click.Context) -> AppContext:
    app_ctx = ctx.obj.get("app")
    if app_ctx is None:
        config = BaseConfig(ctx.obj.get("data_dir"))
        setup_logging(config)
        app_ctx = create_app_context(config)
        ctx.obj["app"] = app_ctx
        ctx.call_on_close(app_ctx.dispose)
    return app_ctx


def _echo_json(data: Any) -> None:
    click.echo(json.dumps(data, indent=2, default=str))


def _event_row(event) -> dict[str, Any]:
    return {
        "id": event.id,
        "timestamp": event.timestamp.isoformat(),
        "actionType": event.action_type,
        "entityType": event.entity_type,
        "entitySubtype": event.entity_subtype,
        "entityId": event.entity_id,
        "beforeValue": event.before_value,
        "afterValue": event.after_value,
    }


@click.group()
@click.option(
    "--data-dir",
    type=click.Path(file_okay=False),
    default=None,
    help="Directory holding the database and logs (defaults to WEALTHLINE_DATA_DIR).",
)
@click.pass_context
def cli(ctx: click.Context, data_dir: Optional[str]) -> None:
    """Wealthline: event-sourced personal finance history."""

    ctx.ensure_object(dict)
    ctx.obj.setdefault("data_dir", data_dir)


@cli.command("init-db")
@click.pass_context
def init_db(ctx: click.Context) -> None:
    """Create tables and seed reference data."""

    app_ctx = _context(ctx)
    click.echo(f"Database ready: {app_ctx.config.DATABASE_URL}")


@cli.command("snapshot")
@click.argument("user_id", type=int)
@click.option(
    "--as-of", type=MOMENT, default=None, help="Point in time (UTC); a bare date means end of day."
)
@click.pass_context
def snapshot(ctx: click.Context, user_id: int, as_of: Optional[date]) -> None:
    """Print a user's reconstructed finances and metrics."""

    position = _run(lambda: _context(ctx).analysis.get_financial_snapshot(user_id, as_of))
    _echo_json(position.to_dict())


@cli.command("trajectory")
@click.argument("user_id", type=int)
@click.option("--start", "start", type=MOMENT, required=True)
@click.option("--end", "end", type=MOMENT, required=True)
@click.option("--interval", type=click.Choice(INTERVALS), default="monthly", show_default=True)
@click.pass_context
def trajectory(
    ctx: click.Context, user_id: int, start: date, end: date, interval: str
) -> None:
    """Print metrics at each interval between START and END."""

    if to_utc_naive(start) > to_utc_naive(end):
        raise click.BadParameter("--start must not be after --end")
    points = _run(
        lambda: _context(ctx).analysis.get_financial_trajectory(user_id, start, end, interval)
    )
    _echo_json([point.to_dict() for point in points])


@cli.command("checkpoint")
@click.argument("user_id", type=int)
@click.pass_context
def checkpoint(ctx: click.Context, user_id: int) -> None:
    """Create any missing month-end snapshots for a user."""

    created = _run(lambda: _context(ctx).snapshot_manager.ensure_monthly_checkpoints(user_id))
    click.echo(f"Created {len(created)} checkpoint(s)")


@cli.command("rebuild-snapshots")
@click.argument("user_id", type=int)
@click.confirmation_option(prompt="Drop and regenerate all snapshots for this user?")
@click.pass_context
def rebuild_snapshots(ctx: click.Context, user_id: int) -> None:
    """Regenerate a user's snapshots from the event log."""

    created = _run(lambda: _context(ctx).snapshot_manager.rebuild_snapshots(user_id))
    click.echo(f"Rebuilt {len(created)} checkpoint(s)")


@cli.command("audit")
@click.argument("user_id", type=int)
@click.pass_context
def audit(ctx: click.Context, user_id: int) -> None:
    """Compare the entity tables with a full replay of the event log."""

    app_ctx = _context(ctx)
    problems = _run(
        lambda: app_ctx.analysis.audit_read_model(user_id, app_ctx.entities.load_read_model(user_id))
    )
    if not problems:
        click.echo("Read model matches the event log")
        return
    for problem in problems:
        click.echo(problem, err=True)
    ctx.exit(1)


@cli.command("events")
@click.argument("user_id", type=int)
@click.option("--entity-type", default=None, help="Only events for this entity type.")
@click.option("--limit", type=click.IntRange(min=1), default=20, show_default=True)
@click.option("--offset", type=click.IntRange(min=0), default=0, show_default=True)
@click.pass_context
def events(
    ctx: click.Context, user_id: int, entity_type: Optional[str], limit: int, offset: int
) -> None:
    """List a user's most recent events."""

    filters = EventFilters(
        entity_type=entity_type.upper() if entity_type else None,
        limit=limit,
        offset=offset,
        descending=True,
    )
    page = _run(lambda: _context(ctx).event_store.page(user_id, filters))
    _echo_json(
        {
            "events": [_event_row(event) for event in page.events],
            "total": page.total,
            "hasMore": page.has_more,
        }
    )


def _run(action):
    try:
        return action()
    except ReplayCorruptionError as exc:
        raise click.ClickException(f"Event log is corrupt: {exc}") from exc
    except WealthlineError as exc:
        raise click.ClickException(str(exc)) from exc


def main() -> None:  # pragma: no cover - console entry point
    cli(obj={})


if __name__ == "__main__":  # pragma: no cover
    main()
