"""CLI command for pulling Google Calendar changes.

Usage:
    flask google-sync                     # Every connected user, selected calendars
    flask google-sync --user 1            # One user
    flask google-sync --user 1 --calendar primary
"""

from __future__ import annotations

import click
from flask.cli import with_appcontext


@click.command("google-sync")
@click.option("--user", "-u", type=int, help="Sync for specific user ID only")
@click.option("--calendar", "-c", "gcal_id", help="Sync this calendar id only")
@with_appcontext
def google_sync_command(user: int | None, gcal_id: str | None):
    """Run an incremental sync for connected users' calendars."""
    from classmate.domains.google.errors import GoogleSyncError
    from classmate.domains.google.models import GoogleCredential
    from classmate.domains.google.services.calendar_gateway import sync_selected_calendars

    if user:
        user_ids = [user]
    else:
        user_ids = [c.user_id for c in GoogleCredential.query.order_by(GoogleCredential.user_id)]

    errors = 0
    for user_id in user_ids:
        click.echo(f"Syncing Google Calendar for user {user_id}...")
        try:
            results = sync_selected_calendars(user_id, gcal_id)
        except GoogleSyncError as e:
            errors += 1
            click.echo(f"  ✗ {e.kind}: {e.message}", err=True)
            continue

        if not results:
            click.echo("  - no calendars to sync")
        for calendar_id, stats in results.items():
            if not stats["synced"]:
                errors += 1
                click.echo(f"  ✗ {calendar_id}: {stats['error']}: {stats['message']}", err=True)
                continue
            click.echo(
                f"  ✓ {calendar_id}: {stats['events_count']} changes, "
                f"{len(stats['cancelled_ids'])} cancelled"
            )

    click.echo(f"Done: {len(user_ids)} users, {errors} errors")


def register_commands(app):
    """Register CLI commands with the app."""
    app.cli.add_command(google_sync_command)
