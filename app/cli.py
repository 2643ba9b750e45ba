import os

import click
from flask import current_app
from flask.cli import with_appcontext
from flask_migrate import migrate as alembic_migrate, stamp as alembic_stamp, upgrade as alembic_upgrade


def _guard_production():
    app_env = (os.getenv("APP_ENV") or "").lower()
    if app_env == "production" or current_app.config.get("ENV") == "production":
        if (os.getenv("ALLOW_DB_MIGRATIONS") or "").lower() not in ("1", "true", "yes"):
            raise click.ClickException("Refusing to touch the production schema without ALLOW_DB_MIGRATIONS=true")


@click.group("db-safe")
def db_safe():
    """Alembic operations guarded against accidental production runs."""


@db_safe.command("migrate")
@click.option("-m", "--message", default="auto migration", help="Migration message")
@with_appcontext
def db_safe_migrate(message):
    """Generate a migration script from the current models."""
    alembic_migrate(message=message)
    click.echo("Migration script generated.")


@db_safe.command("upgrade")
@click.option("--revision", default="head")
@with_appcontext
def db_safe_upgrade(revision):
    _guard_production()
    alembic_upgrade(revision=revision)
    click.echo(f"Database upgraded to {revision}.")


@db_safe.command("stamp")
@click.option("--revision", default="head")
@with_appcontext
def db_safe_stamp(revision):
    """Record a revision without running it."""
    _guard_production()
    alembic_stamp(revision=revision)
    click.echo(f"Database stamped at {revision}.")


@click.command("orders-recover")
@click.option("--older-than", "older_than", type=int, default=None,
              help="Only drafts older than this many minutes (default: PENDING_CREATION_STALE_MINUTES)")
@with_appcontext
def orders_recover(older_than):
    """Finalize or discard checkouts stuck between draft and gateway reply."""
    from app.services.order_service import recover_stalled_orders

    result = recover_stalled_orders(older_than)
    click.echo(f"Finalized {result['finalized']}, abandoned {result['abandoned']}.")


def register_cli(app):
    app.cli.add_command(db_safe)
    app.cli.add_command(orders_recover)
