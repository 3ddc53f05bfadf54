"""Flask CLI commands for Vision100."""

from __future__ import annotations

import os

import click
from flask import Flask
from flask.cli import FlaskGroup


def init_app(app: Flask) -> None:
    """Register CLI commands on the Flask app."""

    @app.cli.command("vision100-init-db")
    def vision100_init_db() -> None:
        """Create tables on the active backend."""

        from .extensions import get_services

        store = get_services().store
        store.init_schema()
        click.echo(f"Schema ready on the {store.name} backend.")

    @app.cli.command("vision100-check-db")
    def vision100_check_db() -> None:
        """Connect to the active backend and report the server time."""

        from .extensions import get_services
        from .infra.database import mask_url

        services = get_services()
        store = services.store
        if store.name == "hosted":
            target = services.config.TABLE_SERVICE_URL
        else:
            target = mask_url(services.config.DATABASE_URL)
        click.echo(f"Checking connection to: {target}")

        server_time = getattr(store, "server_time", None)
        try:
            if server_time is None:
                store.list_goal_rows("__connectivity_check__")
                click.echo("Connection successful.")
                return
            click.echo(f"Connection successful. Server time: {server_time()}")
            click.echo(f"Stored goals: {store.count_goals()}")
        except Exception as exc:  # noqa: BLE001 - report any driver failure
            click.echo(f"Connection failed: {exc}", err=True)
            raise SystemExit(1) from exc


def _create_app() -> Flask:
    from . import create_app

    return create_app(os.getenv("VISION100_ENV", "default"))


@click.group(cls=FlaskGroup, create_app=_create_app)
def main() -> None:
    """Vision100 management commands (``run``, ``vision100-check-db``, ...)."""
