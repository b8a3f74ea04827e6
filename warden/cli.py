"""Maintenance commands for throttle records and tokens.

Usage:
    flask warden purge-expired
    flask warden clear-throttle --user-id 42
    flask warden clear-throttle --ip 8.8.8.8 --global
"""

from __future__ import annotations

import logging
import os

import click
from flask import current_app
from flask.cli import with_appcontext

from warden.core.throttling.constants import GLOBAL_KEY, SCOPE_GLOBAL, SCOPE_IP, SCOPE_USER


@click.group("warden")
def warden_cli():
    """Login throttling and token maintenance."""
    logging.basicConfig(
        level=os.environ.get("WARDEN_LOGLEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@warden_cli.command("purge-expired")
@with_appcontext
def purge_expired_command():
    """Delete expired tokens and throttle attempts outside their window."""
    gate = current_app.extensions["warden"]
    attempts = gate.throttle.purge_expired() if gate.throttle is not None else 0
    tokens = gate.ledger.purge_expired()
    click.echo(f"purged: throttle_attempts={attempts} tokens={tokens}")


@warden_cli.command("clear-throttle")
@click.option("--user-id", type=str, help="Clear the per-user record")
@click.option("--ip", type=str, help="Clear the per-IP record")
@click.option("--global", "clear_global", is_flag=True, help="Clear the global record")
@with_appcontext
def clear_throttle_command(user_id: str | None, ip: str | None, clear_global: bool):
    """Lift lockouts by clearing throttle records."""
    if not (user_id or ip or clear_global):
        click.echo("Provide --user-id, --ip or --global", err=True)
        raise click.Abort()

    engine = current_app.extensions["warden"].throttle
    targets = []
    if clear_global:
        targets.append((SCOPE_GLOBAL, GLOBAL_KEY))
    if ip:
        targets.append((SCOPE_IP, ip))
    if user_id:
        targets.append((SCOPE_USER, user_id))

    for scope, key in targets:
        removed = engine.reset(scope, key)
        click.echo(f"cleared {scope}={key} attempts={removed}")


def register_commands(app):
    """Register CLI commands with the app."""
    app.cli.add_command(warden_cli)


__all__ = ["warden_cli", "register_commands"]
