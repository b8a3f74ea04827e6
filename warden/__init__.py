"""Warden application factory and bootstrap."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from flask import Flask

from warden.bootstrap import WardenBootstrapper
from warden.config import config_by_name
from warden.extensions import init_extensions


def create_app(config_name: Optional[str] = None) -> Flask:
    """Create a Flask application with a configured gate in ``app.extensions["warden"]``."""
    env_name = (config_name or os.environ.get("APP_ENV") or "development").lower()
    project_root = Path(__file__).resolve().parent.parent
    instance_root = project_root / "instance"

    app = Flask(__name__, instance_path=str(instance_root), instance_relative_config=True)
    config_cls = config_by_name.get(env_name, config_by_name["development"])
    app.config.from_object(config_cls)

    # Normalize sqlite path to absolute to avoid "unable to open database file"
    db_uri = app.config.get("SQLALCHEMY_DATABASE_URI") or ""
    if db_uri.startswith("sqlite:///"):
        db_path = Path(db_uri.replace("sqlite:///", "", 1))
        if not db_path.is_absolute():
            db_path = project_root / db_path
        db_path.parent.mkdir(parents=True, exist_ok=True)
        app.config["SQLALCHEMY_DATABASE_URI"] = f"sqlite:///{db_path}"

    init_extensions(app)

    warden = WardenBootstrapper(app.config).create()
    app.extensions["warden"] = warden.gate
    app.extensions["warden_services"] = warden

    from warden.cli import register_commands

    register_commands(app)

    return app


__all__ = ["create_app"]
