from __future__ import annotations

import os
from flask import Flask

from .cli import assignments_cli
from .extensions import db, migrate
from .logging_config import configure_logging


def create_app(test_config: dict | None = None) -> Flask:
    app = Flask(__name__)

    app.config["SECRET_KEY"] = os.environ.get("SECRET_KEY", "dev-secret-change-me")
    app.config["SQLALCHEMY_DATABASE_URI"] = os.environ.get("DATABASE_URL", "sqlite:///giftexchange.db")
    app.config["SQLALCHEMY_TRACK_MODIFICATIONS"] = False

    # Defaults for every generation run; callers may still override per run.
    # Unset budget means "scale with group size".
    retry_budget = os.environ.get("ASSIGNMENT_RETRY_BUDGET", "").strip()
    app.config["ASSIGNMENT_RETRY_BUDGET"] = int(retry_budget) if retry_budget else None
    app.config["ASSIGNMENT_DEADLINE_SECONDS"] = float(os.environ.get("ASSIGNMENT_DEADLINE_SECONDS", "10"))
    app.config["LOG_LEVEL"] = os.environ.get("LOG_LEVEL", "INFO")

    if test_config:
        app.config.update(test_config)

    configure_logging(app.config["LOG_LEVEL"])

    db.init_app(app)
    migrate.init_app(app, db)

    app.cli.add_command(assignments_cli)

    return app
