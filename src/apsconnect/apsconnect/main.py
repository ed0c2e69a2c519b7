from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .core.logging_config import setup_logging
from .database.bootstrap import apply_schema, apply_seed_sql, ensure_demo_users, list_tables

from .container import Container, build_container
from .announcements.controller import register as register_announcements
from .approvals.controller import register as register_approvals
from .assignments.controller import register as register_assignments
from .attendance.controller import register as register_attendance
from .fees.controller import register as register_fees
from .library.controller import register as register_library
from .notifications.controller import register as register_notifications
from .polls.controller import register as register_polls
from .results.controller import register as register_results
from .users.controller import register as register_users

logger = logging.getLogger(__name__)

DATABASE_DIR = Path(__file__).resolve().parents[3] / "database"


def create_app(container: Optional[Container] = None) -> Flask:
    """Application factory.

    A prebuilt ``container`` skips all database setup (used by the tests).
    """
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    setup_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    app.secret_key = getattr(settings, "SECRET_KEY")
    db_config = getattr(settings, "DB_CONFIG")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    if container is None:
        logger.info(
            "starting with settings=%s db=%s@%s:%s/%s",
            settings_module,
            db_config.get("user"),
            db_config.get("host"),
            db_config.get("port", 3306),
            db_config.get("database"),
        )

        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config, schema_path=DATABASE_DIR / "schema.sql")
            logger.info("schema ready (tables=%s)", len(list_tables(db_config)))
        if bool(getattr(settings, "AUTO_SEED_DB", False)):
            apply_seed_sql(db_config, seed_path=DATABASE_DIR / "seed.sql")
            ensure_demo_users(db_config)

        container = build_container(
            db_config=db_config,
            secret_key=app.secret_key,
            qr_default_minutes=int(getattr(settings, "QR_DEFAULT_MINUTES", 15)),
            fine_per_day=float(getattr(settings, "LIBRARY_FINE_PER_DAY", 5)),
            token_max_age=int(getattr(settings, "TOKEN_MAX_AGE_SECONDS", 7 * 24 * 3600)),
        )

    app.extensions["apsconnect"] = container

    register_users(app, container)
    register_approvals(app, container)
    register_attendance(app, container)
    register_library(app, container)
    register_results(app, container)
    register_fees(app, container)
    register_notifications(app, container)
    register_assignments(app, container)
    register_announcements(app, container)
    register_polls(app, container)

    return app
