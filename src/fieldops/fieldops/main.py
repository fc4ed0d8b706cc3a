from __future__ import annotations

import importlib
import logging
from pathlib import Path

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .attendance.model import WorkWindow
from .common.datetime_utils import parse_hhmm
from .core.logging_config import setup_logging
from .database.bootstrap import apply_schema, apply_seed_sql, list_tables

from .container import build_container
from .analytics.controller import register as register_analytics
from .attendance.controller import register as register_attendance
from .reviews.controller import register as register_reviews
from .tasks.controller import register as register_tasks

logger = logging.getLogger(__name__)

DATABASE_DIR = Path(__file__).resolve().parents[3] / "database"


def _work_window(settings) -> WorkWindow | None:
    start = getattr(settings, "WORKDAY_START", None)
    end = getattr(settings, "WORKDAY_END", None)
    if not start or not end:
        return None
    return WorkWindow(
        start_time=parse_hhmm(start),
        end_time=parse_hhmm(end),
        grace_minutes=int(getattr(settings, "LATE_GRACE_MINUTES", 0)),
    )


def create_app(settings_module: str | None = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = settings_module or get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    setup_logging(getattr(settings, "LOG_LEVEL", "INFO"), json_output=bool(getattr(settings, "LOG_JSON", False)))

    backend = str(getattr(settings, "DB_BACKEND", "mysql")).lower()
    db_config = getattr(settings, "DB_CONFIG", None)
    logger.info("settings=%s backend=%s", settings_module, backend)

    if backend == "mysql":
        logger.info(
            "db=%s@%s:%s/%s",
            db_config.get("user"),
            db_config.get("host"),
            db_config.get("port", 3306),
            db_config.get("database"),
        )
        if getattr(settings, "AUTO_INIT_DB", False):
            apply_schema(db_config, schema_path=DATABASE_DIR / "schema.sql")
            logger.info("schema ready (tables=%s)", len(list_tables(db_config)))
        if getattr(settings, "AUTO_SEED_DB", False):
            apply_seed_sql(db_config, seed_path=DATABASE_DIR / "seed.sql")
            logger.info("demo seed ready")

    container = build_container(
        db_config=db_config,
        backend=backend,
        work_window=_work_window(settings),
        sensitivity=str(getattr(settings, "ANALYTICS_SENSITIVITY", "medium")),
    )
    app.extensions["fieldops"] = container

    register_attendance(app, container)
    register_tasks(app, container)
    register_reviews(app, container)
    register_analytics(app, container)

    return app
