from __future__ import annotations

import importlib
import logging

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .database.bootstrap import apply_schema, list_tables

from .container import build_container
from .common.http import register_error_handlers
from .attendance.controller import register as register_attendance
from .audit.controller import register as register_audit
from .ledger.controller import register as register_fees
from .notifications.controller import register as register_notifications
from .students.controller import register as register_students
from .users.controller import register as register_users

logger = logging.getLogger(__name__)

# Settings forwarded to the container when the settings module defines them.
SERVICE_SETTINGS = (
    "ATTENDANCE_WINDOW_START_HOUR",
    "ATTENDANCE_WINDOW_END_HOUR",
    "CURRENT_ACADEMIC_YEAR",
    "ACADEMIC_YEAR_START_MONTH",
    "SCHOOL_ID_PREFIX",
    "STUDENT_EMAIL_DOMAIN",
    "TX_MAX_ATTEMPTS",
)


def create_app() -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)

    logging.basicConfig(
        level=getattr(settings, "LOG_LEVEL", "INFO"),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    app.secret_key = getattr(settings, "SECRET_KEY")
    db_config = getattr(settings, "DB_CONFIG")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))

    logger.info(
        "settings=%s db=%s@%s:%s/%s",
        settings_module,
        db_config.get("user"),
        db_config.get("host"),
        db_config.get("port", 3306),
        db_config.get("database"),
    )

    if bool(getattr(settings, "AUTO_INIT_DB", False)):
        apply_schema(db_config)
        logger.info("schema ready (tables=%d)", len(list_tables(db_config)))

    service_settings = {name: getattr(settings, name) for name in SERVICE_SETTINGS if hasattr(settings, name)}
    container = build_container(db_config=db_config, settings=service_settings)

    register_error_handlers(app)
    register_fees(app, container)
    register_students(app, container)
    register_attendance(app, container)
    register_users(app, container)
    register_audit(app, container)
    register_notifications(app, container)

    return app
