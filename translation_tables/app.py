"""Application factory binding the database extensions to a Flask app.

Migrations that use the Migrator run through Flask-Migrate (``flask db
upgrade``), which needs an application with Flask-SQLAlchemy and
Flask-Migrate initialized. create_app() builds exactly that.
"""

import json
import logging
import os
from logging.handlers import RotatingFileHandler

from flask import Flask

from translation_tables.config import get_settings
from translation_tables.extensions import db, migrate

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


class StructuredJSONFormatter(logging.Formatter):
    """JSON log formatter for structured logging (ELK, Loki, etc.)."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info and record.exc_info[1]:
            exc = record.exc_info[1]
            entry["exception"] = {
                "type": type(exc).__name__,
                "message": str(exc),
            }
            code = getattr(exc, "code", None)
            if isinstance(code, str):
                entry["exception"]["code"] = code

        return json.dumps(entry, default=str)


def _setup_logging(settings) -> None:
    """Configure the root logger level, formatter and optional log file."""
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)
    logging.basicConfig(level=log_level, format=LOG_FORMAT)

    root = logging.getLogger()
    root.setLevel(log_level)

    if settings.log_format.lower() == "json":
        formatter: logging.Formatter = StructuredJSONFormatter()
        for handler in root.handlers:
            handler.setFormatter(formatter)
    else:
        formatter = logging.Formatter(LOG_FORMAT)

    if not settings.log_file:
        return
    try:
        log_dir = os.path.dirname(settings.log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        fh = RotatingFileHandler(settings.log_file, maxBytes=5 * 1024 * 1024, backupCount=3,
                                 encoding="utf-8")
        fh.setLevel(log_level)
        fh.setFormatter(formatter)
        root.addHandler(fh)
    except OSError as e:
        logging.getLogger(__name__).warning("Could not set up log file %s: %s", settings.log_file, e)


def create_app(testing=False, database_url: str = None):
    """Create and configure the Flask application.

    Args:
        testing: Sets Flask's TESTING flag.
        database_url: Overrides the configured database URL.

    Returns:
        Configured Flask application instance.
    """
    app = Flask(__name__)
    settings = get_settings()

    _setup_logging(settings)
    logger = logging.getLogger(__name__)

    app.config["TESTING"] = testing
    app.config["SQLALCHEMY_DATABASE_URI"] = database_url or settings.database_url

    db.init_app(app)
    migrate.init_app(app, db, directory=settings.migrations_dir, render_as_batch=True)

    logger.info("Translation tables app initialized (database=%s)",
                settings.get_safe_config()["database_url"] if not database_url else "override")
    return app
