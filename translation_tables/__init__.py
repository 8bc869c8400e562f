"""Schema and data migrations for per-locale translation tables."""

from translation_tables.error_handler import BadFieldName, MigrationError, UnknownOption
from translation_tables.migration import Migrator
from translation_tables.models import SourceTable, describe_model, translates

__all__ = [
    "Migrator",
    "SourceTable",
    "describe_model",
    "translates",
    # errors
    "MigrationError",
    "UnknownOption",
    "BadFieldName",
]
