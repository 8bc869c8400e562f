"""Tests for error_handler.py -- migration error hierarchy."""

from translation_tables.error_handler import (
    BadFieldName,
    MigrationError,
    TranslationTablesError,
    UnknownOption,
)


def test_unknown_option():
    error = UnknownOption(["bogus"], ["migrate_data", "unique_index"])

    assert isinstance(error, MigrationError)
    assert isinstance(error, ValueError)
    assert error.code == "MIG_002"
    assert str(error) == "Unknown migration option: ['bogus']"
    assert error.context == {"unknown": ["bogus"], "allowed": ["migrate_data", "unique_index"]}
    assert "migrate_data" in error.troubleshooting


def test_unknown_options_plural():
    error = UnknownOption(["a", "b"], ["migrate_data"])
    assert str(error).startswith("Unknown migration options:")


def test_bad_field_name():
    error = BadFieldName("published")

    assert isinstance(error, TranslationTablesError)
    assert error.code == "MIG_003"
    assert error.field == "published"
    assert "published" in str(error)
    assert error.context == {"field": "published"}


def test_code_override():
    error = MigrationError("failed", code="MIG_999", context={"table": "posts"})
    assert error.code == "MIG_999"
    assert error.context == {"table": "posts"}
    assert error.troubleshooting is None
