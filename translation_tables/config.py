"""Centralized configuration using Pydantic Settings.

All settings can be overridden via environment variables with the
TRANSLATION_TABLES_ prefix, or via a .env file.
Example: TRANSLATION_TABLES_DEFAULT_LOCALE=de
"""

from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Translation table migration settings."""

    # General
    log_level: str = "INFO"
    log_format: str = "text"  # "text" or "json"
    log_file: str = ""  # Empty = no file handler

    # Database
    database_url: str = "sqlite:///translations.db"
    migrations_dir: str = "migrations"

    # Migrations
    default_locale: str = "en"
    batch_size: int = 1000
    index_name_length: int = 0  # 0 = use the dialect's identifier limit

    model_config = {
        "env_prefix": "TRANSLATION_TABLES_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    def get_safe_config(self) -> dict:
        """Get config dict with credentials stripped from the database URL."""
        data = self.model_dump()
        url = data.get("database_url", "")
        if "@" in url and "://" in url:
            scheme, rest = url.split("://", 1)
            data["database_url"] = f"{scheme}://***@{rest.rsplit('@', 1)[1]}"
        return data


# Singleton settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get or create the singleton Settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reload_settings(overrides: dict = None) -> Settings:
    """Force reload settings from environment/file, with optional overrides.

    Args:
        overrides: Dict of key-value pairs applied on top of the env/file
                   settings. String values are converted to the field type;
                   unknown keys and unconvertible values are skipped.
    """
    global _settings
    base = Settings()

    if not overrides:
        _settings = base
        return _settings

    base_data = base.model_dump()
    update = {}
    for key, value in overrides.items():
        if key not in base_data:
            continue
        expected_type = type(base_data[key])
        try:
            if expected_type is bool:
                update[key] = value.lower() in ("true", "1", "yes") if isinstance(value, str) else bool(value)
            elif expected_type is int:
                update[key] = int(value)
            else:
                update[key] = str(value)
        except (ValueError, TypeError):
            continue  # Skip invalid values

    _settings = base.model_copy(update=update) if update else base
    return _settings
