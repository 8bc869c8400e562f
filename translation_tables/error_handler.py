"""Exception hierarchy for translation table migrations.

Every error carries a machine-readable code, a context dict with the
offending values, and an optional troubleshooting hint. Validation errors
are raised before any DDL runs; database errors raised while a migration
executes are never wrapped and propagate unchanged.
"""

from typing import Optional


class TranslationTablesError(Exception):
    """Base exception for all translation table errors.

    Attributes:
        code: Machine-readable error code (e.g. "MIG_002")
        context: Additional context data for debugging
        troubleshooting: Human-readable hint for resolving the issue
    """

    code: str = "TT_000"

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        context: Optional[dict] = None,
        troubleshooting: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        if code is not None:
            self.code = code
        self.context = context or {}
        self.troubleshooting = troubleshooting


class MigrationError(TranslationTablesError):
    """Translation table migration errors."""

    code = "MIG_001"


class UnknownOption(MigrationError, ValueError):
    """Options passed to a migration operation contain unrecognized keys."""

    code = "MIG_002"

    def __init__(self, extra: list, allowed: list, **kwargs: object) -> None:
        noun = "option" if len(extra) == 1 else "options"
        super().__init__(
            f"Unknown migration {noun}: {extra}",
            context={"unknown": list(extra), "allowed": list(allowed)},
            troubleshooting=f"Supported options are: {', '.join(allowed)}.",
            **kwargs,  # type: ignore[arg-type]
        )
        self.extra = list(extra)


class BadFieldName(MigrationError):
    """A field is not declared as a translatable attribute of the model."""

    code = "MIG_003"

    def __init__(self, field: str, **kwargs: object) -> None:
        super().__init__(
            f"Missing translated field {field!r}",
            context={"field": field},
            troubleshooting=(
                f"Add {field!r} to the model's translates(...) declaration "
                "or remove it from the migration fields."
            ),
            **kwargs,  # type: ignore[arg-type]
        )
        self.field = field
