"""Field specifications for translation table columns.

A field is declared either with a bare type or with a structured options
dict::

    {"title": "string"}
    {"title": sa.String(120)}
    {"price": {"type": "decimal", "precision": 10, "scale": 2, "nullable": False}}

Both shapes are normalized once into a ``BareType`` or ``TypedOptions`` so
the rest of the migration code never branches on the raw input shape.
"""

from dataclasses import dataclass, field
from typing import Any

import sqlalchemy as sa

# Symbolic type names accepted in field declarations
TYPE_ALIASES: dict[str, type[sa.types.TypeEngine]] = {
    "string": sa.String,
    "text": sa.Text,
    "integer": sa.Integer,
    "bigint": sa.BigInteger,
    "float": sa.Float,
    "decimal": sa.Numeric,
    "numeric": sa.Numeric,
    "boolean": sa.Boolean,
    "date": sa.Date,
    "datetime": sa.DateTime,
    "timestamp": sa.DateTime,
    "time": sa.Time,
    "binary": sa.LargeBinary,
    "json": sa.JSON,
}

DEFAULT_STRING_LENGTH = 255

# Modifiers folded into the type constructor instead of the Column
_TYPE_MODIFIERS = ("limit", "precision", "scale")


def default_type() -> sa.types.TypeEngine:
    """Type used for translatable attributes without a source column."""
    return sa.String(DEFAULT_STRING_LENGTH)


def coerce_type(type_, limit=None, precision=None, scale=None) -> sa.types.TypeEngine:
    """Turn a symbolic name, type class or type instance into a type instance.

    ``limit`` maps to the length of string/binary types and ``precision`` /
    ``scale`` to numeric types. They are ignored for an already constructed
    type instance, which is used as-is.
    """
    if isinstance(type_, sa.types.TypeEngine):
        return type_

    if isinstance(type_, str):
        key = type_.lower()
        if key not in TYPE_ALIASES:
            raise ValueError(f"Unknown column type {type_!r}")
        type_cls = TYPE_ALIASES[key]
        if key == "string" and limit is None:
            limit = DEFAULT_STRING_LENGTH
    elif isinstance(type_, type) and issubclass(type_, sa.types.TypeEngine):
        type_cls = type_
    else:
        raise ValueError(f"Cannot use {type_!r} as a column type")

    if issubclass(type_cls, (sa.String, sa.LargeBinary)) and limit is not None:
        return type_cls(length=limit)
    if issubclass(type_cls, sa.Numeric) and precision is not None:
        return type_cls(precision=precision, scale=scale)
    return type_cls()


@dataclass(frozen=True)
class BareType:
    """Field declared with a type only."""

    type_: Any

    def column(self, name: str) -> sa.Column:
        return sa.Column(name, coerce_type(self.type_))


@dataclass(frozen=True)
class TypedOptions:
    """Field declared with a type plus DDL modifiers (nullable, default, ...)."""

    type_: Any
    modifiers: dict = field(default_factory=dict)

    def column(self, name: str) -> sa.Column:
        type_args = {k: v for k, v in self.modifiers.items() if k in _TYPE_MODIFIERS}
        column_args = {k: v for k, v in self.modifiers.items() if k not in _TYPE_MODIFIERS}
        return sa.Column(name, coerce_type(self.type_, **type_args), **column_args)


FieldSpec = BareType | TypedOptions


def to_field_spec(value) -> FieldSpec:
    """Normalize a raw field declaration into a FieldSpec."""
    if isinstance(value, (BareType, TypedOptions)):
        return value
    if isinstance(value, dict):
        options = dict(value)
        type_ = options.pop("type", None)
        if type_ is None:
            raise ValueError(f"Field options {value!r} are missing the 'type' key")
        return TypedOptions(type_, options)
    return BareType(value)
