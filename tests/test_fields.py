"""Tests for fields.py -- field declarations and column construction."""

import pytest
import sqlalchemy as sa

from translation_tables.fields import BareType, TypedOptions, coerce_type, default_type, to_field_spec


def test_bare_type_from_name():
    spec = to_field_spec("text")
    assert spec == BareType("text")
    assert isinstance(spec.column("body").type, sa.Text)


def test_bare_type_from_sqlalchemy_type():
    spec = to_field_spec(sa.String(42))
    column = spec.column("title")
    assert column.name == "title"
    assert column.type.length == 42


def test_typed_options_split_type_and_column_args():
    spec = to_field_spec({"type": "decimal", "precision": 10, "scale": 2,
                          "nullable": False, "comment": "price"})
    assert isinstance(spec, TypedOptions)

    column = spec.column("price")
    assert isinstance(column.type, sa.Numeric)
    assert column.type.precision == 10
    assert column.type.scale == 2
    assert column.nullable is False
    assert column.comment == "price"


def test_typed_options_do_not_mutate_input():
    declaration = {"type": "string", "limit": 50}
    to_field_spec(declaration).column("title")
    assert declaration == {"type": "string", "limit": 50}


def test_typed_options_require_type():
    with pytest.raises(ValueError):
        to_field_spec({"nullable": False})


def test_string_alias_has_default_length():
    assert coerce_type("string").length == 255
    assert coerce_type("string", limit=20).length == 20
    assert default_type().length == 255


def test_type_class_instantiated():
    assert isinstance(coerce_type(sa.Boolean), sa.Boolean)
    assert coerce_type(sa.String, limit=12).length == 12


def test_unknown_type():
    with pytest.raises(ValueError):
        coerce_type("varchar2")
    with pytest.raises(ValueError):
        coerce_type(42)


def test_spec_passthrough():
    spec = BareType("string")
    assert to_field_spec(spec) is spec
