"""Declaration of translated models.

A source model is a regular ``db.Model`` decorated with ``translates``::

    @translates("title", "body")
    class Post(db.Model):
        __tablename__ = "posts"
        id = db.Column(db.Integer, primary_key=True)
        title = db.Column(db.String(200))
        body = db.Column(db.Text)

The decorator only records which attributes are locale dependent and where
their translations live. Reading translated values at runtime is left to the
application's query layer.
"""

from dataclasses import dataclass

from sqlalchemy import inspect as sa_inspect

from translation_tables import naming


@dataclass(frozen=True)
class SourceTable:
    """Read-only description of the table whose attributes are translated.

    Column types are intentionally absent: they are read from the live
    schema so that they reflect DDL changes made during a migration.
    """

    name: str
    primary_key: str
    translated_attribute_names: tuple[str, ...]
    table_name_prefix: str = ""
    translations_table_name: str = ""

    def __post_init__(self):
        if not self.translations_table_name:
            object.__setattr__(
                self, "translations_table_name", naming.translations_table_name(self.name)
            )

    @property
    def foreign_key(self) -> str:
        return naming.foreign_key_name(self.name, self.table_name_prefix)


def translates(*attribute_names: str, table_name: str = None, table_name_prefix: str = ""):
    """Class decorator marking ``attribute_names`` as translatable.

    Args:
        attribute_names: Columns holding locale-dependent content.
        table_name: Override for the translation table name. Defaults to
                    ``<singular table>_translations``.
        table_name_prefix: Prefix stripped from the table name when the
                           foreign key column is derived.
    """
    if not attribute_names:
        raise ValueError("translates() requires at least one attribute name")

    def decorator(cls):
        cls.__translated_attribute_names__ = tuple(str(name) for name in attribute_names)
        cls.__translations_table_name__ = table_name
        cls.__table_name_prefix__ = table_name_prefix
        return cls

    return decorator


def translated_attribute_names(model) -> tuple[str, ...]:
    """Return the attributes declared translatable on ``model`` (empty if none)."""
    return tuple(getattr(model, "__translated_attribute_names__", ()))


def describe_model(model) -> SourceTable:
    """Build the SourceTable descriptor for a mapped, ``translates``-decorated class."""
    if isinstance(model, SourceTable):
        return model

    names = translated_attribute_names(model)
    if not names:
        raise ValueError(f"{model.__name__} does not declare any translated attributes")

    mapper = sa_inspect(model)
    primary_key = mapper.primary_key
    if len(primary_key) != 1:
        raise ValueError(
            f"{model.__name__} must have exactly one primary key column, "
            f"found {len(primary_key)}"
        )

    return SourceTable(
        name=mapper.local_table.name,
        primary_key=primary_key[0].name,
        translated_attribute_names=names,
        table_name_prefix=getattr(model, "__table_name_prefix__", ""),
        translations_table_name=getattr(model, "__translations_table_name__", None) or "",
    )
