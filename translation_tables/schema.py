"""Schema access for translation migrations: DDL, introspection and caching.

SchemaLayer wraps one SQLAlchemy connection together with an Alembic
``Operations`` object. DDL goes through Alembic (with batch mode for
column removal, so SQLite rebuilds the table when it has to), and
introspection goes through a cached SQLAlchemy ``Inspector``.

Reflected metadata is cached per table and must be invalidated with
``clear_cache(table)`` after every DDL change to that table, otherwise
stale columns and types are observed.
"""

import logging

import sqlalchemy as sa
from alembic.migration import MigrationContext
from alembic.operations import Operations

logger = logging.getLogger(__name__)


class SchemaLayer:
    """DDL executor and metadata cache bound to a single connection."""

    def __init__(self, connection: sa.Connection, operations=None, index_name_length: int = 0):
        """
        Args:
            connection: Connection every statement is executed on.
            operations: Alembic ``Operations`` (e.g. ``op`` inside a migration
                        script). Built from ``connection`` when omitted.
            index_name_length: Identifier limit for index names. 0 uses the
                               dialect's ``max_identifier_length``.
        """
        self.connection = connection
        self.operations = operations or Operations(MigrationContext.configure(connection))
        self._index_name_length = index_name_length
        self._inspector = None
        self._metadata = sa.MetaData()
        self._columns: dict[str, list[dict]] = {}
        self._tables: dict[str, sa.Table] = {}

    # ---- Introspection -------------------------------------------------------

    @property
    def inspector(self) -> sa.Inspector:
        if self._inspector is None:
            self._inspector = sa.inspect(self.connection)
        return self._inspector

    @property
    def index_name_length(self) -> int:
        """Maximum length of an index name on this database."""
        return self._index_name_length or self.connection.dialect.max_identifier_length

    def table_exists(self, table_name: str) -> bool:
        return self.inspector.has_table(table_name)

    def columns(self, table_name: str) -> list[dict]:
        """Reflected column dicts (name, type, nullable, ...) for a table."""
        if table_name not in self._columns:
            self._columns[table_name] = self.inspector.get_columns(table_name)
        return self._columns[table_name]

    def columns_hash(self, table_name: str) -> dict[str, dict]:
        return {column["name"]: column for column in self.columns(table_name)}

    def column_names(self, table_name: str) -> list[str]:
        return [column["name"] for column in self.columns(table_name)]

    def column_exists(self, table_name: str, column_name: str) -> bool:
        return column_name in self.column_names(table_name)

    def column_type(self, table_name: str, column_name: str):
        """Type of a column, or None if the column does not exist."""
        column = self.columns_hash(table_name).get(column_name)
        return column["type"] if column else None

    def indexes(self, table_name: str) -> list[str]:
        """Names of the indexes defined on a table (never cached)."""
        return [index["name"] for index in sa.inspect(self.connection).get_indexes(table_name)]

    def table(self, table_name: str) -> sa.Table:
        """Reflected Table object used for data movement statements."""
        if table_name not in self._tables:
            self._tables[table_name] = sa.Table(
                table_name, self._metadata, autoload_with=self.connection
            )
        return self._tables[table_name]

    def clear_cache(self, *table_names: str) -> None:
        """Drop cached metadata for the given tables.

        The inspector's own cache is not keyed by table, so it is always
        rebuilt.
        """
        for table_name in table_names:
            self._columns.pop(table_name, None)
            table = self._tables.pop(table_name, None)
            if table is not None:
                self._metadata.remove(table)
        self._inspector = None

    # ---- DDL -----------------------------------------------------------------

    def create_table(self, table_name: str, *columns: sa.Column) -> None:
        logger.info("Creating table %s", table_name)
        self.operations.create_table(table_name, *columns)

    def drop_table(self, table_name: str) -> None:
        logger.info("Dropping table %s", table_name)
        self.operations.drop_table(table_name)

    def add_column(self, table_name: str, column: sa.Column) -> None:
        logger.info("Adding column %s.%s (%s)", table_name, column.name, column.type)
        self.operations.add_column(table_name, column)

    def remove_column(self, table_name: str, column_name: str) -> None:
        logger.info("Removing column %s.%s", table_name, column_name)
        with self.operations.batch_alter_table(table_name) as batch_op:
            batch_op.drop_column(column_name)

    def add_index(self, table_name: str, columns: list[str], name: str, unique: bool = False) -> None:
        logger.info("Adding %sindex %s on %s%s", "unique " if unique else "", name, table_name, columns)
        self.operations.create_index(name, table_name, columns, unique=unique)

    def remove_index(self, table_name: str, name: str) -> None:
        logger.info("Removing index %s on %s", name, table_name)
        self.operations.drop_index(name, table_name=table_name)
