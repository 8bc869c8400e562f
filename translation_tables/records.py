"""Record access used by the data movement passes of a migration.

Statements are built with SQLAlchemy Core against tables reflected by the
SchemaLayer, never against the ORM mapping: mapped classes still describe
the schema as it was declared, not as the migration has changed it.
"""

import logging
from collections.abc import Iterator
from datetime import UTC, datetime

import sqlalchemy as sa
from sqlalchemy import select, update

from translation_tables.schema import SchemaLayer

logger = logging.getLogger(__name__)


class RecordRepository:
    """Reads and writes source and translation rows for one source table."""

    def __init__(self, schema: SchemaLayer, batch_size: int = 1000):
        self.schema = schema
        self.batch_size = batch_size

    @property
    def connection(self) -> sa.Connection:
        return self.schema.connection

    def _now(self) -> datetime:
        """Return current UTC time."""
        return datetime.now(UTC)

    def _to_dict(self, row) -> dict | None:
        """Convert a result row to a plain dict keyed by column label."""
        if row is None:
            return None
        return dict(row._mapping)

    # ---- Batched iteration -----------------------------------------------------

    def find_in_batches(self, stmt: sa.Select, key: sa.ColumnElement) -> Iterator[list]:
        """Yield rows of ``stmt`` in chunks of ``batch_size``, ordered by ``key``.

        Uses keyset pagination on ``key`` so each chunk is a bounded query
        and rows updated while iterating are not visited twice.
        """
        last_key = None
        while True:
            page = stmt.order_by(key).limit(self.batch_size)
            if last_key is not None:
                page = page.where(key > last_key)
            rows = self.connection.execute(page).all()
            if not rows:
                return
            yield rows
            last_key = rows[-1]._mapping[key.key]
            if len(rows) < self.batch_size:
                return

    def find_each(self, table_name: str, primary_key: str) -> Iterator[dict]:
        """Yield every row of ``table_name`` as a dict, in primary key order."""
        table = self.schema.table(table_name)
        for rows in self.find_in_batches(select(table), table.c[primary_key]):
            for row in rows:
                yield self._to_dict(row)

    def find_each_translated(self, table_name: str, primary_key: str, translations_table: str,
                             foreign_key: str, locale: str, attribute_names) -> Iterator[dict]:
        """Yield ``{primary_key: ..., attribute: value}`` for every source row.

        Values come from the translation row in ``locale`` (left outer join),
        so records without such a translation yield None for each attribute.
        """
        source = self.schema.table(table_name)
        translations = self.schema.table(translations_table)
        key = source.c[primary_key]
        joined = source.outerjoin(
            translations,
            sa.and_(translations.c[foreign_key] == key, translations.c.locale == locale),
        )
        stmt = select(
            key, *(translations.c[name].label(name) for name in attribute_names)
        ).select_from(joined)
        for rows in self.find_in_batches(stmt, key):
            for row in rows:
                yield self._to_dict(row)

    # ---- Translation rows ------------------------------------------------------

    def translation_for(self, translations_table: str, foreign_key: str,
                        record_id, locale: str) -> dict | None:
        """Return the translation row of ``record_id`` for ``locale``, if any."""
        table = self.schema.table(translations_table)
        stmt = (
            select(table)
            .where(table.c[foreign_key] == record_id)
            .where(table.c.locale == locale)
            .limit(1)
        )
        return self._to_dict(self.connection.execute(stmt).first())

    def save_translation(self, translations_table: str, foreign_key: str,
                         record_id, locale: str, values: dict) -> None:
        """Insert or update the translation row of ``record_id`` for ``locale``.

        Database errors are not caught: one failed row aborts the migration.
        """
        table = self.schema.table(translations_table)
        now = self._now()
        existing = self.translation_for(translations_table, foreign_key, record_id, locale)

        if existing:
            stmt = (
                update(table)
                .where(table.c.id == existing["id"])
                .values(**values, updated_at=now)
            )
        else:
            stmt = table.insert().values(
                **values,
                **{foreign_key: record_id},
                locale=locale,
                created_at=now,
                updated_at=now,
            )
        self.connection.execute(stmt)

    # ---- Source rows -----------------------------------------------------------

    def update_all(self, table_name: str, primary_key: str, record_id, values: dict) -> int:
        """Update the row matching ``record_id`` and return the affected row count."""
        if not values:
            return 0
        table = self.schema.table(table_name)
        stmt = update(table).where(table.c[primary_key] == record_id).values(**values)
        return self.connection.execute(stmt).rowcount
