"""Migrator: creates, fills and removes the translation table of a model.

Usage inside an Alembic migration script::

    from alembic import op
    from translation_tables.migration import Migrator

    def upgrade():
        Migrator(Post, op.get_bind(), operations=op).create_translation_table(
            {"title": "string", "body": "text"}, migrate_data=True
        )

    def downgrade():
        Migrator(Post, op.get_bind(), operations=op).drop_translation_table(
            create_source_columns=True, migrate_data=True
        )

One Migrator is meant to serve one migration run. Operations execute
sequentially on a single connection without an enclosing transaction; a
failure part way leaves the schema as the completed steps left it.
"""

import logging

import sqlalchemy as sa

from translation_tables import naming
from translation_tables.config import get_settings
from translation_tables.error_handler import BadFieldName, UnknownOption
from translation_tables.fields import FieldSpec, default_type, to_field_spec
from translation_tables.models import SourceTable, describe_model
from translation_tables.records import RecordRepository
from translation_tables.schema import SchemaLayer

logger = logging.getLogger(__name__)

CREATE_OPTIONS = ("migrate_data", "remove_source_columns", "unique_index")
ADD_OPTIONS = ("migrate_data", "remove_source_columns")


def _check_options(options: dict, allowed: tuple) -> None:
    extra = [key for key in options if key not in allowed]
    if extra:
        raise UnknownOption(extra, list(allowed))


class Migrator:
    """Schema and data migrations for the translation table of one model."""

    def __init__(self, model, connection: sa.Connection = None, *, operations=None,
                 locale: str = None, batch_size: int = None, index_name_length: int = None):
        """
        Args:
            model: A ``translates``-decorated model class or a SourceTable.
            connection: Connection to run on. Defaults to the bind of
                        ``operations``, else to the Flask-SQLAlchemy session's
                        connection (requires an app context).
            operations: Alembic ``Operations``; pass ``op`` from a migration script.
            locale: Locale targeted by data movement. Defaults to the configured
                    ``default_locale``.
            batch_size: Rows per batch during data movement.
            index_name_length: Override for the index name length limit.
        """
        settings = get_settings()
        # DDL, reflection and data movement must share one connection
        if connection is None and operations is not None:
            connection = operations.get_bind()
        if connection is None:
            from translation_tables.extensions import db
            connection = db.session.connection()

        self.source: SourceTable = describe_model(model)
        self.locale = locale or settings.default_locale
        self.schema = SchemaLayer(
            connection,
            operations=operations,
            index_name_length=index_name_length or settings.index_name_length,
        )
        self.records = RecordRepository(self.schema, batch_size or settings.batch_size)
        self._fields: dict[str, FieldSpec] | None = None

    # ---- Source table shortcuts ------------------------------------------------

    @property
    def table_name(self) -> str:
        return self.source.name

    @property
    def translations_table_name(self) -> str:
        return self.source.translations_table_name

    @property
    def translated_attribute_names(self) -> tuple[str, ...]:
        return self.source.translated_attribute_names

    @property
    def foreign_key(self) -> str:
        return self.source.foreign_key

    # ---- Fields ------------------------------------------------------------------

    @property
    def fields(self) -> dict[str, FieldSpec]:
        """Fields of the current run, resolved from the source table on first use."""
        if self._fields is None:
            self._fields = self.resolve_fields()
        return self._fields

    def resolve_fields(self, explicit: dict = None) -> dict[str, FieldSpec]:
        """Resolve and validate the fields of a migration.

        Explicit fields are used as given. Without them every translated
        attribute is included, typed like its existing source column or as a
        string when the source table has no such column.

        Raises:
            BadFieldName: A field is not a translated attribute of the model.
        """
        if explicit:
            resolved = {str(name): to_field_spec(spec) for name, spec in explicit.items()}
        else:
            resolved = {name: to_field_spec(self.column_type(name))
                        for name in self.translated_attribute_names}

        for name, spec in resolved.items():
            if name not in self.translated_attribute_names:
                raise BadFieldName(name)
            # Bad types and modifiers must fail before any DDL runs
            spec.column(name)
        return resolved

    def column_type(self, name: str):
        """Type of ``name`` on the source table, or the default string type."""
        return self.schema.column_type(self.table_name, name) or default_type()

    # ---- Public operations -------------------------------------------------------

    def create_translation_table(self, fields: dict = None, *, locale: str = None, **options) -> None:
        """Create the translation table, its columns and indexes.

        Options:
            migrate_data: Copy source values into the new table.
            remove_source_columns: Drop the migrated columns from the source table.
            unique_index: Add a unique index on (foreign key, locale).

        Raises:
            UnknownOption: ``options`` has a key outside the options above.
            BadFieldName: A field is not a translated attribute.
        """
        _check_options(options, CREATE_OPTIONS)
        self._fields = self.resolve_fields(fields)

        self._create_translation_table()
        self._add_translation_fields(locale, options)
        self._create_translations_index(options.get("unique_index", False))
        self.clear_schema_cache()

    def add_translation_fields(self, fields: dict = None, *, locale: str = None, **options) -> None:
        """Add columns to an existing translation table.

        Options:
            migrate_data: Copy source values of the new fields.
            remove_source_columns: Drop the migrated columns from the source table.

        Raises:
            UnknownOption: ``options`` has a key outside the options above.
            BadFieldName: A field is not a translated attribute.
        """
        _check_options(options, ADD_OPTIONS)
        self._fields = self.resolve_fields(fields)
        self._add_translation_fields(locale, options)

    def remove_source_columns(self) -> None:
        """Drop the migrated fields from the source table.

        Columns already gone are skipped, so running this twice is safe.
        """
        for name in self.fields:
            if self.schema.column_exists(self.table_name, name):
                self.schema.remove_column(self.table_name, name)
                self.schema.clear_cache(self.table_name)
            else:
                logger.debug("Column %s.%s already removed", self.table_name, name)

    def drop_translation_table(self, *, locale: str = None, **options) -> None:
        """Drop the translation table and its indexes.

        Options:
            create_source_columns: Re-add missing translated columns to the
                source table, typed like the translation table's columns.
            migrate_data: Copy translated values back into the source table.

        Unlike create/add, unrecognized options are ignored here.
        """
        if options.get("create_source_columns"):
            self._add_missing_columns()
        if options.get("migrate_data"):
            self.move_data_to_model_table(locale)
        self._drop_translations_index()
        self.schema.drop_table(self.translations_table_name)
        self.clear_schema_cache()

    # ---- Index names -------------------------------------------------------------

    def translation_index_name(self) -> str:
        return naming.translation_index_name(
            self.table_name, self.translations_table_name, self.schema.index_name_length
        )

    def translation_locale_index_name(self) -> str:
        return naming.translation_locale_index_name(
            self.translations_table_name, self.schema.index_name_length
        )

    def translation_unique_index_name(self) -> str:
        return naming.translation_unique_index_name(
            self.table_name, self.translations_table_name, self.schema.index_name_length
        )

    # ---- Schema cache ------------------------------------------------------------

    def clear_schema_cache(self) -> None:
        """Invalidate cached metadata of both the source and the translation table."""
        self.schema.clear_cache(self.table_name, self.translations_table_name)

    # ---- Data movement -----------------------------------------------------------

    def move_data_to_translation_table(self, locale: str = None) -> int:
        """Copy raw source values of the fields into translations for ``locale``.

        Returns:
            Number of source records processed.
        """
        locale = locale or self.locale
        source_columns = set(self.schema.column_names(self.table_name))
        names = list(self.fields)
        missing = [name for name in names if name not in source_columns]
        if missing:
            logger.warning("Source table %s has no column for %s, copying NULL",
                           self.table_name, missing)

        count = 0
        for record in self.records.find_each(self.table_name, self.source.primary_key):
            values = {name: record.get(name) for name in names}
            self.records.save_translation(
                self.translations_table_name, self.foreign_key,
                record[self.source.primary_key], locale, values,
            )
            count += 1
            if count % self.records.batch_size == 0:
                logger.debug("Moved %d %s records to %s", count, self.table_name,
                             self.translations_table_name)

        logger.info("Moved %d %s records to %s (locale=%s)", count, self.table_name,
                    self.translations_table_name, locale)
        return count

    def move_data_to_model_table(self, locale: str = None) -> int:
        """Write translated values for ``locale`` back into the source table.

        This is lossy when several locales exist: each source row receives
        the values of a single locale only, and rows without a translation in
        that locale get NULL.

        Returns:
            Number of source records updated.
        """
        locale = locale or self.locale
        self.clear_schema_cache()
        translation_columns = set(self.schema.column_names(self.translations_table_name))
        source_columns = set(self.schema.column_names(self.table_name))
        names = [name for name in self.fields
                 if name in translation_columns and name in source_columns]
        skipped = [name for name in self.fields if name not in names]
        if skipped:
            logger.warning("Not moving %s back to %s: column missing", skipped, self.table_name)

        primary_key = self.source.primary_key
        count = 0
        for translated in self.records.find_each_translated(
            self.table_name, primary_key, self.translations_table_name,
            self.foreign_key, locale, names,
        ):
            values = {name: translated[name] for name in names}
            count += self.records.update_all(self.table_name, primary_key,
                                             translated[primary_key], values)

        logger.info("Moved %d %s translations back to %s (locale=%s)",
                    count, self.translations_table_name, self.table_name, locale)
        return count

    # ---- Internal steps ----------------------------------------------------------

    def _create_translation_table(self) -> None:
        primary_key = self.schema.columns_hash(self.table_name)[self.source.primary_key]
        self.schema.create_table(
            self.translations_table_name,
            sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
            sa.Column(self.foreign_key, primary_key["type"], nullable=False),
            sa.Column("locale", sa.String(255), nullable=False),
            sa.Column("created_at", sa.DateTime, nullable=False),
            sa.Column("updated_at", sa.DateTime, nullable=False),
        )

    def _add_translation_fields(self, locale: str | None, options: dict) -> None:
        for name, spec in self.fields.items():
            self.schema.add_column(self.translations_table_name, spec.column(name))
        self.clear_schema_cache()
        if options.get("migrate_data"):
            self.move_data_to_translation_table(locale)
        if options.get("remove_source_columns"):
            self.remove_source_columns()
        self.clear_schema_cache()

    def _create_translations_index(self, unique_index: bool) -> None:
        self.schema.add_index(self.translations_table_name, [self.foreign_key],
                              self.translation_index_name())
        # Serves "SELECT DISTINCT locale" lookups
        self.schema.add_index(self.translations_table_name, ["locale"],
                              self.translation_locale_index_name())
        if unique_index:
            self.schema.add_index(self.translations_table_name, [self.foreign_key, "locale"],
                                  self.translation_unique_index_name(), unique=True)

    def _drop_translations_index(self) -> None:
        for name in (self.translation_index_name(),
                     self.translation_locale_index_name(),
                     self.translation_unique_index_name()):
            if name in self.schema.indexes(self.translations_table_name):
                self.schema.remove_index(self.translations_table_name, name)

    def _add_missing_columns(self) -> None:
        self.clear_schema_cache()
        translation_columns = self.schema.columns_hash(self.translations_table_name)
        for name in self.translated_attribute_names:
            if self.schema.column_exists(self.table_name, name):
                continue
            column = translation_columns.get(name)
            if column is None:
                logger.warning("Cannot restore %s.%s: not present in %s",
                               self.table_name, name, self.translations_table_name)
                continue
            self.schema.add_column(self.table_name, sa.Column(name, column["type"]))
        self.clear_schema_cache()
