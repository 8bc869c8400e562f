"""Deterministic identifier naming for translation tables and their indexes.

Table, foreign key and index names are all derived from the source table
name. Index names that do not fit the database's identifier limit are
replaced by a SHA-1 based name of fixed width, so repeated runs always
produce the same identifier.
"""

import hashlib

import inflection

TRANSLATIONS_SUFFIX = "translations"


def singularize(name: str) -> str:
    """Singularize a table name with the ActiveSupport inflection rules.

    >>> singularize("blog_posts")
    'blog_post'
    >>> singularize("categories")
    'category'
    """
    return inflection.singularize(name)


def strip_prefix(table_name: str, prefix: str) -> str:
    """Remove a leading table-name prefix, if present."""
    if prefix and table_name.startswith(prefix):
        return table_name[len(prefix):]
    return table_name


def translations_table_name(table_name: str) -> str:
    """Name of the translation table for ``table_name`` (posts -> post_translations)."""
    return f"{singularize(table_name)}_{TRANSLATIONS_SUFFIX}"


def foreign_key_name(table_name: str, prefix: str = "") -> str:
    """Foreign key column on the translation table (blog_posts, "blog_" -> post_id)."""
    return f"{singularize(strip_prefix(table_name, prefix))}_id"


def truncate_index_name(index_name: str, limit: int) -> str:
    """Return ``index_name`` or its SHA-1 replacement when it is too long.

    Names shorter than ``limit`` are kept. Anything else becomes
    ``"index_" + sha1(name)`` cut to ``limit`` characters.
    """
    if len(index_name) < limit:
        return index_name
    digest = hashlib.sha1(index_name.encode("utf-8")).hexdigest()
    return f"index_{digest}"[:limit]


def translation_index_name(table_name: str, translations_table: str, limit: int) -> str:
    return truncate_index_name(
        f"index_{translations_table}_on_{singularize(table_name)}_id", limit
    )


def translation_locale_index_name(translations_table: str, limit: int) -> str:
    return truncate_index_name(f"index_{translations_table}_on_locale", limit)


def translation_unique_index_name(table_name: str, translations_table: str, limit: int) -> str:
    return truncate_index_name(
        f"index_{translations_table}_on_{singularize(table_name)}_id_and_locale", limit
    )
