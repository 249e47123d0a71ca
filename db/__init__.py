"""
Gallery database package.

Re-exports the public API so callers can `from db import CatalogStore`.
"""

from db.connection import open_connection, apply_pragmas, DEFAULT_DB_PATH
from db.schema import (
    init_database, apply_migrations, get_schema_version, get_table_columns,
    ALBUMS_COLUMNS, PHOTOS_COLUMNS, TAGS_COLUMNS, PHOTO_TAGS_COLUMNS,
    PAGE_VIEWS_COLUMNS, PHOTO_VIEWS_COLUMNS, PHOTO_VIEW_LOG_COLUMNS,
    INDEXES, MIGRATIONS, SCHEMA_VERSION,
)
from db.store import CatalogStore, PHOTO_SORTS
