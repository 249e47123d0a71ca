"""
Database schema definitions and initialization for the gallery.

Single source of truth for all table and index definitions. Columns added
after the first release live in MIGRATIONS, applied in order and tracked
with PRAGMA user_version.
"""

import logging

logger = logging.getLogger(__name__)

# Schema definitions as (name, type_definition) tuples
# Type definition includes any defaults or constraints

ALBUMS_COLUMNS = [
    ('id', 'INTEGER PRIMARY KEY AUTOINCREMENT'),
    ('name', 'TEXT NOT NULL'),
    ('slug', 'TEXT NOT NULL UNIQUE'),
    ('description', "TEXT DEFAULT ''"),
    ('cover_photo_id', 'INTEGER'),
    ('created_at', "TEXT DEFAULT (datetime('now'))"),
]

PHOTOS_COLUMNS = [
    ('id', 'INTEGER PRIMARY KEY AUTOINCREMENT'),
    ('filename', 'TEXT NOT NULL'),
    ('path', 'TEXT NOT NULL UNIQUE'),
    ('width', 'INTEGER DEFAULT 0'),
    ('height', 'INTEGER DEFAULT 0'),
    ('thumbnail_path', "TEXT DEFAULT ''"),
    ('thumbnail_large_path', "TEXT DEFAULT ''"),
    ('blur_data_url', "TEXT DEFAULT ''"),
    ('album_id', 'INTEGER REFERENCES albums(id) ON DELETE SET NULL'),
    ('exif_json', "TEXT DEFAULT '{}'"),
    ('created_at', "TEXT DEFAULT (datetime('now'))"),
]

TAGS_COLUMNS = [
    ('id', 'INTEGER PRIMARY KEY AUTOINCREMENT'),
    ('name', 'TEXT NOT NULL'),
    ('slug', 'TEXT NOT NULL UNIQUE'),
    ('created_at', "TEXT DEFAULT (datetime('now'))"),
]

PHOTO_TAGS_COLUMNS = [
    ('photo_id', 'INTEGER NOT NULL REFERENCES photos(id) ON DELETE CASCADE'),
    ('tag_id', 'INTEGER NOT NULL REFERENCES tags(id) ON DELETE CASCADE'),
]

PAGE_VIEWS_COLUMNS = [
    ('id', 'INTEGER PRIMARY KEY AUTOINCREMENT'),
    ('path', 'TEXT NOT NULL'),
    ('referrer', "TEXT DEFAULT ''"),
    ('user_agent', "TEXT DEFAULT ''"),
    ('ip_hash', "TEXT DEFAULT ''"),
    ('country', "TEXT DEFAULT ''"),
    ('browser', "TEXT DEFAULT ''"),
    ('device', "TEXT DEFAULT ''"),
    ('created_at', "TEXT DEFAULT (datetime('now'))"),
]

# Deduplicated counter: one row per (photo, visitor)
PHOTO_VIEWS_COLUMNS = [
    ('id', 'INTEGER PRIMARY KEY AUTOINCREMENT'),
    ('photo_id', 'INTEGER NOT NULL REFERENCES photos(id) ON DELETE CASCADE'),
    ('ip_hash', 'TEXT NOT NULL'),
    ('created_at', "TEXT DEFAULT (datetime('now'))"),
]

# Full event log: every view, no UNIQUE constraint
PHOTO_VIEW_LOG_COLUMNS = [
    ('id', 'INTEGER PRIMARY KEY AUTOINCREMENT'),
    ('photo_id', 'INTEGER NOT NULL REFERENCES photos(id) ON DELETE CASCADE'),
    ('ip_hash', 'TEXT NOT NULL'),
    ('browser', "TEXT DEFAULT ''"),
    ('device', "TEXT DEFAULT ''"),
    ('country', "TEXT DEFAULT ''"),
    ('created_at', "TEXT DEFAULT (datetime('now'))"),
]

# Index definitions as (name, table, column_expression)
INDEXES = [
    ('idx_photos_album', 'photos', 'album_id'),
    ('idx_photos_created', 'photos', 'created_at DESC'),
    ('idx_albums_slug', 'albums', 'slug'),
    ('idx_tags_slug', 'tags', 'slug'),
    ('idx_photo_tags_photo', 'photo_tags', 'photo_id'),
    ('idx_photo_tags_tag', 'photo_tags', 'tag_id'),
    ('idx_pv_created', 'page_views', 'created_at'),
    ('idx_pv_path', 'page_views', 'path'),
    ('idx_photo_views_photo', 'photo_views', 'photo_id'),
    ('idx_pvl_photo', 'photo_view_log', 'photo_id'),
    ('idx_pvl_created', 'photo_view_log', 'created_at'),
]


def _build_create_table_sql(table_name, columns, constraints=None):
    """Build CREATE TABLE IF NOT EXISTS SQL from column definitions."""
    col_defs = [f'{name} {typedef}' for name, typedef in columns]
    if constraints:
        col_defs.extend(constraints)
    cols_sql = ',\n                    '.join(col_defs)
    return f'''CREATE TABLE IF NOT EXISTS {table_name} (
                    {cols_sql}
                )'''


def get_table_columns(conn, table_name):
    """Return the set of column names currently present on a table."""
    cursor = conn.execute(f"PRAGMA table_info({table_name})")
    return {row[1] for row in cursor.fetchall()}


def _add_column(table_name, col_name, col_type):
    """Build a migration step that adds one column when it is absent."""
    def migrate(conn):
        if col_name in get_table_columns(conn, table_name):
            return False
        conn.execute(f"ALTER TABLE {table_name} ADD COLUMN {col_name} {col_type}")
        return True
    return migrate


# (version, description, step). Append only; never renumber.
MIGRATIONS = [
    (1, 'photos.file_size_bytes', _add_column('photos', 'file_size_bytes', 'INTEGER DEFAULT 0')),
    (2, 'photos.dominant_hue', _add_column('photos', 'dominant_hue', 'INTEGER DEFAULT NULL')),
]

SCHEMA_VERSION = MIGRATIONS[-1][0]


def get_schema_version(conn):
    return conn.execute("PRAGMA user_version").fetchone()[0]


def apply_migrations(conn):
    """Apply every migration newer than the stored user_version.

    Returns:
        list of descriptions of the migrations that changed the schema
    """
    current = get_schema_version(conn)
    applied = []
    for version, description, step in MIGRATIONS:
        if version <= current:
            continue
        if step(conn):
            applied.append(description)
            logger.info(f"Applied migration {version}: {description}")
        conn.execute(f"PRAGMA user_version = {int(version)}")
    return applied


def init_database(conn):
    """
    Initialize the database schema (idempotent).

    Creates all tables and indexes using CREATE IF NOT EXISTS, then runs
    pending migrations. Safe to call on existing databases.

    Args:
        conn: Open SQLite connection
    """
    conn.execute(_build_create_table_sql('albums', ALBUMS_COLUMNS))
    conn.execute(_build_create_table_sql('photos', PHOTOS_COLUMNS))
    conn.execute(_build_create_table_sql('tags', TAGS_COLUMNS))
    conn.execute(_build_create_table_sql(
        'photo_tags',
        PHOTO_TAGS_COLUMNS,
        constraints=['PRIMARY KEY (photo_id, tag_id)']
    ))
    conn.execute(_build_create_table_sql('page_views', PAGE_VIEWS_COLUMNS))
    conn.execute(_build_create_table_sql(
        'photo_views',
        PHOTO_VIEWS_COLUMNS,
        constraints=['UNIQUE(photo_id, ip_hash)']
    ))
    conn.execute(_build_create_table_sql('photo_view_log', PHOTO_VIEW_LOG_COLUMNS))

    for idx_name, table, column_expr in INDEXES:
        conn.execute(
            f'CREATE INDEX IF NOT EXISTS {idx_name} ON {table}({column_expr})'
        )

    apply_migrations(conn)
