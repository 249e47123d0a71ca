"""
Database connection utilities for the gallery.

Provides connection creation and PRAGMA configuration.
"""

import os
import sqlite3

DEFAULT_DB_PATH = os.environ.get('DB_PATH', os.path.join('data', 'gallery.db'))


def apply_pragmas(conn, mmap_size_mb=256, cache_size_mb=32):
    """Apply standard PRAGMA settings to a connection.

    Args:
        conn: SQLite connection
        mmap_size_mb: Memory-mapped I/O size (MB)
        cache_size_mb: Page cache size (MB)
    """
    conn.execute("PRAGMA journal_mode = WAL")
    conn.execute("PRAGMA busy_timeout = 5000")
    conn.execute("PRAGMA foreign_keys = ON")
    conn.execute("PRAGMA synchronous = NORMAL")
    conn.execute(f"PRAGMA cache_size = -{int(cache_size_mb * 1000)}")
    conn.execute("PRAGMA temp_store = MEMORY")
    conn.execute(f"PRAGMA mmap_size = {int(mmap_size_mb * 1024 * 1024)}")


def open_connection(db_path=DEFAULT_DB_PATH, row_factory=True, shared=False):
    """Open a configured connection.

    Args:
        db_path: Path to the SQLite database file
        row_factory: If True, rows support key access (sqlite3.Row)
        shared: If True, the connection may be used from several threads
            (callers must serialize access themselves)
    """
    if db_path != ':memory:':
        directory = os.path.dirname(os.path.abspath(db_path))
        os.makedirs(directory, exist_ok=True)
    conn = sqlite3.connect(db_path, check_same_thread=not shared, isolation_level=None)
    apply_pragmas(conn)
    if row_factory:
        conn.row_factory = sqlite3.Row
    return conn

