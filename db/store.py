"""
Catalog store: photos, albums, tags and photo views in SQLite.

One CatalogStore owns one shared connection. It is constructed explicitly
(by the API lifespan or a test) and handed to the components that need it.
"""

import sqlite3
import threading

from db.connection import DEFAULT_DB_PATH, open_connection
from db.schema import init_database
from exceptions import ConflictError
from utils.text import slugify

PHOTO_SORTS = ('newest', 'oldest', 'views', 'color')

_ORDER_BY = {
    'newest': "p.created_at DESC, p.id DESC",
    'oldest': "p.created_at ASC, p.id ASC",
    'views': "(SELECT COUNT(*) FROM photo_views WHERE photo_id = p.id) DESC, p.created_at DESC, p.id DESC",
    'color': "CASE WHEN p.dominant_hue IS NULL THEN 1 ELSE 0 END ASC, p.dominant_hue ASC, p.id ASC",
}

_TAG_JOIN = "INNER JOIN photo_tags pt ON pt.photo_id = p.id INNER JOIN tags t ON t.id = pt.tag_id"

# Columns a caller may set through create_photo
_PHOTO_INSERT_COLS = [
    'filename', 'path', 'width', 'height', 'thumbnail_path', 'thumbnail_large_path',
    'blur_data_url', 'album_id', 'exif_json', 'file_size_bytes', 'dominant_hue',
]
_PHOTO_UPDATABLE_COLS = ('album_id', 'filename')


def _row_to_dict(row):
    return dict(row) if row is not None else None


class CatalogStore:
    """Relational persistence for the gallery catalog.

    Statements run in autocommit mode through a single connection; a
    re-entrant lock serializes access from the API threadpool.
    """

    def __init__(self, db_path=DEFAULT_DB_PATH):
        self.db_path = db_path
        self._lock = threading.RLock()
        self._conn = open_connection(db_path, shared=True)
        with self._lock:
            init_database(self._conn)

    def close(self):
        with self._lock:
            self._conn.close()

    # --- low-level helpers (also used by analytics) ---

    def execute(self, sql, params=()):
        with self._lock:
            return self._conn.execute(sql, params)

    def fetchone(self, sql, params=()):
        with self._lock:
            return _row_to_dict(self._conn.execute(sql, params).fetchone())

    def fetchall(self, sql, params=()):
        with self._lock:
            return [dict(row) for row in self._conn.execute(sql, params).fetchall()]

    def scalar(self, sql, params=()):
        with self._lock:
            row = self._conn.execute(sql, params).fetchone()
        return row[0] if row is not None else None

    # --- photos ---

    def photo_exists_by_path(self, path):
        return self.fetchone("SELECT id FROM photos WHERE path = ?", (path,)) is not None

    def get_photo(self, photo_id):
        return self.fetchone("SELECT * FROM photos WHERE id = ?", (photo_id,))

    def create_photo(self, fields):
        """Insert a photo and return the row as persisted.

        Raises:
            ConflictError: a photo already exists at fields['path']
        """
        values = {col: fields.get(col) for col in _PHOTO_INSERT_COLS}
        values['width'] = values['width'] or 0
        values['height'] = values['height'] or 0
        values['exif_json'] = values['exif_json'] or '{}'
        values['file_size_bytes'] = values['file_size_bytes'] or 0
        for col in ('thumbnail_path', 'thumbnail_large_path', 'blur_data_url'):
            values[col] = values[col] or ''

        cols = ', '.join(_PHOTO_INSERT_COLS)
        placeholders = ', '.join(f':{col}' for col in _PHOTO_INSERT_COLS)
        try:
            cursor = self.execute(f"INSERT INTO photos ({cols}) VALUES ({placeholders})", values)
        except sqlite3.IntegrityError as e:
            raise ConflictError(f"Photo already exists: {values['path']}") from e
        return self.get_photo(cursor.lastrowid)

    def _photo_filters(self, album_id=None, tag=None):
        conditions = []
        params = []
        join = ''
        if album_id is not None:
            conditions.append("p.album_id = ?")
            params.append(album_id)
        if tag:
            join = _TAG_JOIN
            conditions.append("t.slug = ?")
            params.append(tag)
        where = f"WHERE {' AND '.join(conditions)}" if conditions else ''
        return join, where, params

    def get_photos(self, album_id=None, tag=None, sort='newest', limit=None, offset=None):
        """List photos, filtered by album and/or tag slug, sorted and paginated.

        Offset is only applied together with limit.
        """
        if sort not in PHOTO_SORTS:
            sort = 'newest'
        join, where, params = self._photo_filters(album_id, tag)
        query = f"SELECT p.* FROM photos p {join} {where} ORDER BY {_ORDER_BY[sort]}"
        if limit:
            query += " LIMIT ?"
            params.append(limit)
            if offset:
                query += " OFFSET ?"
                params.append(offset)
        return self.fetchall(query, params)

    def get_photo_count(self, album_id=None, tag=None):
        join, where, params = self._photo_filters(album_id, tag)
        return self.scalar(f"SELECT COUNT(*) FROM photos p {join} {where}", params)

    def update_photo(self, photo_id, updates):
        """Apply a partial update; keys absent from updates are left untouched."""
        sets = []
        values = []
        for col in _PHOTO_UPDATABLE_COLS:
            if col in updates:
                sets.append(f"{col} = ?")
                values.append(updates[col])
        if sets:
            values.append(photo_id)
            self.execute(f"UPDATE photos SET {', '.join(sets)} WHERE id = ?", values)
        return self.get_photo(photo_id)

    def delete_photo(self, photo_id):
        """Delete the catalog row. Tag links and views cascade; files are untouched."""
        self.execute("DELETE FROM photos WHERE id = ?", (photo_id,))

    # --- backfill support ---

    def get_photos_without_size(self):
        return self.fetchall(
            "SELECT id, path FROM photos WHERE file_size_bytes = 0 OR file_size_bytes IS NULL"
        )

    def update_photo_size(self, photo_id, file_size_bytes):
        self.execute("UPDATE photos SET file_size_bytes = ? WHERE id = ?", (file_size_bytes, photo_id))

    def get_photos_without_exif(self):
        return self.fetchall(
            "SELECT id, path FROM photos WHERE exif_json IS NULL OR exif_json IN ('', '{}')"
        )

    def update_photo_exif(self, photo_id, exif_json):
        self.execute("UPDATE photos SET exif_json = ? WHERE id = ?", (exif_json, photo_id))

    def get_photos_without_hue(self):
        return self.fetchall("SELECT id, path FROM photos WHERE dominant_hue IS NULL")

    def update_photo_dominant_hue(self, photo_id, hue):
        self.execute("UPDATE photos SET dominant_hue = ? WHERE id = ?", (hue, photo_id))

    # --- albums ---

    def get_albums(self):
        return self.fetchall('''
            SELECT a.*, COUNT(p.id) AS photo_count
            FROM albums a
            LEFT JOIN photos p ON p.album_id = a.id
            GROUP BY a.id
            ORDER BY a.created_at DESC, a.id DESC
        ''')

    def get_album(self, slug):
        return self.fetchone('''
            SELECT a.*, (SELECT COUNT(*) FROM photos WHERE album_id = a.id) AS photo_count
            FROM albums a WHERE a.slug = ?
        ''', (slug,))

    def get_album_by_id(self, album_id):
        return self.fetchone('''
            SELECT a.*, (SELECT COUNT(*) FROM photos WHERE album_id = a.id) AS photo_count
            FROM albums a WHERE a.id = ?
        ''', (album_id,))

    def create_album(self, name, slug, description=''):
        """Insert an album.

        Raises:
            ConflictError: the slug is already taken
        """
        try:
            cursor = self.execute(
                "INSERT INTO albums (name, slug, description) VALUES (?, ?, ?)",
                (name, slug, description or '')
            )
        except sqlite3.IntegrityError as e:
            raise ConflictError("Album with this name already exists") from e
        return self.get_album_by_id(cursor.lastrowid)

    def update_album_cover(self, album_id, photo_id):
        self.execute("UPDATE albums SET cover_photo_id = ? WHERE id = ?", (photo_id, album_id))
        return self.get_album_by_id(album_id)

    # --- tags ---

    def get_tags(self):
        return self.fetchall("SELECT * FROM tags ORDER BY name ASC")

    def get_tag(self, tag_id):
        return self.fetchone("SELECT * FROM tags WHERE id = ?", (tag_id,))

    def create_tag(self, name):
        """Return the tag whose slug matches name, inserting it if needed."""
        name = name.strip()
        slug = slugify(name)
        with self._lock:
            existing = self.fetchone("SELECT * FROM tags WHERE slug = ?", (slug,))
            if existing:
                return existing
            cursor = self.execute("INSERT INTO tags (name, slug) VALUES (?, ?)", (name, slug))
            return self.get_tag(cursor.lastrowid)

    def get_photo_tags(self, photo_id):
        return self.fetchall('''
            SELECT t.* FROM tags t
            INNER JOIN photo_tags pt ON pt.tag_id = t.id
            WHERE pt.photo_id = ?
            ORDER BY t.name ASC
        ''', (photo_id,))

    def set_photo_tags(self, photo_id, tag_ids):
        """Replace the full tag set of a photo (delete all, then insert)."""
        with self._lock:
            self.execute("DELETE FROM photo_tags WHERE photo_id = ?", (photo_id,))
            for tag_id in tag_ids:
                self.execute(
                    "INSERT OR IGNORE INTO photo_tags (photo_id, tag_id) VALUES (?, ?)",
                    (photo_id, tag_id)
                )
        return self.get_photo_tags(photo_id)

    # --- photo views ---

    def record_photo_view(self, photo_id, ip_hash):
        """Count a view at most once per (photo, visitor)."""
        self.execute(
            "INSERT OR IGNORE INTO photo_views (photo_id, ip_hash) VALUES (?, ?)",
            (photo_id, ip_hash)
        )

    def get_photo_view_counts(self):
        rows = self.fetchall(
            "SELECT photo_id, COUNT(*) AS count FROM photo_views GROUP BY photo_id"
        )
        return {row['photo_id']: row['count'] for row in rows}

    def get_top_viewed_photos(self, limit=10):
        return self.fetchall('''
            SELECT pv.photo_id, p.filename, p.path, p.thumbnail_path, COUNT(*) AS views
            FROM photo_views pv
            JOIN photos p ON p.id = pv.photo_id
            GROUP BY pv.photo_id
            ORDER BY views DESC, pv.photo_id ASC
            LIMIT ?
        ''', (limit,))

    def reset_photo_views(self):
        with self._lock:
            self.execute("DELETE FROM photo_views")
            self.execute("DELETE FROM photo_view_log")

    def log_photo_view(self, photo_id, ip_hash, browser, device, country):
        self.execute(
            "INSERT INTO photo_view_log (photo_id, ip_hash, browser, device, country) "
            "VALUES (?, ?, ?, ?, ?)",
            (photo_id, ip_hash, browser, device, country)
        )

    def get_photo_viewers(self, photo_id):
        return self.fetchall('''
            SELECT
                ip_hash,
                browser,
                device,
                country,
                COUNT(*) AS total_views,
                MIN(created_at) AS first_seen,
                MAX(created_at) AS last_seen
            FROM photo_view_log
            WHERE photo_id = ?
            GROUP BY ip_hash
            ORDER BY last_seen DESC
        ''', (photo_id,))

    # --- page views ---

    def insert_page_view(self, path, referrer, user_agent, ip_hash, country, browser, device):
        self.execute(
            "INSERT INTO page_views (path, referrer, user_agent, ip_hash, country, browser, device) "
            "VALUES (?, ?, ?, ?, ?, ?, ?)",
            (path, referrer, user_agent, ip_hash, country, browser, device)
        )
