"""
SQLite-backed catalog store.

Holds two shapes:
- games: one row per catalog entry, keyed by installation path
- settings: a single row with a fixed key

Remote metadata and user overrides are stored as JSON text columns.
``CatalogStore.open()`` returns a ready handle; every operation on a closed
handle raises StoreNotInitializedError.
"""
import json
import logging
import os
import sqlite3
import threading
from typing import Any, Dict, Iterable, List, Optional

from vnshelf.exceptions import StoreError, StoreNotInitializedError, StoreWriteError
from vnshelf.models.catalog import CatalogEntry, Installation, UserOverrides
from vnshelf.models.metadata import RemoteMetadata
from vnshelf.models.settings import SETTINGS_KEY, AppSettings
from vnshelf.utils.paths import ensure_parent_dir, get_database_path

logger = logging.getLogger(__name__)

_CREATE_GAMES_SQL = """
    CREATE TABLE IF NOT EXISTS games (
        path TEXT PRIMARY KEY NOT NULL,
        title TEXT NOT NULL,
        supports_mac INTEGER NOT NULL,
        supports_unix INTEGER NOT NULL,
        supports_win INTEGER NOT NULL,
        version TEXT,
        remote_metadata TEXT,
        user_overrides TEXT NOT NULL
    )
"""

_CREATE_SETTINGS_SQL = """
    CREATE TABLE IF NOT EXISTS settings (
        key INTEGER PRIMARY KEY NOT NULL,
        start_page INTEGER NOT NULL,
        default_theme INTEGER NOT NULL,
        banner_action INTEGER NOT NULL,
        enable_internet_recommendations INTEGER NOT NULL,
        library_directories TEXT
    )
"""

_INSERT_GAME_SQL = """
    INSERT OR IGNORE INTO games (
        path, title, supports_mac, supports_unix, supports_win,
        version, remote_metadata, user_overrides
    ) VALUES (
        :path, :title, :supports_mac, :supports_unix, :supports_win,
        :version, :remote_metadata, :user_overrides
    )
"""

_UPDATE_GAME_SQL = """
    UPDATE games
    SET title = :title, supports_mac = :supports_mac, supports_unix = :supports_unix,
        supports_win = :supports_win, version = :version,
        remote_metadata = :remote_metadata, user_overrides = :user_overrides
    WHERE path = :path
"""

_UPSERT_SETTINGS_SQL = """
    INSERT INTO settings (
        key, start_page, default_theme, banner_action,
        enable_internet_recommendations, library_directories
    ) VALUES (
        :key, :start_page, :default_theme, :banner_action,
        :enable_internet_recommendations, :library_directories
    )
    ON CONFLICT(key) DO UPDATE SET
        start_page = excluded.start_page,
        default_theme = excluded.default_theme,
        banner_action = excluded.banner_action,
        enable_internet_recommendations = excluded.enable_internet_recommendations,
        library_directories = excluded.library_directories
"""


def entry_to_row(entry: CatalogEntry) -> Dict[str, Any]:
    """Flatten an entry into the column values of the games table."""
    inst = entry.installation
    return {
        "path": inst.path,
        "title": inst.title,
        "supports_mac": 1 if inst.supports_mac else 0,
        "supports_unix": 1 if inst.supports_unix else 0,
        "supports_win": 1 if inst.supports_win else 0,
        "version": inst.version,
        "remote_metadata": json.dumps(entry.remote.to_dict()) if entry.remote else None,
        "user_overrides": json.dumps(entry.overrides.to_dict()),
    }


def row_to_entry(row: sqlite3.Row) -> CatalogEntry:
    """Rebuild an entry from a games table row."""
    remote = row["remote_metadata"]
    return CatalogEntry(
        installation=Installation(
            path=row["path"],
            title=row["title"],
            supports_mac=row["supports_mac"] == 1,
            supports_unix=row["supports_unix"] == 1,
            supports_win=row["supports_win"] == 1,
            version=row["version"],
        ),
        remote=RemoteMetadata.from_dict(json.loads(remote)) if remote else None,
        overrides=UserOverrides.from_dict(json.loads(row["user_overrides"] or "{}")),
    )


class CatalogStore:
    """Persistent catalog of entries plus the application settings row."""

    def __init__(self, db_path: str, connection: sqlite3.Connection):
        # Use CatalogStore.open(); this only wires an already prepared connection.
        self.db_path = db_path
        self._conn: Optional[sqlite3.Connection] = connection
        self._lock = threading.RLock()

    @classmethod
    def open(cls, db_path: Optional[str] = None) -> "CatalogStore":
        """Open (and create if needed) the catalog database at ``db_path``.

        Raises StoreError if the file cannot be opened or the schema cannot be created.
        """
        db_path = db_path or get_database_path()
        return cls(db_path, cls._connect(db_path))

    @staticmethod
    def _connect(db_path: str) -> sqlite3.Connection:
        try:
            ensure_parent_dir(db_path)
            conn = sqlite3.connect(db_path)
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA foreign_keys = ON")
            with conn:
                conn.execute(_CREATE_GAMES_SQL)
                conn.execute(_CREATE_SETTINGS_SQL)
        except (OSError, sqlite3.Error) as e:
            logger.error(f"[Store] Failed to open catalog database {db_path}: {e}")
            raise StoreError(f"Failed to open catalog database {db_path}: {e}") from e

        logger.info(f"[Store] Catalog database ready at {db_path}")
        return conn

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    def _connection(self) -> sqlite3.Connection:
        if self._conn is None:
            logger.error("[Store] Operation attempted on a closed catalog store")
            raise StoreNotInitializedError()
        return self._conn

    # ------------------------------------------------------------------
    # Games
    # ------------------------------------------------------------------

    def insert_entry(self, entry: CatalogEntry) -> bool:
        """Insert ``entry`` unless its path is already stored.

        Returns True if a row was written, False if the path already existed.
        """
        with self._lock:
            conn = self._connection()
            row = entry_to_row(entry)
            logger.debug(f"[Store] Remote metadata for {entry.path} is "
                         f"{len((row['remote_metadata'] or '').encode('utf-8'))} bytes")
            try:
                with conn:
                    cursor = conn.execute(_INSERT_GAME_SQL, row)
            except sqlite3.Error as e:
                logger.error(f"[Store] Failed to insert '{entry.display_title}': {e}")
                raise StoreWriteError(f"Failed to insert {entry.path}: {e}") from e

        inserted = cursor.rowcount == 1
        if inserted:
            logger.info(f"[Store] Inserted '{entry.display_title}' ({entry.path})")
        else:
            logger.debug(f"[Store] '{entry.path}' already stored, insert ignored")
        return inserted

    def insert_entries(self, entries: Iterable[CatalogEntry]) -> int:
        """Insert many entries in one transaction; all or nothing.

        Paths that already exist are skipped. Returns the number of rows written.
        """
        rows = [entry_to_row(entry) for entry in entries]
        with self._lock:
            conn = self._connection()
            before = conn.total_changes
            try:
                with conn:
                    conn.executemany(_INSERT_GAME_SQL, rows)
            except sqlite3.Error as e:
                logger.error(f"[Store] Bulk insert of {len(rows)} entries rolled back: {e}")
                raise StoreWriteError(f"Bulk insert failed: {e}") from e
            written = conn.total_changes - before

        logger.info(f"[Store] Bulk inserted {written}/{len(rows)} entries")
        return written

    def get_entries(self) -> List[CatalogEntry]:
        with self._lock:
            rows = self._connection().execute("SELECT * FROM games").fetchall()
        entries = [row_to_entry(row) for row in rows]
        logger.debug(f"[Store] Retrieved {len(entries)} entries")
        return entries

    def get_entry(self, path: str) -> Optional[CatalogEntry]:
        with self._lock:
            row = self._connection().execute(
                "SELECT * FROM games WHERE path = ?", (path,)
            ).fetchone()
        return row_to_entry(row) if row else None

    def update_entry(self, entry: CatalogEntry) -> bool:
        """Replace every stored column of ``entry``'s row.

        Callers pass the full merged record. Returns False if no row has that path.
        """
        with self._lock:
            conn = self._connection()
            try:
                with conn:
                    cursor = conn.execute(_UPDATE_GAME_SQL, entry_to_row(entry))
            except sqlite3.Error as e:
                logger.error(f"[Store] Failed to update '{entry.display_title}': {e}")
                raise StoreWriteError(f"Failed to update {entry.path}: {e}") from e

        if cursor.rowcount == 0:
            logger.warning(f"[Store] Update for unknown path {entry.path} ignored")
            return False
        logger.info(f"[Store] Updated '{entry.display_title}' ({entry.path})")
        return True

    def delete_entry(self, path: str) -> bool:
        """Delete the entry stored under ``path``. Returns False if there was none."""
        with self._lock:
            conn = self._connection()
            try:
                with conn:
                    cursor = conn.execute("DELETE FROM games WHERE path = ?", (path,))
            except sqlite3.Error as e:
                logger.error(f"[Store] Failed to delete {path}: {e}")
                raise StoreWriteError(f"Failed to delete {path}: {e}") from e

        logger.info(f"[Store] Deleted entry {path}")
        return cursor.rowcount == 1

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    def get_settings(self) -> AppSettings:
        """Stored settings, or defaults if none were saved yet."""
        with self._lock:
            row = self._connection().execute(
                "SELECT * FROM settings WHERE key = ?", (SETTINGS_KEY,)
            ).fetchone()
        if row is None:
            return AppSettings()
        return AppSettings.from_row(dict(row))

    def upsert_settings(self, settings: AppSettings) -> None:
        with self._lock:
            conn = self._connection()
            try:
                with conn:
                    conn.execute(_UPSERT_SETTINGS_SQL, settings.to_row())
            except sqlite3.Error as e:
                logger.error(f"[Store] Failed to save settings: {e}")
                raise StoreWriteError(f"Failed to save settings: {e}") from e
        logger.info("[Store] Settings saved")

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None
                logger.debug("[Store] Catalog database closed")

    def wipe(self) -> None:
        """Delete the database file and start over with empty tables.

        Irreversible. Holds the store lock for the whole close/delete/reopen
        sequence, so no other operation sees a half-wiped store. The store is
        reopened even when the delete fails, with its old contents.
        """
        with self._lock:
            self.close()
            try:
                if os.path.exists(self.db_path):
                    try:
                        os.remove(self.db_path)
                        logger.info(f"[Store] Deleted catalog database {self.db_path}")
                    except OSError as e:
                        logger.error(f"[Store] Failed to delete {self.db_path}: {e}")
                        raise StoreWriteError(f"Failed to delete {self.db_path}: {e}") from e
                else:
                    logger.warning(f"[Store] Catalog database {self.db_path} does not exist")
            finally:
                self._conn = self._connect(self.db_path)

    def __enter__(self) -> "CatalogStore":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
