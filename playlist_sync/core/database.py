"""
Thread-safe SQLite database for playlist-sync.

This module owns the connection and the schema. Reads and writes for each
entity live in playlist_sync.core.repositories.

Schema:
    playlists:  Playlists being reconciled (external id, service, name, last_changed)
    artists:    One row per catalog artist
    albums:     One row per catalog album, linked to its artist
    releases:   Albums first observed as new in a playlist
    tracks:     Tracks seen in a playlist; UNIQUE(playlist_id, track_id)

The UNIQUE(playlist_id, track_id) constraint is what guarantees a track is
recorded at most once per playlist, even if two runs reconcile the same
playlist at the same time.

Usage:
    db = Database(Path("~/.playlist-sync/music.db").expanduser())
    repositories = Repositories.from_database(db)
    ...
    db.close()
"""

import sqlite3
import threading
from contextlib import contextmanager
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Generator

from playlist_sync.core.exceptions import PersistError


DATABASE_VERSION = 1


_SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER PRIMARY KEY
);

CREATE TABLE IF NOT EXISTS playlists (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    playlist_id TEXT NOT NULL,
    service TEXT NOT NULL,
    name TEXT,
    description TEXT,
    last_changed TEXT,
    created_at TEXT,
    updated_at TEXT,
    UNIQUE(service, playlist_id)
);

CREATE TABLE IF NOT EXISTS artists (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    artist_id TEXT UNIQUE NOT NULL,
    name TEXT,
    created_at TEXT,
    updated_at TEXT
);

CREATE TABLE IF NOT EXISTS albums (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    album_id TEXT UNIQUE NOT NULL,
    artist_id INTEGER,
    name TEXT,
    album_type TEXT,
    release_date TEXT,
    created_at TEXT,
    updated_at TEXT,
    FOREIGN KEY (artist_id) REFERENCES artists(id)
);

CREATE TABLE IF NOT EXISTS releases (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    album_id INTEGER NOT NULL,
    playlist_id INTEGER NOT NULL,
    sync_date TEXT NOT NULL,
    FOREIGN KEY (album_id) REFERENCES albums(id),
    FOREIGN KEY (playlist_id) REFERENCES playlists(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS tracks (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    playlist_id INTEGER NOT NULL,
    track_id TEXT NOT NULL,
    name TEXT,
    artist_id INTEGER,
    album_id INTEGER,
    created_at TEXT,
    FOREIGN KEY (playlist_id) REFERENCES playlists(id) ON DELETE CASCADE,
    FOREIGN KEY (artist_id) REFERENCES artists(id),
    FOREIGN KEY (album_id) REFERENCES albums(id),
    UNIQUE(playlist_id, track_id)
);

CREATE INDEX IF NOT EXISTS idx_albums_artist ON albums(artist_id);
CREATE INDEX IF NOT EXISTS idx_releases_playlist ON releases(playlist_id);
CREATE INDEX IF NOT EXISTS idx_tracks_playlist ON tracks(playlist_id);
"""


def to_iso(value: datetime | date | None) -> str | None:
    """Serialize a date/datetime for storage. Naive datetimes are taken as UTC."""
    if value is None:
        return None
    if isinstance(value, datetime) and value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


def parse_datetime(value: str | None) -> datetime | None:
    if not value:
        return None
    return datetime.fromisoformat(value)


def parse_date(value: str | None) -> date | None:
    if not value:
        return None
    return date.fromisoformat(value)


class Database:
    """
    Thread-safe SQLite database.

    Uses a single persistent connection with a lock. Every public operation
    runs inside transaction(), which holds the lock, commits on success and
    rolls back on failure.

    Raises:
        PersistError: On construction if the parent directory is missing,
                      the file cannot be opened or the schema version
                      doesn't match DATABASE_VERSION.
    """

    def __init__(self, db_path: Path) -> None:
        self.db_path = db_path
        self._lock = threading.RLock()
        self._conn: sqlite3.Connection | None = None

        if not db_path.parent.exists():
            raise PersistError(
                f"Parent directory does not exist: {db_path.parent}",
                details={"path": str(db_path.parent)}
            )

        try:
            self._init_database()
        except sqlite3.Error as e:
            raise PersistError(
                f"Failed to initialize database: {e}",
                details={"path": str(db_path), "original_error": str(e)}
            ) from e

    def _connect(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = sqlite3.connect(
                str(self.db_path),
                timeout=30.0,
                check_same_thread=False  # Thread safety comes from _lock
            )
            self._conn.row_factory = sqlite3.Row
            self._conn.execute("PRAGMA foreign_keys = ON")
            self._conn.execute("PRAGMA journal_mode = WAL")
        return self._conn

    def _init_database(self) -> None:
        with self._lock:
            conn = self._connect()
            conn.executescript(_SCHEMA_SQL)

            row = conn.execute("SELECT version FROM schema_version LIMIT 1").fetchone()

            if row is None:
                conn.execute("INSERT INTO schema_version (version) VALUES (?)", (DATABASE_VERSION,))
            elif row[0] != DATABASE_VERSION:
                raise PersistError(
                    f"Database version mismatch: expected {DATABASE_VERSION}, got {row[0]}",
                    details={"expected": DATABASE_VERSION, "actual": row[0]}
                )
            conn.commit()

    @contextmanager
    def transaction(self) -> Generator[sqlite3.Connection, None, None]:
        """
        Run a unit of work on the shared connection.

        Yields the connection with the lock held. Commits when the block
        exits normally. On sqlite3.Error rolls back and raises PersistError;
        constraint violations set details['constraint'] = True.
        """
        with self._lock:
            conn = self._connect()
            try:
                yield conn
                conn.commit()
            except sqlite3.IntegrityError as e:
                conn.rollback()
                raise PersistError(
                    f"Constraint violation: {e}",
                    details={"constraint": True, "original_error": str(e)}
                ) from e
            except sqlite3.Error as e:
                conn.rollback()
                raise PersistError(
                    f"Database operation failed: {e}",
                    details={"original_error": str(e)}
                ) from e
            except Exception:
                conn.rollback()
                raise

    def fetch_one(self, sql: str, params: tuple[Any, ...] = ()) -> sqlite3.Row | None:
        with self.transaction() as conn:
            return conn.execute(sql, params).fetchone()

    def fetch_all(self, sql: str, params: tuple[Any, ...] = ()) -> list[sqlite3.Row]:
        with self.transaction() as conn:
            return conn.execute(sql, params).fetchall()

    def insert(self, sql: str, params: tuple[Any, ...]) -> int:
        """Execute an INSERT and return the new row id."""
        with self.transaction() as conn:
            cursor = conn.execute(sql, params)
            return int(cursor.lastrowid)

    def execute(self, sql: str, params: tuple[Any, ...] = ()) -> int:
        """Execute a statement and return the number of affected rows."""
        with self.transaction() as conn:
            return conn.execute(sql, params).rowcount

    def now_iso(self) -> str:
        return datetime.now(timezone.utc).isoformat()

    def close(self) -> None:
        """Close the database connection."""
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None

    def __enter__(self) -> "Database":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()
