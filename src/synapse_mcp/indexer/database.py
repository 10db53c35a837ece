"""SQLite cache of note metadata."""

import logging
import sqlite3
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from synapse_mcp.exceptions import (
    CacheNotInitializedError,
    NoteNotFoundError,
    StoreError,
)
from synapse_mcp.indexer.models import CachedNote, Heading, Link, TagCount

logger = logging.getLogger(__name__)

SCHEMA_VERSION = "1.0"

SCHEMA_SQL = """
-- Synapse cache schema v1.0
-- This cache is disposable: it regenerates from the vault's markdown files.
-- Foreign keys are not enforced; dependents are removed by delete_note().

PRAGMA journal_mode = WAL;

-- Notes metadata (mirrors the filesystem)
CREATE TABLE IF NOT EXISTS notes (
    path        TEXT PRIMARY KEY,
    title       TEXT NOT NULL,
    created_at  TEXT,
    modified_at TEXT,
    word_count  INTEGER NOT NULL DEFAULT 0,
    starred     INTEGER NOT NULL DEFAULT 0
);

-- Outgoing wikilinks; target_name is an unresolved title
CREATE TABLE IF NOT EXISTS links (
    source_path TEXT NOT NULL,
    target_name TEXT NOT NULL,
    PRIMARY KEY (source_path, target_name)
);

CREATE INDEX IF NOT EXISTS idx_links_target ON links(target_name);

-- Tags on notes
CREATE TABLE IF NOT EXISTS tags (
    note_path TEXT NOT NULL,
    tag       TEXT NOT NULL,
    PRIMARY KEY (note_path, tag)
);

CREATE INDEX IF NOT EXISTS idx_tags_tag ON tags(tag);

-- Headings (outline)
CREATE TABLE IF NOT EXISTS headings (
    note_path   TEXT NOT NULL,
    text        TEXT NOT NULL,
    level       INTEGER NOT NULL,
    line_number INTEGER NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_headings_path ON headings(note_path);

-- User settings
CREATE TABLE IF NOT EXISTS settings (
    key   TEXT PRIMARY KEY,
    value TEXT NOT NULL
);

-- Metadata table for cache versioning
CREATE TABLE IF NOT EXISTS meta (
    key   TEXT PRIMARY KEY,
    value TEXT
);

INSERT OR REPLACE INTO meta (key, value) VALUES ('schema_version', '1.0');
"""


class Database:
    """
    SQLite cache for one vault.

    Thread Safety:
        A single connection is shared by all threads and guarded by one lock,
        so at most one read or write runs at a time. Every operation is a
        short, bounded set of local queries.
    """

    def __init__(self, db_path: Path):
        """Initialize database handle. No connection is opened yet."""
        self.db_path = db_path
        self._conn: sqlite3.Connection | None = None
        self._lock = threading.RLock()
        self._initialized = False

    @property
    def initialized(self) -> bool:
        return self._initialized

    def _get_connection(self) -> sqlite3.Connection:
        """Get the shared connection, opening it on first use."""
        if self._conn is None:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
        return self._conn

    @contextmanager
    def _read_cursor(self) -> Iterator[sqlite3.Cursor]:
        """Get a cursor for read operations."""
        with self._lock:
            if not self._initialized:
                raise CacheNotInitializedError()
            cursor = self._get_connection().cursor()
            try:
                yield cursor
            except sqlite3.Error as e:
                raise StoreError(f"Cache query failed: {e}") from e
            finally:
                cursor.close()

    @contextmanager
    def _write_cursor(self) -> Iterator[sqlite3.Cursor]:
        """Get a cursor for a write transaction, rolled back on any error."""
        with self._lock:
            if not self._initialized:
                raise CacheNotInitializedError()
            conn = self._get_connection()
            cursor = conn.cursor()
            try:
                yield cursor
                conn.commit()
            except sqlite3.Error as e:
                conn.rollback()
                raise StoreError(f"Cache write failed: {e}") from e
            except Exception:
                conn.rollback()
                raise
            finally:
                cursor.close()

    def initialize(self) -> None:
        """Initialize the database schema."""
        with self._lock:
            try:
                conn = self._get_connection()
                conn.executescript(SCHEMA_SQL)
                conn.commit()
            except sqlite3.Error as e:
                raise StoreError(f"Failed to initialize cache at {self.db_path}: {e}") from e
            self._initialized = True
        logger.debug("Cache initialized at %s", self.db_path)

    def close(self) -> None:
        """Close the database connection."""
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None
            self._initialized = False

    def clear(self) -> None:
        """Delete all cached note data. Settings are kept."""
        with self._write_cursor() as cursor:
            cursor.execute("DELETE FROM links")
            cursor.execute("DELETE FROM tags")
            cursor.execute("DELETE FROM headings")
            cursor.execute("DELETE FROM notes")

    # Note operations

    def upsert_note(self, note: CachedNote) -> None:
        """
        Insert a note, or refresh an existing one.

        On conflict only title, modified_at and word_count change; starred
        and created_at keep their stored values.
        """
        with self._write_cursor() as cursor:
            cursor.execute(
                """INSERT INTO notes
                (path, title, created_at, modified_at, word_count, starred)
                VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT(path) DO UPDATE SET
                    title = excluded.title,
                    modified_at = excluded.modified_at,
                    word_count = excluded.word_count
                """,
                (
                    note.path,
                    note.title,
                    note.created_at,
                    note.modified_at,
                    note.word_count,
                    1 if note.starred else 0,
                ),
            )

    def get_note(self, path: str) -> CachedNote | None:
        """Get a cached note by path."""
        with self._read_cursor() as cursor:
            cursor.execute("SELECT * FROM notes WHERE path = ?", (path,))
            row = cursor.fetchone()
            return self._row_to_note(row) if row else None

    def get_all_notes(self) -> list[CachedNote]:
        """All cached notes, most recently modified first."""
        with self._read_cursor() as cursor:
            cursor.execute("SELECT * FROM notes ORDER BY modified_at DESC, path")
            return [self._row_to_note(row) for row in cursor.fetchall()]

    def count_notes(self) -> int:
        with self._read_cursor() as cursor:
            cursor.execute("SELECT COUNT(*) AS cnt FROM notes")
            return cursor.fetchone()["cnt"]

    def list_paths(self) -> set[str]:
        """Get all cached note paths."""
        with self._read_cursor() as cursor:
            cursor.execute("SELECT path FROM notes")
            return {row["path"] for row in cursor.fetchall()}

    def delete_note(self, path: str) -> None:
        """
        Delete a note and everything that belongs to it.

        Dependents (links, tags, headings) go first, the notes row last, all
        in one transaction.
        """
        with self._write_cursor() as cursor:
            cursor.execute("DELETE FROM links WHERE source_path = ?", (path,))
            cursor.execute("DELETE FROM tags WHERE note_path = ?", (path,))
            cursor.execute("DELETE FROM headings WHERE note_path = ?", (path,))
            cursor.execute("DELETE FROM notes WHERE path = ?", (path,))

    def toggle_star(self, path: str) -> bool:
        """
        Flip the starred flag of a note and return the new value.

        Raises:
            NoteNotFoundError: If the note is not cached
        """
        with self._write_cursor() as cursor:
            cursor.execute(
                "UPDATE notes SET starred = CASE WHEN starred = 0 THEN 1 ELSE 0 END WHERE path = ?",
                (path,),
            )
            if cursor.rowcount == 0:
                raise NoteNotFoundError(path)
            cursor.execute("SELECT starred FROM notes WHERE path = ?", (path,))
            return bool(cursor.fetchone()["starred"])

    def _row_to_note(self, row: sqlite3.Row) -> CachedNote:
        """Convert a database row to a CachedNote."""
        return CachedNote(
            path=row["path"],
            title=row["title"],
            created_at=row["created_at"],
            modified_at=row["modified_at"],
            word_count=row["word_count"],
            starred=bool(row["starred"]),
        )

    def _require_note(self, cursor: sqlite3.Cursor, path: str) -> None:
        cursor.execute("SELECT 1 FROM notes WHERE path = ?", (path,))
        if cursor.fetchone() is None:
            raise NoteNotFoundError(path, f"Cannot write metadata for uncached note: {path}")

    # Link operations

    def replace_links(self, source_path: str, targets: list[str]) -> None:
        """Replace all outgoing links of a note."""
        with self._write_cursor() as cursor:
            self._require_note(cursor, source_path)
            cursor.execute("DELETE FROM links WHERE source_path = ?", (source_path,))
            cursor.executemany(
                "INSERT OR IGNORE INTO links (source_path, target_name) VALUES (?, ?)",
                [(source_path, target) for target in targets],
            )

    def get_backlink_sources(self, title: str) -> list[str]:
        """Paths of cached notes linking to the given title."""
        with self._read_cursor() as cursor:
            cursor.execute(
                """SELECT DISTINCT l.source_path FROM links l
                JOIN notes n ON n.path = l.source_path
                WHERE l.target_name = ?
                ORDER BY l.source_path""",
                (title,),
            )
            return [row["source_path"] for row in cursor.fetchall()]

    def get_outgoing_links(self, source_path: str) -> list[str]:
        """Link targets of a note, in the order they were stored."""
        with self._read_cursor() as cursor:
            cursor.execute(
                "SELECT target_name FROM links WHERE source_path = ? ORDER BY rowid",
                (source_path,),
            )
            return [row["target_name"] for row in cursor.fetchall()]

    def get_all_links(self) -> list[Link]:
        """Every link in the vault (graph edges)."""
        with self._read_cursor() as cursor:
            cursor.execute(
                "SELECT source_path, target_name FROM links ORDER BY source_path, rowid"
            )
            return [
                Link(source_path=row["source_path"], target_name=row["target_name"])
                for row in cursor.fetchall()
            ]

    # Tag operations

    def replace_tags(self, note_path: str, tags: list[str]) -> None:
        """Replace all tags of a note."""
        with self._write_cursor() as cursor:
            self._require_note(cursor, note_path)
            cursor.execute("DELETE FROM tags WHERE note_path = ?", (note_path,))
            cursor.executemany(
                "INSERT OR IGNORE INTO tags (note_path, tag) VALUES (?, ?)",
                [(note_path, tag) for tag in tags],
            )

    def get_all_tags(self) -> list[TagCount]:
        """Every tag with its note count, most used first."""
        with self._read_cursor() as cursor:
            cursor.execute(
                "SELECT tag, COUNT(*) AS cnt FROM tags GROUP BY tag ORDER BY cnt DESC, tag"
            )
            return [TagCount(tag=row["tag"], count=row["cnt"]) for row in cursor.fetchall()]

    def get_notes_by_tag(self, tag: str) -> list[str]:
        """Paths of notes carrying a tag."""
        with self._read_cursor() as cursor:
            cursor.execute(
                "SELECT note_path FROM tags WHERE tag = ? ORDER BY note_path",
                (tag,),
            )
            return [row["note_path"] for row in cursor.fetchall()]

    # Heading operations

    def replace_headings(self, note_path: str, headings: list[Heading]) -> None:
        """Replace all headings of a note."""
        with self._write_cursor() as cursor:
            self._require_note(cursor, note_path)
            cursor.execute("DELETE FROM headings WHERE note_path = ?", (note_path,))
            cursor.executemany(
                """INSERT INTO headings (note_path, text, level, line_number)
                VALUES (?, ?, ?, ?)""",
                [(note_path, h.text, h.level, h.line) for h in headings],
            )

    def get_headings(self, note_path: str) -> list[Heading]:
        """Outline of a note, in line order."""
        with self._read_cursor() as cursor:
            cursor.execute(
                """SELECT text, level, line_number FROM headings
                WHERE note_path = ?
                ORDER BY line_number""",
                (note_path,),
            )
            return [
                Heading(text=row["text"], level=row["level"], line=row["line_number"])
                for row in cursor.fetchall()
            ]

    # Settings

    def get_setting(self, key: str) -> str | None:
        with self._read_cursor() as cursor:
            cursor.execute("SELECT value FROM settings WHERE key = ?", (key,))
            row = cursor.fetchone()
            return row["value"] if row else None

    def set_setting(self, key: str, value: str) -> None:
        with self._write_cursor() as cursor:
            cursor.execute(
                """INSERT INTO settings (key, value) VALUES (?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value""",
                (key, value),
            )
