"""Reconciler that keeps the SQLite cache in line with the vault."""

import logging
import threading
from dataclasses import dataclass
from pathlib import Path

from synapse_mcp.exceptions import NoteNotFoundError, VaultIOError
from synapse_mcp.indexer.database import Database
from synapse_mcp.indexer.extractor import index_note
from synapse_mcp.indexer.models import CachedNote, NoteIndex
from synapse_mcp.indexer.parser import parse_frontmatter
from synapse_mcp.indexer.walker import FileStore, LocalFileStore, is_hidden, is_note_path

logger = logging.getLogger(__name__)


@dataclass
class ReindexStats:
    """Outcome of a full vault reindex."""

    indexed: int = 0
    skipped: int = 0
    deleted: int = 0

    def to_dict(self) -> dict:
        return {"indexed": self.indexed, "skipped": self.skipped, "deleted": self.deleted}


class Indexer:
    """
    Indexer that syncs the vault's markdown files into the cache.

    The filesystem is always the source of truth. The cache is a derived
    index that a full reindex can rebuild at any time.

    Thread Safety:
        Every operation that writes to the cache (reindex_all, reindex_note,
        remove_path, move_path) holds the same lock, so the delete-then-
        insert sequences of two reindexes never interleave.
    """

    def __init__(self, store: FileStore, db: Database):
        """
        Initialize the indexer.

        Args:
            store: Access to the vault's files
            db: The cache database
        """
        self.store = store
        self.db = db
        self._write_lock = threading.Lock()

    @classmethod
    def for_vault(cls, vault_root: Path, db_path: Path) -> "Indexer":
        """Build an indexer over a local vault directory."""
        return cls(LocalFileStore(vault_root), Database(db_path))

    def initialize(self) -> None:
        """Initialize the database schema."""
        self.db.initialize()

    def close(self) -> None:
        """Close database connections."""
        self.db.close()

    def reindex_all(self) -> ReindexStats:
        """
        Reconcile the whole cache with the vault.

        The list of notes on disk is taken once, up front. Each note is read
        and indexed; a note that cannot be read or extracted is logged and
        skipped, keeping whatever the cache already holds for it. Cached
        notes missing from that list are deleted afterwards. Cache errors
        abort the sweep.
        """
        with self._write_lock:
            logger.info("Starting full reindex")
            stats = ReindexStats()

            disk_paths = [entry.path for entry in self.store.list_notes()]

            for path in disk_paths:
                try:
                    content = self.store.read_text(path)
                    index, frontmatter = self._extract(path, content)
                except (NoteNotFoundError, VaultIOError, ValueError) as e:
                    logger.warning("Skipping %s: %s", path, e)
                    stats.skipped += 1
                    continue

                self._store_index(index, frontmatter.created, frontmatter.modified)
                stats.indexed += 1

            snapshot = set(disk_paths)
            for cached_path in sorted(self.db.list_paths() - snapshot):
                self.db.delete_note(cached_path)
                stats.deleted += 1
                logger.debug("Pruned missing note %s", cached_path)

            logger.info(
                "Reindex complete: %d indexed, %d skipped, %d deleted",
                stats.indexed,
                stats.skipped,
                stats.deleted,
            )
            return stats

    def reindex_note(self, path: str) -> NoteIndex:
        """
        Reindex a single note after it was saved, created or renamed.

        Unlike the full sweep, failures propagate to the caller.

        Raises:
            ValueError: If the path is not a markdown note
            NoteNotFoundError: If the note does not exist
            VaultIOError: If the note cannot be read
        """
        if not is_note_path(path) or is_hidden(path):
            raise ValueError(f"Not an indexable note path: {path}")

        with self._write_lock:
            content = self.store.read_text(path)
            index, frontmatter = self._extract(path, content)
            self._store_index(index, frontmatter.created, frontmatter.modified)
            logger.debug("Reindexed note: %s", path)
            return index

    def remove_path(self, path: str) -> int:
        """
        Drop cache rows for a deleted note, or every note under a deleted folder.

        Returns:
            Number of notes removed from the cache
        """
        with self._write_lock:
            return self._remove_path(path)

    def move_path(self, old_path: str, new_path: str) -> int:
        """
        Propagate a rename or move of a note or folder.

        Rows for the old location are dropped; notes now present at the new
        location are indexed. A note renamed away from ".md" simply leaves
        the cache.

        Returns:
            Number of notes indexed at the new location
        """
        with self._write_lock:
            self._remove_path(old_path)

            if is_note_path(new_path) and not self.store.is_dir(new_path):
                candidates = [new_path]
            else:
                prefix = new_path.rstrip("/") + "/"
                candidates = [e.path for e in self.store.list_notes() if e.path.startswith(prefix)]

            indexed = 0
            for path in candidates:
                if is_hidden(path):
                    continue
                content = self.store.read_text(path)
                index, frontmatter = self._extract(path, content)
                self._store_index(index, frontmatter.created, frontmatter.modified)
                indexed += 1

            logger.debug("Moved %s -> %s (%d notes)", old_path, new_path, indexed)
            return indexed

    def _remove_path(self, path: str) -> int:
        prefix = path.rstrip("/") + "/"
        doomed = [p for p in self.db.list_paths() if p == path or p.startswith(prefix)]
        for cached_path in doomed:
            self.db.delete_note(cached_path)
        if doomed:
            logger.debug("Removed %d cached notes for %s", len(doomed), path)
        return len(doomed)

    def _extract(self, path: str, content: str):
        frontmatter = parse_frontmatter(content, path)
        index = index_note(path, content, frontmatter.tags, frontmatter.title)
        return index, frontmatter

    def _store_index(
        self,
        index: NoteIndex,
        created_at: str | None,
        modified_at: str | None,
    ) -> None:
        """Write one note: the notes row first, then its dependents."""
        self.db.upsert_note(
            CachedNote(
                path=index.path,
                title=index.title,
                created_at=created_at,
                modified_at=modified_at,
                word_count=index.word_count,
            )
        )
        self.db.replace_links(index.path, index.outgoing_links)
        self.db.replace_tags(index.path, index.tags)
        self.db.replace_headings(index.path, index.headings)
