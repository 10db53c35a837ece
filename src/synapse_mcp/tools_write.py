"""Write tools for synapse-mcp - edit notes and keep the cache in step."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from synapse_mcp.config import Config
from synapse_mcp.exceptions import ReadOnlyError
from synapse_mcp.indexer import Indexer, LocalFileStore, VaultQueries
from synapse_mcp.indexer.walker import is_hidden, is_note_path, sanitize_filename

if TYPE_CHECKING:
    from fastmcp import FastMCP

logger = logging.getLogger(__name__)


def check_write_permission(config: Config) -> None:
    """
    Check if write operations are allowed.

    Raises:
        ReadOnlyError: If the server is in read-only mode
    """
    if config.read_only:
        logger.warning("Write operation rejected: server is in read-only mode")
        raise ReadOnlyError()


def _is_indexable(path: str) -> bool:
    return is_note_path(path) and not is_hidden(path)


def register_tools_write(
    mcp: "FastMCP",
    config: Config,
    indexer: Indexer,
    queries: VaultQueries,
    store: LocalFileStore,
) -> None:
    """Register all write tools with the FastMCP server.

    Every tool that changes the vault updates the cache before returning,
    so reads right after a write already see it.

    Args:
        mcp: FastMCP server instance
        config: Config instance, consulted for read-only mode
        indexer: Indexer instance for reindexing after writes
        queries: Query layer for stars and settings
        store: Vault file access
    """

    @mcp.tool()
    def toggle_star(path: str) -> dict:
        """Star or unstar a note.

        Args:
            path: Vault-relative path of the note

        Returns:
            Dict with path and the new starred state
        """
        check_write_permission(config)
        starred = queries.toggle_star(path)
        return {"path": path, "starred": starred}

    @mcp.tool()
    def set_setting(key: str, value: str) -> dict:
        """Store a user setting, replacing any previous value."""
        check_write_permission(config)
        queries.set_setting(key, value)
        return {"status": "saved", "key": key, "value": value}

    @mcp.tool()
    def reindex_vault() -> dict:
        """Rescan the whole vault and reconcile the cache with it.

        Returns:
            Dict with the number of notes indexed, skipped (unreadable)
            and deleted (gone from disk)
        """
        check_write_permission(config)
        stats = indexer.reindex_all()
        return {"status": "reindexed", **stats.to_dict()}

    @mcp.tool()
    def reindex_note(path: str) -> dict:
        """Reindex a single note from disk.

        Args:
            path: Vault-relative path of the note
        """
        check_write_permission(config)
        index = indexer.reindex_note(path)
        return {
            "status": "reindexed",
            "path": index.path,
            "title": index.title,
            "word_count": index.word_count,
        }

    @mcp.tool()
    def save_note(path: str, content: str) -> dict:
        """Write a note's full content, creating it if needed.

        Args:
            path: Vault-relative path ending in ".md"
            content: Full markdown content, frontmatter included
        """
        check_write_permission(config)
        if not _is_indexable(path):
            raise ValueError(f"Not a note path: {path}")

        store.write_text(path, content)
        index = indexer.reindex_note(path)
        logger.info("Saved note: %s", path)
        return {"status": "saved", "path": path, "title": index.title}

    @mcp.tool()
    def create_note(title: str, folder: str = "") -> dict:
        """Create a new note named after its title, with a frontmatter skeleton.

        Args:
            title: Note title; unsafe filename characters become "_"
            folder: Optional vault-relative folder to create it in

        Returns:
            Dict with status and the new note's path
        """
        check_write_permission(config)
        if is_hidden(folder) or sanitize_filename(title).startswith("."):
            raise ValueError(f"Cannot create a hidden note: {folder}/{title}")

        path = store.create_note(folder, title)
        indexer.reindex_note(path)
        return {"status": "created", "path": path, "title": title}

    @mcp.tool()
    def create_folder(path: str) -> dict:
        """Create a folder (and any missing parents) in the vault."""
        check_write_permission(config)
        store.create_folder(path)
        logger.info("Created folder: %s", path)
        return {"status": "created", "path": path}

    @mcp.tool()
    def delete_entry(path: str) -> dict:
        """Delete a note or a whole folder.

        Cached data for every note removed is dropped as well.

        Args:
            path: Vault-relative path of the note or folder
        """
        check_write_permission(config)
        store.delete(path)
        removed = indexer.remove_path(path)
        logger.info("Deleted %s (%d cached notes removed)", path, removed)
        return {"status": "deleted", "path": path, "notes_removed": removed}

    @mcp.tool()
    def rename_entry(old_path: str, new_path: str) -> dict:
        """Rename or move a note or folder.

        Links pointing at the old title are not rewritten.

        Args:
            old_path: Current vault-relative path
            new_path: New vault-relative path
        """
        check_write_permission(config)
        store.rename(old_path, new_path)
        indexed = indexer.move_path(old_path, new_path)
        logger.info("Renamed %s -> %s", old_path, new_path)
        return {
            "status": "renamed",
            "old_path": old_path,
            "new_path": new_path,
            "notes_indexed": indexed,
        }

    @mcp.tool()
    def duplicate_entry(path: str) -> dict:
        """Copy a file next to itself as "<name> N" with the first free N.

        Returns:
            Dict with status and the copy's path
        """
        check_write_permission(config)
        new_path = store.duplicate(path)
        if _is_indexable(new_path):
            indexer.reindex_note(new_path)
        return {"status": "duplicated", "path": path, "new_path": new_path}
