"""Filesystem access to the vault.

The indexer only talks to the vault through the FileStore protocol, so the
reconciliation logic never touches OS paths or file handles directly.
"""

import logging
import shutil
from datetime import datetime, timezone
from pathlib import Path, PurePosixPath
from typing import Protocol

from synapse_mcp.exceptions import NoteNotFoundError, VaultIOError
from synapse_mcp.indexer.models import VaultEntry
from synapse_mcp.indexer.parser import render_frontmatter

logger = logging.getLogger(__name__)

NOTE_SUFFIX = ".md"

# Cache directory kept inside the vault; hidden, so never listed
CACHE_DIR_NAME = ".synapse"
CACHE_DB_NAME = "cache.db"

# Characters not allowed in note filenames
UNSAFE_FILENAME_CHARS = set('/\\:*?"<>|')

WELCOME_NOTE_TITLE = "Welcome to Synapse"
WELCOME_NOTE_BODY = """# Welcome to Synapse

This is your first note. A few things to try:

- Link notes by typing [[Welcome to Synapse]] style wikilinks
- Tag notes inline with #tags or in the frontmatter
- Search note titles, even with partial or fuzzy queries

Start writing and connecting your ideas!
"""


def is_note_path(path: str) -> bool:
    """Check if a relative path names a markdown note."""
    return path.endswith(NOTE_SUFFIX)


def is_hidden(path: str) -> bool:
    """Check if any component of a relative path starts with a dot."""
    return any(part.startswith(".") for part in PurePosixPath(path).parts)


def sanitize_filename(name: str) -> str:
    """Replace characters that are not allowed in filenames."""
    return "".join("_" if c in UNSAFE_FILENAME_CHARS else c for c in name).strip()


def today() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%d")


class FileStore(Protocol):
    """Raw file operations on a vault, addressed by vault-relative paths."""

    def list_all_paths(self) -> list[VaultEntry]: ...

    def list_notes(self) -> list[VaultEntry]: ...

    def read_text(self, path: str) -> str: ...

    def write_text(self, path: str, text: str) -> None: ...

    def exists(self, path: str) -> bool: ...

    def is_dir(self, path: str) -> bool: ...


class LocalFileStore:
    """FileStore backed by a directory on the local filesystem."""

    def __init__(self, vault_root: Path):
        """
        Args:
            vault_root: Root directory of the vault
        """
        self.vault_root = vault_root

    def _resolve(self, path: str) -> Path:
        """
        Resolve a relative path inside the vault.

        Raises:
            ValueError: If the path escapes the vault root
        """
        if not path or PurePosixPath(path).is_absolute():
            raise ValueError(f"Invalid vault path: {path!r}")

        root = self.vault_root.resolve()
        full_path = (root / path).resolve()
        try:
            full_path.relative_to(root)
        except ValueError as e:
            raise ValueError(f"Path '{path}' is outside the vault") from e
        if full_path == root:
            raise ValueError(f"Path '{path}' is the vault root")
        return full_path

    def _relative(self, full_path: Path) -> str:
        return full_path.relative_to(self.vault_root.resolve()).as_posix()

    # Listing

    def list_all_paths(self) -> list[VaultEntry]:
        """
        Recursively list files and folders, skipping hidden ones.

        Folders come first, then everything sorted case-insensitively by path.
        """
        root = self.vault_root.resolve()
        if not root.is_dir():
            raise VaultIOError(str(self.vault_root), "Vault root is not a directory")

        entries: list[VaultEntry] = []
        for full_path in root.rglob("*"):
            relative_parts = full_path.relative_to(root).parts
            if any(part.startswith(".") for part in relative_parts):
                continue

            try:
                stat = full_path.stat()
            except OSError as e:
                logger.warning("Cannot stat %s: %s", full_path, e)
                continue

            is_dir = full_path.is_dir()
            entries.append(
                VaultEntry(
                    path="/".join(relative_parts),
                    name=full_path.name if is_dir else full_path.stem,
                    is_dir=is_dir,
                    size=0 if is_dir else stat.st_size,
                    modified=int(stat.st_mtime),
                    created=int(getattr(stat, "st_birthtime", stat.st_ctime)),
                )
            )

        entries.sort(key=lambda e: (not e.is_dir, e.path.lower()))
        return entries

    def list_notes(self) -> list[VaultEntry]:
        """List only markdown files."""
        return [
            e for e in self.list_all_paths() if not e.is_dir and is_note_path(e.path)
        ]

    # Reading and writing

    def exists(self, path: str) -> bool:
        return self._resolve(path).exists()

    def is_dir(self, path: str) -> bool:
        return self._resolve(path).is_dir()

    def read_text(self, path: str) -> str:
        """
        Read a file as UTF-8 text.

        Raises:
            NoteNotFoundError: If the file does not exist
            VaultIOError: If the file cannot be read or decoded
        """
        full_path = self._resolve(path)
        try:
            return full_path.read_text(encoding="utf-8")
        except FileNotFoundError as e:
            raise NoteNotFoundError(path) from e
        except UnicodeDecodeError as e:
            raise VaultIOError(path, f"Invalid UTF-8 in {path}: {e}") from e
        except OSError as e:
            raise VaultIOError(path, f"Failed to read {path}: {e}") from e

    def write_text(self, path: str, text: str) -> None:
        """Write a file, creating parent directories as needed."""
        full_path = self._resolve(path)
        try:
            full_path.parent.mkdir(parents=True, exist_ok=True)
            full_path.write_text(text, encoding="utf-8")
        except OSError as e:
            raise VaultIOError(path, f"Failed to write {path}: {e}") from e

    # Structure

    def create_note(self, relative_dir: str, title: str) -> str:
        """
        Create a note named after its title, with a frontmatter skeleton.

        Returns:
            The new note's relative path

        Raises:
            ValueError: If the title is empty or the note already exists
        """
        safe_name = sanitize_filename(title)
        if not safe_name:
            raise ValueError("Note title cannot be empty")

        relative_dir = relative_dir.strip("/")
        path = f"{relative_dir}/{safe_name}{NOTE_SUFFIX}" if relative_dir else f"{safe_name}{NOTE_SUFFIX}"
        if self.exists(path):
            raise ValueError(f"A note with this name already exists: {path}")

        now = today()
        self.write_text(path, render_frontmatter(title, created=now, modified=now))
        logger.info("Created note: %s", path)
        return path

    def create_folder(self, path: str) -> None:
        full_path = self._resolve(path)
        try:
            full_path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise VaultIOError(path, f"Failed to create folder {path}: {e}") from e

    def delete(self, path: str) -> None:
        """Delete a file or a whole folder."""
        full_path = self._resolve(path)
        if not full_path.exists():
            raise NoteNotFoundError(path)
        try:
            if full_path.is_dir():
                shutil.rmtree(full_path)
            else:
                full_path.unlink()
        except OSError as e:
            raise VaultIOError(path, f"Failed to delete {path}: {e}") from e

    def rename(self, old_path: str, new_path: str) -> None:
        """Move a file or folder, creating the destination's parent."""
        source = self._resolve(old_path)
        target = self._resolve(new_path)
        if not source.exists():
            raise NoteNotFoundError(old_path)
        if target.exists():
            raise ValueError(f"Destination already exists: {new_path}")
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            source.rename(target)
        except OSError as e:
            raise VaultIOError(old_path, f"Failed to move {old_path} to {new_path}: {e}") from e

    def duplicate(self, path: str) -> str:
        """
        Copy a file next to itself as "<stem> N<suffix>" with the first free N.

        Returns:
            The copy's relative path
        """
        source = self._resolve(path)
        if not source.is_file():
            raise NoteNotFoundError(path)

        counter = 1
        while True:
            candidate = source.with_name(f"{source.stem} {counter}{source.suffix}")
            if not candidate.exists():
                break
            counter += 1

        try:
            shutil.copy2(source, candidate)
        except OSError as e:
            raise VaultIOError(path, f"Failed to duplicate {path}: {e}") from e
        return self._relative(candidate)


def cache_db_path(vault_root: Path) -> Path:
    """Default location of the cache database inside a vault."""
    return vault_root / CACHE_DIR_NAME / CACHE_DB_NAME


def open_vault(vault_root: Path) -> LocalFileStore:
    """
    Open an existing vault, creating its cache directory if missing.

    Raises:
        VaultIOError: If the vault root is not a directory
    """
    if not vault_root.is_dir():
        raise VaultIOError(str(vault_root), "Vault path does not exist or is not a directory")
    (vault_root / CACHE_DIR_NAME).mkdir(exist_ok=True)
    return LocalFileStore(vault_root)


def create_vault(vault_root: Path) -> LocalFileStore:
    """Create a new vault with a welcome note, or open it if it exists."""
    vault_root.mkdir(parents=True, exist_ok=True)
    store = open_vault(vault_root)

    welcome_path = f"{WELCOME_NOTE_TITLE}{NOTE_SUFFIX}"
    if not store.exists(welcome_path):
        now = today()
        store.write_text(
            welcome_path,
            render_frontmatter(
                WELCOME_NOTE_TITLE, created=now, modified=now, tags=["getting-started"]
            )
            + WELCOME_NOTE_BODY,
        )
        logger.info("Created vault at %s", vault_root)
    return store
