"""Tests for vault file access."""

from pathlib import Path

import pytest

from synapse_mcp.exceptions import NoteNotFoundError, VaultIOError
from synapse_mcp.indexer.parser import parse_frontmatter
from synapse_mcp.indexer.walker import (
    LocalFileStore,
    cache_db_path,
    create_vault,
    is_hidden,
    is_note_path,
    open_vault,
    sanitize_filename,
)


@pytest.fixture
def vault(tmp_path: Path) -> Path:
    """Create a small vault layout."""
    root = tmp_path / "vault"
    root.mkdir()
    (root / "Zeta.md").write_text("# Zeta")
    (root / "alpha.md").write_text("# Alpha")
    (root / "image.png").write_bytes(b"\x89PNG")
    (root / "projects").mkdir()
    (root / "projects" / "Plan.md").write_text("# Plan")
    (root / "Archive").mkdir()
    (root / ".synapse").mkdir()
    (root / ".synapse" / "cache.db").write_text("")
    (root / ".hidden.md").write_text("secret")
    (root / "projects" / ".trash").mkdir()
    (root / "projects" / ".trash" / "old.md").write_text("old")
    return root


class TestHelpers:
    def test_is_note_path(self):
        assert is_note_path("a.md")
        assert is_note_path("dir/b.md")
        assert not is_note_path("a.txt")
        assert not is_note_path("dir")

    def test_is_hidden(self):
        assert is_hidden(".hidden.md")
        assert is_hidden("dir/.trash/a.md")
        assert not is_hidden("dir/a.md")

    def test_sanitize_filename(self):
        assert sanitize_filename('a/b\\c:d*e?f"g<h>i|j') == "a_b_c_d_e_f_g_h_i_j"
        assert sanitize_filename("  Plain Title ") == "Plain Title"

    def test_cache_db_path(self, tmp_path: Path):
        assert cache_db_path(tmp_path) == tmp_path / ".synapse" / "cache.db"


class TestListing:
    def test_skips_hidden_and_sorts_dirs_first(self, vault: Path):
        store = LocalFileStore(vault)
        paths = [e.path for e in store.list_all_paths()]
        assert paths == [
            "Archive",
            "projects",
            "alpha.md",
            "image.png",
            "projects/Plan.md",
            "Zeta.md",
        ]

    def test_entry_fields(self, vault: Path):
        store = LocalFileStore(vault)
        entries = {e.path: e for e in store.list_all_paths()}

        note = entries["alpha.md"]
        assert note.name == "alpha"
        assert note.is_dir is False
        assert note.size == len("# Alpha")
        assert note.modified > 0

        folder = entries["projects"]
        assert folder.name == "projects"
        assert folder.is_dir is True
        assert folder.size == 0

    def test_list_notes_only_markdown(self, vault: Path):
        store = LocalFileStore(vault)
        assert [e.path for e in store.list_notes()] == ["alpha.md", "projects/Plan.md", "Zeta.md"]

    def test_missing_root_raises(self, tmp_path: Path):
        store = LocalFileStore(tmp_path / "nowhere")
        with pytest.raises(VaultIOError):
            store.list_all_paths()


class TestReadWrite:
    def test_read_text(self, vault: Path):
        store = LocalFileStore(vault)
        assert store.read_text("projects/Plan.md") == "# Plan"

    def test_read_missing_raises_not_found(self, vault: Path):
        store = LocalFileStore(vault)
        with pytest.raises(NoteNotFoundError):
            store.read_text("missing.md")

    def test_read_invalid_utf8_raises_io_error(self, vault: Path):
        (vault / "binary.md").write_bytes(b"\xff\xfe\x00bad")
        store = LocalFileStore(vault)
        with pytest.raises(VaultIOError):
            store.read_text("binary.md")

    def test_read_directory_raises_io_error(self, vault: Path):
        store = LocalFileStore(vault)
        with pytest.raises(VaultIOError):
            store.read_text("projects")

    def test_write_creates_parents(self, vault: Path):
        store = LocalFileStore(vault)
        store.write_text("deep/nested/note.md", "hello")
        assert (vault / "deep" / "nested" / "note.md").read_text() == "hello"

    def test_rejects_paths_outside_vault(self, vault: Path):
        store = LocalFileStore(vault)
        with pytest.raises(ValueError, match="outside the vault"):
            store.read_text("../escape.md")
        with pytest.raises(ValueError):
            store.write_text("/etc/passwd", "x")
        with pytest.raises(ValueError):
            store.delete("")

    def test_exists_and_is_dir(self, vault: Path):
        store = LocalFileStore(vault)
        assert store.exists("alpha.md")
        assert not store.exists("nope.md")
        assert store.is_dir("projects")
        assert not store.is_dir("alpha.md")


class TestStructure:
    def test_create_note(self, vault: Path):
        store = LocalFileStore(vault)
        path = store.create_note("projects", "New: Idea")

        assert path == "projects/New_ Idea.md"
        data = parse_frontmatter(store.read_text(path))
        assert data.title == "New: Idea"
        assert data.created is not None

    def test_create_note_at_root(self, vault: Path):
        store = LocalFileStore(vault)
        assert store.create_note("", "Root Note") == "Root Note.md"

    def test_create_note_existing_raises(self, vault: Path):
        store = LocalFileStore(vault)
        with pytest.raises(ValueError, match="already exists"):
            store.create_note("", "alpha")

    def test_create_note_empty_title_raises(self, vault: Path):
        store = LocalFileStore(vault)
        with pytest.raises(ValueError, match="empty"):
            store.create_note("", "   ")

    def test_create_folder(self, vault: Path):
        store = LocalFileStore(vault)
        store.create_folder("a/b")
        assert (vault / "a" / "b").is_dir()

    def test_delete_file_and_folder(self, vault: Path):
        store = LocalFileStore(vault)
        store.delete("alpha.md")
        store.delete("projects")
        assert not (vault / "alpha.md").exists()
        assert not (vault / "projects").exists()

    def test_delete_missing_raises(self, vault: Path):
        store = LocalFileStore(vault)
        with pytest.raises(NoteNotFoundError):
            store.delete("missing.md")

    def test_rename(self, vault: Path):
        store = LocalFileStore(vault)
        store.rename("alpha.md", "moved/Alpha.md")
        assert (vault / "moved" / "Alpha.md").read_text() == "# Alpha"
        assert not (vault / "alpha.md").exists()

    def test_rename_onto_existing_raises(self, vault: Path):
        store = LocalFileStore(vault)
        with pytest.raises(ValueError, match="already exists"):
            store.rename("alpha.md", "Zeta.md")

    def test_duplicate_picks_first_free_number(self, vault: Path):
        store = LocalFileStore(vault)
        assert store.duplicate("alpha.md") == "alpha 1.md"
        assert store.duplicate("alpha.md") == "alpha 2.md"
        assert (vault / "alpha 2.md").read_text() == "# Alpha"

    def test_duplicate_in_subfolder(self, vault: Path):
        store = LocalFileStore(vault)
        assert store.duplicate("projects/Plan.md") == "projects/Plan 1.md"


class TestVaultLifecycle:
    def test_open_vault_creates_cache_dir(self, tmp_path: Path):
        open_vault(tmp_path)
        assert (tmp_path / ".synapse").is_dir()

    def test_open_missing_vault_raises(self, tmp_path: Path):
        with pytest.raises(VaultIOError):
            open_vault(tmp_path / "missing")

    def test_create_vault_writes_welcome_note(self, tmp_path: Path):
        root = tmp_path / "new-vault"
        store = create_vault(root)

        notes = [e.path for e in store.list_notes()]
        assert notes == ["Welcome to Synapse.md"]
        content = store.read_text("Welcome to Synapse.md")
        assert parse_frontmatter(content).tags == ["getting-started"]

    def test_create_vault_keeps_existing_welcome_note(self, tmp_path: Path):
        create_vault(tmp_path)
        (tmp_path / "Welcome to Synapse.md").write_text("edited")
        create_vault(tmp_path)
        assert (tmp_path / "Welcome to Synapse.md").read_text() == "edited"
