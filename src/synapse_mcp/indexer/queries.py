"""Read-side queries over the cache: backlinks, tags, outline and title search."""

import logging
from pathlib import PurePosixPath

from synapse_mcp.exceptions import NoteNotFoundError, VaultIOError
from synapse_mcp.indexer.database import Database
from synapse_mcp.indexer.models import BacklinkResult, CachedNote, Heading, Link, TagCount
from synapse_mcp.indexer.parser import parse_frontmatter
from synapse_mcp.indexer.walker import FileStore

logger = logging.getLogger(__name__)

CONTEXT_MAX_CHARS = 200
CONTEXT_ELLIPSIS = "..."

DEFAULT_SEARCH_LIMIT = 20

# Search tiers, best first
TIER_EXACT = 0
TIER_PREFIX = 1
TIER_CONTAINS = 2
TIER_FUZZY = 3


def is_subsequence(query: str, title: str) -> bool:
    """Check that every character of query appears in title, in order."""
    qi = 0
    for ch in title:
        if qi == len(query):
            break
        if ch == query[qi]:
            qi += 1
    return qi == len(query)


def match_tier(query: str, title: str) -> int | None:
    """
    Rank a title against a lowercased query.

    Returns:
        The tier number, or None if the title does not match at all
    """
    title = title.lower()
    if title == query:
        return TIER_EXACT
    if title.startswith(query):
        return TIER_PREFIX
    if query in title:
        return TIER_CONTAINS
    if is_subsequence(query, title):
        return TIER_FUZZY
    return None


def rank_by_title(
    notes: list[CachedNote],
    query: str,
    limit: int = DEFAULT_SEARCH_LIMIT,
) -> list[CachedNote]:
    """
    Rank notes by how well their title matches query, case-insensitively.

    Notes within a tier keep their input order. Non-matching notes are
    dropped. An empty query matches everything in input order.
    """
    if limit <= 0:
        return []

    if query == "":
        return notes[:limit]

    query = query.lower()
    ranked: list[tuple[int, CachedNote]] = []
    for note in notes:
        tier = match_tier(query, note.title)
        if tier is not None:
            ranked.append((tier, note))

    # sort() is stable, so cache order survives inside a tier
    ranked.sort(key=lambda pair: pair[0])
    return [note for _, note in ranked[:limit]]


def find_link_context(content: str, title: str) -> str:
    """
    Return the first line that links to title, trimmed and shortened.

    Returns an empty string when no line links to title.
    """
    needles = (f"[[{title}]]", f"[[{title}|", f"[[{title}#")
    for line in content.splitlines():
        if any(needle in line for needle in needles):
            snippet = line.strip()
            if len(snippet) > CONTEXT_MAX_CHARS:
                snippet = snippet[:CONTEXT_MAX_CHARS] + CONTEXT_ELLIPSIS
            return snippet
    return ""


def display_title(path: str, content: str) -> str:
    """Frontmatter title, or the filename stem."""
    frontmatter = parse_frontmatter(content, path)
    if frontmatter.title and frontmatter.title.strip():
        return frontmatter.title.strip()
    return PurePosixPath(path).stem


class VaultQueries:
    """
    Query layer over the cache.

    Reads never touch note rows. The only writes are stars and user settings,
    which a reindex leaves alone.
    """

    def __init__(self, db: Database, store: FileStore):
        """
        Args:
            db: The cache database
            store: Vault file access, used to read link context lines
        """
        self.db = db
        self.store = store

    def get_all_notes(self) -> list[CachedNote]:
        return self.db.get_all_notes()

    def get_note(self, path: str) -> CachedNote:
        """
        Raises:
            NoteNotFoundError: If the note is not cached
        """
        note = self.db.get_note(path)
        if note is None:
            raise NoteNotFoundError(path)
        return note

    def get_backlinks(self, title: str) -> list[BacklinkResult]:
        """
        Notes that link to title, with the linking line as context.

        Sources are re-read from the vault. A source that vanished since the
        last reindex, or now resolves outside the vault, is left out.
        """
        results: list[BacklinkResult] = []
        for source_path in self.db.get_backlink_sources(title):
            try:
                content = self.store.read_text(source_path)
            except (NoteNotFoundError, VaultIOError, ValueError) as e:
                logger.debug("Dropping backlink from unreadable %s: %s", source_path, e)
                continue

            results.append(
                BacklinkResult(
                    source_path=source_path,
                    source_title=display_title(source_path, content),
                    context=find_link_context(content, title),
                )
            )
        return results

    def get_outgoing_links(self, path: str) -> list[str]:
        return self.db.get_outgoing_links(path)

    def get_all_links(self) -> list[Link]:
        return self.db.get_all_links()

    def get_all_tags(self) -> list[TagCount]:
        return self.db.get_all_tags()

    def get_notes_by_tag(self, tag: str) -> list[str]:
        return self.db.get_notes_by_tag(tag)

    def get_headings(self, path: str) -> list[Heading]:
        return self.db.get_headings(path)

    def search_notes(self, query: str, limit: int = DEFAULT_SEARCH_LIMIT) -> list[CachedNote]:
        """Rank cached notes by title match against query."""
        return rank_by_title(self.db.get_all_notes(), query, limit)

    def toggle_star(self, path: str) -> bool:
        return self.db.toggle_star(path)

    def get_setting(self, key: str) -> str | None:
        return self.db.get_setting(key)

    def set_setting(self, key: str, value: str) -> None:
        self.db.set_setting(key, value)
