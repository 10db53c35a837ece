"""
Indexer module for synapse-mcp.

Extracts note metadata from the vault's markdown files and keeps the SQLite
cache in sync with them. The vault is the source of truth; the cache can be
rebuilt from it at any time.
"""

from synapse_mcp.indexer.database import Database
from synapse_mcp.indexer.extractor import (
    count_words,
    index_note,
    infer_title,
    scan_headings,
    scan_tags,
    scan_wikilinks,
)
from synapse_mcp.indexer.indexer import Indexer, ReindexStats
from synapse_mcp.indexer.models import (
    BacklinkResult,
    CachedNote,
    Frontmatter,
    Heading,
    Link,
    NoteIndex,
    TagCount,
    VaultEntry,
)
from synapse_mcp.indexer.parser import parse_frontmatter, strip_frontmatter
from synapse_mcp.indexer.queries import VaultQueries, rank_by_title
from synapse_mcp.indexer.walker import FileStore, LocalFileStore, create_vault, open_vault

__all__ = [
    "BacklinkResult",
    "CachedNote",
    "Database",
    "FileStore",
    "Frontmatter",
    "Heading",
    "Indexer",
    "Link",
    "LocalFileStore",
    "NoteIndex",
    "ReindexStats",
    "TagCount",
    "VaultEntry",
    "VaultQueries",
    "count_words",
    "create_vault",
    "index_note",
    "infer_title",
    "open_vault",
    "parse_frontmatter",
    "rank_by_title",
    "scan_headings",
    "scan_tags",
    "scan_wikilinks",
    "strip_frontmatter",
]
