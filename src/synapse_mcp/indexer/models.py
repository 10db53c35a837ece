"""Data models for the indexer."""

from dataclasses import asdict, dataclass, field
from typing import Union

# Scalar or list value found in the free-form part of a note's front matter.
FrontmatterValue = Union[str, int, float, bool, list["FrontmatterValue"]]


@dataclass
class Heading:
    """A markdown heading and the 1-based line it appears on."""

    text: str
    level: int
    line: int

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class NoteIndex:
    """Metadata extracted from one note. Ephemeral, never stored as-is."""

    path: str
    title: str
    outgoing_links: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)  # sorted, each starts with "#"
    headings: list[Heading] = field(default_factory=list)
    word_count: int = 0


@dataclass
class CachedNote:
    """A row of the notes table."""

    path: str
    title: str
    created_at: str | None = None  # From frontmatter
    modified_at: str | None = None  # From frontmatter
    word_count: int = 0
    starred: bool = False

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class Frontmatter:
    """Parsed front matter block."""

    title: str | None = None
    tags: list[str] = field(default_factory=list)
    created: str | None = None
    modified: str | None = None
    aliases: list[str] = field(default_factory=list)
    extra: dict[str, FrontmatterValue] = field(default_factory=dict)


@dataclass
class VaultEntry:
    """A file or folder found in the vault."""

    path: str  # Relative to the vault root, "/" separated
    name: str  # File stem or folder name
    is_dir: bool
    size: int  # 0 for folders
    modified: int  # Unix seconds
    created: int  # Unix seconds

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class Link:
    """An outgoing wikilink edge. The target is an unresolved note title."""

    source_path: str
    target_name: str

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class TagCount:
    """A tag and the number of notes carrying it."""

    tag: str
    count: int

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class BacklinkResult:
    """A note linking to the queried title, with the line that links."""

    source_path: str
    source_title: str
    context: str

    def to_dict(self) -> dict:
        return asdict(self)
