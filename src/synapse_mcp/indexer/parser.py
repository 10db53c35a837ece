"""Parser for YAML frontmatter blocks at the top of notes."""

import logging
from datetime import date, datetime
from typing import Any

import yaml

from synapse_mcp.exceptions import FrontmatterParseError
from synapse_mcp.indexer.models import Frontmatter, FrontmatterValue

logger = logging.getLogger(__name__)

FRONTMATTER_DELIMITER = "---"

# Keys mapped onto Frontmatter fields; anything else lands in `extra`
KNOWN_KEYS = {"title", "tags", "created", "modified", "aliases"}


def _split_frontmatter(content: str) -> tuple[str, str] | None:
    """
    Split content into (yaml_text, body).

    The block must open at the very start of the content and closes at the
    first following line that begins with "---". Returns None when there is
    no complete block.
    """
    if not content.startswith(FRONTMATTER_DELIMITER):
        return None

    rest = content[len(FRONTMATTER_DELIMITER):]
    end_idx = rest.find("\n" + FRONTMATTER_DELIMITER)
    if end_idx == -1:
        return None

    yaml_text = rest[:end_idx]
    body = rest[end_idx + 1 + len(FRONTMATTER_DELIMITER):].lstrip("\n")
    return yaml_text, body


def strip_frontmatter(content: str) -> str:
    """Remove YAML frontmatter from content."""
    parts = _split_frontmatter(content)
    if parts is None:
        return content
    return parts[1]


def frontmatter_line_count(content: str) -> int:
    """Number of leading lines removed by strip_frontmatter()."""
    body = strip_frontmatter(content)
    return content[: len(content) - len(body)].count("\n")


def _to_text(value: Any) -> str:
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)


def _to_value(value: Any) -> FrontmatterValue:
    """Narrow an arbitrary YAML value to a FrontmatterValue."""
    if isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, (list, tuple)):
        return [_to_value(item) for item in value]
    return _to_text(value)


def _to_string_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [_to_text(item) for item in value if item is not None]
    return [_to_text(value)]


def load_frontmatter(content: str) -> Frontmatter:
    """
    Parse the frontmatter block of a note.

    Raises:
        FrontmatterParseError: If the block exists but is not valid YAML.
    """
    parts = _split_frontmatter(content)
    if parts is None:
        return Frontmatter()

    try:
        raw = yaml.safe_load(parts[0])
    except yaml.YAMLError as e:
        raise FrontmatterParseError(f"Invalid YAML frontmatter: {e}") from e

    if not isinstance(raw, dict):
        return Frontmatter()

    data = Frontmatter()
    title = raw.get("title")
    if title is not None:
        data.title = _to_text(title)
    data.tags = _to_string_list(raw.get("tags"))
    data.aliases = _to_string_list(raw.get("aliases"))

    # created/modified can be date objects or strings
    for key in ("created", "modified"):
        value = raw.get(key)
        if value is not None:
            setattr(data, key, _to_text(value))

    for key, value in raw.items():
        if str(key) in KNOWN_KEYS or value is None:
            continue
        data.extra[str(key)] = _to_value(value)

    return data


def parse_frontmatter(content: str, file_path: str = "") -> Frontmatter:
    """
    Parse frontmatter, treating malformed YAML as no frontmatter at all.

    Args:
        content: The full markdown content
        file_path: Relative path of the note, used for logging only

    Returns:
        Parsed Frontmatter (empty defaults if absent or invalid)
    """
    try:
        return load_frontmatter(content)
    except FrontmatterParseError as e:
        logger.debug("Ignoring frontmatter in %s: %s", file_path or "<text>", e)
        return Frontmatter()


def render_frontmatter(
    title: str,
    created: str,
    modified: str,
    tags: list[str] | None = None,
) -> str:
    """Render the frontmatter block written into newly created notes."""
    block = yaml.safe_dump(
        {
            "title": title,
            "created": created,
            "modified": modified,
            "tags": tags or [],
        },
        sort_keys=False,
        allow_unicode=True,
        default_flow_style=None,
    )
    return f"{FRONTMATTER_DELIMITER}\n{block}{FRONTMATTER_DELIMITER}\n\n"
