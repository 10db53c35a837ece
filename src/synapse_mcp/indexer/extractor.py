"""Metadata extraction from raw markdown text.

Everything here is a pure function over strings: no I/O, no shared state.
The scanners work on raw characters and lines rather than a full markdown
parse, which keeps them fast and predictable on half-written notes.
"""

from pathlib import PurePosixPath

from synapse_mcp.indexer.models import Heading, NoteIndex
from synapse_mcp.indexer.parser import frontmatter_line_count, strip_frontmatter

CODE_FENCE = "```"

# A wikilink target ends at the first alias, heading or block-id marker
LINK_SUFFIX_MARKERS = ("|", "#", "^")

TAG_EXTRA_CHARS = {"-", "_", "/"}

MAX_HEADING_LEVEL = 6


def _strip_link_suffix(raw_target: str) -> str:
    cut = len(raw_target)
    for marker in LINK_SUFFIX_MARKERS:
        idx = raw_target.find(marker)
        if idx != -1:
            cut = min(cut, idx)
    return raw_target[:cut].strip()


def scan_wikilinks(text: str) -> list[str]:
    """
    Return wikilink targets in document order, duplicates included.

    [[Target]], [[Target|Alias]], [[Target#Heading]] and [[Target^block]]
    all yield "Target". Balanced brackets inside a link are kept literally.
    An unterminated [[ produces nothing for that span.
    """
    links: list[str] = []
    length = len(text)
    i = 0

    while i < length - 1:
        if text[i] != "[" or text[i + 1] != "[":
            i += 1
            continue

        start = i + 2
        j = start
        depth = 0
        end = -1
        while j < length:
            ch = text[j]
            if ch == "[":
                depth += 1
            elif ch == "]":
                if depth > 0:
                    depth -= 1
                elif j + 1 < length and text[j + 1] == "]":
                    end = j
                    break
            j += 1

        if end == -1:
            # Unterminated: skip the opening brackets and keep scanning
            i = start
            continue

        target = _strip_link_suffix(text[start:end])
        if target:
            links.append(target)
        i = end + 2

    return links


def _is_tag_char(ch: str) -> bool:
    return ch.isalnum() or ch in TAG_EXTRA_CHARS


def _is_fence(line: str) -> bool:
    return line.strip().startswith(CODE_FENCE)


def scan_tags(text: str) -> set[str]:
    """
    Return the set of #tags in the text, each including its leading "#".

    Skips fenced code blocks and inline code spans. A "#" only opens a tag
    at the start of a line or after whitespace or a comma, and a line that
    starts with "# " is a heading rather than a tag.
    """
    tags: set[str] = set()
    in_code_block = False

    for line in text.splitlines():
        if _is_fence(line):
            in_code_block = not in_code_block
            continue
        if in_code_block:
            continue

        in_inline_code = False
        length = len(line)
        i = 0
        while i < length:
            ch = line[i]
            if ch == "`":
                in_inline_code = not in_inline_code
                i += 1
                continue
            if in_inline_code or ch != "#":
                i += 1
                continue

            at_boundary = i == 0 or line[i - 1].isspace() or line[i - 1] == ","
            if not at_boundary:
                i += 1
                continue

            # Heading marker
            if i == 0 and length > 1 and line[1] == " ":
                i += 1
                continue

            start = i
            i += 1
            while i < length and _is_tag_char(line[i]):
                i += 1

            tag = line[start:i]
            if len(tag) > 1:
                tags.add(tag)

    return tags


def scan_headings(text: str, first_line: int = 1) -> list[Heading]:
    """
    Return headings in document order.

    Args:
        text: Markdown text
        first_line: Line number of the first line of `text`
    """
    headings: list[Heading] = []

    for offset, line in enumerate(text.splitlines()):
        trimmed = line.lstrip()
        if not trimmed.startswith("#"):
            continue

        level = len(trimmed) - len(trimmed.lstrip("#"))
        if level > MAX_HEADING_LEVEL:
            continue

        heading_text = trimmed[level:].strip()
        if heading_text:
            headings.append(
                Heading(text=heading_text, level=level, line=first_line + offset)
            )

    return headings


def count_words(body: str) -> int:
    """Count whitespace-delimited words outside fenced code blocks."""
    count = 0
    in_code_block = False

    for line in body.splitlines():
        if _is_fence(line):
            in_code_block = not in_code_block
            continue
        if in_code_block:
            continue
        count += len(line.split())

    return count


def infer_title(
    path: str,
    headings: list[Heading],
    frontmatter_title: str | None = None,
) -> str:
    """Frontmatter title, else first heading, else the filename stem."""
    if frontmatter_title and frontmatter_title.strip():
        return frontmatter_title.strip()
    if headings:
        return headings[0].text
    return PurePosixPath(path).stem


def normalize_tag(tag: str) -> str:
    """Prefix a frontmatter tag with "#" if it lacks one."""
    tag = tag.strip()
    return tag if tag.startswith("#") else f"#{tag}"


def index_note(
    path: str,
    raw_text: str,
    frontmatter_tags: list[str],
    frontmatter_title: str | None = None,
) -> NoteIndex:
    """
    Build the NoteIndex for one note.

    Frontmatter is stripped once and every scan runs on the body. Heading
    line numbers still refer to lines of the full file.
    """
    body = strip_frontmatter(raw_text)
    first_line = frontmatter_line_count(raw_text) + 1

    tags = scan_tags(body)
    for fm_tag in frontmatter_tags:
        if fm_tag.strip():
            tags.add(normalize_tag(fm_tag))

    headings = scan_headings(body, first_line=first_line)

    return NoteIndex(
        path=path,
        title=infer_title(path, headings, frontmatter_title),
        outgoing_links=scan_wikilinks(body),
        tags=sorted(tags),
        headings=headings,
        word_count=count_words(body),
    )
