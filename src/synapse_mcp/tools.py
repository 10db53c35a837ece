"""MCP tools for the synapse-mcp server.

This module defines the read tools exposed by the MCP server:
- get_all_notes / search_notes: Browse and fuzzy-find notes by title
- get_backlinks / get_outgoing_links / get_all_links: Walk the link graph
- get_all_tags / get_notes_by_tag: Tag index
- get_headings: Outline of a note
- read_note / list_entries: Raw vault access
- get_setting: Read a user setting
"""

from fastmcp import FastMCP

from synapse_mcp.indexer import FileStore, VaultQueries
from synapse_mcp.indexer.parser import parse_frontmatter


def register_tools(mcp: FastMCP, queries: VaultQueries, store: FileStore) -> None:
    """Register all read tools with the FastMCP server.

    Args:
        mcp: FastMCP server instance
        queries: Query layer over the cache
        store: Vault file access for raw reads and listings
    """

    @mcp.tool()
    def get_all_notes() -> list[dict]:
        """List every cached note, most recently modified first.

        Returns:
            List of notes with path, title, created_at, modified_at,
            word_count and starred
        """
        return [note.to_dict() for note in queries.get_all_notes()]

    @mcp.tool()
    def search_notes(query: str, limit: int = 20) -> list[dict]:
        """Search note titles.

        Results are ranked exact match first, then prefix, then substring,
        then fuzzy (the query's letters appear in order). An empty query
        returns the first notes unranked.

        Args:
            query: Text to match against note titles (case-insensitive)
            limit: Maximum number of results to return (default: 20)
        """
        return [note.to_dict() for note in queries.search_notes(query, limit)]

    @mcp.tool()
    def get_backlinks(title: str) -> list[dict]:
        """Find notes that link to a title with [[wikilinks]].

        Args:
            title: Link target, usually the note's title

        Returns:
            List of backlinks with:
            - source_path: Path of the linking note
            - source_title: Title of the linking note
            - context: The line containing the link, trimmed
        """
        return [backlink.to_dict() for backlink in queries.get_backlinks(title)]

    @mcp.tool()
    def get_outgoing_links(path: str) -> list[str]:
        """List the link targets of a note, in document order.

        Args:
            path: Vault-relative path of the note (e.g., "ideas/graph.md")
        """
        return queries.get_outgoing_links(path)

    @mcp.tool()
    def get_all_links() -> list[dict]:
        """List every link in the vault as source_path/target_name pairs."""
        return [link.to_dict() for link in queries.get_all_links()]

    @mcp.tool()
    def get_all_tags() -> list[dict]:
        """List all tags with the number of notes using each, most used first."""
        return [tag.to_dict() for tag in queries.get_all_tags()]

    @mcp.tool()
    def get_notes_by_tag(tag: str) -> list[str]:
        """List paths of notes carrying a tag.

        Args:
            tag: Tag including its leading "#" (e.g., "#project")
        """
        return queries.get_notes_by_tag(tag)

    @mcp.tool()
    def get_headings(path: str) -> list[dict]:
        """Get the outline of a note.

        Args:
            path: Vault-relative path of the note

        Returns:
            List of headings with text, level (1-6) and line (1-based)
        """
        return [heading.to_dict() for heading in queries.get_headings(path)]

    @mcp.tool()
    def get_setting(key: str) -> str | None:
        """Read a user setting, or None if it was never set."""
        return queries.get_setting(key)

    @mcp.tool()
    def read_note(path: str) -> dict:
        """Read a note straight from the vault.

        Args:
            path: Vault-relative path of the note

        Returns:
            Note with:
            - path: The requested path
            - title: Frontmatter title, if any
            - tags: Frontmatter tags
            - content: Full file content, frontmatter included
        """
        content = store.read_text(path)
        frontmatter = parse_frontmatter(content, path)
        return {
            "path": path,
            "title": frontmatter.title,
            "tags": frontmatter.tags,
            "content": content,
        }

    @mcp.tool()
    def list_entries() -> list[dict]:
        """List the vault's files and folders, folders first.

        Hidden entries (any path component starting with ".") are skipped.
        """
        return [entry.to_dict() for entry in store.list_all_paths()]
