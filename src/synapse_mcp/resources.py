"""MCP Resources for synapse-mcp.

Resources expose read-only views of the cache as URIs.
"""

import json

from synapse_mcp.indexer import VaultQueries


def get_notes_resource(queries: VaultQueries) -> str:
    """Resource: synapse://notes

    Lists all notes, starred ones first, as Markdown.
    """
    notes = queries.get_all_notes()
    starred = [n for n in notes if n.starred]
    others = [n for n in notes if not n.starred]

    lines = ["# Synapse Notes\n", f"Total notes: {len(notes)}\n", "\n"]

    if starred:
        lines.append("## Starred\n\n")
        for note in starred:
            lines.append(f"- **{note.title}** (`{note.path}`, {note.word_count} words)\n")
        lines.append("\n")

    if others:
        lines.append("## All Notes\n\n")
        for note in others:
            modified = note.modified_at or "unknown"
            lines.append(
                f"- **{note.title}** (`{note.path}`, {note.word_count} words, modified {modified})\n"
            )

    return "".join(lines)


def get_tags_resource(queries: VaultQueries) -> str:
    """Resource: synapse://tags

    Lists every tag with its note count, most used first.
    """
    tags = queries.get_all_tags()

    lines = ["# Synapse Tags\n", f"Total tags: {len(tags)}\n", "\n"]
    for tag_count in tags:
        noun = "note" if tag_count.count == 1 else "notes"
        lines.append(f"- `{tag_count.tag}`: {tag_count.count} {noun}\n")

    return "".join(lines)


def get_graph_resource(queries: VaultQueries) -> str:
    """Resource: synapse://graph

    The link graph as JSON: one node per note, one edge per link. Edge
    targets are link names as written, so they may name notes that do not
    exist yet.
    """
    graph = {
        "nodes": [{"path": n.path, "title": n.title} for n in queries.get_all_notes()],
        "edges": [
            {"source": link.source_path, "target": link.target_name}
            for link in queries.get_all_links()
        ],
    }
    return json.dumps(graph, indent=2)


def register_resources(mcp, queries: VaultQueries):
    """Register all resources with the FastMCP server.

    Args:
        mcp: FastMCP server instance
        queries: Query layer over the cache
    """

    @mcp.resource("synapse://notes")
    def list_notes():
        """List all notes with title, path and word count."""
        return get_notes_resource(queries)

    @mcp.resource("synapse://tags")
    def list_tags():
        """List all tags with their note counts."""
        return get_tags_resource(queries)

    @mcp.resource("synapse://graph", mime_type="application/json")
    def link_graph():
        """The note link graph as JSON nodes and edges."""
        return get_graph_resource(queries)
