"""
synapse-mcp - MCP server over a local markdown knowledge base.

Indexes a vault of markdown notes (wikilinks, tags, headings, titles) into a
SQLite cache and answers backlink, tag, outline and title search queries.

Stack:
- Python + FastMCP
- SQLite (disposable metadata cache)
- Markdown (source of truth)
"""

__version__ = "0.1.0"
