"""Tests for MCP resources."""

import json

import pytest
from fastmcp import FastMCP

from synapse_mcp.indexer import Indexer, VaultQueries
from synapse_mcp.resources import (
    get_graph_resource,
    get_notes_resource,
    get_tags_resource,
    register_resources,
)


@pytest.fixture
def queries(tmp_path):
    """Index a small vault and return its query layer."""
    vault = tmp_path / "vault"
    vault.mkdir()
    (vault / "Hub.md").write_text("---\nmodified: 2025-05-01\n---\n# Hub\n[[Leaf]] [[Missing]] #map")
    (vault / "Leaf.md").write_text("---\nmodified: 2025-04-01\n---\nA leaf #map #green")

    indexer = Indexer.for_vault(vault, tmp_path / "cache.db")
    indexer.initialize()
    indexer.reindex_all()
    yield VaultQueries(indexer.db, indexer.store)
    indexer.close()


@pytest.fixture
def empty_queries(tmp_path):
    vault = tmp_path / "empty"
    vault.mkdir()
    indexer = Indexer.for_vault(vault, tmp_path / "empty.db")
    indexer.initialize()
    yield VaultQueries(indexer.db, indexer.store)
    indexer.close()


class TestNotesResource:
    def test_lists_notes(self, queries):
        result = get_notes_resource(queries)

        assert "# Synapse Notes" in result
        assert "Total notes: 2" in result
        assert "**Hub** (`Hub.md`" in result
        assert "modified 2025-05-01" in result
        assert "## Starred" not in result

    def test_starred_section(self, queries):
        queries.toggle_star("Leaf.md")
        result = get_notes_resource(queries)

        starred_section = result.split("## Starred")[1].split("## All Notes")[0]
        assert "`Leaf.md`" in starred_section
        assert "`Hub.md`" not in starred_section

    def test_empty_vault(self, empty_queries):
        result = get_notes_resource(empty_queries)
        assert "Total notes: 0" in result
        assert "## All Notes" not in result


class TestTagsResource:
    def test_lists_tags_by_count(self, queries):
        result = get_tags_resource(queries)

        assert "Total tags: 2" in result
        assert result.index("`#map`: 2 notes") < result.index("`#green`: 1 note\n")


class TestGraphResource:
    def test_graph_json(self, queries):
        graph = json.loads(get_graph_resource(queries))

        assert {"path": "Hub.md", "title": "Hub"} in graph["nodes"]
        assert {"path": "Leaf.md", "title": "Leaf"} in graph["nodes"]
        # Edges keep unresolved targets
        assert graph["edges"] == [
            {"source": "Hub.md", "target": "Leaf"},
            {"source": "Hub.md", "target": "Missing"},
        ]

    def test_empty_graph(self, empty_queries):
        assert json.loads(get_graph_resource(empty_queries)) == {"nodes": [], "edges": []}


def test_register_resources(queries):
    mcp = FastMCP()
    register_resources(mcp, queries)  # Should not raise
