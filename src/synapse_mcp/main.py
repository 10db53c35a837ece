"""Main entry point for the synapse-mcp MCP server."""

import argparse
import logging
import sys

from fastmcp import FastMCP

from synapse_mcp.config import Config
from synapse_mcp.indexer import Database, Indexer, VaultQueries, create_vault, open_vault
from synapse_mcp.resources import register_resources
from synapse_mcp.sync import SyncManager
from synapse_mcp.tools import register_tools
from synapse_mcp.tools_write import register_tools_write

logger = logging.getLogger(__name__)


def build_indexer(config: Config) -> Indexer:
    """Open the configured vault and its cache, ready for use.

    Raises:
        VaultIOError: If the vault root does not exist
    """
    store = open_vault(config.vault_root)
    logger.info("Initializing cache at %s", config.db_path)
    indexer = Indexer(store, Database(config.db_path))
    indexer.initialize()
    return indexer


def create_server(config: Config, indexer: Indexer | None = None) -> FastMCP:
    """Create and configure the MCP server with all components.

    Args:
        config: Configuration instance with all settings.
        indexer: Already initialized indexer to share with the caller;
            built from config when omitted.
    """
    mcp = FastMCP(
        name="synapse-mcp",
        instructions=(
            "synapse-mcp provides access to a vault of markdown notes linked with "
            "[[wikilinks]] and #tags. Use search_notes to find notes by title, "
            "get_backlinks to see what links to a note, and the tag tools to browse "
            "by topic. Resources give an overview of notes, tags and the link graph."
        ),
    )

    if indexer is None:
        indexer = build_indexer(config)

    if indexer.db.count_notes() == 0:
        logger.info("Cache is empty, performing initial index...")
        stats = indexer.reindex_all()
        logger.info("Initial index complete: %d notes indexed", stats.indexed)

    store = indexer.store
    queries = VaultQueries(indexer.db, store)

    logger.info("Registering resources...")
    register_resources(mcp, queries)

    logger.info("Registering read tools...")
    register_tools(mcp, queries, store)

    logger.info("Registering write tools...")
    register_tools_write(mcp, config, indexer, queries, store)

    logger.info("Server configured successfully")
    return mcp


def main() -> None:
    """Main function - starts the MCP server."""
    # Configure logging here to avoid side effects on import
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    parser = argparse.ArgumentParser(description="synapse-mcp - MCP server for markdown vaults")
    parser.add_argument(
        "--reindex",
        action="store_true",
        help="Force a full reindex of the vault before starting",
    )
    parser.add_argument(
        "--read-only",
        action="store_true",
        help="Run in read-only mode (disable write tools)",
    )
    parser.add_argument(
        "--init",
        action="store_true",
        help="Create the vault with a welcome note if it does not exist",
    )
    parser.add_argument(
        "--stdio",
        action="store_true",
        help="Serve over stdio instead of SSE",
    )
    args = parser.parse_args()

    # CLI flag overrides env var
    config = Config.from_env(read_only_override=True if args.read_only else None)

    logger.info("=" * 50)
    logger.info("synapse-mcp starting...")
    logger.info("  VAULT:     %s", config.vault_root)
    logger.info("  DB:        %s", config.db_path)
    logger.info("  TRANSPORT: %s", "stdio" if args.stdio else f"sse {config.host}:{config.port}")
    logger.info("  READ_ONLY: %s", config.read_only)
    logger.info("  SYNC:      %s", f"every {config.sync_interval}s" if config.sync_interval else "disabled")
    logger.info("=" * 50)

    indexer: Indexer | None = None
    sync_manager: SyncManager | None = None
    try:
        if args.init:
            create_vault(config.vault_root)

        indexer = build_indexer(config)

        if args.reindex:
            logger.info("Force reindex requested...")
            stats = indexer.reindex_all()
            logger.info("Reindex complete: %d notes indexed", stats.indexed)

        mcp = create_server(config, indexer)

        if config.sync_interval > 0:
            sync_manager = SyncManager(indexer, config.sync_interval)
            sync_manager.start()

        if args.stdio:
            mcp.run(transport="stdio")
        else:
            logger.info("Starting MCP server on %s:%s...", config.host, config.port)
            mcp.run(transport="sse", host=config.host, port=config.port)
    except KeyboardInterrupt:
        logger.info("Server stopped by user")
        sys.exit(0)
    except Exception:
        logger.exception("Server error")
        sys.exit(1)
    finally:
        if sync_manager is not None:
            sync_manager.stop()
        if indexer is not None:
            indexer.close()


if __name__ == "__main__":
    main()
