"""Background sync manager for automatic cache updates.

Runs a daemon thread that periodically calls indexer.reindex_all() so edits
made to the vault outside of the MCP tools reach the cache.
"""

import logging
import threading

from synapse_mcp.indexer import Indexer

logger = logging.getLogger(__name__)


class SyncManager:
    """Manages periodic background reindexing of the vault.

    The sync thread is a daemon, so it terminates with the main process.
    """

    def __init__(self, indexer: Indexer, interval: int):
        """Initialize the sync manager.

        Args:
            indexer: The indexer instance to reindex with.
            interval: Sync interval in seconds. Must be > 0.
        """
        if interval <= 0:
            raise ValueError(f"Sync interval must be positive, got {interval}")

        self._indexer = indexer
        self._interval = interval
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the background sync thread."""
        if self.running:
            logger.warning("Sync thread already running")
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._sync_loop,
            name="synapse-sync",
            daemon=True,
        )
        self._thread.start()
        logger.info("Sync manager started (interval: %ds)", self._interval)

    def stop(self) -> None:
        """Stop the background sync thread.

        Blocks until the thread finishes its current pass.
        """
        if not self.running:
            return

        self._stop_event.set()
        self._thread.join(timeout=self._interval + 1)
        if self._thread.is_alive():
            logger.warning("Sync thread did not stop cleanly")
        else:
            logger.info("Sync manager stopped")
        self._thread = None

    def sync_once(self) -> None:
        """Run one reindex pass, logging instead of raising on failure."""
        try:
            stats = self._indexer.reindex_all()
        except Exception:
            logger.exception("Error during auto-sync")
            return

        if stats.deleted or stats.skipped:
            logger.info(
                "Auto-sync: %d indexed, %d skipped, %d deleted",
                stats.indexed,
                stats.skipped,
                stats.deleted,
            )
        else:
            logger.debug("Auto-sync: %d notes indexed", stats.indexed)

    def _sync_loop(self) -> None:
        logger.debug("Sync loop started")

        # Sleep first, then sync, so stop() right after start() returns fast
        while not self._stop_event.wait(timeout=self._interval):
            self.sync_once()

        logger.debug("Sync loop stopped")
