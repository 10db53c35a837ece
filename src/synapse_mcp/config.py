"""Configuration module for synapse-mcp.

Loads configuration from environment variables with sensible defaults.
"""

import os
from dataclasses import dataclass
from pathlib import Path

from synapse_mcp.indexer.walker import cache_db_path

DEFAULT_SYNC_INTERVAL = 30


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes")


@dataclass
class Config:
    """Application configuration."""

    vault_root: Path
    db_path: Path
    host: str
    port: int
    read_only: bool
    sync_interval: int  # Seconds between background reindexes, 0 disables

    @classmethod
    def from_env(cls, read_only_override: bool | None = None) -> "Config":
        """Load configuration from environment variables.

        Args:
            read_only_override: If provided, overrides the SYNAPSE_READ_ONLY env var.
        """
        default_root = str(Path.home() / "Synapse")
        vault_root = Path(os.getenv("SYNAPSE_VAULT", default_root)).expanduser()

        db_env = os.getenv("SYNAPSE_DB")
        db_path = Path(db_env).expanduser() if db_env else cache_db_path(vault_root)

        host = os.getenv("SYNAPSE_HOST", "127.0.0.1")

        port_str = os.getenv("SYNAPSE_PORT", "8080")
        try:
            port = int(port_str)
            if not 1 <= port <= 65535:
                raise ValueError(f"Port must be between 1 and 65535, got {port}")
        except ValueError as e:
            raise ValueError(f"Invalid SYNAPSE_PORT value '{port_str}': {e}") from e

        interval_str = os.getenv("SYNAPSE_SYNC_INTERVAL", str(DEFAULT_SYNC_INTERVAL))
        try:
            sync_interval = int(interval_str)
            if sync_interval < 0:
                raise ValueError(f"Sync interval must be >= 0, got {sync_interval}")
        except ValueError as e:
            raise ValueError(f"Invalid SYNAPSE_SYNC_INTERVAL value '{interval_str}': {e}") from e

        # CLI flag takes precedence over env var
        if read_only_override is not None:
            read_only = read_only_override
        else:
            read_only = _parse_bool(os.getenv("SYNAPSE_READ_ONLY", ""))

        return cls(
            vault_root=vault_root,
            db_path=db_path,
            host=host,
            port=port,
            read_only=read_only,
            sync_interval=sync_interval,
        )
