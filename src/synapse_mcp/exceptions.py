"""Exception hierarchy for synapse-mcp.

Every error carries a short machine-readable code so MCP tool failures can
be reported consistently.
"""

from typing import Any


class SynapseError(Exception):
    """Base class for all synapse-mcp errors."""

    code = "synapse_error"

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Convert the exception to a serializable dict."""
        return {
            "error": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class NoteNotFoundError(SynapseError):
    """A note file or cache row does not exist."""

    code = "not_found"

    def __init__(self, path: str, message: str | None = None):
        super().__init__(message or f"Note not found: {path}", {"path": path})
        self.path = path


class VaultIOError(SynapseError):
    """Reading or writing a file in the vault failed."""

    code = "io_error"

    def __init__(self, path: str, message: str):
        super().__init__(message, {"path": path})
        self.path = path


class FrontmatterParseError(SynapseError):
    """Front matter could not be parsed.

    Never fatal: the parser recovers by treating the note as having no
    front matter.
    """

    code = "parse_error"


class StoreError(SynapseError):
    """The cache database failed. Propagated, never retried."""

    code = "store_error"


class CacheNotInitializedError(StoreError):
    """The cache was used before its schema was initialized."""

    code = "not_initialized"

    def __init__(self, message: str = "Cache database is not initialized"):
        super().__init__(message)


class ReadOnlyError(SynapseError):
    """A write was attempted while the server runs in read-only mode."""

    code = "read_only"

    def __init__(self, message: str = "Server is in read-only mode"):
        super().__init__(message)
