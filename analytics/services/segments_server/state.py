"""Repository wiring for MCP tools.

FastMCP's Context is per-request, so tools need somewhere to find the
storage backend between calls. The repository is installed once at
startup (or by tests) and every tool ``_impl`` receives it as an
argument, so nothing below the tool layer reaches for it directly.
"""

import threading

from rfm_segments.storage.repository import (
    InMemorySegmentRepository,
    SegmentRepository,
)

_lock = threading.Lock()
_repository: SegmentRepository | None = None


def set_repository(repository: SegmentRepository) -> None:
    """Install the repository used by MCP tools."""
    global _repository
    with _lock:
        _repository = repository


def get_repository() -> SegmentRepository:
    """Return the installed repository, creating an in-memory one if needed."""
    global _repository
    with _lock:
        if _repository is None:
            _repository = InMemorySegmentRepository()
        return _repository
