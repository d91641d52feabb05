"""API dependencies — Dependency injection for FastAPI endpoints."""

from __future__ import annotations

from catalogsearch.core.engine import OpenSearchEngine

# Global engine instance (set during application lifespan)
_engine: OpenSearchEngine | None = None


def set_engine(engine: OpenSearchEngine | None) -> None:
    """Set the global engine instance (called during app lifespan)."""
    global _engine
    _engine = engine


def get_engine() -> OpenSearchEngine:
    """Get the global search engine instance.

    Returns:
        The initialized OpenSearchEngine.

    Raises:
        RuntimeError: If the engine is not initialized.
    """
    if _engine is None:
        raise RuntimeError("Search engine not initialized. Is the server running?")
    return _engine
