"""Share store lifecycle: one store per process, bound to the backing file."""

from backend.config import settings
from backend.services.share_store import JsonFileBackend, ShareBackend, ShareStore

# Global store reference
_store: ShareStore | None = None


def get_store() -> ShareStore:
    """Get the share store. Raises if not initialized."""
    if _store is None:
        raise RuntimeError("Share store not initialized. Call init_store() first.")
    return _store


def init_store(backend: ShareBackend | None = None) -> ShareStore:
    """Initialize the share store, defaulting to the JSON file at db_path."""
    global _store

    if backend is None:
        # Ensure data directory exists
        settings.db_path.parent.mkdir(parents=True, exist_ok=True)
        backend = JsonFileBackend(settings.db_path)

    _store = ShareStore(backend, default_ttl_ms=settings.share_ttl_ms)
    return _store


def close_store() -> None:
    """Drop the share store."""
    global _store
    _store = None
