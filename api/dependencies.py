"""
Entity store dependency for the API.

The store is loaded once, on first use, from the JSON file named by
APP_DATA_PATH (default: entities.json).  Tests and embedding callers can
inject their own store with set_entity_store().

Raises HTTP 503 with a friendly message when the data file is missing.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path

from fastapi import HTTPException

from buffet.store import EntityStore, JsonEntityStore
from utils.config import AppConfig

logger = logging.getLogger(__name__)

_DATA_PATH: Path = AppConfig.from_env().data_path
_store: EntityStore | None = None
_store_lock = threading.Lock()


def get_data_path() -> Path:
    """Return the configured entity data path."""
    return _DATA_PATH


def set_data_path(path: Path) -> None:
    """Point the lazy loader at ``path`` and drop any loaded store."""
    global _DATA_PATH, _store
    with _store_lock:
        _DATA_PATH = Path(path)
        _store = None


def set_entity_store(store: EntityStore | None) -> None:
    """Install ``store`` for every request (None re-enables lazy loading)."""
    global _store
    with _store_lock:
        _store = store


def has_entity_store() -> bool:
    """True when a store is installed or already loaded."""
    return _store is not None


def get_entity_store() -> EntityStore:
    """FastAPI dependency: return the shared entity store.

    Usage in a route::

        @router.get("/example")
        def example(store: EntityStore = Depends(get_entity_store)):
            ...
    """
    global _store
    if _store is not None:
        return _store
    with _store_lock:
        if _store is None:
            if not _DATA_PATH.exists():
                raise HTTPException(
                    status_code=503,
                    detail=(
                        f"Entity data not found at '{_DATA_PATH}'. "
                        "Set APP_DATA_PATH to a JSON file keyed by entity type."
                    ),
                )
            _store = JsonEntityStore(_DATA_PATH)
            logger.info("Entity store loaded from %s", _DATA_PATH)
        return _store
