"""
Shared FastAPI dependencies.

Routers never build a Store themselves; they depend on ``get_store`` so tests
and embedders can swap it with ``app.dependency_overrides``.
"""
from pathlib import Path
from typing import Dict, Optional, Union

from fastapi import Depends

from chatterhub.utils.logging_utils import logger
from chatterhub.utils.paths import get_chatterhub_home

from ..storage.backend import Store
from ..storage.live import LiveQueryEngine

_store: Optional[Store] = None
# id(store) -> engine; each engine keeps its store alive, so entries are
# dropped explicitly by reset_live_engines()
_engines: Dict[int, LiveQueryEngine] = {}


def configure_store(home: Optional[Union[str, Path]] = None) -> Store:
    """Point the process-wide Store at ``home`` (default: the ChatterHub home)."""
    global _store
    reset_live_engines()
    _store = Store(Path(home) if home else get_chatterhub_home())
    logger.info(f"Using data directory {_store.db_dir}")
    return _store


def get_store() -> Store:
    if _store is None:
        return configure_store()
    return _store


def get_live_engine(store: Store = Depends(get_store)) -> LiveQueryEngine:
    engine = _engines.get(id(store))
    if engine is None or engine.store is not store:
        engine = LiveQueryEngine(store)
        _engines[id(store)] = engine
    return engine


def reset_live_engines() -> int:
    """Close every live query engine and forget it. Returns how many were closed."""
    engines = list(_engines.values())
    _engines.clear()
    for engine in engines:
        engine.close()
    return len(engines)
