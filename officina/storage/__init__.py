"""Storage backends for the checklist tree.

``build_store`` selects the backend named by the ``STORE_BACKEND``
configuration value:

* ``sql`` (default) - :class:`SqlTreeStore`, one JSON document per
  top-level key in the application database;
* ``memory`` - :class:`MemoryStore`, lost on restart;
* ``firebase`` - :class:`~officina.storage.firebase.FirebaseStore`
  against the hosted realtime database (requires the ``firebase``
  extra).
"""

from flask import current_app

from .base import TreeStore, split_path, join_path
from .memory import MemoryStore
from .sql import SqlTreeStore

STORE_EXTENSION_KEY = 'officina.store'


def build_store(app) -> TreeStore:
    backend = (app.config.get('STORE_BACKEND') or 'sql').lower()
    if backend == 'memory':
        return MemoryStore()
    if backend == 'firebase':
        from .firebase import FirebaseStore
        return FirebaseStore(app.config.get('FIREBASE_DATABASE_URL'),
                             app.config.get('FIREBASE_CREDENTIALS'))
    if backend == 'sql':
        return SqlTreeStore(app)
    raise ValueError(f"STORE_BACKEND sconosciuto: {backend}")


def get_store() -> TreeStore:
    """Return the store bound to the current application."""
    return current_app.extensions[STORE_EXTENSION_KEY]


__all__ = [
    'TreeStore',
    'MemoryStore',
    'SqlTreeStore',
    'build_store',
    'get_store',
    'split_path',
    'join_path',
    'STORE_EXTENSION_KEY',
]
