"""Tree store backed by the hosted Firebase Realtime Database.

Uses the ``firebase_admin`` SDK.  The application is initialised once
per process under a dedicated app name so that other code using the
default Firebase app is unaffected.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict

import firebase_admin
from firebase_admin import credentials, db as rtdb
from firebase_admin.exceptions import FirebaseError

from ..errors import StoreError
from .base import TreeStore, join_path, split_path

logger = logging.getLogger(__name__)

FIREBASE_APP_NAME = 'officina'


def _firebase_app(database_url: str, credentials_path: str | None):
    try:
        return firebase_admin.get_app(FIREBASE_APP_NAME)
    except ValueError:
        pass
    cred = credentials.Certificate(credentials_path) if credentials_path else credentials.ApplicationDefault()
    logger.info("Inizializzazione Firebase Realtime Database: %s", database_url)
    return firebase_admin.initialize_app(cred, {'databaseURL': database_url}, name=FIREBASE_APP_NAME)


class FirebaseStore(TreeStore):
    def __init__(self, database_url: str, credentials_path: str | None = None) -> None:
        super().__init__()
        if not database_url:
            raise StoreError("FIREBASE_DATABASE_URL non configurato")
        self._app = _firebase_app(database_url, credentials_path)

    def _ref(self, path: str):
        return rtdb.reference('/' + join_path(split_path(path)), app=self._app)

    def read(self, path: str) -> Any:
        try:
            return self._ref(path).get()
        except (FirebaseError, ValueError) as exc:
            raise StoreError(f"Lettura di {path} fallita: {exc}", path) from exc

    def write(self, path: str, value: Any) -> None:
        try:
            if value is None:
                self._ref(path).delete()
            else:
                self._ref(path).set(value)
        except (FirebaseError, ValueError, TypeError) as exc:
            raise StoreError(f"Scrittura di {path} fallita: {exc}", path) from exc

    def update(self, path: str, fields: Dict[str, Any]) -> None:
        if not fields:
            return
        try:
            self._ref(path).update(fields)
        except (FirebaseError, ValueError, TypeError) as exc:
            raise StoreError(f"Aggiornamento di {path} fallito: {exc}", path) from exc

    def remove(self, path: str) -> None:
        try:
            self._ref(path).delete()
        except (FirebaseError, ValueError) as exc:
            raise StoreError(f"Eliminazione di {path} fallita: {exc}", path) from exc

    def subscribe(self, path: str, callback: Callable[[Any], None]) -> Callable[[], None]:
        ref = self._ref(path)

        def on_event(event) -> None:
            # Every event carries a sub-path; re-read the watched node so the
            # callback always receives the whole value.
            try:
                callback(ref.get())
            except Exception:
                logger.exception("Listener Firebase su %s fallito", path)

        try:
            registration = ref.listen(on_event)
        except (FirebaseError, ValueError) as exc:
            raise StoreError(f"Osservazione di {path} fallita: {exc}", path) from exc
        return registration.close
