"""Tree store persisted through Flask-SQLAlchemy.

Each top-level key of the tree is a :class:`~officina.models.TreeNode`
row holding its subtree as JSON.  Operations may run outside a request
(debounced note writes fire on timer threads), so every call pushes the
application context it was created with.
"""

from __future__ import annotations

import json
import logging
from typing import Any, List

from sqlalchemy.exc import SQLAlchemyError

from ..errors import StoreError
from ..extensions import db
from ..models import TreeNode
from .base import DocumentTreeStore, _prune

logger = logging.getLogger(__name__)


class SqlTreeStore(DocumentTreeStore):
    def __init__(self, app) -> None:
        super().__init__()
        self._app = app

    def _load(self, key: str) -> Any:
        with self._app.app_context():
            try:
                row = TreeNode.query.filter_by(key=key).first()
            except SQLAlchemyError as exc:
                raise StoreError(f"Lettura di {key} fallita: {exc}", key) from exc
            if row is None:
                return None
            try:
                return json.loads(row.payload)
            except ValueError:
                logger.warning("Contenuto JSON non valido nel nodo %s, ignorato", key)
                return None

    def _save(self, key: str, document: Any) -> None:
        document = _prune(document)
        with self._app.app_context():
            try:
                row = TreeNode.query.filter_by(key=key).first()
                if document is None:
                    if row is not None:
                        db.session.delete(row)
                else:
                    if row is None:
                        row = TreeNode(key=key)
                        db.session.add(row)
                    row.payload = json.dumps(document)
                db.session.commit()
            except SQLAlchemyError as exc:
                db.session.rollback()
                raise StoreError(f"Scrittura di {key} fallita: {exc}", key) from exc

    def _keys(self) -> List[str]:
        with self._app.app_context():
            try:
                return [row.key for row in TreeNode.query.order_by(TreeNode.id.asc()).all()]
            except SQLAlchemyError as exc:
                raise StoreError(f"Elenco dei nodi fallito: {exc}") from exc
