from .extensions import db
from datetime import datetime


class TimestampMixin(db.Model):
    __abstract__ = True
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class TreeNode(TimestampMixin):
    """One top-level node of the checklist tree.

    The realtime database is a single JSON tree.  Locally it is stored as
    one row per top-level key (``parameters``, ``vehicles``,
    ``appointments``, ``workingPhase``, ``lavorazione`` ...) whose
    ``payload`` column holds the JSON-encoded subtree.  Rows whose subtree
    becomes empty are deleted, mirroring the way the hosted database drops
    empty nodes.
    """
    __tablename__ = 'tree_nodes'
    id = db.Column(db.Integer, primary_key=True)
    key = db.Column(db.String(200), unique=True, nullable=False, index=True)
    payload = db.Column(db.Text, nullable=False, default='null')

    def __repr__(self) -> str:
        return f"<TreeNode {self.key}>"
