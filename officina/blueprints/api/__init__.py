"""API blueprint package.

JSON endpoints used by the workshop tablets: the dynamic checklist of
a vehicle or appointment, the legacy inspection sheet and a small
diagnostic view of the storage tree.  They are prefixed under ``/api``
when registered with the Flask application.
"""

from flask import Blueprint

api_bp = Blueprint('api', __name__)

from . import routes  # noqa: F401
