"""Checklist parameter editor.

JSON endpoints used by the catalog editor page.  They are prefixed
with ``/admin`` when registered:

* GET    /admin/parameters              - the whole catalog, grouped by section
* POST   /admin/parameters              - add a parameter (and propagate it)
* PATCH  /admin/parameters/<id>         - change name, section or default state
* DELETE /admin/parameters/<id>         - remove a parameter
* POST   /admin/parameters/bulk-update  - same section/default state on many ids
* POST   /admin/parameters/bulk-delete  - remove many ids

Bulk operations are a sequence of independent writes: the response
lists the ids that succeeded and those that failed.
"""

from typing import Any

from flask import Blueprint, current_app, jsonify, request

from ...catalog import ParameterCatalog
from ...errors import ValidationError
from ...records import KNOWN_SECTIONS
from ...sections import group_by_section
from ...states import ControlState
from ...storage import get_store

admin_bp = Blueprint('admin', __name__)


def _catalog() -> ParameterCatalog:
    return ParameterCatalog(get_store())


def _ids(data: dict) -> list:
    ids = data.get('ids')
    if not isinstance(ids, list) or not ids:
        raise ValidationError("Selezionare almeno un parametro")
    cleaned = []
    for pid in ids:
        pid = str(pid).strip() if pid is not None else ''
        if not pid or '/' in pid:
            raise ValidationError("Identificativo di parametro non valido")
        cleaned.append(pid)
    return cleaned


def _parameter_json(parameter) -> dict:
    return {'id': parameter.id, **parameter.to_dict()}


@admin_bp.route('/parameters', methods=['GET'])
def list_parameters() -> Any:
    parameters = _catalog().load()
    grouped = group_by_section(parameters)
    return jsonify({
        'parameters': [_parameter_json(p) for p in parameters.values()],
        'sections': [{'name': name, 'parameterIds': ids} for name, ids in grouped.items()],
        'knownSections': list(KNOWN_SECTIONS),
        'states': [state.value for state in ControlState],
    })


@admin_bp.route('/parameters', methods=['POST'])
def create_parameter() -> Any:
    data = request.get_json(silent=True) or {}
    catalog = _catalog()
    parameter_id = catalog.create(
        data.get('name'),
        data.get('section'),
        data.get('defaultState') or ControlState.NON_CONTROLLATO,
    )
    current_app.logger.info("Parametro %s creato dall'editor", parameter_id)
    return jsonify(_parameter_json(catalog.get(parameter_id))), 201


@admin_bp.route('/parameters/<parameter_id>', methods=['PATCH'])
def update_parameter(parameter_id: str) -> Any:
    data = request.get_json(silent=True) or {}
    catalog = _catalog()
    catalog.update(parameter_id, data)
    return jsonify(_parameter_json(catalog.get(parameter_id)))


@admin_bp.route('/parameters/<parameter_id>', methods=['DELETE'])
def delete_parameter(parameter_id: str) -> Any:
    _catalog().remove(parameter_id)
    current_app.logger.info("Parametro %s eliminato", parameter_id)
    return jsonify({'status': 'ok'})


@admin_bp.route('/parameters/bulk-update', methods=['POST'])
def bulk_update_parameters() -> Any:
    data = request.get_json(silent=True) or {}
    result = _catalog().bulk_update(_ids(data), section=data.get('section'),
                                    default_state=data.get('defaultState'))
    if result.failed:
        current_app.logger.warning("Aggiornamento massivo: %d parametri non aggiornati", len(result.failed))
    return jsonify({'succeeded': result.succeeded, 'failed': result.failed})


@admin_bp.route('/parameters/bulk-delete', methods=['POST'])
def bulk_delete_parameters() -> Any:
    data = request.get_json(silent=True) or {}
    result = _catalog().bulk_delete(_ids(data))
    if result.failed:
        current_app.logger.warning("Eliminazione massiva: %d parametri non eliminati", len(result.failed))
    return jsonify({'succeeded': result.succeeded, 'failed': result.failed})
