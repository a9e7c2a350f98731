"""Checklist endpoints.

The subject of a checklist is identified by ``vehicleId`` and/or
``appointmentId``, passed in the query string for GET requests and in
the JSON body otherwise.  The first request for a subject opens a
session holding its controls, tabs and bulk selections; later requests
reuse it.

* GET  /api/checklist                          - tabs, active tab and its rows
* POST /api/checklist/section                  - switch tab
* PUT  /api/checklist/controls/<pid>/state     - set a state
* POST /api/checklist/controls/<pid>/toggle    - next state in the cycle
* PUT  /api/checklist/controls/<pid>/note      - debounced note edit
* POST /api/checklist/navigate                 - Tab / Shift+Tab
* POST /api/checklist/bulk                     - bulk selection and apply
* POST /api/checklist/close                    - flush notes, drop the session
* GET  /api/inspection/<vehicleId>             - legacy inspection sheet
* POST /api/inspection/<vehicleId>             - edit and save the sheet
* POST /api/inspection/<vehicleId>/comments    - general comments
* GET  /api/nodes?path=                        - diagnostics on a tree node
"""

from typing import Any

from flask import current_app, jsonify, request

from . import api_bp
from ...errors import ValidationError
from ...inspection import InspectionSheet
from ...sessions import SESSIONS_EXTENSION_KEY, selection_to_dict
from ...storage import get_store


def _registry():
    return current_app.extensions[SESSIONS_EXTENSION_KEY]


def _session_from(source: dict):
    return _registry().open(source.get('vehicleId'), source.get('appointmentId'))


def _body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _control_json(parameter_id: str, control) -> dict:
    return {'id': parameter_id, **control.to_dict()}


@api_bp.route('/checklist', methods=['GET'])
def get_checklist() -> Any:
    session = _session_from(request.args)
    # Pick up catalog and control edits made since the session was opened.
    session.reload()
    return jsonify(session.to_dict())


@api_bp.route('/checklist/section', methods=['POST'])
def select_section() -> Any:
    data = _body()
    session = _session_from(data)
    session.sections.select(data.get('section') or '')
    return jsonify(session.to_dict())


@api_bp.route('/checklist/controls/<parameter_id>/state', methods=['PUT'])
def set_control_state(parameter_id: str) -> Any:
    data = _body()
    session = _session_from(data)
    if not data.get('stato'):
        raise ValidationError("Il campo stato è obbligatorio")
    control = session.controls.set_state(parameter_id, data['stato'])
    return jsonify(_control_json(parameter_id, control))


@api_bp.route('/checklist/controls/<parameter_id>/toggle', methods=['POST'])
def toggle_control(parameter_id: str) -> Any:
    session = _session_from(_body())
    control = session.controls.toggle(parameter_id)
    return jsonify(_control_json(parameter_id, control))


@api_bp.route('/checklist/controls/<parameter_id>/note', methods=['PUT'])
def set_control_note(parameter_id: str) -> Any:
    """Schedule a note write.

    The note is written once the subject has been quiet for
    ``NOTE_DEBOUNCE_SECONDS``; the response only acknowledges the edit.
    """
    data = _body()
    session = _session_from(data)
    session.controls.set_note(parameter_id, data.get('note') or '')
    return jsonify({'id': parameter_id, 'pending': True}), 202


@api_bp.route('/checklist/navigate', methods=['POST'])
def navigate() -> Any:
    data = _body()
    session = _session_from(data)
    move = session.sections.move_focus(data.get('currentId'), backward=bool(data.get('backward')))
    if move is None:
        return jsonify({'error': 'Nessun parametro nella checklist'}), 404
    return jsonify({
        'parameterId': move.parameter_id,
        'section': move.section,
        'sectionChanged': move.section_changed,
        'delayMs': int(round(move.delay * 1000)),
    })


@api_bp.route('/checklist/bulk', methods=['POST'])
def bulk_action() -> Any:
    """Drive the bulk selection of the active tab.

    ``action`` is one of ``enter``, ``cancel``, ``toggle`` (with
    ``parameterId``), ``select-all``, ``clear`` or ``apply`` (with
    ``stato``).
    """
    data = _body()
    session = _session_from(data)
    selection = session.selection()
    action = data.get('action')
    applied = []
    if action == 'enter':
        selection.enter()
    elif action == 'cancel':
        selection.cancel()
    elif action == 'toggle':
        if not data.get('parameterId'):
            raise ValidationError("Il campo parameterId è obbligatorio")
        selection.toggle(str(data['parameterId']))
    elif action == 'select-all':
        selection.toggle_select_all()
    elif action == 'clear':
        selection.clear()
    elif action == 'apply':
        if not data.get('stato'):
            raise ValidationError("Il campo stato è obbligatorio")
        applied = session.apply_bulk_state(data['stato'])
        current_app.logger.info("Stato %s applicato a %d controlli", data['stato'], len(applied))
    else:
        raise ValidationError(f"Azione non valida: {action!r}")
    response = selection_to_dict(selection)
    response['applied'] = applied
    return jsonify(response)


@api_bp.route('/checklist/close', methods=['POST'])
def close_checklist() -> Any:
    data = _body()
    closed = _registry().close(data.get('vehicleId'), data.get('appointmentId'))
    return jsonify({'closed': closed})


def _sheet(vehicle_id: str, appointment_id) -> InspectionSheet:
    sheet = InspectionSheet(get_store(), vehicle_id, appointment_id)
    sheet.load()
    return sheet


@api_bp.route('/inspection/<vehicle_id>', methods=['GET'])
def get_inspection(vehicle_id: str) -> Any:
    sheet = _sheet(vehicle_id, request.args.get('appointmentId'))
    return jsonify(sheet.to_dict())


@api_bp.route('/inspection/<vehicle_id>', methods=['POST'])
def save_inspection(vehicle_id: str) -> Any:
    """Apply toggles and notes to the sheet and save it everywhere.

    Body: ``{"appointmentId": ..., "toggle": [key, ...],
    "notes": {key: note}}``.
    """
    data = _body()
    sheet = _sheet(vehicle_id, data.get('appointmentId'))
    for key in data.get('toggle') or []:
        sheet.toggle(str(key))
    for key, note in (data.get('notes') or {}).items():
        sheet.set_note(str(key), note)
    if not sheet.needs_saving:
        return jsonify({**sheet.to_dict(), 'written': [], 'failed': []})
    report = sheet.save()
    if not report.ok:
        current_app.logger.warning("Checklist del veicolo %s salvata parzialmente", vehicle_id)
    return jsonify({**sheet.to_dict(), 'written': report.written, 'failed': report.failed})


@api_bp.route('/inspection/<vehicle_id>/comments', methods=['POST'])
def save_inspection_comments(vehicle_id: str) -> Any:
    data = _body()
    sheet = InspectionSheet(get_store(), vehicle_id, data.get('appointmentId'))
    report = sheet.save_comments(data.get('commenti') or '')
    return jsonify({'written': report.written, 'failed': report.failed})


@api_bp.route('/nodes', methods=['GET'])
def describe_node() -> Any:
    path = request.args.get('path', '')
    return jsonify(get_store().describe(path))
