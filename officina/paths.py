"""Storage locations for checklist data.

Vehicle checklists have been written under several different nodes over
the life of the application.  The helpers below return the canonical
locations used for every new write, together with the historical
locations that readers still probe.  All functions are pure string
templating: a malformed id simply yields a path where nothing is stored.
"""

from __future__ import annotations

from typing import List, Optional

PARAMETERS_PATH = 'parameters'
VEHICLES_PATH = 'vehicles'
APPOINTMENTS_PATH = 'appointments'

# Historical control locations for a vehicle, in decreasing priority.
LEGACY_VEHICLE_PATHS = (
    'vehicles/{vehicle_id}/fase2/controls',
    'vehicles/{vehicle_id}/fase2/checklist',
    'vehicles/{vehicle_id}/workingPhase/controls',
    'vehicles/{vehicle_id}/workingPhase/checklist',
    'workingPhase/{vehicle_id}/controls',
    'workingPhase/{vehicle_id}/checklist',
    'lavorazione/{vehicle_id}/controls',
    'lavorazione/{vehicle_id}/checklist',
)

# Nodes that may hold the static inspection sheet under a ``checklist``
# child.  Appointment nodes may also hold the sheet directly.
SHEET_APPOINTMENT_PATHS = (
    'appointments/{appointment_id}',
    'appointments/{appointment_id}/checklist',
    'appointments/{appointment_id}/workingPhase',
    'appointments/{appointment_id}/lavorazione',
)

SHEET_VEHICLE_PATHS = (
    'vehicles/{vehicle_id}',
    'vehicles/{vehicle_id}/lavorazione',
    'vehicles/{vehicle_id}/workingPhase',
    'vehicles/{vehicle_id}/fase2',
    'workingPhase/{vehicle_id}',
    'lavorazione/{vehicle_id}',
)


def parameter_path(parameter_id: str) -> str:
    return f"{PARAMETERS_PATH}/{parameter_id}"


def vehicle_path(vehicle_id: str) -> str:
    return f"{VEHICLES_PATH}/{vehicle_id}"


def lavorazione_path(vehicle_id: str) -> str:
    """Work-phase node of a vehicle; its presence marks the vehicle in progress."""
    return f"{vehicle_path(vehicle_id)}/lavorazione"


def vehicle_controls_path(vehicle_id: str) -> str:
    return f"{lavorazione_path(vehicle_id)}/controls"


def vehicle_checklist_path(vehicle_id: str) -> str:
    return f"{lavorazione_path(vehicle_id)}/checklist"


def appointment_checklist_path(appointment_id: str) -> str:
    return f"{APPOINTMENTS_PATH}/{appointment_id}/checklist"


def legacy_vehicle_paths(vehicle_id: str) -> List[str]:
    return [tpl.format(vehicle_id=vehicle_id) for tpl in LEGACY_VEHICLE_PATHS]


def control_candidates(vehicle_id: Optional[str] = None,
                       appointment_id: Optional[str] = None) -> List[str]:
    """Return every path that may hold controls, highest priority first.

    The appointment checklist comes first when an appointment id is
    given, followed by the two canonical vehicle paths and then the
    legacy vehicle paths.
    """
    paths: List[str] = []
    if appointment_id:
        paths.append(appointment_checklist_path(appointment_id))
    if vehicle_id:
        paths.append(vehicle_controls_path(vehicle_id))
        paths.append(vehicle_checklist_path(vehicle_id))
        paths.extend(legacy_vehicle_paths(vehicle_id))
    return paths


def sheet_appointment_paths(appointment_id: str) -> List[str]:
    return [tpl.format(appointment_id=appointment_id) for tpl in SHEET_APPOINTMENT_PATHS]


def sheet_vehicle_paths(vehicle_id: str) -> List[str]:
    return [tpl.format(vehicle_id=vehicle_id) for tpl in SHEET_VEHICLE_PATHS]
