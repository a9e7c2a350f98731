"""Exception types raised by the checklist services.

Absence of data at a storage path is never an error: every reader treats
it as an empty result.  Storage failures raised by a backend are wrapped
in :class:`StoreError`; the persistence helpers catch and log them so
that only validation problems reach the caller.
"""


class ChecklistError(Exception):
    """Base class for all checklist errors."""


class ValidationError(ChecklistError):
    """A required field is blank or a value is outside its closed set."""


class ParameterNotFound(ChecklistError):
    """The catalog has no parameter with the requested id."""

    def __init__(self, parameter_id: str):
        super().__init__(f"Parametro {parameter_id} non trovato")
        self.parameter_id = parameter_id


class StoreError(ChecklistError):
    """A storage backend failed to complete an operation."""

    def __init__(self, message: str, path: str | None = None):
        super().__init__(message)
        self.path = path
