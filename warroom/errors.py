"""Error taxonomy shared by the core services and the HTTP adapter."""


class WarRoomError(Exception):
    """Base class for failures surfaced to callers as structured errors."""

    code = "INTERNAL_ERROR"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message, "status": self.status_code}


class ValidationError(WarRoomError):
    """A required field is missing or a value is outside its enumerated set."""

    code = "VALIDATION_ERROR"
    status_code = 400


class NotFoundError(WarRoomError):
    """No incident exists with the requested id."""

    code = "INCIDENT_NOT_FOUND"
    status_code = 404

    def __init__(self, incident_id: int):
        super().__init__(f"Incident with id {incident_id} not found")
        self.incident_id = incident_id


class InternalError(WarRoomError):
    """The persistence layer failed; the transaction was rolled back."""

    code = "INTERNAL_ERROR"
    status_code = 500
