"""Caller input errors raised by the update handlers."""


class TelemetryError(Exception):
    """Base class for rejected telemetry updates. Always a 400."""

    status_code = 400

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class MissingField(TelemetryError):
    def __init__(self, field: str):
        self.field = field
        super().__init__(f"Missing {field} param")


class InvalidBoolean(TelemetryError):
    def __init__(self):
        super().__init__("Invalid boolean value")


class InvalidNumber(TelemetryError):
    def __init__(self, field: str):
        self.field = field
        super().__init__(f"Invalid {field} param")
