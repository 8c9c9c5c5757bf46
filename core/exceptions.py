"""Domain errors raised by the field schema registries.

Repositories raise these instead of HTTP errors; ``main.py`` maps them to
responses (400, 409 and 404 respectively).
"""


class FieldSchemaError(Exception):
    """Base class for registry errors"""

    kind = "error"

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason

    def to_dict(self) -> dict:
        return {"error": self.kind, "reason": self.reason}


class ValidationError(FieldSchemaError):
    """Malformed or referentially inconsistent input to a registry mutation"""

    kind = "validation_error"

    def __init__(self, field: str, reason: str):
        super().__init__(reason)
        self.field = field

    def __str__(self) -> str:
        return f"{self.field}: {self.reason}"

    def to_dict(self) -> dict:
        return {"error": self.kind, "field": self.field, "reason": self.reason}


class ConflictError(FieldSchemaError):
    """Blocked by a live dependent or a duplicate unique key"""

    kind = "conflict"


class NotFoundError(FieldSchemaError):
    """An id or name that does not resolve"""

    kind = "not_found"

    def __init__(self, entity: str, key):
        super().__init__(f"{entity} '{key}' not found")
        self.entity = entity
        self.key = key

    def to_dict(self) -> dict:
        return {"error": self.kind, "entity": self.entity, "reason": self.reason}
