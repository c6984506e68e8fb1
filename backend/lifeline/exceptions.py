"""Error taxonomy for the location backend.

Each error carries an HTTP status so the handlers in
``lifeline.utils.errors`` can render it without a lookup table.
"""


class LifeLineError(Exception):
    """Base class for all errors raised by the location backend."""

    status_code: int = 400
    default_message: str = "Request could not be processed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(LifeLineError):
    """Malformed coordinates, bad enum values or missing required fields."""

    default_message = "Invalid data provided"


class ReferentialIntegrityError(LifeLineError):
    """A weak reference (helper, account) does not resolve."""

    default_message = "Referenced record does not exist"

    @classmethod
    def missing_helper(cls, helper_id) -> "ReferentialIntegrityError":
        return cls(f"Referential integrity error: Helper {helper_id} does not exist")


class NotFoundError(LifeLineError):
    status_code = 404
    default_message = "Location not found"


class StoreUnavailableError(LifeLineError):
    status_code = 503
    default_message = "Database is unavailable, try again shortly"
