"""Fulfillment error taxonomy.

Validation failures use protean's ``ValidationError`` (``{field: [messages]}``)
and absent records protean's ``ObjectNotFoundError``; the errors below cover
what the framework does not.
"""

from protean.exceptions import ValidationError


class FulfillmentError(Exception):
    """Base class for fulfillment errors that are not validation failures."""


class InvalidEnumValueError(ValidationError):
    """A status, state or type value outside its closed vocabulary."""

    def __init__(self, field: str, value, allowed: list[str]):
        self.field = field
        self.value = value
        self.allowed = allowed
        super().__init__({field: [f"'{value}' is not a valid value for {field}"]})


class InvalidReferenceError(FulfillmentError):
    """A reference that cannot be looked up at all (malformed id)."""


class ReferenceLoadError(FulfillmentError):
    """One or more relations failed to load for reasons other than absence."""

    def __init__(self, errors: dict[str, Exception]):
        self.errors = errors
        details = "; ".join(f"{relation}: {error}" for relation, error in errors.items())
        super().__init__(f"ERRORS: {details}")
