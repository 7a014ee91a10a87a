"""Base model for the milestone region documents stored on an order.

Attributes are snake_case in Python and camelCase in stored documents.
Assignments are validated, so a value outside a closed vocabulary can never
be written onto a region. Naive datetimes are read as UTC.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

from fulfillment.utils.dates import as_utc


class DocumentModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        validate_assignment=True,
        extra="ignore",
    )

    @field_validator("*", mode="after")
    @classmethod
    def _datetimes_are_utc(cls, value):
        if isinstance(value, datetime):
            return as_utc(value)
        return value

    def to_document(self) -> dict:
        """Return the JSON-compatible document persisted for this model."""
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def from_document(cls, document: dict):
        return cls.model_validate(document)
