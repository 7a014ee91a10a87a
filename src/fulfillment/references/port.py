"""Reference lookup port.

Defines the interface the ``ReferenceResolver`` uses to fetch a related
record by identifier. The repository-backed adapter lives in
``fulfillment.references.lookup``.
"""

from abc import ABC, abstractmethod


class ReferenceLookup(ABC):
    """Abstract lookup of related records by type and identifier."""

    @abstractmethod
    def resolve(self, entity_type: type, identifier: str):
        """Return the record of ``entity_type`` with ``identifier``.

        Raises ``ObjectNotFoundError`` when no such record exists.
        """
