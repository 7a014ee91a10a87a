"""Repository-backed reference lookup."""

from uuid import UUID

from protean.utils.globals import current_domain

from fulfillment.exceptions import InvalidReferenceError
from fulfillment.references.port import ReferenceLookup


class RepositoryLookup(ReferenceLookup):
    """Looks records up through the active domain's repositories."""

    def resolve(self, entity_type: type, identifier: str):
        try:
            UUID(str(identifier))
        except ValueError:
            raise InvalidReferenceError(f"Malformed {entity_type.__name__} id: {identifier!r}") from None
        return current_domain.repository_for(entity_type).get(identifier)
