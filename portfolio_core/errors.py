"""Error taxonomy shared by the storage layer and the core services"""

from __future__ import annotations

from functools import wraps
from typing import Callable, Iterable
from uuid import UUID


class StoreUnavailable(Exception):
    """The document store could not be reached or the call timed out"""


class ValidationError(ValueError):
    """Malformed query parameters, rejected before touching the store"""


class RelationError(Exception):
    """Base class for relationship maintenance failures"""


class RelationStoreUnavailable(RelationError, StoreUnavailable):
    """Store failure while reconciling back-references.

    The owner's own reference field is written last, so when this is raised
    the owner still points at its previous targets.
    """


class EntityNotFound(RelationError):
    """The owner entity of a relation does not exist"""

    def __init__(self, collection: str, entity_id: UUID):
        self.collection = collection
        self.entity_id = entity_id
        super().__init__(f"{collection} {entity_id} not found")


class ReferenceNotFound(RelationError):
    """One or more referenced ids do not exist in the target collection"""

    def __init__(self, collection: str, missing: Iterable[UUID]):
        self.collection = collection
        self.missing = list(missing)
        super().__init__(
            f"{len(self.missing)} missing {collection} reference(s): "
            + ", ".join(str(m) for m in self.missing)
        )


def translate_errors(*exc_types: type[BaseException]) -> Callable:
    """Decorator turning driver connectivity errors into StoreUnavailable"""
    def decorator(func: Callable):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except exc_types as e:
                raise StoreUnavailable(f"{func.__qualname__}: {e}") from e

        return wrapper

    return decorator
