"""
Template store contract.

The execution engine only needs these five operations; persistence format and
durability belong to the implementation.
"""

from typing import Protocol

from data_explorer.core.errors import NotFoundError
from data_explorer.models import QueryTemplate


class TemplateStore(Protocol):
    def load(self, query_id: int) -> QueryTemplate | None:
        """Stored template or None."""
        ...

    def save(self, query: QueryTemplate) -> QueryTemplate:
        """Persist ``query``; allocates an id first when it has none."""
        ...

    def delete(self, query_id: int) -> None: ...

    def list_all(self) -> list[QueryTemplate]: ...

    def allocate_id(self) -> int:
        """Next free id. Must never hand the same id to two concurrent callers."""
        ...


def find_template(
    store: TemplateStore, query_id: int, *, ignore_deleted: bool = False
) -> QueryTemplate:
    """
    Load a template or raise NotFoundError.

    With ``ignore_deleted`` a missing record yields a fresh, unsaved template
    (``id`` None) instead, so callers can restore it under an explicit id.
    """
    query = store.load(query_id)
    if query is None:
        if ignore_deleted:
            return QueryTemplate()
        raise NotFoundError(query_id)
    return query
