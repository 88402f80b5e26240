"""In-process template store (tests and local development)."""

import threading

from data_explorer.models import QueryTemplate


class InMemoryTemplateStore:
    def __init__(self) -> None:
        self._records: dict[int, dict] = {}
        self._next_id = 1
        self._lock = threading.Lock()

    def load(self, query_id: int) -> QueryTemplate | None:
        data = self._records.get(query_id)
        return QueryTemplate.from_dict(data) if data is not None else None

    def save(self, query: QueryTemplate) -> QueryTemplate:
        if not query.persisted:
            query.id = self.allocate_id()
        self._records[query.id] = query.to_dict()
        return query

    def delete(self, query_id: int) -> None:
        self._records.pop(query_id, None)

    def list_all(self) -> list[QueryTemplate]:
        return [QueryTemplate.from_dict(d) for _, d in sorted(self._records.items())]

    def allocate_id(self) -> int:
        with self._lock:
            query_id = self._next_id
            self._next_id += 1
            return query_id
