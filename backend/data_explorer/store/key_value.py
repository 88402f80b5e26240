"""
Template store backed by a key-value table.

Each template is one JSON row keyed ``q:<id>``; the next free id is an integer
row keyed ``q:_id``. Id allocation holds a Redis lock when Redis is available,
otherwise a process lock plus a row lock on the counter.
"""

import json
import logging
import threading

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, col, select

from data_explorer.core.redis_client import get_redis
from data_explorer.models import PLUGIN_NAME, ExplorerStoreRow, QueryTemplate

_log = logging.getLogger(__name__)

ID_KEY = "q:_id"
ID_LOCK_NAME = "data-explorer_query-id"
_ID_LOCK_TIMEOUT = 10  # seconds
_id_lock = threading.Lock()


def _query_key(query_id: int) -> str:
    return f"q:{query_id}"


class KeyValueTemplateStore:
    def __init__(self, session: Session, *, plugin_name: str = PLUGIN_NAME) -> None:
        self.session = session
        self.plugin_name = plugin_name

    # ------------------------------------------------------------------
    # Raw key-value access
    # ------------------------------------------------------------------

    def _row(self, key: str, *, for_update: bool = False) -> ExplorerStoreRow | None:
        stmt = select(ExplorerStoreRow).where(
            ExplorerStoreRow.plugin_name == self.plugin_name,
            ExplorerStoreRow.key == key,
        )
        if for_update:
            stmt = stmt.with_for_update()
        return self.session.exec(stmt).first()

    def _set(self, key: str, value: str, type_name: str) -> None:
        row = self._row(key)
        if row is None:
            row = ExplorerStoreRow(
                plugin_name=self.plugin_name, key=key, type_name=type_name, value=value
            )
        else:
            row.value = value
            row.type_name = type_name
        self.session.add(row)
        self.session.commit()

    # ------------------------------------------------------------------
    # TemplateStore
    # ------------------------------------------------------------------

    def load(self, query_id: int) -> QueryTemplate | None:
        row = self._row(_query_key(query_id))
        if row is None:
            return None
        return QueryTemplate.from_dict(json.loads(row.value))

    def save(self, query: QueryTemplate) -> QueryTemplate:
        if not query.persisted:
            query.id = self.allocate_id()
        self._set(_query_key(query.id), json.dumps(query.to_dict()), "JSON")
        return query

    def delete(self, query_id: int) -> None:
        row = self._row(_query_key(query_id))
        if row is not None:
            self.session.delete(row)
            self.session.commit()

    def list_all(self) -> list[QueryTemplate]:
        rows = self.session.exec(
            select(ExplorerStoreRow)
            .where(
                ExplorerStoreRow.plugin_name == self.plugin_name,
                col(ExplorerStoreRow.key).like("q:%"),
                ExplorerStoreRow.key != ID_KEY,
            )
            .order_by(col(ExplorerStoreRow.id))
        ).all()
        return [QueryTemplate.from_dict(json.loads(r.value)) for r in rows]

    def allocate_id(self) -> int:
        r = get_redis()
        if r is not None:
            with r.lock(ID_LOCK_NAME, timeout=_ID_LOCK_TIMEOUT, blocking_timeout=_ID_LOCK_TIMEOUT):
                return self._bump_counter()
        with _id_lock:
            return self._bump_counter()

    def _bump_counter(self) -> int:
        row = self._row(ID_KEY, for_update=True)
        if row is None:
            self.session.add(
                ExplorerStoreRow(
                    plugin_name=self.plugin_name, key=ID_KEY, type_name="Integer", value="2"
                )
            )
            try:
                self.session.commit()
                return 1
            except IntegrityError:
                # another process created the counter row first
                self.session.rollback()
                row = self._row(ID_KEY, for_update=True)
        query_id = int(row.value)
        row.value = str(query_id + 1)
        self.session.add(row)
        self.session.commit()
        _log.debug("Allocated query id %s", query_id)
        return query_id
