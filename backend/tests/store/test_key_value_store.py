"""Unit tests for store.key_value (SQLite-backed session)."""

import json
from unittest.mock import MagicMock, patch

from sqlmodel import Session, select

from data_explorer.models import ExplorerStoreRow, QueryOptions, QueryTemplate
from data_explorer.store import KeyValueTemplateStore
from data_explorer.store.key_value import ID_KEY, ID_LOCK_NAME


def test_first_id_is_one(store: KeyValueTemplateStore) -> None:
    assert store.allocate_id() == 1
    assert store.allocate_id() == 2
    assert store.allocate_id() == 3


def test_counter_row(store: KeyValueTemplateStore, db: Session) -> None:
    store.allocate_id()
    store.allocate_id()

    row = db.exec(select(ExplorerStoreRow).where(ExplorerStoreRow.key == ID_KEY)).one()
    assert row.value == "3"
    assert row.type_name == "Integer"


def test_save_and_load(store: KeyValueTemplateStore, db: Session) -> None:
    q = QueryTemplate(
        name="Top posters",
        sql="SELECT user_id FROM posts WHERE created_at > :since",
        options=QueryOptions(defaults={"since": "2024-01-01"}),
    )
    saved = store.save(q)

    assert saved.id == 1
    loaded = store.load(1)
    assert loaded.name == "Top posters"
    assert loaded.defaults == {"since": "2024-01-01"}
    assert loaded.param_names == ["since"]

    row = db.exec(select(ExplorerStoreRow).where(ExplorerStoreRow.key == "q:1")).one()
    assert row.type_name == "JSON"
    assert row.plugin_name == "data-explorer"
    assert json.loads(row.value)["sql"] == q.sql


def test_save_existing_overwrites(store: KeyValueTemplateStore) -> None:
    q = store.save(QueryTemplate(name="a"))
    q.name = "b"
    store.save(q)

    assert store.load(q.id).name == "b"
    assert len(store.list_all()) == 1


def test_load_missing(store: KeyValueTemplateStore) -> None:
    assert store.load(5) is None


def test_list_excludes_counter(store: KeyValueTemplateStore) -> None:
    store.save(QueryTemplate(name="a"))
    store.save(QueryTemplate(name="b"))

    assert [q.name for q in store.list_all()] == ["a", "b"]


def test_delete(store: KeyValueTemplateStore) -> None:
    q = store.save(QueryTemplate(name="a"))
    store.delete(q.id)
    store.delete(q.id)

    assert store.load(q.id) is None
    assert store.list_all() == []


def test_undelete_under_explicit_id(store: KeyValueTemplateStore) -> None:
    store.save(QueryTemplate(name="a"))
    store.save(QueryTemplate(name="b"))
    store.delete(1)

    restored = QueryTemplate(id=1, name="a again")
    store.save(restored)

    assert store.load(1).name == "a again"
    # Counter unaffected by explicit-id saves.
    assert store.allocate_id() == 3


def test_plugin_namespaces_are_isolated(db: Session) -> None:
    a = KeyValueTemplateStore(db, plugin_name="one")
    b = KeyValueTemplateStore(db, plugin_name="two")
    a.save(QueryTemplate(name="from one"))

    assert b.load(1) is None
    assert b.allocate_id() == 1


def test_allocate_id_uses_redis_lock(store: KeyValueTemplateStore) -> None:
    redis_client = MagicMock()
    with patch("data_explorer.store.key_value.get_redis", return_value=redis_client):
        assert store.allocate_id() == 1

    redis_client.lock.assert_called_once()
    assert redis_client.lock.call_args.args[0] == ID_LOCK_NAME
    redis_client.lock.return_value.__enter__.assert_called_once()
