"""Unit tests for engines.schema.catalog."""

from unittest.mock import MagicMock

import psycopg

from data_explorer.engines.schema import (
    EnumRegistry,
    SchemaCache,
    SchemaCatalogBuilder,
    fetch_schema_version,
)
from data_explorer.engines.schema.catalog import (
    ColumnInfo,
    normalize_default,
    normalize_type,
    order_tables,
)
from data_explorer.engines.schema.enums import DEFAULT_ENUMS


def _row(table: str, column: str, data_type: str = "integer", **kw: object) -> dict:
    return {
        "table_name": table,
        "column_name": column,
        "data_type": data_type,
        "character_maximum_length": kw.get("max_length"),
        "is_nullable": kw.get("nullable", "NO"),
        "column_default": kw.get("default"),
    }


def _introspection_connection(rows: list[dict]) -> MagicMock:
    conn = MagicMock(name="conn")
    cur = MagicMock(name="cursor")
    cur.__enter__.return_value = cur
    cur.__exit__.return_value = False
    cur.fetchall.return_value = rows
    conn.cursor.return_value = cur
    return conn


# --- normalisation ---


def test_normalize_type() -> None:
    assert normalize_type("character varying", 255) == "varchar(255)"
    assert normalize_type("timestamp without time zone", None) == "timestamp"
    assert normalize_type("double precision", None) == "double"
    assert normalize_type("integer", None) == "integer"
    assert normalize_type("timestamp with time zone", None) == "timestamp with time zone"


def test_normalize_default() -> None:
    assert normalize_default(None) is None
    assert normalize_default("nextval('users_id_seq'::regclass)") is None
    assert normalize_default("'regular'::character varying") == "regular"
    assert normalize_default("''::text") == ""
    assert normalize_default("0") == "0"
    assert normalize_default("now()") == "now()"


def test_column_dict_is_compact() -> None:
    assert ColumnInfo(name="id", data_type="integer").to_dict() == {
        "name": "id",
        "data_type": "integer",
    }
    full = ColumnInfo(
        name="level",
        data_type="integer",
        nullable=True,
        default="0",
        sensitive=True,
        enum_values={0: "low"},
    ).to_dict()
    assert full == {
        "name": "level",
        "data_type": "integer",
        "nullable": True,
        "default": "0",
        "sensitive": True,
        "enum_values": {0: "low"},
    }


# --- annotation ---


def test_sensitive_columns_flagged() -> None:
    builder = SchemaCatalogBuilder()
    email = builder.column_info(_row("users", "email", "character varying", max_length=513))
    username = builder.column_info(_row("users", "username", "character varying", max_length=60))

    assert email.sensitive is True
    assert email.data_type == "varchar(513)"
    assert username.sensitive is False
    assert "sensitive" not in username.to_dict()


def test_enum_values_reversed() -> None:
    builder = SchemaCatalogBuilder(
        enums=EnumRegistry({"notifications.notification_type": {"read": 1, "unread": 0}})
    )
    col = builder.column_info(_row("notifications", "notification_type"))

    assert col.enum_values == {0: "unread", 1: "read"}


def test_nullable_and_default() -> None:
    builder = SchemaCatalogBuilder()
    col = builder.column_info(
        _row("users", "title", "character varying", max_length=255, nullable="YES", default="'x'::character varying")
    )
    assert col.nullable is True
    assert col.default == "x"

    seq = builder.column_info(_row("users", "id", default="nextval('users_id_seq'::regclass)"))
    assert seq.default is None


# --- ordering ---


def test_favored_tables_first_then_alphabetical() -> None:
    cols = [ColumnInfo(name="id", data_type="integer")]
    by_table = {"zebra": cols, "posts": cols, "alpha": cols, "users": cols}

    ordered = order_tables(by_table, ["users", "missing", "posts"])
    assert list(ordered) == ["users", "posts", "alpha", "zebra"]


def test_build_from_rows_groups_by_table() -> None:
    builder = SchemaCatalogBuilder(favored_tables=["posts"])
    catalog = builder.build_from_rows(
        [
            _row("users", "id"),
            _row("posts", "id"),
            _row("users", "email", "character varying", max_length=513),
            _row("badges", "id"),
        ]
    )

    assert list(catalog.tables) == ["posts", "badges", "users"]
    assert [c.name for c in catalog.tables["users"]] == ["id", "email"]
    assert catalog.to_dict()["users"][1]["sensitive"] is True


def test_build_runs_read_only_and_rolls_back() -> None:
    conn = _introspection_connection([_row("users", "id")])
    catalog = SchemaCatalogBuilder().build(conn)

    cur = conn.cursor.return_value
    assert cur.execute.call_args_list[0].args[0] == "SET TRANSACTION READ ONLY"
    assert "information_schema.columns" in cur.execute.call_args_list[1].args[0]
    conn.rollback.assert_called_once()
    assert list(catalog.tables) == ["users"]


def test_default_enums_loaded() -> None:
    builder = SchemaCatalogBuilder(enums=EnumRegistry(DEFAULT_ENUMS))
    col = builder.column_info(_row("users", "trust_level"))
    assert col.enum_values[0] == "newuser"
    assert col.enum_values[4] == "leader"


# --- cache ---


def _counting_builder() -> tuple[SchemaCatalogBuilder, list[int]]:
    builder = SchemaCatalogBuilder()
    calls: list[int] = []
    original = builder.build_from_rows

    def _build(conn: object):
        calls.append(1)
        return original([_row("users", "id")])

    builder.build = _build  # type: ignore[method-assign]
    return builder, calls


def test_cache_builds_once() -> None:
    builder, calls = _counting_builder()
    cache = SchemaCache(builder)

    first = cache.get(MagicMock())
    second = cache.get(MagicMock())

    assert first is second
    assert len(calls) == 1


def test_cache_rebuilds_on_version_change() -> None:
    builder, calls = _counting_builder()
    cache = SchemaCache(builder)

    cache.get(MagicMock(), "20240101")
    cache.get(MagicMock(), "20240101")
    assert len(calls) == 1
    assert cache.version == "20240101"

    cache.get(MagicMock(), "20240202")
    assert len(calls) == 2
    assert cache.version == "20240202"


def test_cache_invalidate() -> None:
    builder, calls = _counting_builder()
    cache = SchemaCache(builder)

    cache.get(MagicMock())
    cache.invalidate()
    assert cache.version is None
    cache.get(MagicMock())

    assert len(calls) == 2


# --- schema version ---


def test_fetch_schema_version() -> None:
    conn = MagicMock()
    cur = conn.cursor.return_value.__enter__.return_value
    cur.fetchone.return_value = (20240315120000,)

    assert fetch_schema_version(conn, "schema_migrations") == "20240315120000"
    conn.rollback.assert_called_once()


def test_fetch_schema_version_missing_table() -> None:
    conn = MagicMock()
    cur = conn.cursor.return_value.__enter__.return_value
    cur.execute.side_effect = psycopg.errors.UndefinedTable("relation does not exist")

    assert fetch_schema_version(conn, "schema_migrations") is None
    conn.rollback.assert_called_once()


def test_fetch_schema_version_empty_table() -> None:
    conn = MagicMock()
    conn.cursor.return_value.__enter__.return_value.fetchone.return_value = (None,)

    assert fetch_schema_version(conn, "schema_migrations") is None
