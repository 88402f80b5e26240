"""
Schema catalog: columns of the target database grouped by table.

Built from information_schema, normalised for compact display, annotated with
sensitive-column flags and enum labels, and ordered with well-known tables
first. ``SchemaCache`` keeps one snapshot per process and rebuilds it when the
host's schema version changes or it is invalidated.
"""

import logging
import re
import threading
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, NamedTuple

import psycopg
from psycopg import sql
from psycopg.rows import dict_row

from data_explorer.engines.schema.enums import EnumRegistry
from data_explorer.engines.schema.sensitive import SENSITIVE_COLUMNS

_log = logging.getLogger(__name__)

# refer users to https://www.postgresql.org/docs/current/datatype.html
COLUMNS_QUERY = """
SELECT column_name, data_type, character_maximum_length, is_nullable, column_default, table_name
FROM information_schema.columns WHERE table_schema = 'public'
"""

_TYPE_NAMES = {
    "timestamp without time zone": "timestamp",
    "double precision": "double",
}
_SEQUENCE_DEFAULT_RE = re.compile(r"^nextval\(")
_STRING_DEFAULT_RE = re.compile(r"^'(.*)'::(character varying|text)", re.DOTALL)


@dataclass(frozen=True)
class ColumnInfo:
    name: str
    data_type: str
    nullable: bool = False
    default: str | None = None
    sensitive: bool = False
    enum_values: dict[Any, str] | None = None

    def to_dict(self) -> dict[str, Any]:
        """Compact form: flags and optional fields appear only when set."""
        out: dict[str, Any] = {"name": self.name, "data_type": self.data_type}
        if self.nullable:
            out["nullable"] = True
        if self.default is not None:
            out["default"] = self.default
        if self.sensitive:
            out["sensitive"] = True
        if self.enum_values is not None:
            out["enum_values"] = dict(self.enum_values)
        return out


@dataclass(frozen=True)
class SchemaCatalog:
    tables: dict[str, list[ColumnInfo]] = field(default_factory=dict)

    def to_dict(self) -> dict[str, list[dict[str, Any]]]:
        return {t: [c.to_dict() for c in cols] for t, cols in self.tables.items()}


def normalize_type(data_type: str, max_length: Any) -> str:
    if data_type == "character varying":
        return f"varchar({int(max_length or 0)})"
    return _TYPE_NAMES.get(data_type, data_type)


def normalize_default(default: str | None) -> str | None:
    """None for missing and sequence defaults; bare text for quoted string literals."""
    if default is None or _SEQUENCE_DEFAULT_RE.match(default):
        return None
    m = _STRING_DEFAULT_RE.match(default)
    if m:
        return m.group(1)
    return default


def order_tables(
    by_table: Mapping[str, list[ColumnInfo]], favored: Sequence[str]
) -> dict[str, list[ColumnInfo]]:
    """Favored tables first in the given order, then the rest alphabetically."""
    ordered: dict[str, list[ColumnInfo]] = {}
    for tbl in favored:
        if tbl in by_table:
            ordered[tbl] = by_table[tbl]
    for tbl in sorted(by_table):
        if tbl not in ordered:
            ordered[tbl] = by_table[tbl]
    return ordered


class SchemaCatalogBuilder:
    """Introspects the target database and builds a SchemaCatalog."""

    def __init__(
        self,
        *,
        enums: EnumRegistry | None = None,
        sensitive: Iterable[str] = SENSITIVE_COLUMNS,
        favored_tables: Sequence[str] = (),
    ) -> None:
        self.enums = enums or EnumRegistry()
        self.sensitive = frozenset(sensitive)
        self.favored_tables = list(favored_tables)

    def column_info(self, row: Mapping[str, Any]) -> ColumnInfo:
        table = row["table_name"]
        name = row["column_name"]
        full_name = f"{table}.{name}"
        return ColumnInfo(
            name=name,
            data_type=normalize_type(row["data_type"], row.get("character_maximum_length")),
            nullable=row.get("is_nullable") == "YES",
            default=normalize_default(row.get("column_default")),
            sensitive=full_name in self.sensitive,
            enum_values=self.enums.lookup(full_name),
        )

    def build_from_rows(self, rows: Iterable[Mapping[str, Any]]) -> SchemaCatalog:
        by_table: dict[str, list[ColumnInfo]] = {}
        for row in rows:
            by_table.setdefault(row["table_name"], []).append(self.column_info(row))
        return SchemaCatalog(tables=order_tables(by_table, self.favored_tables))

    def build(self, conn: Any) -> SchemaCatalog:
        """Run the introspection query in a read-only transaction and build the catalog."""
        try:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute("SET TRANSACTION READ ONLY")
                cur.execute(COLUMNS_QUERY)
                rows = cur.fetchall()
        finally:
            conn.rollback()
        catalog = self.build_from_rows(rows)
        _log.info("Built schema catalog: %d tables, %d columns", len(catalog.tables), len(rows))
        return catalog


def fetch_schema_version(conn: Any, table: str) -> str | None:
    """
    Current schema version (max version in ``table``), used as freshness token.

    Returns None when the table does not exist or is empty.
    """
    stmt = sql.SQL("SELECT max(version) AS tag FROM {}").format(sql.Identifier(table))
    try:
        with conn.cursor() as cur:
            cur.execute(stmt)
            row = cur.fetchone()
    except psycopg.Error as e:
        _log.debug("Schema version lookup on %s failed: %s", table, e)
        return None
    finally:
        conn.rollback()
    if not row or row[0] is None:
        return None
    return str(row[0])


class _Snapshot(NamedTuple):
    version: str | None
    catalog: SchemaCatalog


class SchemaCache:
    """
    One catalog snapshot per process.

    Readers take the current snapshot reference without locking; rebuilds are
    serialised and replace the reference wholesale.
    """

    def __init__(self, builder: SchemaCatalogBuilder) -> None:
        self.builder = builder
        self._snapshot: _Snapshot | None = None
        self._build_lock = threading.Lock()

    def _fresh(self, snap: _Snapshot | None, version: str | None) -> bool:
        return snap is not None and (version is None or snap.version == version)

    def get(self, conn: Any, version: str | None = None) -> SchemaCatalog:
        """Cached catalog; rebuilt when missing or built for another ``version``."""
        snap = self._snapshot
        if self._fresh(snap, version):
            return snap.catalog
        with self._build_lock:
            snap = self._snapshot
            if self._fresh(snap, version):
                return snap.catalog
            catalog = self.builder.build(conn)
            self._snapshot = _Snapshot(version, catalog)
            return catalog

    def invalidate(self) -> None:
        self._snapshot = None

    @property
    def version(self) -> str | None:
        snap = self._snapshot
        return snap.version if snap is not None else None
