"""
Schema catalog of the target database.

Exports: SchemaCatalogBuilder, SchemaCache, SchemaCatalog, ColumnInfo,
EnumRegistry, fetch_schema_version.
"""

from data_explorer.engines.schema.catalog import (
    ColumnInfo,
    SchemaCache,
    SchemaCatalog,
    SchemaCatalogBuilder,
    fetch_schema_version,
)
from data_explorer.engines.schema.enums import EnumRegistry, build_registry
from data_explorer.engines.schema.sensitive import SENSITIVE_COLUMNS

__all__ = [
    "ColumnInfo",
    "EnumRegistry",
    "SENSITIVE_COLUMNS",
    "SchemaCache",
    "SchemaCatalog",
    "SchemaCatalogBuilder",
    "build_registry",
    "fetch_schema_version",
]
