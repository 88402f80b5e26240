"""
Engines: query templating and safe execution (sql), schema catalog (schema).
"""

from data_explorer.engines.schema import SchemaCache, SchemaCatalogBuilder
from data_explorer.engines.sql import format_result, run_query, translate

__all__ = [
    "SchemaCache",
    "SchemaCatalogBuilder",
    "format_result",
    "run_query",
    "translate",
]
