"""
Query templates and the key-value store table they persist in.

QueryTemplate is a value object: the execution engine treats it as an
immutable snapshot for the duration of one run. ExplorerStoreRow is the only
table; records are keyed ``q:<id>`` and the id counter lives at ``q:_id``.
"""

import json
import re
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field as PydanticField
from sqlalchemy import Column, Text, UniqueConstraint
from sqlmodel import Field, SQLModel

PLUGIN_NAME = "data-explorer"
DEFAULT_NAME = "Unnamed Query"
DEFAULT_DESCRIPTION = "Enter a description here"
DEFAULT_SQL = "SELECT 1"


def slugify(value: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", value.strip().lower())
    return slug.strip("-")


# ---------------------------------------------------------------------------
# Options
# ---------------------------------------------------------------------------


class QueryOptions(BaseModel):
    """Per-template options. ``defaults`` maps placeholder name to default value."""

    model_config = ConfigDict(extra="allow")

    defaults: dict[str, Any] = PydanticField(default_factory=dict)

    @classmethod
    def parse(cls, raw: Any) -> "QueryOptions":
        """
        Build options from a serialized form: a JSON string, a mapping, or an
        existing QueryOptions. Anything else raises ValueError.
        """
        if isinstance(raw, QueryOptions):
            return raw.model_copy(deep=True)
        if isinstance(raw, str):
            try:
                data = json.loads(raw)
            except json.JSONDecodeError as e:
                raise ValueError(f"Invalid options JSON: {e}") from e
            if not isinstance(data, dict):
                raise ValueError("Options JSON must be an object")
            return cls.model_validate(data)
        if isinstance(raw, Mapping):
            return cls.model_validate(dict(raw))
        raise ValueError(f"Invalid type for options: {type(raw).__name__}")


# ---------------------------------------------------------------------------
# QueryTemplate
# ---------------------------------------------------------------------------


class QueryTemplate(SQLModel):
    """A stored SQL query with colon-style placeholders."""

    id: int | None = None
    name: str = DEFAULT_NAME
    description: str = DEFAULT_DESCRIPTION
    sql: str = DEFAULT_SQL
    options: QueryOptions = Field(default_factory=QueryOptions)

    @property
    def param_names(self) -> list[str]:
        from data_explorer.engines.sql.params import param_names

        return param_names(self.sql)

    @property
    def defaults(self) -> dict[str, Any]:
        return dict(self.options.defaults)

    @property
    def slug(self) -> str:
        return slugify(self.name) or f"query-{self.id}"

    @property
    def persisted(self) -> bool:
        return self.id is not None and self.id > 0

    def apply_update(self, data: Mapping[str, Any]) -> "QueryTemplate":
        """
        Set name, description, sql and options from ``data``. Keys that are
        absent or None are left alone; empty values clear the field.
        """
        for key in ("name", "description", "sql"):
            value = data.get(key)
            if value is not None:
                setattr(self, key, str(value))
        if data.get("options") is not None:
            self.options = QueryOptions.parse(data["options"])
        return self

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "QueryTemplate":
        query = cls().apply_update(data)
        if data.get("id"):
            query.id = int(data["id"])
        return query

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "sql": self.sql,
            "options": self.options.model_dump(),
        }


# ---------------------------------------------------------------------------
# Key-value store row
# ---------------------------------------------------------------------------


class ExplorerStoreRow(SQLModel, table=True):
    __tablename__ = "explorer_store_row"
    __table_args__ = (UniqueConstraint("plugin_name", "key"),)

    id: int | None = Field(default=None, primary_key=True)
    plugin_name: str = Field(max_length=255, index=True)
    key: str = Field(max_length=255)
    type_name: str = Field(max_length=32)  # "JSON" or "Integer"
    value: str = Field(sa_column=Column(Text, nullable=False))
