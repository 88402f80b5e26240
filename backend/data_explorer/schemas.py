"""
Pydantic schemas for the data explorer API.

Query templates (CRUD), run requests and the run response.
"""

import json
from typing import Any

from pydantic import Field, field_validator
from sqlmodel import SQLModel

from data_explorer.models import QueryTemplate

# ---------------------------------------------------------------------------
# Query templates
# ---------------------------------------------------------------------------


class QueryTemplateIn(SQLModel):
    """Template fields as sent by clients; everything optional (imports may be partial)."""

    id: int | None = None
    name: str | None = Field(default=None, max_length=255)
    description: str | None = None
    sql: str | None = None
    options: dict[str, Any] | str | None = None


class QueryTemplateBody(SQLModel):
    """Body for POST /queries and PUT /queries/{id}."""

    query: QueryTemplateIn


class QueryTemplatePublic(SQLModel):
    id: int | None
    name: str
    description: str
    sql: str
    options: dict[str, Any]
    param_names: list[str]

    @classmethod
    def from_template(cls, q: QueryTemplate) -> "QueryTemplatePublic":
        return cls(
            id=q.id,
            name=q.name,
            description=q.description,
            sql=q.sql,
            options=q.options.model_dump(),
            param_names=q.param_names,
        )


class QueryTemplateOut(SQLModel):
    query: QueryTemplatePublic


class QueryTemplateListOut(SQLModel):
    queries: list[QueryTemplatePublic]


class ParseParamsIn(SQLModel):
    sql: str


class ParseParamsOut(SQLModel):
    names: list[str]


class SuccessOut(SQLModel):
    success: bool = True
    errors: list[str] = []


# ---------------------------------------------------------------------------
# Run
# ---------------------------------------------------------------------------


class RunIn(SQLModel):
    """Body for POST /queries/{id}/run."""

    params: dict[str, Any] | None = Field(
        default=None,
        description="Placeholder values keyed by name; a JSON-encoded object is accepted too.",
    )
    explain: bool = False
    limit: int | None = Field(default=None, ge=1)
    download: bool = False

    @field_validator("params", mode="before")
    @classmethod
    def _decode_params(cls, v: Any) -> Any:
        if isinstance(v, str):
            if not v.strip():
                return None
            try:
                v = json.loads(v)
            except json.JSONDecodeError as e:
                raise ValueError(f"params is not valid JSON: {e}") from e
            if not isinstance(v, dict):
                raise ValueError("params must be a JSON object")
        return v


class AdHocRunIn(RunIn):
    """Body for POST /run: ad-hoc SQL without a stored template."""

    sql: str = Field(..., min_length=1)


class ExecutionResponse(SQLModel):
    success: bool
    errors: list[str] = []
    duration: float = 0.0  # milliseconds, 1 decimal place
    params: dict[str, Any] = {}
    columns: list[str] = []
    rows: list[list[str | None]] = []
    explain: str | None = None
