"""Unit tests for core.config parsing helpers and validation."""

import pytest
from pydantic import ValidationError

from data_explorer.core.config import Settings, parse_table_list


def test_parse_table_list() -> None:
    assert parse_table_list("posts, users ,,topics") == ["posts", "users", "topics"]
    assert parse_table_list('["posts", "users"]') == ["posts", "users"]
    assert parse_table_list(["a"]) == ["a"]


def test_favored_tables_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXPLORER_FAVORED_TABLES", "users,posts")
    s = Settings(POSTGRES_PASSWORD="x")
    assert s.EXPLORER_FAVORED_TABLES == ["users", "posts"]


def test_explorer_conninfo_defaults_to_store_database() -> None:
    s = Settings(
        POSTGRES_SERVER="db", POSTGRES_USER="u", POSTGRES_PASSWORD="p", POSTGRES_DB="forum"
    )
    assert "db" in s.explorer_conninfo
    assert "forum" in s.explorer_conninfo


def test_explorer_conninfo_override() -> None:
    s = Settings(POSTGRES_PASSWORD="p", EXPLORER_DATABASE_URL="postgresql://ro@replica/forum")
    assert s.explorer_conninfo == "postgresql://ro@replica/forum"


def test_default_limit_must_be_positive() -> None:
    with pytest.raises(ValidationError):
        Settings(POSTGRES_PASSWORD="p", EXPLORER_DEFAULT_LIMIT=0)
