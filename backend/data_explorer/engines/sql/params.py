"""
Colon-style placeholders in SQL templates.

``:name`` (lowercase letters and underscores) is a parameter; ``::name`` is a
PostgreSQL type cast and is left alone. The scan is purely lexical: there is
no SQL parser, so placeholders inside string literals are rewritten too.
Repeated names are not merged; every occurrence gets its own position.
"""

import re
from collections.abc import Callable, Mapping
from typing import Any, NamedTuple

_PLACEHOLDER_RE = re.compile(r"(:?):([a-z_]+)")
_DIGITS_RE = re.compile(r"\A[0-9]+\Z")


class PlaceholderSet(NamedTuple):
    """Rewritten SQL plus placeholder names; ``names[i]`` is position ``i``."""

    sql: str
    names: list[str]


def _rewrite(sql: str, marker: Callable[[int, str], str]) -> PlaceholderSet:
    names: list[str] = []

    def _sub(m: re.Match[str]) -> str:
        if m.group(1) == ":":  # cast
            return m.group(0)
        names.append(m.group(2))
        return marker(len(names) - 1, m.group(2))

    return PlaceholderSet(_PLACEHOLDER_RE.sub(_sub, sql), names)


def translate(sql: str) -> PlaceholderSet:
    """
    Replace ``:name`` placeholders with ``$0``, ``$1``, ... in order.

    >>> translate("SELECT * FROM t WHERE a = :x AND b = :x")
    PlaceholderSet(sql='SELECT * FROM t WHERE a = $0 AND b = $1', names=['x', 'x'])
    """
    return _rewrite(sql, lambda k, _name: f"${k}")


def to_driver_sql(sql: str) -> PlaceholderSet:
    """
    Same scan as :func:`translate`, but emits psycopg positional ``%s``
    markers and doubles every literal ``%`` so the driver binds by position.
    """
    return _rewrite(sql.replace("%", "%%"), lambda _k, _name: "%s")


def param_names(sql: str) -> list[str]:
    """Placeholder names in order of appearance (duplicates kept)."""
    return translate(sql).names


def coerce_params(params: Mapping[str, Any]) -> dict[str, Any]:
    """
    Rudimentary typing for raw request values.

    A string made only of decimal digits becomes an ``int``; every other
    value is returned unchanged.
    """
    out: dict[str, Any] = {}
    for k, v in params.items():
        if isinstance(v, str) and _DIGITS_RE.match(v):
            out[k] = int(v)
        else:
            out[k] = v
    return out
