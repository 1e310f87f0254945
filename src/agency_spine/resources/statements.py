"""Compile free-form ``@name`` statements into dialect placeholders.

Callers of ``ResourceAccess.execute`` write one portable marker syntax::

    SELECT * FROM Properties WHERE status = @status AND price < @param1

Markers are rewritten to the active dialect's named placeholder (``:status``
for sqlite, ``%(status)s`` for psycopg). Text inside quoted literals,
quoted identifiers and comments is copied through untouched, so
``'agent@example.com'`` is never mistaken for a marker. ``@@name`` (server
variables) is left alone as well.

Positional parameters bind as ``param0``, ``param1``, ...; a mapping binds
by key. A marker with no bound value is rejected before anything runs.
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from typing import Any

from agency_spine.core.dialect import Dialect
from agency_spine.core.errors import ValidationError

from .types import StatementParams

_MARKER = re.compile(r"@([A-Za-z_][A-Za-z0-9_]*)")


def bind_params(params: StatementParams) -> dict[str, Any]:
    """Normalize positional or named parameters into a name -> value dict."""
    if params is None:
        return {}
    if isinstance(params, Mapping):
        bound: dict[str, Any] = {}
        for key, value in params.items():
            if not isinstance(key, str) or not _MARKER.fullmatch("@" + key):
                raise ValidationError(
                    f"Invalid parameter name: {key!r}",
                    field="params",
                    value=key,
                )
            bound[key] = value
        return bound
    if isinstance(params, Sequence) and not isinstance(params, (str, bytes)):
        return {f"param{index}": value for index, value in enumerate(params)}
    raise ValidationError(
        "Statement parameters must be a list or an object",
        field="params",
        value=params,
    )


def _split(statement: str) -> list[tuple[bool, str]]:
    """Split into (is_code, text) chunks; literals and comments are not code."""
    chunks: list[tuple[bool, str]] = []
    i, start, n = 0, 0, len(statement)

    def flush(end: int, is_code: bool) -> None:
        if end > start:
            chunks.append((is_code, statement[start:end]))

    while i < n:
        ch = statement[i]
        if ch in ("'", '"'):
            flush(i, True)
            start = i
            i += 1
            while i < n:
                if statement[i] == ch:
                    if i + 1 < n and statement[i + 1] == ch:  # doubled quote
                        i += 2
                        continue
                    i += 1
                    break
                i += 1
            flush(i, False)
            start = i
        elif statement.startswith("--", i):
            flush(i, True)
            start = i
            end = statement.find("\n", i)
            i = n if end == -1 else end + 1
            flush(i, False)
            start = i
        elif statement.startswith("/*", i):
            flush(i, True)
            start = i
            end = statement.find("*/", i + 2)
            i = n if end == -1 else end + 2
            flush(i, False)
            start = i
        else:
            i += 1
    flush(n, True)
    return chunks


def compile_statement(
    statement: str,
    params: StatementParams,
    dialect: Dialect,
) -> tuple[str, dict[str, Any]]:
    """Rewrite ``@name`` markers for ``dialect`` and return (sql, bound params)."""
    bound = bind_params(params)
    missing: list[str] = []

    def replace(match: re.Match[str]) -> str:
        text = match.string
        if match.start() > 0 and text[match.start() - 1] == "@":
            return match.group(0)
        name = match.group(1)
        if name not in bound:
            missing.append(name)
            return match.group(0)
        return dialect.named_placeholder(name)

    parts: list[str] = []
    for is_code, chunk in _split(statement):
        if is_code:
            escaped = dialect.escape_statement_text(chunk)
            parts.append(_MARKER.sub(replace, escaped))
        else:
            parts.append(dialect.escape_statement_text(chunk))

    if missing:
        raise ValidationError(
            f"No value bound for parameter @{missing[0]}",
            field="params",
            value=sorted(set(missing)),
        )
    return "".join(parts), bound


__all__ = [
    "bind_params",
    "compile_statement",
]
