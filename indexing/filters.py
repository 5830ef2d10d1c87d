"""Filter compilation into the document store's ``filter_by`` syntax."""

from __future__ import annotations

import re
from datetime import date, datetime
from typing import Any, List, Mapping, Optional, Sequence

from .errors import InvalidParams

_SAFE_BARE = re.compile(r"[A-Za-z_][A-Za-z0-9_-]*")
_PLACEHOLDER = re.compile(r"(?<!\\)\?")
_RESERVED = {"true", "false", "null"}


def escape_string(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"')


def _is_list_like(value: Any) -> bool:
    return isinstance(value, (list, tuple, set, frozenset))


def quote(value: Any) -> str:
    """Quote a Python value as a filter literal; strings are always double-quoted."""
    if value is None:
        return "null"
    if value is True:
        return "true"
    if value is False:
        return "false"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, (datetime, date)):
        return f'"{value.isoformat()}"'
    if _is_list_like(value):
        elements: List[Any] = []
        for element in value:
            if _is_list_like(element):
                elements.extend(element)
            else:
                elements.append(element)
        return "[" + ", ".join(quote(element) for element in elements) + "]"
    return f'"{escape_string(str(value))}"'


def quote_scalar(value: Any) -> str:
    """Quote a scalar, emitting identifier-like strings bare.

    ``Active``, ``ACTIVE_1`` and ``foo-bar`` stay unquoted; strings spelling
    true/false/null or containing other characters are quoted.
    """
    if _is_list_like(value):
        return quote(value)
    if isinstance(value, str):
        if value.strip().lower() in _RESERVED or not _SAFE_BARE.fullmatch(value):
            return f'"{escape_string(value)}"'
        return value
    return quote(value)


def build_from_hash(where: Mapping[str, Any]) -> List[str]:
    """Build ``field:=value`` fragments from a mapping."""
    if not isinstance(where, Mapping):
        raise InvalidParams(f"filter hash must be a mapping; got {type(where).__name__}")
    fragments = []
    for field, raw in where.items():
        literal = quote(raw) if _is_list_like(raw) else quote_scalar(raw)
        fragments.append(f"{field}:={literal}")
    return fragments


def count_placeholders(template: str) -> int:
    return len(_PLACEHOLDER.findall(template))


def apply_placeholders(template: str, args: Sequence[Any]) -> str:
    """Replace each unescaped ``?`` in ``template`` with the next quoted argument."""
    if not isinstance(template, str):
        raise InvalidParams(f"template must be a string; got {type(template).__name__}")
    needed = count_placeholders(template)
    if needed != len(args):
        raise InvalidParams(f"expected {needed} args for {needed} placeholders, got {len(args)}")
    values = iter(args)
    return _PLACEHOLDER.sub(lambda _match: quote_scalar(next(values)), template)


def build_filter(
    filter_by: Optional[str],
    where: Optional[Mapping[str, Any]],
    args: Optional[Sequence[Any]] = None,
) -> str:
    """Return the raw filter when given, else compile ``where``.

    When ``args`` is given, each ``?`` in ``filter_by`` is replaced with the
    next quoted argument. Raises InvalidParams when both filters are missing
    or empty so a bulk call can never target the whole collection by accident.
    """
    if filter_by is not None and str(filter_by).strip():
        if args is not None:
            return apply_placeholders(str(filter_by), list(args))
        return str(filter_by)
    if args:
        raise InvalidParams("filter args require a filter string with ? placeholders")
    if isinstance(where, Mapping) and where:
        return " && ".join(build_from_hash(where))
    raise InvalidParams("a filter string or a non-empty filter hash is required")
