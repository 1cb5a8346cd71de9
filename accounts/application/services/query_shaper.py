"""Turn request query parameters into an immutable QuerySpec.

Four independent transforms, each returning a new shaper:

- filter: drop control keys, rewrite gte/gt/lte/lt/ne tokens into store operators,
  reject operators the stores do not support
- sort: comma-separated fields, '-' prefix for descending (default -created_at)
- limit_fields: comma-separated projection (default: everything but __v)
- paginate: page/limit window (no limit means no window)

Example:
    spec = QueryShaper(params).filter().sort().limit_fields().paginate().spec
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from typing import Any

from accounts.application.dtos.query import (
    CREATED_AT_FIELD,
    FILTER_OPERATORS,
    Projection,
    QuerySpec,
    SortKey,
)
from accounts.domain.exceptions import ValidationException

RESERVED_KEYS = frozenset({"page", "limit", "size", "fields", "sort", "include_deleted"})
DEFAULT_SORT = (SortKey(CREATED_AT_FIELD, "desc"),)

_OPERATOR_TOKENS = re.compile(r"(?<!\$)\b(gte|gt|lte|lt|ne)\b")
_BRACKET_KEY = re.compile(r"^([^\[\]]+)((?:\[[^\[\]]*\])+)$")


def parse_query_params(items: Iterable[tuple[str, str]]) -> dict[str, Any]:
    """Build a nested map from raw (key, value) pairs.

    'age[gte]=18' becomes {'age': {'gte': '18'}}; a repeated key becomes a
    list of its values.
    """
    out: dict[str, Any] = {}
    for raw_key, value in items:
        match = _BRACKET_KEY.match(raw_key)
        if match:
            path = [match.group(1), *re.findall(r"\[([^\[\]]*)\]", match.group(2))]
        else:
            path = [raw_key]
        node = out
        for part in path[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                child = {}
                node[part] = child
            node = child
        leaf = path[-1]
        if leaf in node:
            existing = node[leaf]
            node[leaf] = [*existing, value] if isinstance(existing, list) else [existing, value]
        else:
            node[leaf] = value
    return out


def _rewrite_text(text: str) -> str:
    return _OPERATOR_TOKENS.sub(lambda m: f"${m.group(1)}", text)


def _rewrite(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {_rewrite_text(str(k)): _rewrite(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_rewrite(v) for v in value]
    if isinstance(value, str):
        return _rewrite_text(value)
    return value


def rewrite_operators(params: Mapping[str, Any]) -> dict[str, Any]:
    """Prefix every gte/gt/lte/lt/ne token with '$' and return a new map.

    The rewrite is textual over every key and string value, so a field name
    or value that is exactly one of those words is rewritten as well.
    Tokens already carrying a '$' are left alone.
    """
    return _rewrite(params)


def check_operators(filter_: Mapping[str, Any]) -> dict[str, Any]:
    """Reject operators the stores cannot evaluate; return filter_ with $in lists.

    Raises:
        ValidationException: a field name starts with '$', or a condition
            uses an operator outside FILTER_OPERATORS.
    """
    out: dict[str, Any] = {}
    for field, condition in filter_.items():
        if field.startswith("$"):
            raise ValidationException(f"Invalid filter field: {field}", field=field)
        if isinstance(condition, Mapping) and any(
            str(op).startswith("$") for op in condition
        ):
            unsupported = sorted(op for op in condition if op not in FILTER_OPERATORS)
            if unsupported:
                raise ValidationException(
                    f"Unsupported filter operator {', '.join(unsupported)} on {field}",
                    field=field,
                )
            condition = {
                op: value if op != "$in" or isinstance(value, list) else [value]
                for op, value in condition.items()
            }
        out[field] = condition
    return out


def _single(value: Any) -> Any:
    return value[-1] if isinstance(value, list) and value else value


def _csv(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, list):
        value = ",".join(str(v) for v in value)
    return [part.strip() for part in str(value).split(",") if part.strip()]


def _page_number(raw: Any) -> int:
    try:
        page = int(str(raw))
    except (TypeError, ValueError):
        return 1
    return page if page >= 1 else 1


def _page_size(raw: Any) -> int | None:
    if raw is None or raw == "":
        return None
    try:
        size = int(str(raw))
    except ValueError:
        raise ValidationException(
            "Invalid limit, please provide a number", field="limit"
        ) from None
    if size < 0:
        raise ValidationException("Invalid limit, please provide a positive number", field="limit")
    return size or None


class QueryShaper:
    """Immutable builder over request parameters; every transform returns a new shaper."""

    def __init__(self, params: Mapping[str, Any], spec: QuerySpec | None = None) -> None:
        self._params = params
        self._spec = spec or QuerySpec(sort=DEFAULT_SORT)

    @property
    def spec(self) -> QuerySpec:
        return self._spec

    def _with(self, spec: QuerySpec) -> "QueryShaper":
        return QueryShaper(self._params, spec)

    def filter(
        self,
        base_filter: Mapping[str, Any] | None = None,
        exclude_keys: frozenset[str] = RESERVED_KEYS,
    ) -> "QueryShaper":
        """Derive the filter from non-control parameters; base_filter wins on conflicts."""
        remaining = {k: v for k, v in self._params.items() if k not in exclude_keys}
        filter_ = check_operators(rewrite_operators(remaining))
        filter_.update(base_filter or {})
        return self._with(self._spec.with_filter(filter_))

    def sort(self) -> "QueryShaper":
        fields = _csv(self._params.get("sort"))
        keys = tuple(SortKey.parse(f) for f in fields) or DEFAULT_SORT
        return self._with(self._spec.with_sort(keys))

    def limit_fields(self) -> "QueryShaper":
        fields = _csv(self._params.get("fields"))
        if not fields:
            return self._with(self._spec.with_projection(Projection.default()))
        exclude = tuple(f[1:] for f in fields if f.startswith("-"))
        include = tuple(f for f in fields if not f.startswith("-"))
        try:
            projection = Projection(include=include, exclude=exclude)
        except ValueError as e:
            raise ValidationException(str(e), field="fields") from e
        return self._with(self._spec.with_projection(projection))

    def paginate(self) -> "QueryShaper":
        raw_size = _single(self._params.get("limit", self._params.get("size")))
        size = _page_size(raw_size)
        if size is None:
            return self._with(self._spec.with_window(0, None))
        page = _page_number(_single(self._params.get("page")))
        return self._with(self._spec.with_window((page - 1) * size, size))


def shape_query(
    params: Mapping[str, Any],
    base_filter: Mapping[str, Any] | None = None,
) -> QuerySpec:
    """Apply all four transforms."""
    return QueryShaper(params).filter(base_filter).sort().limit_fields().paginate().spec
