"""Whitelist-driven list query builder.

A ``QueryBuilder`` is created per request from the raw query-string mapping.
Each route chains only the filters it supports; every filter parses its own
parameter and is silently skipped when the value is missing or unusable, so
list endpoints never fail because of a stray or malformed parameter.

``build()`` returns two stage lists sharing the same ``Match`` stage: one for
the page of results and one for the total count. Stages and conditions are
plain frozen dataclasses; ``app.builder.sql`` turns them into SQLAlchemy
statements.

Example::

    builder = (
        QueryBuilder(request.query_params)
        .search(["title", "slug"])
        .filter_exact("status", "status")
        .range("price", "minPrice", "maxPrice")
        .sort()
        .paginate()
    )
    built = builder.build()
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union
from uuid import UUID

from app.config import settings
from app.errors import BadRequestError

IDENTIFIER_FIELD = "uuid"
DEFAULT_SORT = "-createdAt"
SEARCH_KEYS = ("search", "searchTerm", "q")
# OFFSET + LIMIT must fit a signed 64-bit database integer
MAX_OFFSET = 2 ** 63 - 1

ASCENDING = 1
DESCENDING = -1

_TRUE = {"true", "1", "yes"}
_FALSE = {"false", "0", "no"}


# ── Conditions ────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Equals:
    field: str
    value: Any


@dataclass(frozen=True)
class Contains:
    """Case-insensitive substring match of literal ``text``."""
    field: str
    text: str


@dataclass(frozen=True)
class ContainsAll:
    """Collection field holds every value."""
    field: str
    values: Tuple[Any, ...]


@dataclass(frozen=True)
class ContainsAny:
    """Field (scalar or collection) matches at least one value."""
    field: str
    values: Tuple[Any, ...]


@dataclass(frozen=True)
class Between:
    field: str
    minimum: Optional[float] = None
    maximum: Optional[float] = None


@dataclass(frozen=True)
class AnyOf:
    conditions: Tuple["Condition", ...]


@dataclass(frozen=True)
class AllOf:
    conditions: Tuple["Condition", ...]


Condition = Union[Equals, Contains, ContainsAll, ContainsAny, Between, AnyOf, AllOf]


# ── Stages ────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Match:
    condition: Condition


@dataclass(frozen=True)
class Sort:
    fields: Tuple[Tuple[str, int], ...]


@dataclass(frozen=True)
class Skip:
    count: int


@dataclass(frozen=True)
class Limit:
    count: int


@dataclass(frozen=True)
class Project:
    fields: Tuple[str, ...]


@dataclass(frozen=True)
class Count:
    pass


Stage = Union[Match, Sort, Skip, Limit, Project, Count]


@dataclass(frozen=True)
class BuiltQuery:
    result_stages: Tuple[Stage, ...]
    count_stages: Tuple[Stage, ...]

    @property
    def match(self) -> Optional[Match]:
        for stage in self.count_stages:
            if isinstance(stage, Match):
                return stage
        return None


@dataclass(frozen=True)
class Pagination:
    page: int
    limit: int

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit


@dataclass(frozen=True)
class PageMeta:
    page: int
    limit: int
    total: int
    total_pages: int
    has_more: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "page": self.page,
            "limit": self.limit,
            "total": self.total,
            "totalPages": self.total_pages,
            "hasMore": self.has_more,
        }


# ── Value parsing ─────────────────────────────────────────────────────────────

def to_boolean(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE:
            return True
        if lowered in _FALSE:
            return False
    return None


def to_number(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def to_string(value: Any, lower: bool = True) -> Optional[str]:
    if value is None or isinstance(value, (list, tuple)):
        return None
    text = str(value).strip()
    if not text:
        return None
    return text.lower() if lower else text


def to_string_list(value: Any, lower: bool = True) -> List[str]:
    """Accept a list or a comma-separated string; blanks are dropped."""
    if value is None:
        return []
    raw = value if isinstance(value, (list, tuple)) else str(value).split(",")
    items = []
    for item in raw:
        text = to_string(item, lower=lower)
        if text is not None:
            items.append(text)
    return items


def is_identifier(value: str) -> bool:
    try:
        UUID(value)
    except (ValueError, AttributeError, TypeError):
        return False
    return True


def parse_sort(value: Optional[str]) -> Dict[str, int]:
    """``"-createdAt,title"`` -> ``{"createdAt": -1, "title": 1}``. Later duplicates win."""
    fields: Dict[str, int] = {}
    for token in (value or "").split(","):
        token = token.strip()
        direction = ASCENDING
        if token.startswith("-"):
            token, direction = token[1:].strip(), DESCENDING
        if token:
            fields[token] = direction
    return fields


# ── Filters: each returns a condition or None ─────────────────────────────────

def search_condition(params: Mapping[str, Any], fields: Sequence[str]) -> Optional[Condition]:
    term = None
    for key in SEARCH_KEYS:
        term = to_string(params.get(key), lower=False)
        if term:
            break
    if not term or not fields:
        return None
    return AnyOf(tuple(Contains(field, term) for field in fields))


def exact_condition(params: Mapping[str, Any], key: str, field: str, lower: bool = True) -> Optional[Condition]:
    value = to_string(params.get(key), lower=lower)
    return Equals(field, value) if value is not None else None


def boolean_condition(params: Mapping[str, Any], key: str, field: str) -> Optional[Condition]:
    value = to_boolean(params.get(key))
    return Equals(field, value) if value is not None else None


def array_condition(
    params: Mapping[str, Any], key: str, field: str, mode: str = "all", lower: bool = True
) -> Optional[Condition]:
    values = tuple(to_string_list(params.get(key), lower=lower))
    if not values:
        return None
    return ContainsAny(field, values) if mode == "in" else ContainsAll(field, values)


def identifier_condition(params: Mapping[str, Any], key: str, field: str) -> Optional[Condition]:
    value = to_string(params.get(key), lower=False)
    if value is None or not is_identifier(value):
        return None
    return Equals(field, value)


def identifier_array_condition(
    params: Mapping[str, Any], key: str, field: str, mode: str = "in"
) -> Optional[Condition]:
    values = tuple(v for v in to_string_list(params.get(key), lower=False) if is_identifier(v))
    if not values:
        return None
    return ContainsAny(field, values) if mode == "in" else ContainsAll(field, values)


def range_condition(params: Mapping[str, Any], field: str, min_key: str, max_key: str) -> Optional[Condition]:
    minimum = to_number(params.get(min_key))
    maximum = to_number(params.get(max_key))
    if minimum is None and maximum is None:
        return None
    if minimum is not None and maximum is not None and minimum > maximum:
        raise BadRequestError(f"{min_key} cannot be greater than {max_key}")
    return Between(field, minimum, maximum)


# ── Builder ───────────────────────────────────────────────────────────────────

class QueryBuilder:
    """Accumulates conditions, sort, projection and pagination for one list request."""

    def __init__(self, params: Optional[Mapping[str, Any]] = None):
        self.params: Dict[str, Any] = _flatten_params(params)
        self.conditions: List[Condition] = []
        self.sort_by: Dict[str, int] = {"createdAt": DESCENDING}
        self.projection: Optional[Tuple[str, ...]] = None
        self.pagination = Pagination(page=1, limit=settings.DEFAULT_PAGE_LIMIT)

    def add_condition(self, condition: Optional[Condition]) -> "QueryBuilder":
        if condition is not None:
            self.conditions.append(condition)
        return self

    def search(self, fields: Sequence[str]) -> "QueryBuilder":
        return self.add_condition(search_condition(self.params, fields))

    def filter_exact(self, key: str, field: str, lower: bool = True) -> "QueryBuilder":
        return self.add_condition(exact_condition(self.params, key, field, lower=lower))

    def filter_boolean(self, key: str, field: str) -> "QueryBuilder":
        return self.add_condition(boolean_condition(self.params, key, field))

    def filter_array(self, key: str, field: str, mode: str = "all") -> "QueryBuilder":
        return self.add_condition(array_condition(self.params, key, field, mode))

    def filter_identifier(self, key: str, field: str) -> "QueryBuilder":
        return self.add_condition(identifier_condition(self.params, key, field))

    def filter_identifier_array(self, key: str, field: str, mode: str = "in") -> "QueryBuilder":
        return self.add_condition(identifier_array_condition(self.params, key, field, mode))

    def range(self, field: str, min_key: str, max_key: str) -> "QueryBuilder":
        return self.add_condition(range_condition(self.params, field, min_key, max_key))

    def sort(self, default: str = DEFAULT_SORT) -> "QueryBuilder":
        requested = to_string(self.params.get("sort"), lower=False) or default
        parsed = parse_sort(requested)
        if parsed:
            self.sort_by = parsed
        return self

    def project(self) -> "QueryBuilder":
        fields = to_string_list(self.params.get("fields"), lower=False)
        names = [name.lstrip("-") for name in fields if name.lstrip("-")]
        if names:
            self.projection = tuple(dict.fromkeys([IDENTIFIER_FIELD, *names]))
        return self

    def paginate(
        self,
        default_limit: Optional[int] = None,
        max_limit: Optional[int] = None,
    ) -> "QueryBuilder":
        default_limit = default_limit or settings.DEFAULT_PAGE_LIMIT
        max_limit = max_limit or settings.MAX_PAGE_LIMIT

        page_number = to_number(self.params.get("page"))
        page = math.floor(page_number) if page_number is not None else 1
        if page < 1:
            page = 1

        limit_number = to_number(self.params.get("limit"))
        limit = math.floor(limit_number) if limit_number is not None else default_limit
        if limit < 1:
            limit = default_limit
        limit = min(limit, max_limit)
        page = min(page, (MAX_OFFSET - limit) // limit + 1)

        self.pagination = Pagination(page=page, limit=limit)
        return self

    @property
    def page(self) -> int:
        return self.pagination.page

    @property
    def limit(self) -> int:
        return self.pagination.limit

    def match_condition(self) -> Optional[Condition]:
        return combine(self.conditions)

    def build(self) -> BuiltQuery:
        condition = self.match_condition()
        match = Match(condition) if condition is not None else None

        result: List[Stage] = []
        if match:
            result.append(match)
        if self.sort_by:
            result.append(Sort(tuple(self.sort_by.items())))
        result.append(Skip(self.pagination.skip))
        result.append(Limit(self.pagination.limit))
        if self.projection:
            result.append(Project(self.projection))

        count: List[Stage] = [match] if match else []
        count.append(Count())
        return BuiltQuery(result_stages=tuple(result), count_stages=tuple(count))

    def build_meta(self, total: int) -> PageMeta:
        total = max(0, int(total))
        total_pages = math.ceil(total / self.limit) if total > 0 else 0
        return PageMeta(
            page=self.page,
            limit=self.limit,
            total=total,
            total_pages=total_pages,
            has_more=self.page < total_pages,
        )

    def apply_projection(self, row: Dict[str, Any]) -> Dict[str, Any]:
        """Trim a serialised row to the requested fields (unknown names are ignored)."""
        if not self.projection:
            return row
        return {key: value for key, value in row.items() if key in self.projection}


def _flatten_params(params: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Collapse a multi-value mapping (e.g. Starlette ``QueryParams``).

    Repeated keys become lists so ``?tags=a&tags=b`` behaves like ``?tags=a,b``.
    """
    if params is None:
        return {}
    getlist = getattr(params, "getlist", None)
    if getlist is None:
        return dict(params)
    flat: Dict[str, Any] = {}
    for key in params.keys():
        values = getlist(key)
        flat[key] = values[0] if len(values) == 1 else list(values)
    return flat


def combine(conditions: Iterable[Optional[Condition]]) -> Optional[Condition]:
    """AND together the present conditions, bare when only one remains."""
    present = tuple(c for c in conditions if c is not None)
    if not present:
        return None
    return present[0] if len(present) == 1 else AllOf(present)
