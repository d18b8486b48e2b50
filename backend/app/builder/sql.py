"""Relational translation of query builder stages.

Each list endpoint declares a field map from API field names (camelCase, as
clients send them) to model columns. Names missing from the map are ignored,
which keeps filtering and sorting restricted to the declared whitelist.
Collection-valued fields (tags, categories, ...) are declared with
``Collection`` and translated to ``EXISTS`` sub-queries via ``.any()``.
"""
from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from sqlalchemy import and_, or_, select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import ColumnElement, Select

from app.builder.query_builder import (
    AllOf,
    AnyOf,
    Between,
    BuiltQuery,
    Condition,
    Contains,
    ContainsAll,
    ContainsAny,
    DESCENDING,
    Equals,
    Limit,
    Match,
    PageMeta,
    QueryBuilder,
    Skip,
    Sort,
    Stage,
)

LIKE_ESCAPE = "\\"


@dataclass(frozen=True)
class Collection:
    """API field stored as rows of a related table."""

    relationship: Any
    column: Any


FieldMap = Mapping[str, Union[Any, Collection]]


def escape_like(text: str) -> str:
    return (
        text.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )


def _on(target: Any, build) -> ColumnElement:
    """Apply ``build(column)`` to a scalar column or inside ``relationship.any()``."""
    if isinstance(target, Collection):
        return target.relationship.any(build(target.column))
    return build(target)


def _between(column: Any, minimum: Optional[float], maximum: Optional[float]) -> ColumnElement:
    parts = []
    if minimum is not None:
        parts.append(column >= minimum)
    if maximum is not None:
        parts.append(column <= maximum)
    return and_(*parts)


def to_clause(condition: Condition, fields: FieldMap) -> Optional[ColumnElement]:
    """Translate one condition tree into a WHERE clause, or None when nothing applies."""
    if isinstance(condition, (AllOf, AnyOf)):
        clauses = [c for c in (to_clause(child, fields) for child in condition.conditions) if c is not None]
        if not clauses:
            return None
        return and_(*clauses) if isinstance(condition, AllOf) else or_(*clauses)

    target = fields.get(condition.field)
    if target is None:
        return None

    if isinstance(condition, Equals):
        return _on(target, lambda column: column == condition.value)
    if isinstance(condition, Contains):
        pattern = f"%{escape_like(condition.text)}%"
        return _on(target, lambda column: column.ilike(pattern, escape=LIKE_ESCAPE))
    if isinstance(condition, ContainsAll):
        return and_(*[_on(target, lambda column, v=value: column == v) for value in condition.values])
    if isinstance(condition, ContainsAny):
        return _on(target, lambda column: column.in_(condition.values))
    if isinstance(condition, Between):
        return _on(target, lambda column: _between(column, condition.minimum, condition.maximum))
    return None


def apply_stages(
    statement: Select,
    stages: Iterable[Stage],
    fields: FieldMap,
    tiebreaker: Any = None,
) -> Select:
    """Apply Match/Sort/Skip/Limit stages to ``statement``.

    ``Project`` is applied when rows are serialised and ``Count`` by
    ``count_statement``, so both are skipped here.
    """
    for stage in stages:
        if isinstance(stage, Match):
            clause = to_clause(stage.condition, fields)
            if clause is not None:
                statement = statement.where(clause)
        elif isinstance(stage, Sort):
            for name, direction in stage.fields:
                column = fields.get(name)
                if column is None or isinstance(column, Collection):
                    continue
                statement = statement.order_by(column.desc() if direction == DESCENDING else column.asc())
            if tiebreaker is not None:
                statement = statement.order_by(tiebreaker)
        elif isinstance(stage, Skip):
            statement = statement.offset(stage.count)
        elif isinstance(stage, Limit):
            statement = statement.limit(stage.count)
    return statement


def count_statement(entity: Any, stages: Iterable[Stage], fields: FieldMap) -> Select:
    statement = select(func.count()).select_from(entity)
    for stage in stages:
        if isinstance(stage, Match):
            clause = to_clause(stage.condition, fields)
            if clause is not None:
                statement = statement.where(clause)
    return statement


async def fetch_page(
    db: AsyncSession,
    entity: Any,
    built: BuiltQuery,
    fields: FieldMap,
    scope: Sequence[ColumnElement] = (),
    options: Sequence[Any] = (),
) -> Tuple[List[Any], int]:
    """Run the result and count statements for ``built``.

    ``scope`` holds fixed clauses (e.g. "owned by the caller") applied to both
    statements, so the total always describes the same rows as the page.
    ``options`` are loader options for the result rows only.
    """
    rows_stmt = apply_stages(select(entity), built.result_stages, fields, tiebreaker=entity.uuid)
    if options:
        rows_stmt = rows_stmt.options(*options)
    count_stmt = count_statement(entity, built.count_stages, fields)
    for clause in scope:
        rows_stmt = rows_stmt.where(clause)
        count_stmt = count_stmt.where(clause)

    rows = (await db.execute(rows_stmt)).scalars().all()
    total = (await db.execute(count_stmt)).scalar_one()
    return list(rows), int(total)


@dataclass(frozen=True)
class Page:
    """One page of a list endpoint with its meta and the builder that produced it."""

    items: List[Any]
    meta: PageMeta
    builder: QueryBuilder


async def fetch_builder_page(
    db: AsyncSession,
    entity: Any,
    builder: QueryBuilder,
    fields: FieldMap,
    scope: Sequence[ColumnElement] = (),
    options: Sequence[Any] = (),
) -> Page:
    rows, total = await fetch_page(db, entity, builder.build(), fields, scope, options)
    return Page(items=rows, meta=builder.build_meta(total), builder=builder)
