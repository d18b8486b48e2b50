"""Shared schema base: camelCase on the wire, snake_case in Python."""
from typing import Any, Dict, Iterable, List, Optional, Type

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class APIModel(BaseModel):
    """Base for request and response bodies.

    Accepts both ``discountPrice`` and ``discount_price`` on input and
    serialises with camelCase aliases.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


def serialize(schema: Type[BaseModel], obj: Any) -> Dict[str, Any]:
    return schema.model_validate(obj).model_dump(mode="json", by_alias=True)


def serialize_many(schema: Type[BaseModel], objs: Iterable[Any], builder: Optional[Any] = None) -> List[Dict[str, Any]]:
    """Serialise rows, trimming each to the builder's projection when given."""
    rows = [serialize(schema, obj) for obj in objs]
    if builder is not None:
        rows = [builder.apply_projection(row) for row in rows]
    return rows
