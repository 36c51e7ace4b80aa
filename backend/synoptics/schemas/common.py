"""Shared schema building blocks."""

from typing import Literal, get_args

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

GasType = Literal[
    "oxygen",
    "medical_air",
    "nitrous_oxide",
    "carbon_dioxide",
    "nitrogen",
    "vacuum",
    "compressed_air",
]
NodeType = Literal["source", "valve", "fitting"]
LayoutType = Literal["site", "floor", "zone"]
ValveState = Literal["open", "closed"]

GAS_TYPES: tuple[str, ...] = get_args(GasType)
NODE_TYPES: tuple[str, ...] = get_args(NodeType)
LAYOUT_TYPES: tuple[str, ...] = get_args(LayoutType)


class CamelModel(BaseModel):
    """Base model serialized with camelCase keys for the diagram frontend.

    Accepts both snake_case and camelCase on input.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        alias_generator=to_camel,
        from_attributes=True,
    )


class DeletionSummary(CamelModel):
    """Row counts removed (or detached) by a delete, keyed by entity."""

    deleted: dict[str, int]


class CountResponse(CamelModel):
    """Number of rows affected by a bulk operation."""

    count: int
