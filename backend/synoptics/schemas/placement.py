"""Pydantic schemas for node placement on layouts."""

from typing import Literal

from pydantic import Field

from synoptics.decimals import parse_decimal
from synoptics.models import NodePosition
from synoptics.schemas.common import CamelModel


class PositionUpsert(CamelModel):
    node_id: str
    layout_id: str
    x_position: float
    y_position: float
    rotation: int | None = Field(default=None, ge=0, le=360)


class NodePositionOut(CamelModel):
    node_id: str
    layout_id: str
    x_position: float
    y_position: float
    rotation: int = 0

    @classmethod
    def from_model(cls, position: NodePosition) -> "NodePositionOut":
        return cls(
            node_id=position.node_id,
            layout_id=position.layout_id,
            x_position=parse_decimal(position.x_position),
            y_position=parse_decimal(position.y_position),
            rotation=position.rotation,
        )


class ImportNodesRequest(CamelModel):
    node_ids: list[str]


class ImportItemResult(CamelModel):
    """Outcome of placing one node during a bulk import."""

    node_id: str
    status: Literal["imported", "skipped"]
    reason: str | None = None
    position: NodePositionOut | None = None


class ImportNodesResponse(CamelModel):
    imported: int
    failed: int
    results: list[ImportItemResult]
