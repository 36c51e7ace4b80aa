"""Pydantic schemas for layouts, layout views and annotations."""

from datetime import datetime
from typing import Any

from synoptics.decimals import parse_decimal
from synoptics.models import Annotation, Layout
from synoptics.schemas.common import CamelModel, LayoutType
from synoptics.schemas.graph import ConnectionOut, NodeDetail
from synoptics.schemas.placement import NodePositionOut

# --- Layouts ---


class LayoutCreate(CamelModel):
    site_id: str
    floor_id: str | None = None
    name: str
    layout_type: LayoutType
    background_url: str | None = None
    metadata: dict[str, Any] | None = None


class LayoutUpdate(CamelModel):
    name: str | None = None
    background_url: str | None = None
    metadata: dict[str, Any] | None = None


class LayoutOut(CamelModel):
    id: str
    site_id: str
    floor_id: str | None = None
    name: str
    layout_type: LayoutType
    background_url: str | None = None
    metadata: dict[str, Any] | None = None
    created_at: datetime

    @classmethod
    def from_model(cls, layout: Layout) -> "LayoutOut":
        return cls(
            id=layout.id,
            site_id=layout.site_id,
            floor_id=layout.floor_id,
            name=layout.name,
            layout_type=layout.layout_type,
            background_url=layout.background_url,
            metadata=layout.metadata_,
            created_at=layout.created_at,
        )


class PlacedNode(NodeDetail):
    position: NodePositionOut


class LayoutView(LayoutOut):
    """A layout with its placed nodes and the connections drawn between them."""

    nodes: list[PlacedNode] = []
    connections: list[ConnectionOut] = []


# --- Annotations ---


class Point(CamelModel):
    x: float
    y: float


class Size(CamelModel):
    width: float
    height: float


class AnnotationIn(CamelModel):
    """Annotation payload; with an id it updates that row, without one it inserts."""

    id: str | None = None
    type: str = "label"
    title: str
    subtitle: str | None = None
    position: Point
    size: Size | None = None
    color: str | None = None
    style: str | None = None
    interactive: bool = False
    metadata: dict[str, Any] | None = None


class AnnotationUpdate(CamelModel):
    type: str | None = None
    title: str | None = None
    subtitle: str | None = None
    position: Point | None = None
    size: Size | None = None
    color: str | None = None
    style: str | None = None
    interactive: bool | None = None
    metadata: dict[str, Any] | None = None


class AnnotationOut(CamelModel):
    id: str
    layout_id: str
    type: str
    title: str
    subtitle: str | None = None
    position: Point
    size: Size | None = None
    color: str | None = None
    style: str | None = None
    interactive: bool = False
    metadata: dict[str, Any] | None = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_model(cls, annotation: Annotation) -> "AnnotationOut":
        size = None
        if annotation.size_width and annotation.size_height:
            size = Size(
                width=parse_decimal(annotation.size_width),
                height=parse_decimal(annotation.size_height),
            )
        return cls(
            id=annotation.id,
            layout_id=annotation.layout_id,
            type=annotation.annotation_type,
            title=annotation.title,
            subtitle=annotation.subtitle,
            position=Point(
                x=parse_decimal(annotation.position_x),
                y=parse_decimal(annotation.position_y),
            ),
            size=size,
            color=annotation.color,
            style=annotation.style,
            interactive=annotation.interactive == 1,
            metadata=annotation.metadata_,
            created_at=annotation.created_at,
            updated_at=annotation.updated_at,
        )


class BulkAnnotationsRequest(CamelModel):
    layout_id: str
    annotations: list[AnnotationIn]


class BulkAnnotationError(CamelModel):
    index: int
    id: str | None = None
    error: str


class BulkAnnotationsResponse(CamelModel):
    count: int
    annotations: list[AnnotationOut]
    errors: list[BulkAnnotationError] = []
