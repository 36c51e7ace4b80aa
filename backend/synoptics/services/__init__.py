"""Service layer modules."""

from synoptics.services import (
    annotation_service,
    dependency_service,
    equipment_service,
    hierarchy_service,
    layout_service,
    media_service,
    node_service,
    placement_service,
)

__all__ = [
    "annotation_service",
    "dependency_service",
    "equipment_service",
    "hierarchy_service",
    "layout_service",
    "media_service",
    "node_service",
    "placement_service",
]
