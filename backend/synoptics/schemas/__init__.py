"""Pydantic schemas for API request/response models."""

from synoptics.schemas.common import (
    GAS_TYPES,
    LAYOUT_TYPES,
    NODE_TYPES,
    CamelModel,
    CountResponse,
    DeletionSummary,
    GasType,
    LayoutType,
    NodeType,
    ValveState,
)
from synoptics.schemas.equipment import (
    FittingCreate,
    FittingOut,
    FittingUpdate,
    SourceCreate,
    SourceOut,
    SourceUpdate,
    ValveCreate,
    ValveOut,
    ValveUpdate,
)
from synoptics.schemas.graph import (
    ConnectionCreate,
    ConnectionOut,
    ConnectionUpdate,
    LocationAnchor,
    NodeCreate,
    NodeDetail,
    NodeOut,
    NodeUpdate,
)
from synoptics.schemas.hierarchy import (
    BuildingCreate,
    BuildingOut,
    BuildingTree,
    BuildingUpdate,
    DefaultSiteResponse,
    FloorCreate,
    FloorOut,
    FloorTree,
    FloorUpdate,
    OrganizationOut,
    SiteCreate,
    SiteDependencies,
    SiteHierarchy,
    SiteOut,
    SiteUpdate,
    SiteZone,
    ZoneCreate,
    ZoneOut,
    ZoneUpdate,
)
from synoptics.schemas.layout import (
    AnnotationIn,
    AnnotationOut,
    AnnotationUpdate,
    BulkAnnotationError,
    BulkAnnotationsRequest,
    BulkAnnotationsResponse,
    LayoutCreate,
    LayoutOut,
    LayoutUpdate,
    LayoutView,
    PlacedNode,
    Point,
    Size,
)
from synoptics.schemas.media import MediaCreate, MediaOut
from synoptics.schemas.placement import (
    ImportItemResult,
    ImportNodesRequest,
    ImportNodesResponse,
    NodePositionOut,
    PositionUpsert,
)

__all__ = [
    # Shared
    "GAS_TYPES",
    "LAYOUT_TYPES",
    "NODE_TYPES",
    "CamelModel",
    "CountResponse",
    "DeletionSummary",
    "GasType",
    "LayoutType",
    "NodeType",
    "ValveState",
    # Hierarchy
    "OrganizationOut",
    "DefaultSiteResponse",
    "SiteCreate",
    "SiteUpdate",
    "SiteOut",
    "SiteHierarchy",
    "SiteDependencies",
    "SiteZone",
    "BuildingCreate",
    "BuildingUpdate",
    "BuildingOut",
    "BuildingTree",
    "FloorCreate",
    "FloorUpdate",
    "FloorOut",
    "FloorTree",
    "ZoneCreate",
    "ZoneUpdate",
    "ZoneOut",
    # Equipment
    "SourceCreate",
    "SourceUpdate",
    "SourceOut",
    "ValveCreate",
    "ValveUpdate",
    "ValveOut",
    "FittingCreate",
    "FittingUpdate",
    "FittingOut",
    # Graph
    "LocationAnchor",
    "NodeCreate",
    "NodeUpdate",
    "NodeOut",
    "NodeDetail",
    "ConnectionCreate",
    "ConnectionUpdate",
    "ConnectionOut",
    # Placement
    "PositionUpsert",
    "NodePositionOut",
    "ImportNodesRequest",
    "ImportItemResult",
    "ImportNodesResponse",
    # Layouts
    "LayoutCreate",
    "LayoutUpdate",
    "LayoutOut",
    "LayoutView",
    "PlacedNode",
    "Point",
    "Size",
    "AnnotationIn",
    "AnnotationUpdate",
    "AnnotationOut",
    "BulkAnnotationsRequest",
    "BulkAnnotationError",
    "BulkAnnotationsResponse",
    # Media
    "MediaCreate",
    "MediaOut",
]
