"""Pydantic schemas for nodes, location anchors and connections."""

from datetime import datetime
from typing import Any

from synoptics.decimals import parse_decimal
from synoptics.models import Connection, Node
from synoptics.schemas.common import CamelModel, GasType, NodeType

ANCHOR_LEVELS = ("building_id", "floor_id", "zone_id")


class LocationAnchor(CamelModel):
    """Where a node sits in the site hierarchy; every level may be absent.

    A resolved anchor is a strict chain: a zone implies its floor, a floor
    implies its building.
    """

    building_id: str | None = None
    floor_id: str | None = None
    zone_id: str | None = None

    @property
    def level(self) -> str:
        if self.zone_id:
            return "zone"
        if self.floor_id:
            return "floor"
        if self.building_id:
            return "building"
        return "site"

    @classmethod
    def of(cls, node: Node) -> "LocationAnchor":
        return cls(building_id=node.building_id, floor_id=node.floor_id, zone_id=node.zone_id)


# --- Nodes ---


class NodeCreate(CamelModel):
    site_id: str
    node_type: NodeType
    element_id: str
    building_id: str | None = None
    floor_id: str | None = None
    zone_id: str | None = None
    z_position: float | None = None
    outlet_count: int | None = None
    latitude: float | None = None
    longitude: float | None = None

    def anchor(self) -> LocationAnchor:
        return LocationAnchor(
            building_id=self.building_id, floor_id=self.floor_id, zone_id=self.zone_id
        )


class NodeUpdate(CamelModel):
    """Partial node update. Only fields present in the payload are applied."""

    building_id: str | None = None
    floor_id: str | None = None
    zone_id: str | None = None
    z_position: float | None = None
    outlet_count: int | None = None
    latitude: float | None = None
    longitude: float | None = None


class NodeOut(CamelModel):
    id: str
    site_id: str
    node_type: NodeType
    element_id: str
    building_id: str | None = None
    floor_id: str | None = None
    zone_id: str | None = None
    z_position: float | None = None
    outlet_count: int | None = None
    latitude: float | None = None
    longitude: float | None = None
    created_at: datetime

    @classmethod
    def from_model(cls, node: Node) -> "NodeOut":
        return cls(
            id=node.id,
            site_id=node.site_id,
            node_type=node.node_type,
            element_id=node.element_id,
            building_id=node.building_id,
            floor_id=node.floor_id,
            zone_id=node.zone_id,
            z_position=parse_decimal(node.z_position),
            outlet_count=node.outlet_count,
            latitude=parse_decimal(node.latitude),
            longitude=parse_decimal(node.longitude),
            created_at=node.created_at,
        )


class NodeDetail(NodeOut):
    """Node merged with the display fields of the element it wraps."""

    name: str | None = None
    gas_type: GasType | None = None
    element: dict[str, Any] = {}


# --- Connections ---


class ConnectionCreate(CamelModel):
    site_id: str
    from_node_id: str
    to_node_id: str
    gas_type: GasType
    diameter_mm: float | None = None


class ConnectionUpdate(CamelModel):
    gas_type: GasType | None = None
    diameter_mm: float | None = None


class ConnectionOut(CamelModel):
    id: str
    site_id: str
    from_node_id: str
    to_node_id: str
    gas_type: GasType
    diameter_mm: float | None = None
    created_at: datetime

    @classmethod
    def from_model(cls, connection: Connection) -> "ConnectionOut":
        return cls(
            id=connection.id,
            site_id=connection.site_id,
            from_node_id=connection.from_node_id,
            to_node_id=connection.to_node_id,
            gas_type=connection.gas_type,
            diameter_mm=parse_decimal(connection.diameter_mm),
            created_at=connection.created_at,
        )
