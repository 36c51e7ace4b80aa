"""Node graph service layer: nodes wrapping equipment, their location anchors, and connections."""

import logging
from collections.abc import Sequence
from typing import Any

from sqlalchemy import delete, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from synoptics.database import atomic
from synoptics.decimals import GEO_PLACES, to_decimal_string
from synoptics.errors import ConflictError, DanglingReferenceError, ValidationError
from synoptics.models import Building, Connection, Floor, Node, Site, Zone
from synoptics.schemas import (
    ConnectionUpdate,
    LocationAnchor,
    NodeCreate,
    NodeDetail,
    NodeOut,
    NodeUpdate,
)
from synoptics.schemas.graph import ANCHOR_LEVELS
from synoptics.services import placement_service
from synoptics.services._lookup import (
    fetch_element,
    fetch_or_raise,
    fetch_reference,
    require_gas_type,
    require_same_site,
)
from synoptics.services._registry import get_equipment_config

logger = logging.getLogger(__name__)


# --- Anchors ---


async def resolve_anchor(
    session: AsyncSession, site_id: str, anchor: LocationAnchor
) -> LocationAnchor:
    """Complete an anchor upward and check that every level agrees.

    A zone fills in its floor, a floor fills in its building. Supplying a
    level that contradicts the one below it is a dangling reference, as is
    a building on another site.
    """
    building_id, floor_id, zone_id = anchor.building_id, anchor.floor_id, anchor.zone_id

    if zone_id:
        zone = await fetch_reference(session, Zone, zone_id)
        if floor_id and floor_id != zone.floor_id:
            raise DanglingReferenceError(
                f"Zone {zone_id} is not on floor {floor_id}",
                {"zone_id": zone_id, "floor_id": floor_id},
            )
        floor_id = zone.floor_id

    if floor_id:
        floor = await fetch_reference(session, Floor, floor_id)
        if building_id and building_id != floor.building_id:
            raise DanglingReferenceError(
                f"Floor {floor_id} is not in building {building_id}",
                {"floor_id": floor_id, "building_id": building_id},
            )
        building_id = floor.building_id

    if building_id:
        building = await fetch_reference(session, Building, building_id)
        require_same_site(site_id, building.site_id, f"Building {building_id}")

    return LocationAnchor(building_id=building_id, floor_id=floor_id, zone_id=zone_id)


def _merge_anchor(current: LocationAnchor, changes: NodeUpdate) -> LocationAnchor:
    """Overlay the anchor levels present in a partial update on the current anchor.

    Levels below the deepest supplied one are cleared. Levels above a
    supplied non-null level are left empty so resolve_anchor re-derives them.
    """
    supplied = [level for level in ANCHOR_LEVELS if level in changes.model_fields_set]
    deepest = max(ANCHOR_LEVELS.index(level) for level in supplied)
    deepest_set = max(
        (ANCHOR_LEVELS.index(level) for level in supplied if getattr(changes, level)),
        default=-1,
    )

    merged: dict[str, str | None] = {}
    for index, level in enumerate(ANCHOR_LEVELS):
        if level in supplied:
            merged[level] = getattr(changes, level)
        elif index > deepest or index < deepest_set:
            merged[level] = None
        else:
            merged[level] = getattr(current, level)
    return LocationAnchor(**merged)


async def node_details(session: AsyncSession, nodes: Sequence[Node]) -> list[NodeDetail]:
    """Merge nodes with their element's display fields, one query per equipment kind."""
    ids_by_type: dict[str, set[str]] = {}
    for node in nodes:
        ids_by_type.setdefault(node.node_type, set()).add(node.element_id)

    elements: dict[tuple[str, str], Any] = {}
    for node_type, element_ids in ids_by_type.items():
        config = get_equipment_config(node_type)
        result = await session.execute(
            select(config.model).where(config.model.id.in_(element_ids))
        )
        for element in result.scalars().all():
            elements[(node_type, element.id)] = element

    details = []
    for node in nodes:
        config = get_equipment_config(node.node_type)
        element = elements.get((node.node_type, node.element_id))
        extra: dict[str, Any] = {}
        if element is not None:
            extra = {column: getattr(element, column) for column in config.detail_columns}
        details.append(
            NodeDetail(
                **NodeOut.from_model(node).model_dump(),
                name=element.name if element is not None else None,
                gas_type=element.gas_type if element is not None else None,
                element=extra,
            )
        )
    return details


# --- Nodes ---


async def get_node(session: AsyncSession, node_id: str) -> Node:
    return await fetch_or_raise(session, Node, node_id)


async def get_node_detail(session: AsyncSession, node_id: str) -> NodeDetail:
    node = await get_node(session, node_id)
    return (await node_details(session, [node]))[0]


async def get_node_for_element(
    session: AsyncSession, node_type: str, element_id: str
) -> Node | None:
    result = await session.execute(
        select(Node).where(Node.node_type == node_type, Node.element_id == element_id)
    )
    return result.scalar_one_or_none()


async def create_node(session: AsyncSession, payload: NodeCreate) -> Node:
    """Wrap an equipment element in a node, optionally anchored in the hierarchy."""
    await fetch_or_raise(session, Site, payload.site_id)
    element = await fetch_element(session, payload.node_type, payload.element_id)
    require_same_site(payload.site_id, element.site_id, f"Element {payload.element_id}")

    if await get_node_for_element(session, payload.node_type, payload.element_id):
        raise ConflictError(
            f"{payload.node_type} {payload.element_id} is already wrapped by a node",
            {"node_type": payload.node_type, "element_id": payload.element_id},
        )
    if payload.outlet_count is not None and payload.outlet_count < 0:
        raise ValidationError("outlet_count cannot be negative", {"field": "outlet_count"})

    anchor = await resolve_anchor(session, payload.site_id, payload.anchor())
    node = Node(
        site_id=payload.site_id,
        node_type=payload.node_type,
        element_id=payload.element_id,
        building_id=anchor.building_id,
        floor_id=anchor.floor_id,
        zone_id=anchor.zone_id,
        z_position=to_decimal_string(
            payload.z_position if payload.z_position is not None else 0, field="z_position"
        ),
        outlet_count=payload.outlet_count if payload.outlet_count is not None else 0,
        latitude=to_decimal_string(payload.latitude, GEO_PLACES, "latitude"),
        longitude=to_decimal_string(payload.longitude, GEO_PLACES, "longitude"),
    )
    session.add(node)
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        raise ConflictError(
            f"{payload.node_type} {payload.element_id} is already wrapped by a node",
            {"node_type": payload.node_type, "element_id": payload.element_id},
        ) from None
    logger.info(f"Created {node.node_type} node {node.id} at {anchor.level} level")
    return node


async def list_nodes_by_site(
    session: AsyncSession,
    site_id: str,
    building_id: str | None = None,
    floor_id: str | None = None,
) -> list[Node]:
    """Nodes of a site, optionally narrowed to a building and/or floor.

    Unanchored nodes always match: a building filter returns nodes in that
    building plus nodes with no building, and likewise for floors.
    """
    await fetch_or_raise(session, Site, site_id)
    query = select(Node).where(Node.site_id == site_id)
    if building_id:
        query = query.where(or_(Node.building_id == building_id, Node.building_id.is_(None)))
    if floor_id:
        query = query.where(or_(Node.floor_id == floor_id, Node.floor_id.is_(None)))
    result = await session.execute(query.order_by(Node.created_at, Node.id))
    return list(result.scalars().all())


async def update_node(session: AsyncSession, node_id: str, changes: NodeUpdate) -> Node:
    """Apply a partial update. Diagram positions are never touched."""
    node = await fetch_or_raise(session, Node, node_id)
    fields = changes.model_fields_set

    if fields & set(ANCHOR_LEVELS):
        merged = _merge_anchor(LocationAnchor.of(node), changes)
        anchor = await resolve_anchor(session, node.site_id, merged)
        node.building_id = anchor.building_id
        node.floor_id = anchor.floor_id
        node.zone_id = anchor.zone_id

    if "z_position" in fields:
        node.z_position = to_decimal_string(changes.z_position, field="z_position")
    if "outlet_count" in fields:
        if changes.outlet_count is not None and changes.outlet_count < 0:
            raise ValidationError("outlet_count cannot be negative", {"field": "outlet_count"})
        node.outlet_count = changes.outlet_count
    if "latitude" in fields:
        node.latitude = to_decimal_string(changes.latitude, GEO_PLACES, "latitude")
    if "longitude" in fields:
        node.longitude = to_decimal_string(changes.longitude, GEO_PLACES, "longitude")

    await session.commit()
    logger.info(f"Updated node {node_id}")
    return node


async def delete_node(session: AsyncSession, node_id: str) -> dict[str, int]:
    """Delete a node together with its positions and connections, atomically."""
    await fetch_or_raise(session, Node, node_id)
    async with atomic(session):
        counts = await purge_nodes(session, [node_id])
    logger.info(
        f"Deleted node {node_id} ({counts['positions']} positions, "
        f"{counts['connections']} connections)"
    )
    return counts


# --- Connections ---


async def create_connection(
    session: AsyncSession,
    site_id: str,
    from_node_id: str,
    to_node_id: str,
    gas_type: str,
    diameter_mm: float | None = None,
) -> Connection:
    """Link two nodes of the same site. Parallel edges are allowed."""
    require_gas_type(gas_type)
    await fetch_or_raise(session, Site, site_id)
    if from_node_id == to_node_id:
        raise ValidationError(
            "A connection needs two different nodes", {"node_id": from_node_id}
        )
    source = await fetch_reference(session, Node, from_node_id)
    target = await fetch_reference(session, Node, to_node_id)
    require_same_site(site_id, source.site_id, f"Node {from_node_id}")
    require_same_site(site_id, target.site_id, f"Node {to_node_id}")

    connection = Connection(
        site_id=site_id,
        from_node_id=from_node_id,
        to_node_id=to_node_id,
        gas_type=gas_type,
        diameter_mm=to_decimal_string(diameter_mm, field="diameter_mm"),
    )
    session.add(connection)
    await session.commit()
    logger.info(f"Created {gas_type} connection {connection.id}: {from_node_id} -> {to_node_id}")
    return connection


async def get_connection(session: AsyncSession, connection_id: str) -> Connection:
    return await fetch_or_raise(session, Connection, connection_id)


async def list_connections_by_site(session: AsyncSession, site_id: str) -> list[Connection]:
    await fetch_or_raise(session, Site, site_id)
    result = await session.execute(
        select(Connection)
        .where(Connection.site_id == site_id)
        .order_by(Connection.created_at, Connection.id)
    )
    return list(result.scalars().all())


async def list_connections_by_node(session: AsyncSession, node_id: str) -> list[Connection]:
    await fetch_or_raise(session, Node, node_id)
    result = await session.execute(
        select(Connection)
        .where(or_(Connection.from_node_id == node_id, Connection.to_node_id == node_id))
        .order_by(Connection.created_at, Connection.id)
    )
    return list(result.scalars().all())


async def connections_between(
    session: AsyncSession, site_id: str, node_ids: Sequence[str]
) -> list[Connection]:
    """Site connections whose two endpoints are both in node_ids."""
    if not node_ids:
        return []
    result = await session.execute(
        select(Connection)
        .where(
            Connection.site_id == site_id,
            Connection.from_node_id.in_(node_ids),
            Connection.to_node_id.in_(node_ids),
        )
        .order_by(Connection.created_at, Connection.id)
    )
    return list(result.scalars().all())


async def update_connection(
    session: AsyncSession, connection_id: str, changes: ConnectionUpdate
) -> Connection:
    connection = await fetch_or_raise(session, Connection, connection_id)
    fields = changes.model_fields_set
    if "gas_type" in fields and changes.gas_type is not None:
        connection.gas_type = require_gas_type(changes.gas_type)
    if "diameter_mm" in fields:
        connection.diameter_mm = to_decimal_string(changes.diameter_mm, field="diameter_mm")
    await session.commit()
    logger.info(f"Updated connection {connection_id}")
    return connection


async def delete_connection(session: AsyncSession, connection_id: str) -> None:
    connection = await fetch_or_raise(session, Connection, connection_id)
    await session.delete(connection)
    await session.commit()
    logger.info(f"Deleted connection {connection_id}")


# --- Cascade helpers (caller commits) ---


async def purge_nodes(session: AsyncSession, node_ids: Sequence[str]) -> dict[str, int]:
    """Delete nodes plus their positions and every connection touching them."""
    if not node_ids:
        return {"nodes": 0, "positions": 0, "connections": 0}
    positions = await placement_service.purge_positions_for_nodes(session, node_ids)
    connections = await session.execute(
        delete(Connection).where(
            or_(Connection.from_node_id.in_(node_ids), Connection.to_node_id.in_(node_ids))
        )
    )
    nodes = await session.execute(delete(Node).where(Node.id.in_(node_ids)))
    return {
        "nodes": nodes.rowcount,
        "positions": positions,
        "connections": connections.rowcount,
    }


async def detach_anchors(
    session: AsyncSession,
    building_ids: Sequence[str] = (),
    floor_ids: Sequence[str] = (),
    zone_ids: Sequence[str] = (),
) -> int:
    """Move nodes anchored to deleted hierarchy rows up to the surviving parent level."""
    detached = 0
    if building_ids:
        result = await session.execute(
            update(Node)
            .where(Node.building_id.in_(building_ids))
            .values(building_id=None, floor_id=None, zone_id=None)
        )
        detached += result.rowcount
    if floor_ids:
        result = await session.execute(
            update(Node).where(Node.floor_id.in_(floor_ids)).values(floor_id=None, zone_id=None)
        )
        detached += result.rowcount
    if zone_ids:
        result = await session.execute(
            update(Node).where(Node.zone_id.in_(zone_ids)).values(zone_id=None)
        )
        detached += result.rowcount
    return detached
