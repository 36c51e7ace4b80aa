"""Layout service layer: diagrams of a site and what is drawn on them."""

import logging
from collections.abc import Sequence

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from synoptics.database import atomic
from synoptics.errors import ValidationError
from synoptics.models import Building, Floor, Layout, Node, Site
from synoptics.schemas import (
    ConnectionOut,
    LayoutCreate,
    LayoutOut,
    LayoutUpdate,
    LayoutView,
    NodePositionOut,
    PlacedNode,
)
from synoptics.services import annotation_service, node_service, placement_service
from synoptics.services._lookup import (
    fetch_or_raise,
    fetch_reference,
    require_name,
    require_same_site,
)

logger = logging.getLogger(__name__)


async def _check_floor_binding(
    session: AsyncSession, site_id: str, layout_type: str, floor_id: str | None
) -> None:
    """Site layouts have no floor; floor and zone layouts need one on this site."""
    if layout_type == "site":
        if floor_id:
            raise ValidationError(
                "Site layouts cannot be bound to a floor", {"field": "floor_id"}
            )
        return
    if not floor_id:
        raise ValidationError(
            f"{layout_type.capitalize()} layouts require a floor", {"field": "floor_id"}
        )
    floor = await fetch_reference(session, Floor, floor_id)
    building = await session.get(Building, floor.building_id)
    require_same_site(site_id, building.site_id, f"Floor {floor_id}")


async def create_layout(session: AsyncSession, payload: LayoutCreate) -> Layout:
    await fetch_or_raise(session, Site, payload.site_id)
    name = require_name(payload.name)
    await _check_floor_binding(session, payload.site_id, payload.layout_type, payload.floor_id)

    layout = Layout(
        site_id=payload.site_id,
        floor_id=payload.floor_id,
        name=name,
        layout_type=payload.layout_type,
        background_url=payload.background_url,
        metadata_=payload.metadata,
    )
    session.add(layout)
    await session.commit()
    logger.info(f"Created {layout.layout_type} layout {layout.id} ({name})")
    return layout


async def get_layout(session: AsyncSession, layout_id: str) -> Layout:
    return await fetch_or_raise(session, Layout, layout_id)


async def list_layouts_by_site(session: AsyncSession, site_id: str) -> list[Layout]:
    await fetch_or_raise(session, Site, site_id)
    result = await session.execute(
        select(Layout).where(Layout.site_id == site_id).order_by(Layout.created_at, Layout.id)
    )
    return list(result.scalars().all())


async def list_layouts_by_floor(session: AsyncSession, floor_id: str) -> list[Layout]:
    await fetch_or_raise(session, Floor, floor_id)
    result = await session.execute(
        select(Layout).where(Layout.floor_id == floor_id).order_by(Layout.created_at, Layout.id)
    )
    return list(result.scalars().all())


async def update_layout(session: AsyncSession, layout_id: str, changes: LayoutUpdate) -> Layout:
    layout = await fetch_or_raise(session, Layout, layout_id)
    fields = changes.model_fields_set
    if "name" in fields:
        layout.name = require_name(changes.name)
    if "background_url" in fields:
        layout.background_url = changes.background_url
    if "metadata" in fields:
        layout.metadata_ = changes.metadata
    await session.commit()
    logger.info(f"Updated layout {layout_id}")
    return layout


async def delete_layout(session: AsyncSession, layout_id: str) -> dict[str, int]:
    """Delete a layout with its annotations and positions. Nodes are kept."""
    await fetch_or_raise(session, Layout, layout_id)
    async with atomic(session):
        counts = await purge_layouts(session, [layout_id])
    logger.info(
        f"Deleted layout {layout_id} ({counts['annotations']} annotations, "
        f"{counts['positions']} positions)"
    )
    return counts


async def list_layout_nodes(session: AsyncSession, layout_id: str) -> list[PlacedNode]:
    """Nodes placed on a layout, each with its element data and position there."""
    await fetch_or_raise(session, Layout, layout_id)
    positions = {
        position.node_id: position
        for position in await placement_service.list_positions_by_layout(session, layout_id)
    }
    if not positions:
        return []
    result = await session.execute(
        select(Node).where(Node.id.in_(list(positions))).order_by(Node.created_at, Node.id)
    )
    details = await node_service.node_details(session, result.scalars().all())
    return [
        PlacedNode(
            **detail.model_dump(),
            position=NodePositionOut.from_model(positions[detail.id]),
        )
        for detail in details
    ]


async def get_layout_with_nodes_and_connections(
    session: AsyncSession, layout_id: str
) -> LayoutView:
    """A layout, its placed nodes, and the site connections between them.

    Connections are site-scoped: any connection whose endpoints are both on
    this layout is drawn, exactly once.
    """
    layout = await fetch_or_raise(session, Layout, layout_id)
    nodes = await list_layout_nodes(session, layout_id)
    connections = await node_service.connections_between(
        session, layout.site_id, [node.id for node in nodes]
    )
    return LayoutView(
        **LayoutOut.from_model(layout).model_dump(),
        nodes=nodes,
        connections=[ConnectionOut.from_model(connection) for connection in connections],
    )


# --- Cascade helpers (caller commits) ---


async def layout_ids_for(
    session: AsyncSession,
    site_id: str | None = None,
    floor_ids: Sequence[str] = (),
) -> list[str]:
    query = select(Layout.id)
    if site_id is not None:
        query = query.where(Layout.site_id == site_id)
    elif floor_ids:
        query = query.where(Layout.floor_id.in_(floor_ids))
    else:
        return []
    result = await session.execute(query)
    return list(result.scalars().all())


async def purge_layouts(session: AsyncSession, layout_ids: Sequence[str]) -> dict[str, int]:
    if not layout_ids:
        return {"layouts": 0, "annotations": 0, "positions": 0}
    annotations = await annotation_service.purge_annotations_for_layouts(session, layout_ids)
    positions = await placement_service.purge_positions_for_layouts(session, layout_ids)
    layouts = await session.execute(delete(Layout).where(Layout.id.in_(layout_ids)))
    return {"layouts": layouts.rowcount, "annotations": annotations, "positions": positions}
