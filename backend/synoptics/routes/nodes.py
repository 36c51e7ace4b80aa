"""Node graph API routes: nodes and pipeline connections."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from synoptics.database import get_db
from synoptics.errors import ValidationError
from synoptics.integrations import require_caller
from synoptics.schemas import (
    ConnectionCreate,
    ConnectionOut,
    ConnectionUpdate,
    DeletionSummary,
    NodeCreate,
    NodeDetail,
    NodePositionOut,
    NodeUpdate,
)
from synoptics.services import node_service, placement_service

router = APIRouter(
    prefix="/api/synoptics", tags=["nodes"], dependencies=[Depends(require_caller)]
)


# --- Nodes ---


@router.get("/nodes", response_model=list[NodeDetail])
async def list_nodes(
    site_id: str = Query(..., description="Site whose nodes to list"),
    building_id: str | None = Query(None, description="Building filter; unanchored nodes match"),
    floor_id: str | None = Query(None, description="Floor filter; unanchored nodes match"),
    session: AsyncSession = Depends(get_db),
) -> list[NodeDetail]:
    """Nodes of a site with their element data."""
    nodes = await node_service.list_nodes_by_site(session, site_id, building_id, floor_id)
    return await node_service.node_details(session, nodes)


@router.post("/nodes", response_model=NodeDetail, status_code=201)
async def create_node(payload: NodeCreate, session: AsyncSession = Depends(get_db)) -> NodeDetail:
    node = await node_service.create_node(session, payload)
    return await node_service.get_node_detail(session, node.id)


@router.get("/nodes/{node_id}", response_model=NodeDetail)
async def get_node(node_id: str, session: AsyncSession = Depends(get_db)) -> NodeDetail:
    return await node_service.get_node_detail(session, node_id)


@router.patch("/nodes/{node_id}", response_model=NodeDetail)
async def update_node(
    node_id: str, changes: NodeUpdate, session: AsyncSession = Depends(get_db)
) -> NodeDetail:
    """Move a node in the hierarchy or edit its attributes. Diagram positions are kept."""
    await node_service.update_node(session, node_id, changes)
    return await node_service.get_node_detail(session, node_id)


@router.delete("/nodes/{node_id}", response_model=DeletionSummary)
async def delete_node(node_id: str, session: AsyncSession = Depends(get_db)) -> DeletionSummary:
    return DeletionSummary(deleted=await node_service.delete_node(session, node_id))


@router.get("/nodes/{node_id}/positions", response_model=list[NodePositionOut])
async def list_node_positions(
    node_id: str, session: AsyncSession = Depends(get_db)
) -> list[NodePositionOut]:
    """Every layout this node is placed on, with its coordinates there."""
    await node_service.get_node(session, node_id)
    positions = await placement_service.list_positions_by_node(session, node_id)
    return [NodePositionOut.from_model(position) for position in positions]


# --- Connections ---


@router.get("/connections", response_model=list[ConnectionOut])
async def list_connections(
    site_id: str | None = Query(None),
    node_id: str | None = Query(None),
    session: AsyncSession = Depends(get_db),
) -> list[ConnectionOut]:
    """Connections of a site, or those touching one node."""
    if node_id:
        connections = await node_service.list_connections_by_node(session, node_id)
    elif site_id:
        connections = await node_service.list_connections_by_site(session, site_id)
    else:
        raise ValidationError("site_id or node_id is required", {"fields": ["site_id", "node_id"]})
    return [ConnectionOut.from_model(connection) for connection in connections]


@router.post("/connections", response_model=ConnectionOut, status_code=201)
async def create_connection(
    payload: ConnectionCreate, session: AsyncSession = Depends(get_db)
) -> ConnectionOut:
    connection = await node_service.create_connection(
        session,
        payload.site_id,
        payload.from_node_id,
        payload.to_node_id,
        payload.gas_type,
        payload.diameter_mm,
    )
    return ConnectionOut.from_model(connection)


@router.get("/connections/{connection_id}", response_model=ConnectionOut)
async def get_connection(
    connection_id: str, session: AsyncSession = Depends(get_db)
) -> ConnectionOut:
    return ConnectionOut.from_model(await node_service.get_connection(session, connection_id))


@router.patch("/connections/{connection_id}", response_model=ConnectionOut)
async def update_connection(
    connection_id: str, changes: ConnectionUpdate, session: AsyncSession = Depends(get_db)
) -> ConnectionOut:
    connection = await node_service.update_connection(session, connection_id, changes)
    return ConnectionOut.from_model(connection)


@router.delete("/connections/{connection_id}", status_code=204)
async def delete_connection(connection_id: str, session: AsyncSession = Depends(get_db)) -> None:
    await node_service.delete_connection(session, connection_id)
