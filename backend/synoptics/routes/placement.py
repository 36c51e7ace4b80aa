"""Placement API routes: node positions on layouts."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from synoptics.database import get_db
from synoptics.errors import NotFoundError
from synoptics.integrations import require_caller
from synoptics.schemas import (
    CountResponse,
    ImportNodesRequest,
    ImportNodesResponse,
    NodePositionOut,
    PositionUpsert,
)
from synoptics.services import layout_service, placement_service

router = APIRouter(
    prefix="/api/synoptics", tags=["placement"], dependencies=[Depends(require_caller)]
)


@router.put("/node-positions", response_model=NodePositionOut)
async def upsert_position(
    payload: PositionUpsert, session: AsyncSession = Depends(get_db)
) -> NodePositionOut:
    """Place a node on a layout, or move it there if already placed."""
    position = await placement_service.upsert_position(
        session,
        payload.node_id,
        payload.layout_id,
        payload.x_position,
        payload.y_position,
        payload.rotation,
    )
    return NodePositionOut.from_model(position)


@router.get("/node-positions", response_model=NodePositionOut)
async def get_position(
    node_id: str = Query(...),
    layout_id: str = Query(...),
    session: AsyncSession = Depends(get_db),
) -> NodePositionOut:
    position = await placement_service.get_position(session, node_id, layout_id)
    if position is None:
        raise NotFoundError(
            f"Node {node_id} is not placed on layout {layout_id}",
            {"node_id": node_id, "layout_id": layout_id},
        )
    return NodePositionOut.from_model(position)


@router.delete("/node-positions/{node_id}/{layout_id}", status_code=204)
async def delete_position(
    node_id: str, layout_id: str, session: AsyncSession = Depends(get_db)
) -> None:
    """Take a node off a layout. The node itself is kept."""
    await placement_service.delete_position(session, node_id, layout_id)


@router.get("/layouts/{layout_id}/positions", response_model=list[NodePositionOut])
async def list_layout_positions(
    layout_id: str, session: AsyncSession = Depends(get_db)
) -> list[NodePositionOut]:
    await layout_service.get_layout(session, layout_id)
    positions = await placement_service.list_positions_by_layout(session, layout_id)
    return [NodePositionOut.from_model(position) for position in positions]


@router.delete("/layouts/{layout_id}/positions", response_model=CountResponse)
async def clear_layout_positions(
    layout_id: str, session: AsyncSession = Depends(get_db)
) -> CountResponse:
    """Remove every node from a layout without deleting any node."""
    return CountResponse(count=await placement_service.clear_layout_positions(session, layout_id))


@router.post("/layouts/{layout_id}/import-nodes", response_model=ImportNodesResponse)
async def import_nodes(
    layout_id: str, payload: ImportNodesRequest, session: AsyncSession = Depends(get_db)
) -> ImportNodesResponse:
    """Grid-place several nodes at once; already placed nodes are reported as skipped."""
    return await placement_service.import_nodes(session, layout_id, payload.node_ids)
