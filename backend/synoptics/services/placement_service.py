"""Placement service layer: per-layout node coordinates.

A node appears on a layout through at most one NodePosition row keyed by
(node_id, layout_id). Every write goes through a single INSERT ... ON
CONFLICT statement so concurrent diagram sessions cannot create duplicates.
"""

import logging
import math
from collections.abc import Iterable, Sequence

from sqlalchemy import delete, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from synoptics.database import utcnow
from synoptics.decimals import to_decimal_string
from synoptics.errors import NotFoundError, ValidationError
from synoptics.models import Layout, Node, NodePosition
from synoptics.schemas import ImportItemResult, ImportNodesResponse, NodePositionOut
from synoptics.services._lookup import fetch_or_raise, fetch_reference, require_same_site

logger = logging.getLogger(__name__)

# Grid used when importing nodes without coordinates
GRID_ORIGIN = 100
GRID_SPACING = 150

POSITION_KEY = ["node_id", "layout_id"]


def grid_position(index: int, count: int) -> tuple[int, int]:
    """Cell coordinates for the index-th of count items on a ceil(sqrt(count))-wide grid."""
    cols = max(1, math.ceil(math.sqrt(count)))
    row, col = divmod(index, cols)
    return GRID_ORIGIN + col * GRID_SPACING, GRID_ORIGIN + row * GRID_SPACING


def _insert(session: AsyncSession):
    """Dialect insert supporting ON CONFLICT for the bound database."""
    if session.get_bind().dialect.name == "postgresql":
        return pg_insert
    return sqlite_insert


def _validate_rotation(rotation: int | None) -> None:
    if rotation is not None and not 0 <= rotation <= 360:
        raise ValidationError(
            "rotation must be between 0 and 360", {"field": "rotation", "value": rotation}
        )


def _dedupe(positions: Iterable[NodePosition]) -> list[NodePosition]:
    """Keep one row per (node_id, layout_id); the most recently written wins."""
    by_key: dict[tuple[str, str], NodePosition] = {}
    for position in positions:
        key = (position.node_id, position.layout_id)
        current = by_key.get(key)
        if current is None or position.updated_at >= current.updated_at:
            by_key[key] = position
    return list(by_key.values())


async def get_position(
    session: AsyncSession, node_id: str, layout_id: str
) -> NodePosition | None:
    """Current position of a node on a layout, or None when it is not placed there."""
    result = await session.execute(
        select(NodePosition)
        .where(NodePosition.node_id == node_id, NodePosition.layout_id == layout_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def upsert_position(
    session: AsyncSession,
    node_id: str,
    layout_id: str,
    x: float,
    y: float,
    rotation: int | None = None,
) -> NodePosition:
    """Place a node on a layout or move it if already placed.

    Rotation is kept as stored when not supplied.
    """
    _validate_rotation(rotation)
    node = await fetch_reference(session, Node, node_id)
    layout = await fetch_reference(session, Layout, layout_id)
    require_same_site(layout.site_id, node.site_id, f"Node {node_id}")

    insert = _insert(session)
    stmt = insert(NodePosition).values(
        node_id=node_id,
        layout_id=layout_id,
        x_position=to_decimal_string(x, field="x_position"),
        y_position=to_decimal_string(y, field="y_position"),
        rotation=rotation or 0,
        updated_at=utcnow(),
    )
    changes = {
        "x_position": stmt.excluded.x_position,
        "y_position": stmt.excluded.y_position,
        "updated_at": stmt.excluded.updated_at,
    }
    if rotation is not None:
        changes["rotation"] = stmt.excluded.rotation
    stmt = stmt.on_conflict_do_update(index_elements=POSITION_KEY, set_=changes).returning(
        NodePosition
    )

    result = await session.scalars(stmt, execution_options={"populate_existing": True})
    position = result.one()
    await session.commit()
    logger.info(
        f"Placed node {node_id} on layout {layout_id} at "
        f"({position.x_position}, {position.y_position})"
    )
    return position


async def list_positions_by_layout(session: AsyncSession, layout_id: str) -> list[NodePosition]:
    result = await session.execute(
        select(NodePosition)
        .where(NodePosition.layout_id == layout_id)
        .order_by(NodePosition.updated_at)
    )
    return _dedupe(result.scalars().all())


async def list_positions_by_node(session: AsyncSession, node_id: str) -> list[NodePosition]:
    result = await session.execute(
        select(NodePosition)
        .where(NodePosition.node_id == node_id)
        .order_by(NodePosition.updated_at)
    )
    return _dedupe(result.scalars().all())


async def delete_position(session: AsyncSession, node_id: str, layout_id: str) -> None:
    """Take a node off one layout. The node itself is untouched."""
    result = await session.execute(
        delete(NodePosition).where(
            NodePosition.node_id == node_id, NodePosition.layout_id == layout_id
        )
    )
    if result.rowcount == 0:
        await session.rollback()
        raise NotFoundError(
            f"Node {node_id} is not placed on layout {layout_id}",
            {"node_id": node_id, "layout_id": layout_id},
        )
    await session.commit()
    logger.info(f"Removed node {node_id} from layout {layout_id}")


async def clear_layout_positions(session: AsyncSession, layout_id: str) -> int:
    """Remove every node from a layout without deleting the nodes. Returns the row count."""
    await fetch_or_raise(session, Layout, layout_id)
    count = await purge_positions_for_layouts(session, [layout_id])
    await session.commit()
    logger.info(f"Cleared {count} positions from layout {layout_id}")
    return count


async def import_nodes(
    session: AsyncSession, layout_id: str, node_ids: Sequence[str]
) -> ImportNodesResponse:
    """Place several nodes on a layout using a deterministic grid.

    Nodes that are missing, belong to another site or are already on the
    layout are reported as skipped. Each placement commits on its own, so a
    node that fails to insert never undoes the ones placed before it.
    """
    layout = await fetch_or_raise(session, Layout, layout_id)
    layout_site_id = layout.site_id
    result = await session.execute(
        select(Node.id, Node.site_id).where(Node.id.in_(set(node_ids)))
    )
    node_sites = dict(result.tuples().all())

    insert = _insert(session)
    count = len(node_ids)
    results: list[ImportItemResult] = []

    for index, node_id in enumerate(node_ids):
        if node_id not in node_sites:
            results.append(
                ImportItemResult(node_id=node_id, status="skipped", reason="Node not found")
            )
            continue
        if node_sites[node_id] != layout_site_id:
            results.append(
                ImportItemResult(
                    node_id=node_id,
                    status="skipped",
                    reason="Node belongs to a different site",
                )
            )
            continue

        x, y = grid_position(index, count)
        stmt = (
            insert(NodePosition)
            .values(
                node_id=node_id,
                layout_id=layout_id,
                x_position=to_decimal_string(x),
                y_position=to_decimal_string(y),
                rotation=0,
                updated_at=utcnow(),
            )
            .on_conflict_do_nothing(index_elements=POSITION_KEY)
            .returning(NodePosition)
        )
        try:
            inserted = (await session.scalars(stmt)).first()
            position = NodePositionOut.from_model(inserted) if inserted is not None else None
            await session.commit()
        except IntegrityError as exc:
            # Node removed (or otherwise rejected) after the batch was loaded
            await session.rollback()
            logger.warning(f"Could not place node {node_id} on layout {layout_id}: {exc.orig}")
            results.append(
                ImportItemResult(
                    node_id=node_id, status="skipped", reason="Node could not be placed"
                )
            )
            continue
        if position is None:
            results.append(
                ImportItemResult(
                    node_id=node_id,
                    status="skipped",
                    reason="Node already exists in this layout",
                )
            )
            continue
        results.append(ImportItemResult(node_id=node_id, status="imported", position=position))

    imported = sum(1 for item in results if item.status == "imported")
    failed = len(results) - imported
    logger.info(f"Imported {imported} nodes into layout {layout_id} ({failed} skipped)")
    return ImportNodesResponse(imported=imported, failed=failed, results=results)


# --- Cascade helpers (caller commits) ---


async def purge_positions_for_nodes(session: AsyncSession, node_ids: Sequence[str]) -> int:
    if not node_ids:
        return 0
    result = await session.execute(delete(NodePosition).where(NodePosition.node_id.in_(node_ids)))
    return result.rowcount


async def purge_positions_for_layouts(session: AsyncSession, layout_ids: Sequence[str]) -> int:
    if not layout_ids:
        return 0
    result = await session.execute(
        delete(NodePosition).where(NodePosition.layout_id.in_(layout_ids))
    )
    return result.rowcount
