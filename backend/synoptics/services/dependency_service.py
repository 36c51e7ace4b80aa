"""Dependency auditor: downstream row counts used to gate destructive site deletes."""

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from synoptics.models import Building, Floor, Layout, Node, Site
from synoptics.schemas import SiteDependencies
from synoptics.services._lookup import fetch_or_raise


async def count_dependents(session: AsyncSession, site_id: str) -> SiteDependencies:
    """Count buildings, floors, layouts and building-anchored nodes of a site.

    Read-only. A site with no buildings yields zeros for everything hanging
    off buildings.
    """
    await fetch_or_raise(session, Site, site_id)

    site_buildings = select(Building.id).where(Building.site_id == site_id).scalar_subquery()

    buildings = await session.scalar(
        select(func.count()).select_from(Building).where(Building.site_id == site_id)
    )
    floors = await session.scalar(
        select(func.count()).select_from(Floor).where(Floor.building_id.in_(site_buildings))
    )
    layouts = await session.scalar(
        select(func.count()).select_from(Layout).where(Layout.site_id == site_id)
    )
    nodes = await session.scalar(
        select(func.count()).select_from(Node).where(Node.building_id.in_(site_buildings))
    )

    return SiteDependencies(
        buildings=buildings,
        floors=floors,
        layouts=layouts,
        nodes=nodes,
        total=buildings + floors + layouts + nodes,
    )
