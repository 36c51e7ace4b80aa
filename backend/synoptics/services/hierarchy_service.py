"""Hierarchy service layer: organizations, sites, buildings, floors and zones.

Deleting a hierarchy level never deletes equipment nodes: nodes anchored to
the removed level are moved up to the surviving parent level.
"""

import logging

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from synoptics.database import atomic
from synoptics.decimals import GEO_PLACES, to_decimal_string
from synoptics.errors import ConflictError, NotFoundError
from synoptics.integrations import BillingSync, BillingSyncError, BlobStore
from synoptics.models import Building, Floor, Node, Organization, Site, Zone
from synoptics.schemas import (
    BuildingCreate,
    BuildingUpdate,
    FloorCreate,
    FloorUpdate,
    SiteCreate,
    SiteHierarchy,
    SiteUpdate,
    SiteZone,
    ZoneCreate,
    ZoneUpdate,
)
from synoptics.services import (
    dependency_service,
    equipment_service,
    layout_service,
    media_service,
    node_service,
)
from synoptics.services._lookup import fetch_or_raise, require_name

logger = logging.getLogger(__name__)

ZONE_CODE_LENGTH = 8


def _apply_geo(row: Site | Building, changes, fields: set[str]) -> None:
    if "latitude" in fields:
        row.latitude = to_decimal_string(changes.latitude, GEO_PLACES, "latitude")
    if "longitude" in fields:
        row.longitude = to_decimal_string(changes.longitude, GEO_PLACES, "longitude")


# --- Organizations ---


async def get_organization_by_team(session: AsyncSession, team_id: int) -> Organization | None:
    result = await session.execute(
        select(Organization)
        .where(Organization.team_id == team_id)
        .order_by(Organization.created_at)
        .limit(1)
    )
    return result.scalar_one_or_none()


async def get_or_create_organization(
    session: AsyncSession, team_id: int, name: str
) -> Organization:
    """Return the team's organization, creating it on first use.

    Check-then-create: two concurrent first requests can each create one.
    Reads always pick the oldest, so a duplicate is harmless.
    """
    organization = await get_organization_by_team(session, team_id)
    if organization is not None:
        return organization
    organization = Organization(team_id=team_id, name=require_name(name))
    session.add(organization)
    await session.commit()
    logger.info(f"Created organization {organization.id} for team {team_id}")
    return organization


async def resolve_default_site(
    session: AsyncSession, team_id: int, team_name: str
) -> str | None:
    """Id of the organization's only site, or None when it has zero or several."""
    organization = await get_or_create_organization(session, team_id, team_name)
    result = await session.execute(
        select(Site.id).where(Site.organization_id == organization.id).limit(2)
    )
    site_ids = list(result.scalars().all())
    return site_ids[0] if len(site_ids) == 1 else None


# --- Sites ---


async def list_sites(session: AsyncSession, organization_id: str) -> list[Site]:
    await fetch_or_raise(session, Organization, organization_id)
    result = await session.execute(
        select(Site)
        .where(Site.organization_id == organization_id)
        .order_by(Site.created_at.desc(), Site.id)
    )
    return list(result.scalars().all())


async def create_site(session: AsyncSession, billing: BillingSync, payload: SiteCreate) -> Site:
    """Create a site and ask billing to resync the team's site count."""
    organization = await fetch_or_raise(session, Organization, payload.organization_id)
    site = Site(
        organization_id=organization.id,
        name=require_name(payload.name),
        address=payload.address,
        latitude=to_decimal_string(payload.latitude, GEO_PLACES, "latitude"),
        longitude=to_decimal_string(payload.longitude, GEO_PLACES, "longitude"),
    )
    session.add(site)
    await session.commit()
    logger.info(f"Created site {site.id} ({site.name}) for organization {organization.id}")

    try:
        await billing.sync_subscription_quantity(organization.team_id)
    except BillingSyncError as exc:
        # Site creation stands; billing reconciles on its next sync
        logger.warning(f"Subscription sync failed for team {organization.team_id}: {exc}")
    return site


async def get_site(session: AsyncSession, site_id: str) -> Site:
    return await fetch_or_raise(session, Site, site_id)


async def update_site(session: AsyncSession, site_id: str, changes: SiteUpdate) -> Site:
    site = await fetch_or_raise(session, Site, site_id)
    fields = changes.model_fields_set
    if "name" in fields:
        site.name = require_name(changes.name)
    if "address" in fields:
        site.address = changes.address
    _apply_geo(site, changes, fields)
    await session.commit()
    logger.info(f"Updated site {site_id}")
    return site


async def get_site_with_hierarchy(session: AsyncSession, site_id: str) -> SiteHierarchy:
    """The whole building -> floor -> zone tree of a site in one call."""
    result = await session.execute(
        select(Site)
        .where(Site.id == site_id)
        .options(
            selectinload(Site.buildings)
            .selectinload(Building.floors)
            .selectinload(Floor.zones)
        )
        .execution_options(populate_existing=True)
    )
    site = result.scalar_one_or_none()
    if site is None:
        raise NotFoundError(f"Site not found: {site_id}", {"entity": "site", "id": site_id})
    return SiteHierarchy.from_tree(site)


async def list_site_zones(session: AsyncSession, site_id: str) -> list[SiteZone]:
    await fetch_or_raise(session, Site, site_id)
    result = await session.execute(
        select(Zone)
        .join(Floor, Zone.floor_id == Floor.id)
        .join(Building, Floor.building_id == Building.id)
        .where(Building.site_id == site_id)
        .order_by(Zone.name, Zone.id)
    )
    return [
        SiteZone(
            id=zone.id,
            name=zone.name,
            code=zone.id[:ZONE_CODE_LENGTH].upper(),
            floor_id=zone.floor_id,
        )
        for zone in result.scalars().all()
    ]


async def delete_site(
    session: AsyncSession, blob_store: BlobStore, site_id: str, force: bool = False
) -> dict[str, int]:
    """Delete a site and everything under it.

    Refused with ConflictError (carrying the dependency counts) when the site
    still has dependents, unless force is set.
    """
    async with atomic(session):
        # No-op write takes the database write lock before counting, so no
        # dependent can be added between the check and the purge
        await session.execute(
            update(Site)
            .where(Site.id == site_id)
            .values(name=Site.name)
            .execution_options(synchronize_session=False)
        )
        dependencies = await dependency_service.count_dependents(session, site_id)
        if dependencies.total > 0 and not force:
            raise ConflictError(
                f"Site {site_id} still has {dependencies.total} dependent items",
                dependencies.model_dump(),
            )

        layout_ids = await layout_service.layout_ids_for(session, site_id=site_id)
        layout_counts = await layout_service.purge_layouts(session, layout_ids)

        result = await session.execute(select(Node.id).where(Node.site_id == site_id))
        node_counts = await node_service.purge_nodes(session, list(result.scalars().all()))

        keys = await media_service.purge_media_for_site(session, site_id)
        equipment = await equipment_service.purge_equipment_for_site(session, site_id)

        building_ids = select(Building.id).where(Building.site_id == site_id).scalar_subquery()
        floor_ids = select(Floor.id).where(Floor.building_id.in_(building_ids)).scalar_subquery()
        zones = await session.execute(delete(Zone).where(Zone.floor_id.in_(floor_ids)))
        floors = await session.execute(delete(Floor).where(Floor.building_id.in_(building_ids)))
        buildings = await session.execute(delete(Building).where(Building.site_id == site_id))
        await session.execute(delete(Site).where(Site.id == site_id))

    media_service.delete_blobs(blob_store, keys)
    summary = {
        "sites": 1,
        "buildings": buildings.rowcount,
        "floors": floors.rowcount,
        "zones": zones.rowcount,
        "layouts": layout_counts["layouts"],
        "annotations": layout_counts["annotations"],
        # Layout purge removes most positions; node purge catches the rest
        "positions": layout_counts["positions"] + node_counts["positions"],
        "nodes": node_counts["nodes"],
        "connections": node_counts["connections"],
        "equipment": equipment,
        "media": len(keys),
    }
    logger.info(f"Deleted site {site_id}: {summary}")
    return summary


# --- Buildings ---


async def create_building(session: AsyncSession, payload: BuildingCreate) -> Building:
    await fetch_or_raise(session, Site, payload.site_id)
    building = Building(
        site_id=payload.site_id,
        name=require_name(payload.name),
        latitude=to_decimal_string(payload.latitude, GEO_PLACES, "latitude"),
        longitude=to_decimal_string(payload.longitude, GEO_PLACES, "longitude"),
    )
    session.add(building)
    await session.commit()
    logger.info(f"Created building {building.id} ({building.name}) in site {payload.site_id}")
    return building


async def get_building(session: AsyncSession, building_id: str) -> Building:
    return await fetch_or_raise(session, Building, building_id)


async def list_buildings(session: AsyncSession, site_id: str) -> list[Building]:
    await fetch_or_raise(session, Site, site_id)
    result = await session.execute(
        select(Building).where(Building.site_id == site_id).order_by(Building.name, Building.id)
    )
    return list(result.scalars().all())


async def update_building(
    session: AsyncSession, building_id: str, changes: BuildingUpdate
) -> Building:
    building = await fetch_or_raise(session, Building, building_id)
    fields = changes.model_fields_set
    if "name" in fields:
        building.name = require_name(changes.name)
    _apply_geo(building, changes, fields)
    await session.commit()
    logger.info(f"Updated building {building_id}")
    return building


async def _delete_floors(session: AsyncSession, floor_ids: list[str]) -> dict[str, int]:
    """Delete floors with their zones and floor-bound layouts (caller commits)."""
    if not floor_ids:
        return {"floors": 0, "zones": 0, "layouts": 0, "annotations": 0, "positions": 0}
    layout_ids = await layout_service.layout_ids_for(session, floor_ids=floor_ids)
    layout_counts = await layout_service.purge_layouts(session, layout_ids)
    zones = await session.execute(delete(Zone).where(Zone.floor_id.in_(floor_ids)))
    floors = await session.execute(delete(Floor).where(Floor.id.in_(floor_ids)))
    return {"floors": floors.rowcount, "zones": zones.rowcount, **layout_counts}


async def delete_building(session: AsyncSession, building_id: str) -> dict[str, int]:
    """Delete a building, its floors and zones. Its nodes become site-level."""
    await fetch_or_raise(session, Building, building_id)
    async with atomic(session):
        result = await session.execute(select(Floor.id).where(Floor.building_id == building_id))
        floor_ids = list(result.scalars().all())
        detached = await node_service.detach_anchors(session, building_ids=[building_id])
        counts = await _delete_floors(session, floor_ids)
        await session.execute(delete(Building).where(Building.id == building_id))
    summary = {"buildings": 1, **counts, "nodes_detached": detached}
    logger.info(f"Deleted building {building_id}: {summary}")
    return summary


# --- Floors ---


async def create_floor(session: AsyncSession, payload: FloorCreate) -> Floor:
    await fetch_or_raise(session, Building, payload.building_id)
    floor = Floor(
        building_id=payload.building_id,
        floor_number=payload.floor_number,
        name=payload.name.strip() if payload.name and payload.name.strip() else None,
    )
    session.add(floor)
    await session.commit()
    logger.info(f"Created floor {floor.id} (level {floor.floor_number}) in {payload.building_id}")
    return floor


async def get_floor(session: AsyncSession, floor_id: str) -> Floor:
    return await fetch_or_raise(session, Floor, floor_id)


async def list_floors(session: AsyncSession, building_id: str) -> list[Floor]:
    await fetch_or_raise(session, Building, building_id)
    result = await session.execute(
        select(Floor)
        .where(Floor.building_id == building_id)
        .order_by(Floor.floor_number, Floor.id)
    )
    return list(result.scalars().all())


async def update_floor(session: AsyncSession, floor_id: str, changes: FloorUpdate) -> Floor:
    floor = await fetch_or_raise(session, Floor, floor_id)
    fields = changes.model_fields_set
    if "floor_number" in fields and changes.floor_number is not None:
        floor.floor_number = changes.floor_number
    if "name" in fields:
        floor.name = changes.name.strip() if changes.name and changes.name.strip() else None
    await session.commit()
    logger.info(f"Updated floor {floor_id}")
    return floor


async def delete_floor(session: AsyncSession, floor_id: str) -> dict[str, int]:
    """Delete a floor, its zones and the layouts drawn for it.

    Nodes on the floor stay anchored to the floor's building.
    """
    await fetch_or_raise(session, Floor, floor_id)
    async with atomic(session):
        detached = await node_service.detach_anchors(session, floor_ids=[floor_id])
        counts = await _delete_floors(session, [floor_id])
    summary = {**counts, "nodes_detached": detached}
    logger.info(f"Deleted floor {floor_id}: {summary}")
    return summary


# --- Zones ---


async def create_zone(session: AsyncSession, payload: ZoneCreate) -> Zone:
    await fetch_or_raise(session, Floor, payload.floor_id)
    zone = Zone(floor_id=payload.floor_id, name=require_name(payload.name))
    session.add(zone)
    await session.commit()
    logger.info(f"Created zone {zone.id} ({zone.name}) on floor {payload.floor_id}")
    return zone


async def get_zone(session: AsyncSession, zone_id: str) -> Zone:
    return await fetch_or_raise(session, Zone, zone_id)


async def list_zones(session: AsyncSession, floor_id: str) -> list[Zone]:
    await fetch_or_raise(session, Floor, floor_id)
    result = await session.execute(
        select(Zone).where(Zone.floor_id == floor_id).order_by(Zone.name, Zone.id)
    )
    return list(result.scalars().all())


async def update_zone(session: AsyncSession, zone_id: str, changes: ZoneUpdate) -> Zone:
    zone = await fetch_or_raise(session, Zone, zone_id)
    if "name" in changes.model_fields_set:
        zone.name = require_name(changes.name)
    await session.commit()
    logger.info(f"Updated zone {zone_id}")
    return zone


async def delete_zone(session: AsyncSession, zone_id: str) -> dict[str, int]:
    """Delete a zone. Its nodes stay anchored to the zone's floor."""
    await fetch_or_raise(session, Zone, zone_id)
    async with atomic(session):
        detached = await node_service.detach_anchors(session, zone_ids=[zone_id])
        await session.execute(delete(Zone).where(Zone.id == zone_id))
    summary = {"zones": 1, "nodes_detached": detached}
    logger.info(f"Deleted zone {zone_id}: {summary}")
    return summary
