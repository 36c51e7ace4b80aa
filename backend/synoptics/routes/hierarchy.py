"""Hierarchy API routes: organizations, sites, buildings, floors and zones."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from synoptics.database import get_db
from synoptics.errors import ValidationError
from synoptics.integrations import (
    BillingSync,
    BlobStore,
    CallerIdentity,
    get_billing_sync,
    get_blob_store,
    get_caller,
    require_caller,
)
from synoptics.schemas import (
    BuildingCreate,
    BuildingOut,
    BuildingUpdate,
    DefaultSiteResponse,
    DeletionSummary,
    FloorCreate,
    FloorOut,
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
from synoptics.services import dependency_service, hierarchy_service

router = APIRouter(
    prefix="/api/synoptics", tags=["hierarchy"], dependencies=[Depends(require_caller)]
)


def _team_name(caller: CallerIdentity) -> str:
    return f"Team {caller.team_id}"


# --- Organizations ---


@router.get("/default-site", response_model=DefaultSiteResponse)
async def default_site(
    caller: CallerIdentity = Depends(get_caller),
    session: AsyncSession = Depends(get_db),
) -> DefaultSiteResponse:
    """Site to open by default: the caller's only site, if there is exactly one."""
    if caller.team_id is None:
        return DefaultSiteResponse(site_id=None)
    site_id = await hierarchy_service.resolve_default_site(
        session, caller.team_id, _team_name(caller)
    )
    return DefaultSiteResponse(site_id=site_id)


@router.get("/organizations/current", response_model=OrganizationOut)
async def current_organization(
    caller: CallerIdentity = Depends(get_caller),
    session: AsyncSession = Depends(get_db),
) -> OrganizationOut:
    """The caller's organization, created on first access."""
    if caller.team_id is None:
        raise ValidationError("X-Team-Id header is required", {"header": "X-Team-Id"})
    organization = await hierarchy_service.get_or_create_organization(
        session, caller.team_id, _team_name(caller)
    )
    return OrganizationOut.model_validate(organization)


@router.get("/organizations/{organization_id}/sites", response_model=list[SiteOut])
async def list_sites(
    organization_id: str, session: AsyncSession = Depends(get_db)
) -> list[SiteOut]:
    sites = await hierarchy_service.list_sites(session, organization_id)
    return [SiteOut.from_model(site) for site in sites]


# --- Sites ---


@router.post("/sites", response_model=SiteOut, status_code=201)
async def create_site(
    payload: SiteCreate,
    session: AsyncSession = Depends(get_db),
    billing: BillingSync = Depends(get_billing_sync),
) -> SiteOut:
    site = await hierarchy_service.create_site(session, billing, payload)
    return SiteOut.from_model(site)


@router.get("/sites/{site_id}", response_model=SiteOut)
async def get_site(site_id: str, session: AsyncSession = Depends(get_db)) -> SiteOut:
    return SiteOut.from_model(await hierarchy_service.get_site(session, site_id))


@router.patch("/sites/{site_id}", response_model=SiteOut)
async def update_site(
    site_id: str, changes: SiteUpdate, session: AsyncSession = Depends(get_db)
) -> SiteOut:
    return SiteOut.from_model(await hierarchy_service.update_site(session, site_id, changes))


@router.delete("/sites/{site_id}", response_model=DeletionSummary)
async def delete_site(
    site_id: str,
    force: bool = Query(False, description="Delete even when the site has dependents"),
    session: AsyncSession = Depends(get_db),
    blob_store: BlobStore = Depends(get_blob_store),
) -> DeletionSummary:
    deleted = await hierarchy_service.delete_site(session, blob_store, site_id, force=force)
    return DeletionSummary(deleted=deleted)


@router.get("/sites/{site_id}/hierarchy", response_model=SiteHierarchy)
async def get_site_hierarchy(
    site_id: str, session: AsyncSession = Depends(get_db)
) -> SiteHierarchy:
    """Site with its full building, floor and zone tree."""
    return await hierarchy_service.get_site_with_hierarchy(session, site_id)


@router.get("/sites/{site_id}/zones", response_model=list[SiteZone])
async def list_site_zones(site_id: str, session: AsyncSession = Depends(get_db)) -> list[SiteZone]:
    return await hierarchy_service.list_site_zones(session, site_id)


@router.get("/sites/{site_id}/dependencies", response_model=SiteDependencies)
async def get_site_dependencies(
    site_id: str, session: AsyncSession = Depends(get_db)
) -> SiteDependencies:
    """Counts shown before a site delete is confirmed."""
    return await dependency_service.count_dependents(session, site_id)


# --- Buildings ---


@router.get("/sites/{site_id}/buildings", response_model=list[BuildingOut])
async def list_buildings(
    site_id: str, session: AsyncSession = Depends(get_db)
) -> list[BuildingOut]:
    buildings = await hierarchy_service.list_buildings(session, site_id)
    return [BuildingOut.from_model(building) for building in buildings]


@router.post("/buildings", response_model=BuildingOut, status_code=201)
async def create_building(
    payload: BuildingCreate, session: AsyncSession = Depends(get_db)
) -> BuildingOut:
    return BuildingOut.from_model(await hierarchy_service.create_building(session, payload))


@router.get("/buildings/{building_id}", response_model=BuildingOut)
async def get_building(building_id: str, session: AsyncSession = Depends(get_db)) -> BuildingOut:
    return BuildingOut.from_model(await hierarchy_service.get_building(session, building_id))


@router.patch("/buildings/{building_id}", response_model=BuildingOut)
async def update_building(
    building_id: str, changes: BuildingUpdate, session: AsyncSession = Depends(get_db)
) -> BuildingOut:
    building = await hierarchy_service.update_building(session, building_id, changes)
    return BuildingOut.from_model(building)


@router.delete("/buildings/{building_id}", response_model=DeletionSummary)
async def delete_building(
    building_id: str, session: AsyncSession = Depends(get_db)
) -> DeletionSummary:
    return DeletionSummary(deleted=await hierarchy_service.delete_building(session, building_id))


# --- Floors ---


@router.get("/buildings/{building_id}/floors", response_model=list[FloorOut])
async def list_floors(building_id: str, session: AsyncSession = Depends(get_db)) -> list[FloorOut]:
    floors = await hierarchy_service.list_floors(session, building_id)
    return [FloorOut.model_validate(floor) for floor in floors]


@router.post("/floors", response_model=FloorOut, status_code=201)
async def create_floor(payload: FloorCreate, session: AsyncSession = Depends(get_db)) -> FloorOut:
    return FloorOut.model_validate(await hierarchy_service.create_floor(session, payload))


@router.get("/floors/{floor_id}", response_model=FloorOut)
async def get_floor(floor_id: str, session: AsyncSession = Depends(get_db)) -> FloorOut:
    return FloorOut.model_validate(await hierarchy_service.get_floor(session, floor_id))


@router.patch("/floors/{floor_id}", response_model=FloorOut)
async def update_floor(
    floor_id: str, changes: FloorUpdate, session: AsyncSession = Depends(get_db)
) -> FloorOut:
    floor = await hierarchy_service.update_floor(session, floor_id, changes)
    return FloorOut.model_validate(floor)


@router.delete("/floors/{floor_id}", response_model=DeletionSummary)
async def delete_floor(floor_id: str, session: AsyncSession = Depends(get_db)) -> DeletionSummary:
    return DeletionSummary(deleted=await hierarchy_service.delete_floor(session, floor_id))


# --- Zones ---


@router.get("/floors/{floor_id}/zones", response_model=list[ZoneOut])
async def list_zones(floor_id: str, session: AsyncSession = Depends(get_db)) -> list[ZoneOut]:
    zones = await hierarchy_service.list_zones(session, floor_id)
    return [ZoneOut.model_validate(zone) for zone in zones]


@router.post("/zones", response_model=ZoneOut, status_code=201)
async def create_zone(payload: ZoneCreate, session: AsyncSession = Depends(get_db)) -> ZoneOut:
    return ZoneOut.model_validate(await hierarchy_service.create_zone(session, payload))


@router.get("/zones/{zone_id}", response_model=ZoneOut)
async def get_zone(zone_id: str, session: AsyncSession = Depends(get_db)) -> ZoneOut:
    return ZoneOut.model_validate(await hierarchy_service.get_zone(session, zone_id))


@router.patch("/zones/{zone_id}", response_model=ZoneOut)
async def update_zone(
    zone_id: str, changes: ZoneUpdate, session: AsyncSession = Depends(get_db)
) -> ZoneOut:
    return ZoneOut.model_validate(await hierarchy_service.update_zone(session, zone_id, changes))


@router.delete("/zones/{zone_id}", response_model=DeletionSummary)
async def delete_zone(zone_id: str, session: AsyncSession = Depends(get_db)) -> DeletionSummary:
    return DeletionSummary(deleted=await hierarchy_service.delete_zone(session, zone_id))
