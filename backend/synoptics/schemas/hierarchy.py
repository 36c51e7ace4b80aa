"""Pydantic schemas for organizations, sites and the building/floor/zone tree."""

from datetime import datetime

from synoptics.decimals import parse_decimal
from synoptics.models import Building, Floor, Site
from synoptics.schemas.common import CamelModel

# --- Organization ---


class OrganizationOut(CamelModel):
    id: str
    team_id: int
    name: str
    created_at: datetime


class DefaultSiteResponse(CamelModel):
    """The only site of the caller's organization, if there is exactly one."""

    site_id: str | None = None


# --- Site ---


class SiteCreate(CamelModel):
    organization_id: str
    name: str
    address: str | None = None
    latitude: float | None = None
    longitude: float | None = None


class SiteUpdate(CamelModel):
    name: str | None = None
    address: str | None = None
    latitude: float | None = None
    longitude: float | None = None


class SiteOut(CamelModel):
    id: str
    organization_id: str
    name: str
    address: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    created_at: datetime

    @classmethod
    def from_model(cls, site: Site) -> "SiteOut":
        return cls(
            id=site.id,
            organization_id=site.organization_id,
            name=site.name,
            address=site.address,
            latitude=parse_decimal(site.latitude),
            longitude=parse_decimal(site.longitude),
            created_at=site.created_at,
        )


# --- Building ---


class BuildingCreate(CamelModel):
    site_id: str
    name: str
    latitude: float | None = None
    longitude: float | None = None


class BuildingUpdate(CamelModel):
    name: str | None = None
    latitude: float | None = None
    longitude: float | None = None


class BuildingOut(CamelModel):
    id: str
    site_id: str
    name: str
    latitude: float | None = None
    longitude: float | None = None
    created_at: datetime

    @classmethod
    def from_model(cls, building: Building) -> "BuildingOut":
        return cls(
            id=building.id,
            site_id=building.site_id,
            name=building.name,
            latitude=parse_decimal(building.latitude),
            longitude=parse_decimal(building.longitude),
            created_at=building.created_at,
        )


# --- Floor ---


class FloorCreate(CamelModel):
    building_id: str
    floor_number: int
    name: str | None = None


class FloorUpdate(CamelModel):
    floor_number: int | None = None
    name: str | None = None


class FloorOut(CamelModel):
    id: str
    building_id: str
    floor_number: int
    name: str | None = None
    created_at: datetime


# --- Zone ---


class ZoneCreate(CamelModel):
    floor_id: str
    name: str


class ZoneUpdate(CamelModel):
    name: str | None = None


class ZoneOut(CamelModel):
    id: str
    floor_id: str
    name: str
    created_at: datetime


class SiteZone(CamelModel):
    """Zone listed across a whole site, with a short display code."""

    id: str
    name: str
    code: str
    floor_id: str


# --- Hierarchy tree ---


class FloorTree(FloorOut):
    zones: list[ZoneOut] = []

    @classmethod
    def from_model(cls, floor: Floor) -> "FloorTree":
        return cls(
            id=floor.id,
            building_id=floor.building_id,
            floor_number=floor.floor_number,
            name=floor.name,
            created_at=floor.created_at,
            zones=[ZoneOut.model_validate(zone) for zone in floor.zones],
        )


class BuildingTree(BuildingOut):
    floors: list[FloorTree] = []


class SiteHierarchy(SiteOut):
    buildings: list[BuildingTree] = []

    @classmethod
    def from_tree(cls, site: Site) -> "SiteHierarchy":
        buildings = []
        for building in site.buildings:
            base = BuildingOut.from_model(building)
            buildings.append(
                BuildingTree(
                    **base.model_dump(),
                    floors=[FloorTree.from_model(floor) for floor in building.floors],
                )
            )
        return cls(**SiteOut.from_model(site).model_dump(), buildings=buildings)


class SiteDependencies(CamelModel):
    """Downstream row counts for a site, used to warn before deleting it."""

    buildings: int = 0
    floors: int = 0
    layouts: int = 0
    nodes: int = 0
    total: int = 0
