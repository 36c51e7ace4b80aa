"""Tests for the hierarchy service: organizations, sites, buildings, floors, zones."""

import logging

import pytest
from factories import (
    make_building,
    make_floor,
    make_layout,
    make_node,
    make_site,
    make_zone,
)
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from synoptics.errors import ConflictError, NotFoundError, ValidationError
from synoptics.models import Annotation, Floor, Layout, Node, NodePosition, Organization, Zone
from synoptics.schemas import (
    AnnotationIn,
    BuildingCreate,
    FloorCreate,
    Point,
    SiteCreate,
    SiteUpdate,
    ZoneUpdate,
)
from synoptics.services import (
    annotation_service,
    dependency_service,
    hierarchy_service,
    node_service,
    placement_service,
)


async def _count(session, model) -> int:
    return await session.scalar(select(func.count()).select_from(model))


# --- Organizations and default site ---


@pytest.mark.asyncio
async def test_organization_is_created_once_per_team(session):
    first = await hierarchy_service.get_or_create_organization(session, 7, "Team Seven")
    second = await hierarchy_service.get_or_create_organization(session, 7, "Renamed")

    assert first.id == second.id
    assert second.name == "Team Seven"
    assert await _count(session, Organization) == 1


@pytest.mark.asyncio
async def test_default_site_only_when_exactly_one(session, billing):
    assert await hierarchy_service.resolve_default_site(session, 3, "Team Three") is None

    organization = await hierarchy_service.get_organization_by_team(session, 3)
    site = await hierarchy_service.create_site(
        session, billing, SiteCreate(organization_id=organization.id, name="North")
    )
    assert await hierarchy_service.resolve_default_site(session, 3, "Team Three") == site.id

    await hierarchy_service.create_site(
        session, billing, SiteCreate(organization_id=organization.id, name="South")
    )
    assert await hierarchy_service.resolve_default_site(session, 3, "Team Three") is None


# --- Sites ---


@pytest.mark.asyncio
async def test_create_site_syncs_billing_once(session, billing):
    organization = await hierarchy_service.get_or_create_organization(session, 42, "Team")
    site = await hierarchy_service.create_site(
        session,
        billing,
        SiteCreate(organization_id=organization.id, name="  Royal Infirmary ", latitude=51.5),
    )

    assert site.name == "Royal Infirmary"
    assert site.latitude == "51.50000000"
    assert billing.calls == [42]


@pytest.mark.asyncio
async def test_billing_failure_does_not_undo_site(session, billing, caplog):
    billing.fail = True
    organization = await hierarchy_service.get_or_create_organization(session, 5, "Team")

    with caplog.at_level(logging.WARNING):
        site = await hierarchy_service.create_site(
            session, billing, SiteCreate(organization_id=organization.id, name="Clinic")
        )

    assert await hierarchy_service.get_site(session, site.id) is not None
    assert "Subscription sync failed" in caplog.text


@pytest.mark.asyncio
async def test_create_site_rejects_blank_name(session, billing):
    organization = await hierarchy_service.get_or_create_organization(session, 1, "Team")
    with pytest.raises(ValidationError):
        await hierarchy_service.create_site(
            session, billing, SiteCreate(organization_id=organization.id, name="   ")
        )
    assert billing.calls == []


@pytest.mark.asyncio
async def test_create_site_for_missing_organization(session, billing):
    with pytest.raises(NotFoundError):
        await hierarchy_service.create_site(
            session, billing, SiteCreate(organization_id="missing", name="Clinic")
        )


@pytest.mark.asyncio
async def test_list_sites_newest_first(session):
    first = await make_site(session, "First")
    second = await make_site(session, "Second")

    sites = await hierarchy_service.list_sites(session, first.organization_id)

    assert [site.id for site in sites] == [second.id, first.id]


@pytest.mark.asyncio
async def test_update_site_is_partial(session):
    site = await make_site(session, "Old Name")
    updated = await hierarchy_service.update_site(
        session, site.id, SiteUpdate(address="2 Harbour St")
    )

    assert updated.name == "Old Name"
    assert updated.address == "2 Harbour St"


# --- Tree ---


@pytest.mark.asyncio
async def test_site_hierarchy_returns_whole_tree(session):
    site = await make_site(session)
    west = await make_building(session, site, "West Wing")
    east = await make_building(session, site, "East Wing")
    upper = await make_floor(session, east, 2)
    ground = await make_floor(session, east, 0)
    await make_zone(session, ground, "Lobby")
    await make_zone(session, ground, "Emergency")

    tree = await hierarchy_service.get_site_with_hierarchy(session, site.id)

    assert [b.name for b in tree.buildings] == ["East Wing", "West Wing"]
    east_tree = tree.buildings[0]
    assert [f.id for f in east_tree.floors] == [ground.id, upper.id]
    assert [z.name for z in east_tree.floors[0].zones] == ["Emergency", "Lobby"]
    assert tree.buildings[1].id == west.id
    assert tree.buildings[1].floors == []


@pytest.mark.asyncio
async def test_site_hierarchy_for_missing_site(session):
    with pytest.raises(NotFoundError):
        await hierarchy_service.get_site_with_hierarchy(session, "nope")


@pytest.mark.asyncio
async def test_site_zones_span_all_buildings(session):
    site = await make_site(session)
    other_site = await make_site(session, "Elsewhere")
    a = await make_floor(session, await make_building(session, site, "A"))
    b = await make_floor(session, await make_building(session, site, "B"))
    zone_a = await make_zone(session, a, "Ward 1")
    zone_b = await make_zone(session, b, "Ward 2")
    await make_zone(session, await make_floor(session, await make_building(session, other_site)))

    zones = await hierarchy_service.list_site_zones(session, site.id)

    assert [z.id for z in zones] == [zone_a.id, zone_b.id]
    assert zones[0].code == zone_a.id[:8].upper()
    assert zones[1].floor_id == b.id


@pytest.mark.asyncio
async def test_floor_numbers_need_not_be_unique(session):
    building = await make_building(session, await make_site(session))
    await make_floor(session, building, 1, "Mezzanine")
    await make_floor(session, building, 1, "Level 1")

    assert len(await hierarchy_service.list_floors(session, building.id)) == 2


@pytest.mark.asyncio
async def test_children_need_existing_parent(session):
    with pytest.raises(NotFoundError):
        await hierarchy_service.create_building(session, BuildingCreate(site_id="x", name="B"))
    with pytest.raises(NotFoundError):
        await hierarchy_service.create_floor(
            session, FloorCreate(building_id="x", floor_number=0)
        )


@pytest.mark.asyncio
async def test_zone_rename_rejects_blank(session):
    floor = await make_floor(session, await make_building(session, await make_site(session)))
    zone = await make_zone(session, floor)
    with pytest.raises(ValidationError):
        await hierarchy_service.update_zone(session, zone.id, ZoneUpdate(name=""))


# --- Cascading deletes ---


@pytest.mark.asyncio
async def test_delete_zone_moves_nodes_to_floor(session):
    site = await make_site(session)
    floor = await make_floor(session, await make_building(session, site))
    zone = await make_zone(session, floor)
    node = await make_node(session, site, zone_id=zone.id)

    summary = await hierarchy_service.delete_zone(session, zone.id)

    await session.refresh(node)
    assert summary == {"zones": 1, "nodes_detached": 1}
    assert node.zone_id is None
    assert node.floor_id == floor.id


@pytest.mark.asyncio
async def test_delete_floor_keeps_building_anchor_and_drops_floor_layouts(session):
    site = await make_site(session)
    building = await make_building(session, site)
    floor = await make_floor(session, building)
    zone = await make_zone(session, floor)
    node = await make_node(session, site, zone_id=zone.id)
    floor_layout = await make_layout(session, site, "Level 1", "floor", floor)
    site_layout = await make_layout(session, site)
    await placement_service.upsert_position(session, node.id, floor_layout.id, 10, 10)
    await placement_service.upsert_position(session, node.id, site_layout.id, 20, 20)
    await annotation_service.create_annotation(
        session, floor_layout.id, AnnotationIn(title="Theatres", position=Point(x=0, y=0))
    )

    summary = await hierarchy_service.delete_floor(session, floor.id)

    await session.refresh(node)
    assert node.building_id == building.id
    assert node.floor_id is None and node.zone_id is None
    assert summary["floors"] == 1
    assert summary["zones"] == 1
    assert summary["layouts"] == 1
    assert summary["annotations"] == 1
    assert summary["positions"] == 1
    assert await session.get(Layout, site_layout.id) is not None
    assert await placement_service.get_position(session, node.id, site_layout.id) is not None


@pytest.mark.asyncio
async def test_delete_building_cascades_hierarchy_and_reassigns_nodes(session):
    site = await make_site(session)
    building = await make_building(session, site)
    floor = await make_floor(session, building)
    zone = await make_zone(session, floor)
    node = await make_node(session, site, zone_id=zone.id)

    summary = await hierarchy_service.delete_building(session, building.id)

    await session.refresh(node)
    assert (node.building_id, node.floor_id, node.zone_id) == (None, None, None)
    assert summary["buildings"] == 1
    assert summary["nodes_detached"] == 1
    assert await _count(session, Floor) == 0
    assert await _count(session, Zone) == 0
    assert await _count(session, Node) == 1


@pytest.mark.asyncio
async def test_delete_missing_building(session):
    with pytest.raises(NotFoundError):
        await hierarchy_service.delete_building(session, "missing")


@pytest.mark.asyncio
async def test_delete_site_blocked_by_dependents(session, blob_store):
    site = await make_site(session)
    await make_building(session, site)
    site_id = site.id

    with pytest.raises(ConflictError) as excinfo:
        await hierarchy_service.delete_site(session, blob_store, site_id)

    assert excinfo.value.details["buildings"] == 1
    assert excinfo.value.details["total"] == 1
    assert await hierarchy_service.get_site(session, site_id) is not None


@pytest.mark.asyncio
async def test_force_delete_site_removes_everything(session, blob_store):
    site = await make_site(session)
    floor = await make_floor(session, await make_building(session, site))
    node_a = await make_node(session, site, floor_id=floor.id)
    node_b = await make_node(session, site, "source")
    layout = await make_layout(session, site)
    await placement_service.import_nodes(session, layout.id, [node_a.id, node_b.id])
    await annotation_service.create_annotation(
        session, layout.id, AnnotationIn(title="Plant", position=Point(x=1, y=2))
    )
    await node_service.create_connection(session, site.id, node_b.id, node_a.id, "oxygen")

    summary = await hierarchy_service.delete_site(session, blob_store, site.id, force=True)

    assert summary["sites"] == 1
    assert summary["nodes"] == 2
    assert summary["connections"] == 1
    assert summary["positions"] == 2
    assert summary["equipment"] == 2
    for model in (Node, NodePosition, Annotation, Layout, Floor):
        assert await _count(session, model) == 0
    with pytest.raises(NotFoundError):
        await hierarchy_service.get_site(session, site.id)


@pytest.mark.asyncio
async def test_empty_site_deletes_without_force(session, blob_store):
    site = await make_site(session)
    summary = await hierarchy_service.delete_site(session, blob_store, site.id)
    assert summary["sites"] == 1


@pytest.mark.asyncio
async def test_site_delete_blocks_new_dependents_while_counting(
    session, engine, blob_store, monkeypatch
):
    site = await make_site(session)
    site_id = site.id
    # Second connection that gives up quickly instead of waiting on the lock
    other_engine = create_async_engine(engine.url, connect_args={"timeout": 0.1})
    other_sessions = async_sessionmaker(other_engine, class_=AsyncSession, expire_on_commit=False)
    count_dependents = dependency_service.count_dependents
    late_building_rejected = []

    async def count_then_add_building(count_session, counted_site_id):
        dependencies = await count_dependents(count_session, counted_site_id)
        async with other_sessions() as other:
            try:
                await hierarchy_service.create_building(
                    other, BuildingCreate(site_id=counted_site_id, name="Late Wing")
                )
            except OperationalError:
                late_building_rejected.append(True)
        return dependencies

    monkeypatch.setattr(dependency_service, "count_dependents", count_then_add_building)
    try:
        summary = await hierarchy_service.delete_site(session, blob_store, site_id)
    finally:
        await other_engine.dispose()

    assert late_building_rejected == [True]
    assert summary["buildings"] == 0
