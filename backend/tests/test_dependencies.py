"""Tests for the site dependency count."""

import pytest
from factories import make_building, make_floor, make_layout, make_node, make_site

from synoptics.errors import NotFoundError
from synoptics.services import dependency_service


@pytest.mark.asyncio
async def test_counts_building_anchored_nodes(session):
    site = await make_site(session)
    building = await make_building(session, site)
    await make_node(session, site, building_id=building.id)

    dependencies = await dependency_service.count_dependents(session, site.id)

    assert dependencies.buildings == 1
    assert dependencies.nodes == 1
    assert dependencies.floors == 0
    assert dependencies.layouts == 0
    assert dependencies.total == 2


@pytest.mark.asyncio
async def test_empty_site_counts_zero(session):
    site = await make_site(session)
    # Site-level nodes hang off no building
    await make_node(session, site)

    dependencies = await dependency_service.count_dependents(session, site.id)

    assert dependencies.total == 0


@pytest.mark.asyncio
async def test_floors_and_layouts_counted(session):
    site = await make_site(session)
    building = await make_building(session, site)
    floor = await make_floor(session, building, 0)
    await make_floor(session, building, 1)
    await make_layout(session, site)
    await make_layout(session, site, "Ground", "floor", floor)
    other_site = await make_site(session, "Other")
    await make_floor(session, await make_building(session, other_site))

    dependencies = await dependency_service.count_dependents(session, site.id)

    assert (dependencies.buildings, dependencies.floors, dependencies.layouts) == (1, 2, 2)
    assert dependencies.total == 5


@pytest.mark.asyncio
async def test_missing_site(session):
    with pytest.raises(NotFoundError):
        await dependency_service.count_dependents(session, "ghost")
