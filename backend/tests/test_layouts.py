"""Tests for layouts, the layout view and annotations."""

import pytest
from factories import make_building, make_floor, make_layout, make_node, make_site

from synoptics.errors import DanglingReferenceError, NotFoundError, ValidationError
from synoptics.schemas import (
    AnnotationIn,
    AnnotationUpdate,
    LayoutCreate,
    LayoutUpdate,
    Point,
    Size,
)
from synoptics.services import (
    annotation_service,
    layout_service,
    node_service,
    placement_service,
)

# --- Layouts ---


@pytest.mark.asyncio
async def test_site_layout_cannot_have_floor(session):
    site = await make_site(session)
    floor = await make_floor(session, await make_building(session, site))
    with pytest.raises(ValidationError):
        await make_layout(session, site, "Overview", "site", floor)


@pytest.mark.asyncio
async def test_floor_layout_needs_floor_on_same_site(session):
    site = await make_site(session)
    other_floor = await make_floor(
        session, await make_building(session, await make_site(session, "Other"))
    )

    with pytest.raises(ValidationError):
        await make_layout(session, site, "Level 1", "floor")
    with pytest.raises(DanglingReferenceError):
        await make_layout(session, site, "Level 1", "floor", other_floor)
    with pytest.raises(DanglingReferenceError):
        await layout_service.create_layout(
            session,
            LayoutCreate(site_id=site.id, name="Z", layout_type="zone", floor_id="ghost"),
        )


@pytest.mark.asyncio
async def test_list_layouts_by_site_and_floor(session):
    site = await make_site(session)
    floor = await make_floor(session, await make_building(session, site))
    overview = await make_layout(session, site)
    level = await make_layout(session, site, "Level 1", "floor", floor)

    by_site = await layout_service.list_layouts_by_site(session, site.id)
    by_floor = await layout_service.list_layouts_by_floor(session, floor.id)

    assert [layout.id for layout in by_site] == [overview.id, level.id]
    assert [layout.id for layout in by_floor] == [level.id]


@pytest.mark.asyncio
async def test_update_layout_metadata(session):
    layout = await make_layout(session, await make_site(session))

    updated = await layout_service.update_layout(
        session, layout.id, LayoutUpdate(metadata={"zoom": 1.5})
    )

    assert updated.metadata_ == {"zoom": 1.5}
    assert updated.name == "Overview"


@pytest.mark.asyncio
async def test_delete_layout_keeps_nodes(session):
    site = await make_site(session)
    node = await make_node(session, site)
    layout = await make_layout(session, site)
    await placement_service.upsert_position(session, node.id, layout.id, 1, 1)
    await annotation_service.create_annotation(
        session, layout.id, AnnotationIn(title="Main", position=Point(x=0, y=0))
    )

    counts = await layout_service.delete_layout(session, layout.id)

    assert counts == {"layouts": 1, "annotations": 1, "positions": 1}
    assert await node_service.get_node(session, node.id) is not None
    with pytest.raises(NotFoundError):
        await layout_service.get_layout(session, layout.id)


# --- Layout view ---


@pytest.mark.asyncio
async def test_view_draws_connection_once_between_placed_nodes(session):
    site = await make_site(session)
    source = await make_node(session, site, "source")
    valve = await make_node(session, site)
    outlet = await make_node(session, site, "fitting")
    layout = await make_layout(session, site)
    await placement_service.import_nodes(session, layout.id, [source.id, valve.id])
    drawn = await node_service.create_connection(
        session, site.id, source.id, valve.id, "oxygen"
    )
    await node_service.create_connection(session, site.id, valve.id, outlet.id, "oxygen")

    view = await layout_service.get_layout_with_nodes_and_connections(session, layout.id)

    assert {n.id for n in view.nodes} == {source.id, valve.id}
    assert [c.id for c in view.connections] == [drawn.id]
    placed_source = next(n for n in view.nodes if n.id == source.id)
    assert placed_source.position.x_position == 100
    assert placed_source.name == "O2 Manifold"


@pytest.mark.asyncio
async def test_view_of_empty_layout(session):
    layout = await make_layout(session, await make_site(session))

    view = await layout_service.get_layout_with_nodes_and_connections(session, layout.id)

    assert view.nodes == []
    assert view.connections == []
    assert view.layout_type == "site"


@pytest.mark.asyncio
async def test_view_of_missing_layout(session):
    with pytest.raises(NotFoundError):
        await layout_service.get_layout_with_nodes_and_connections(session, "ghost")


# --- Annotations ---


@pytest.mark.asyncio
async def test_bulk_insert_then_list(session):
    layout = await make_layout(session, await make_site(session))

    result = await annotation_service.bulk_upsert_annotations(
        session,
        layout.id,
        [AnnotationIn(type="label", title="Room A", position=Point(x=10, y=20))],
    )
    listed = await annotation_service.list_annotations(session, layout.id)

    assert result.count == 1
    assert result.errors == []
    assert len(listed) == 1
    assert listed[0].title == "Room A"
    assert (listed[0].position_x, listed[0].position_y) == ("10.00", "20.00")


@pytest.mark.asyncio
async def test_bulk_updates_by_id_and_reports_bad_items(session):
    layout = await make_layout(session, await make_site(session))
    existing = await annotation_service.create_annotation(
        session, layout.id, AnnotationIn(title="Old", position=Point(x=0, y=0))
    )

    result = await annotation_service.bulk_upsert_annotations(
        session,
        layout.id,
        [
            AnnotationIn(id=existing.id, title="Renamed", position=Point(x=5, y=5)),
            AnnotationIn(title="   ", position=Point(x=1, y=1)),
            AnnotationIn(id="ghost", title="Lost", position=Point(x=1, y=1)),
            AnnotationIn(title="New", position=Point(x=2, y=2), size=Size(width=80, height=40)),
        ],
    )

    assert result.count == 2
    assert [e.index for e in result.errors] == [1, 2]
    assert result.errors[1].id == "ghost"
    titles = [a.title for a in await annotation_service.list_annotations(session, layout.id)]
    assert titles == ["Renamed", "New"]
    assert result.annotations[1].size == Size(width=80, height=40)


@pytest.mark.asyncio
async def test_bulk_cannot_touch_annotation_of_other_layout(session):
    site = await make_site(session)
    layout = await make_layout(session, site)
    other = await make_layout(session, site, "Other")
    foreign = await annotation_service.create_annotation(
        session, other.id, AnnotationIn(title="Keep", position=Point(x=0, y=0))
    )

    result = await annotation_service.bulk_upsert_annotations(
        session,
        layout.id,
        [AnnotationIn(id=foreign.id, title="Hijack", position=Point(x=0, y=0))],
    )

    assert result.count == 0
    assert (await annotation_service.get_annotation(session, foreign.id)).title == "Keep"


@pytest.mark.asyncio
async def test_annotation_partial_update(session):
    layout = await make_layout(session, await make_site(session))
    annotation = await annotation_service.create_annotation(
        session,
        layout.id,
        AnnotationIn(
            title="Theatres",
            position=Point(x=0, y=0),
            size=Size(width=100, height=50),
            color="#ff0000",
        ),
    )

    updated = await annotation_service.update_annotation(
        session, annotation.id, AnnotationUpdate(size=None, interactive=True)
    )

    assert updated.size_width is None and updated.size_height is None
    assert updated.interactive == 1
    assert updated.color == "#ff0000"
    assert updated.title == "Theatres"


@pytest.mark.asyncio
async def test_delete_annotations(session):
    layout = await make_layout(session, await make_site(session))
    first = await annotation_service.create_annotation(
        session, layout.id, AnnotationIn(title="A", position=Point(x=0, y=0))
    )
    await annotation_service.create_annotation(
        session, layout.id, AnnotationIn(title="B", position=Point(x=0, y=0))
    )
    await annotation_service.create_annotation(
        session, layout.id, AnnotationIn(title="C", position=Point(x=0, y=0))
    )

    await annotation_service.delete_annotation(session, first.id)
    assert await annotation_service.delete_layout_annotations(session, layout.id) == 2
    assert await annotation_service.list_annotations(session, layout.id) == []


@pytest.mark.asyncio
async def test_annotations_of_missing_layout(session):
    with pytest.raises(NotFoundError):
        await annotation_service.list_annotations(session, "ghost")
