"""End-to-end tests through the HTTP API."""

import pytest

API = "/api/synoptics"


async def _create_site(client, team_id=1, name="General Hospital"):
    org = await client.get(f"{API}/organizations/current", headers={"X-Team-Id": str(team_id)})
    response = await client.post(
        f"{API}/sites", json={"organizationId": org.json()["id"], "name": name}
    )
    assert response.status_code == 201
    return response.json()


async def _create_node(client, site_id, kind="valve", **extra):
    payloads = {
        "source": {"name": "VIE Tank", "gasType": "oxygen"},
        "valve": {"name": "ZV-1", "valveType": "zone", "gasType": "oxygen"},
        "fitting": {"fittingType": "tee", "gasType": "oxygen"},
    }
    element = await client.post(f"{API}/{kind}s", json={"siteId": site_id, **payloads[kind]})
    assert element.status_code == 201
    node = await client.post(
        f"{API}/nodes",
        json={"siteId": site_id, "nodeType": kind, "elementId": element.json()["id"], **extra},
    )
    assert node.status_code == 201
    return node.json()


# --- Organizations and sites ---


@pytest.mark.asyncio
async def test_default_site_follows_site_count(client, billing):
    headers = {"X-Team-Id": "9"}
    assert (await client.get(f"{API}/default-site", headers=headers)).json() == {"siteId": None}

    site = await _create_site(client, team_id=9)

    response = await client.get(f"{API}/default-site", headers=headers)
    assert response.json() == {"siteId": site["id"]}
    assert billing.calls == [9]


@pytest.mark.asyncio
async def test_default_site_without_team_header(client):
    response = await client.get(f"{API}/default-site")
    assert response.json() == {"siteId": None}


@pytest.mark.asyncio
async def test_current_organization_requires_team(client):
    response = await client.get(f"{API}/organizations/current")
    assert response.status_code == 400
    assert response.json()["error"] == "validation_error"


@pytest.mark.asyncio
async def test_site_serialized_in_camel_case(client):
    site = await _create_site(client)

    response = await client.get(f"{API}/sites/{site['id']}/hierarchy")

    body = response.json()
    assert response.status_code == 200
    assert "organizationId" in body
    assert "createdAt" in body
    assert body["buildings"] == []


# --- Caller identity ---


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "method, path",
    [
        ("GET", "/default-site"),
        ("POST", "/sites"),
        ("DELETE", "/nodes/any-node"),
        ("PUT", "/node-positions"),
        ("POST", "/annotations/bulk"),
        ("GET", "/valves/any-valve/media"),
    ],
)
async def test_requests_without_user_are_rejected(client, method, path):
    del client.headers["X-User-Id"]

    response = await client.request(method, f"{API}{path}", json={})

    assert response.status_code == 401
    assert response.json()["error"] == "unauthorized"


@pytest.mark.asyncio
async def test_anonymous_site_delete_leaves_site(client):
    site = await _create_site(client)
    await client.post(f"{API}/buildings", json={"siteId": site["id"], "name": "Main"})
    user = client.headers.pop("X-User-Id")

    response = await client.delete(f"{API}/sites/{site['id']}", params={"force": "true"})

    client.headers["X-User-Id"] = user
    assert response.status_code == 401
    assert (await client.get(f"{API}/sites/{site['id']}")).status_code == 200


# --- Error mapping ---


@pytest.mark.asyncio
async def test_missing_entity_maps_to_404(client):
    response = await client.get(f"{API}/sites/ghost")

    assert response.status_code == 404
    body = response.json()
    assert body["error"] == "not_found"
    assert body["details"] == {"entity": "site", "id": "ghost"}


@pytest.mark.asyncio
async def test_invalid_input_maps_to_400(client):
    site = await _create_site(client)
    response = await client.post(f"{API}/buildings", json={"siteId": site["id"], "name": " "})
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_dangling_reference_maps_to_422(client):
    site = await _create_site(client)
    response = await client.post(
        f"{API}/nodes", json={"siteId": site["id"], "nodeType": "valve", "elementId": "ghost"}
    )
    assert response.status_code == 422
    assert response.json()["error"] == "reference_error"


@pytest.mark.asyncio
async def test_blocked_site_delete_maps_to_409(client):
    site = await _create_site(client)
    await client.post(f"{API}/buildings", json={"siteId": site["id"], "name": "Main"})

    blocked = await client.delete(f"{API}/sites/{site['id']}")
    forced = await client.delete(f"{API}/sites/{site['id']}", params={"force": "true"})

    assert blocked.status_code == 409
    assert blocked.json()["details"]["buildings"] == 1
    assert forced.status_code == 200
    assert forced.json()["deleted"]["buildings"] == 1


@pytest.mark.asyncio
async def test_dependencies_endpoint(client):
    site = await _create_site(client)
    building = await client.post(f"{API}/buildings", json={"siteId": site["id"], "name": "A"})
    await _create_node(client, site["id"], buildingId=building.json()["id"])

    response = await client.get(f"{API}/sites/{site['id']}/dependencies")

    assert response.json() == {"buildings": 1, "floors": 0, "layouts": 0, "nodes": 1, "total": 2}


# --- Placement and layouts ---


@pytest.mark.asyncio
async def test_place_move_and_read_node_position(client):
    site = await _create_site(client)
    node = await _create_node(client, site["id"])
    layout = await client.post(
        f"{API}/layouts", json={"siteId": site["id"], "name": "Overview", "layoutType": "site"}
    )
    layout_id = layout.json()["id"]

    first = await client.put(
        f"{API}/node-positions",
        json={"nodeId": node["id"], "layoutId": layout_id, "xPosition": 10, "yPosition": 20},
    )
    second = await client.put(
        f"{API}/node-positions",
        json={"nodeId": node["id"], "layoutId": layout_id, "xPosition": 30, "yPosition": 40},
    )
    read = await client.get(
        f"{API}/node-positions", params={"node_id": node["id"], "layout_id": layout_id}
    )
    listed = await client.get(f"{API}/layouts/{layout_id}/positions")

    assert first.status_code == 200 and second.status_code == 200
    assert read.json() == {
        "nodeId": node["id"],
        "layoutId": layout_id,
        "xPosition": 30.0,
        "yPosition": 40.0,
        "rotation": 0,
    }
    assert len(listed.json()) == 1


@pytest.mark.asyncio
async def test_rotation_validated_by_request_schema(client):
    response = await client.put(
        f"{API}/node-positions",
        json={"nodeId": "a", "layoutId": "b", "xPosition": 0, "yPosition": 0, "rotation": 400},
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_huge_coordinate_maps_to_400(client):
    site = await _create_site(client)
    node = await _create_node(client, site["id"])
    layout = await client.post(
        f"{API}/layouts", json={"siteId": site["id"], "name": "Overview", "layoutType": "site"}
    )

    response = await client.put(
        f"{API}/node-positions",
        json={
            "nodeId": node["id"],
            "layoutId": layout.json()["id"],
            "xPosition": 1e30,
            "yPosition": 0,
        },
    )

    assert response.status_code == 400
    assert response.json()["details"] == {"field": "x_position"}


@pytest.mark.asyncio
async def test_import_nodes_and_view_layout(client):
    site = await _create_site(client)
    source = await _create_node(client, site["id"], "source")
    valve = await _create_node(client, site["id"])
    await client.post(
        f"{API}/connections",
        json={
            "siteId": site["id"],
            "fromNodeId": source["id"],
            "toNodeId": valve["id"],
            "gasType": "oxygen",
            "diameterMm": 28,
        },
    )
    layout = await client.post(
        f"{API}/layouts", json={"siteId": site["id"], "name": "Overview", "layoutType": "site"}
    )
    layout_id = layout.json()["id"]

    imported = await client.post(
        f"{API}/layouts/{layout_id}/import-nodes",
        json={"nodeIds": [source["id"], valve["id"], source["id"]]},
    )
    view = await client.get(f"{API}/layouts/{layout_id}")

    summary = imported.json()
    assert (summary["imported"], summary["failed"]) == (2, 1)
    assert summary["results"][2]["reason"] == "Node already exists in this layout"
    body = view.json()
    assert {n["id"] for n in body["nodes"]} == {source["id"], valve["id"]}
    assert body["nodes"][0]["position"]["xPosition"] == 100.0
    assert len(body["connections"]) == 1
    assert body["connections"][0]["diameterMm"] == 28.0


@pytest.mark.asyncio
async def test_bulk_annotations_endpoint(client):
    site = await _create_site(client)
    layout = await client.post(
        f"{API}/layouts", json={"siteId": site["id"], "name": "Overview", "layoutType": "site"}
    )
    layout_id = layout.json()["id"]

    response = await client.post(
        f"{API}/annotations/bulk",
        json={
            "layoutId": layout_id,
            "annotations": [
                {"type": "label", "title": "Room A", "position": {"x": 10, "y": 20}},
                {"title": "", "position": {"x": 0, "y": 0}},
            ],
        },
    )
    listed = await client.get(f"{API}/layouts/{layout_id}/annotations")

    body = response.json()
    assert response.status_code == 200
    assert body["count"] == 1
    assert body["errors"][0]["index"] == 1
    assert [a["title"] for a in listed.json()] == ["Room A"]
    assert listed.json()[0]["position"] == {"x": 10.0, "y": 20.0}


# --- Equipment and media ---


@pytest.mark.asyncio
async def test_cascade_delete_of_equipment_via_api(client, blob_store):
    site = await _create_site(client)
    node = await _create_node(client, site["id"])
    element_id = node["elementId"]
    await client.post(
        f"{API}/media",
        json={
            "siteId": site["id"],
            "elementId": element_id,
            "elementType": "valve",
            "storagePath": "photos/zv1.jpg",
        },
    )

    blocked = await client.delete(f"{API}/valves/{element_id}")
    media = await client.get(f"{API}/valves/{element_id}/media")
    deleted = await client.delete(f"{API}/valves/{element_id}", params={"cascade": "true"})

    assert blocked.status_code == 409
    assert media.json()[0]["url"].startswith("https://blobs.test/photos/zv1.jpg")
    assert deleted.json()["deleted"]["nodes"] == 1
    assert blob_store.deleted == ["photos/zv1.jpg"]
    assert (await client.get(f"{API}/nodes/{node['id']}")).status_code == 404
