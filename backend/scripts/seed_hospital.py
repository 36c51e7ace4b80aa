#!/usr/bin/env python3
"""Seed a demo hospital site with its gas network and diagrams."""

import asyncio
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from synoptics.database import async_session
from synoptics.integrations import LoggingBillingSync
from synoptics.schemas import (
    AnnotationIn,
    BuildingCreate,
    FittingCreate,
    FloorCreate,
    LayoutCreate,
    NodeCreate,
    Point,
    SiteCreate,
    Size,
    SourceCreate,
    ValveCreate,
    ZoneCreate,
)
from synoptics.services import (
    annotation_service,
    equipment_service,
    hierarchy_service,
    layout_service,
    node_service,
    placement_service,
)

DEMO_TEAM_ID = 1
DEMO_ORGANIZATION = "Demo Health Trust"
DEMO_SITE = "St. Aurelia General Hospital"

# Building -> floors -> zones
BUILDINGS = [
    {
        "name": "Main Block",
        "floors": [
            {"floor_number": 0, "name": "Ground", "zones": ["Emergency", "Plant Room"]},
            {"floor_number": 1, "name": "Surgery", "zones": ["Theatre 1", "Theatre 2", "Recovery"]},
            {"floor_number": 2, "name": "Wards", "zones": ["Ward A", "Ward B"]},
        ],
    },
    {
        "name": "Maternity Wing",
        "floors": [
            {"floor_number": 0, "name": "Ground", "zones": ["Delivery Suite"]},
        ],
    },
]

# Equipment keyed by a local handle used to wire connections below.
# Location is (building, floor number, zone) or None for site-level plant.
SOURCES = [
    {"key": "vie", "name": "VIE Oxygen Tank", "gas_type": "oxygen", "location": None},
    {
        "key": "air-plant",
        "name": "Medical Air Plant",
        "gas_type": "medical_air",
        "location": ("Main Block", 0, "Plant Room"),
    },
    {
        "key": "vac-plant",
        "name": "Vacuum Plant",
        "gas_type": "vacuum",
        "location": ("Main Block", 0, "Plant Room"),
    },
]
VALVES = [
    {
        "key": "o2-main",
        "name": "O2 Main Isolation",
        "valve_type": "isolation",
        "gas_type": "oxygen",
        "location": ("Main Block", 0, None),
    },
    {
        "key": "o2-surgery",
        "name": "O2 Zone Valve Surgery",
        "valve_type": "zone",
        "gas_type": "oxygen",
        "location": ("Main Block", 1, "Theatre 1"),
    },
    {
        "key": "o2-wards",
        "name": "O2 Zone Valve Wards",
        "valve_type": "zone",
        "gas_type": "oxygen",
        "location": ("Main Block", 2, "Ward A"),
    },
    {
        "key": "air-surgery",
        "name": "Air Zone Valve Surgery",
        "valve_type": "zone",
        "gas_type": "medical_air",
        "location": ("Main Block", 1, None),
    },
]
FITTINGS = [
    {
        "key": "o2-riser",
        "name": "O2 Riser Tee",
        "fitting_type": "tee",
        "gas_type": "oxygen",
        "location": ("Main Block", 1, None),
    },
    {
        "key": "theatre1-outlets",
        "name": "Theatre 1 Pendant",
        "fitting_type": "outlet",
        "gas_type": "oxygen",
        "location": ("Main Block", 1, "Theatre 1"),
        "outlet_count": 4,
    },
    {
        "key": "alarm-surgery",
        "name": "Surgery Area Alarm",
        "fitting_type": "alarm_panel",
        "gas_type": "oxygen",
        "location": ("Main Block", 1, "Recovery"),
    },
]

CONNECTIONS = [
    ("vie", "o2-main", "oxygen", 54),
    ("o2-main", "o2-riser", "oxygen", 42),
    ("o2-riser", "o2-surgery", "oxygen", 28),
    ("o2-riser", "o2-wards", "oxygen", 28),
    ("o2-surgery", "theatre1-outlets", "oxygen", 15),
    ("o2-surgery", "alarm-surgery", "oxygen", None),
    ("air-plant", "air-surgery", "medical_air", 28),
]

SURGERY_ANNOTATIONS = [
    {"title": "Theatres", "position": (80, 60), "size": (420, 260), "style": "layer"},
    {"title": "Recovery", "position": (540, 60), "size": (220, 260), "style": "layer"},
    {"title": "Riser from ground floor", "position": (100, 360)},
]


async def seed() -> None:
    billing = LoggingBillingSync()
    async with async_session() as session:
        organization = await hierarchy_service.get_or_create_organization(
            session, DEMO_TEAM_ID, DEMO_ORGANIZATION
        )
        existing = await hierarchy_service.list_sites(session, organization.id)
        if any(site.name == DEMO_SITE for site in existing):
            print(f"Site '{DEMO_SITE}' already seeded, nothing to do.")
            return

        site = await hierarchy_service.create_site(
            session,
            billing,
            SiteCreate(
                organization_id=organization.id,
                name=DEMO_SITE,
                address="1 Infirmary Road",
                latitude=48.8566,
                longitude=2.3522,
            ),
        )
        print(f"Created site {site.name}")

        # (building name, floor number) -> floor, (building, floor, zone name) -> zone
        buildings, floors, zones = {}, {}, {}
        for entry in BUILDINGS:
            building = await hierarchy_service.create_building(
                session, BuildingCreate(site_id=site.id, name=entry["name"])
            )
            buildings[entry["name"]] = building
            for floor_entry in entry["floors"]:
                floor = await hierarchy_service.create_floor(
                    session,
                    FloorCreate(
                        building_id=building.id,
                        floor_number=floor_entry["floor_number"],
                        name=floor_entry["name"],
                    ),
                )
                floors[(entry["name"], floor_entry["floor_number"])] = floor
                for zone_name in floor_entry["zones"]:
                    zone = await hierarchy_service.create_zone(
                        session, ZoneCreate(floor_id=floor.id, name=zone_name)
                    )
                    zones[(entry["name"], floor_entry["floor_number"], zone_name)] = zone
        print(f"Created {len(buildings)} buildings, {len(floors)} floors, {len(zones)} zones")

        def anchor_for(location) -> dict:
            if location is None:
                return {}
            building_name, floor_number, zone_name = location
            if zone_name:
                return {"zone_id": zones[(building_name, floor_number, zone_name)].id}
            return {"floor_id": floors[(building_name, floor_number)].id}

        nodes = {}
        for entry in SOURCES:
            element = await equipment_service.create_source(
                session,
                SourceCreate(site_id=site.id, name=entry["name"], gas_type=entry["gas_type"]),
            )
            nodes[entry["key"]] = await node_service.create_node(
                session,
                NodeCreate(
                    site_id=site.id,
                    node_type="source",
                    element_id=element.id,
                    **anchor_for(entry["location"]),
                ),
            )
        for entry in VALVES:
            element = await equipment_service.create_valve(
                session,
                ValveCreate(
                    site_id=site.id,
                    name=entry["name"],
                    valve_type=entry["valve_type"],
                    gas_type=entry["gas_type"],
                ),
            )
            nodes[entry["key"]] = await node_service.create_node(
                session,
                NodeCreate(
                    site_id=site.id,
                    node_type="valve",
                    element_id=element.id,
                    **anchor_for(entry["location"]),
                ),
            )
        for entry in FITTINGS:
            element = await equipment_service.create_fitting(
                session,
                FittingCreate(
                    site_id=site.id,
                    name=entry["name"],
                    fitting_type=entry["fitting_type"],
                    gas_type=entry["gas_type"],
                ),
            )
            nodes[entry["key"]] = await node_service.create_node(
                session,
                NodeCreate(
                    site_id=site.id,
                    node_type="fitting",
                    element_id=element.id,
                    outlet_count=entry.get("outlet_count", 0),
                    **anchor_for(entry["location"]),
                ),
            )
        print(f"Created {len(nodes)} equipment nodes")

        for from_key, to_key, gas_type, diameter in CONNECTIONS:
            await node_service.create_connection(
                session, site.id, nodes[from_key].id, nodes[to_key].id, gas_type, diameter
            )
        print(f"Created {len(CONNECTIONS)} connections")

        site_layout = await layout_service.create_layout(
            session, LayoutCreate(site_id=site.id, name="Site Overview", layout_type="site")
        )
        summary = await placement_service.import_nodes(
            session, site_layout.id, [node.id for node in nodes.values()]
        )
        print(f"Placed {summary.imported} nodes on '{site_layout.name}'")

        surgery_floor = floors[("Main Block", 1)]
        surgery_layout = await layout_service.create_layout(
            session,
            LayoutCreate(
                site_id=site.id,
                floor_id=surgery_floor.id,
                name="Surgery Floor",
                layout_type="floor",
            ),
        )
        surgery_nodes = [node for node in nodes.values() if node.floor_id == surgery_floor.id]
        summary = await placement_service.import_nodes(
            session, surgery_layout.id, [node.id for node in surgery_nodes]
        )
        print(f"Placed {summary.imported} nodes on '{surgery_layout.name}'")

        annotations = []
        for item in SURGERY_ANNOTATIONS:
            size = item.get("size")
            annotations.append(
                AnnotationIn(
                    title=item["title"],
                    position=Point(x=item["position"][0], y=item["position"][1]),
                    size=Size(width=size[0], height=size[1]) if size else None,
                    style=item.get("style"),
                )
            )
        result = await annotation_service.bulk_upsert_annotations(
            session, surgery_layout.id, annotations
        )
        print(f"Added {result.count} annotations to '{surgery_layout.name}'")

    print("Seeding complete.")


if __name__ == "__main__":
    asyncio.run(seed())
