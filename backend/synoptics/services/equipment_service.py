"""Equipment service layer: gas sources, valves and fittings of a site.

All three kinds share one generic implementation driven by
EQUIPMENT_REGISTRY; the typed wrappers at the bottom are what routes call.
"""

import logging
from typing import Any

from pydantic import BaseModel
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from synoptics.database import atomic
from synoptics.errors import ConflictError, ValidationError
from synoptics.integrations import BlobStore
from synoptics.models import Fitting, Site, Source, Valve
from synoptics.schemas import (
    FittingCreate,
    FittingUpdate,
    SourceCreate,
    SourceUpdate,
    ValveCreate,
    ValveUpdate,
)
from synoptics.services import media_service, node_service
from synoptics.services._lookup import fetch_or_raise, require_gas_type, require_name
from synoptics.services._registry import EQUIPMENT_REGISTRY, get_equipment_config

logger = logging.getLogger(__name__)

# Fittings may be anonymous (a tee is rarely named)
OPTIONAL_NAME_KINDS = {"fitting"}
REQUIRED_TEXT_FIELDS = ("valve_type", "fitting_type")


def _clean_fields(kind: str, values: dict[str, Any]) -> dict[str, Any]:
    """Validate and normalize the writable fields of an equipment payload."""
    cleaned = dict(values)
    if "name" in cleaned:
        if kind in OPTIONAL_NAME_KINDS:
            name = cleaned["name"]
            cleaned["name"] = name.strip() if name and name.strip() else None
        else:
            cleaned["name"] = require_name(cleaned["name"])
    for field in REQUIRED_TEXT_FIELDS:
        if field in cleaned:
            cleaned[field] = require_name(cleaned[field], field)
    if "gas_type" in cleaned:
        if cleaned["gas_type"] is None:
            raise ValidationError("gas_type is required", {"field": "gas_type"})
        require_gas_type(cleaned["gas_type"])
    if "state" in cleaned and cleaned["state"] is None:
        raise ValidationError("state is required", {"field": "state"})
    return cleaned


async def _create(session: AsyncSession, kind: str, payload: BaseModel) -> Any:
    config = get_equipment_config(kind)
    values = payload.model_dump()
    await fetch_or_raise(session, Site, values["site_id"])
    element = config.model(**_clean_fields(kind, values))
    session.add(element)
    await session.commit()
    logger.info(f"Created {kind} {element.id} ({element.gas_type})")
    return element


async def _get(session: AsyncSession, kind: str, element_id: str) -> Any:
    config = get_equipment_config(kind)
    return await fetch_or_raise(session, config.model, element_id, config.label)


async def _list(session: AsyncSession, kind: str, site_id: str) -> list[Any]:
    config = get_equipment_config(kind)
    await fetch_or_raise(session, Site, site_id)
    result = await session.execute(
        select(config.model)
        .where(config.model.site_id == site_id)
        .order_by(config.model.created_at, config.model.id)
    )
    return list(result.scalars().all())


async def _update(session: AsyncSession, kind: str, element_id: str, changes: BaseModel) -> Any:
    element = await _get(session, kind, element_id)
    values = _clean_fields(kind, changes.model_dump(include=changes.model_fields_set))
    for field, value in values.items():
        setattr(element, field, value)
    await session.commit()
    logger.info(f"Updated {kind} {element_id}: {sorted(values)}")
    return element


async def _delete(
    session: AsyncSession,
    blob_store: BlobStore,
    kind: str,
    element_id: str,
    cascade: bool = False,
) -> dict[str, int]:
    """Delete an element.

    An element still wrapped by a node is only deleted with cascade=True,
    which removes the node, its positions and connections in the same
    transaction. The element's media rows always go with it.
    """
    element = await _get(session, kind, element_id)
    node = await node_service.get_node_for_element(session, kind, element_id)
    if node is not None and not cascade:
        raise ConflictError(
            f"{kind} {element_id} is still placed in the network as node {node.id}",
            {"node_id": node.id, "node_type": kind, "element_id": element_id},
        )

    async with atomic(session):
        counts = {"nodes": 0, "positions": 0, "connections": 0}
        if node is not None:
            counts = await node_service.purge_nodes(session, [node.id])
        keys = await media_service.purge_media_for_elements(session, kind, [element_id])
        await session.delete(element)

    media_service.delete_blobs(blob_store, keys)
    summary = {"elements": 1, **counts, "media": len(keys)}
    logger.info(f"Deleted {kind} {element_id}: {summary}")
    return summary


# --- Cascade helpers (caller commits) ---


async def purge_equipment_for_site(session: AsyncSession, site_id: str) -> int:
    """Delete every source, valve and fitting of a site. Nodes must already be gone."""
    deleted = 0
    for config in EQUIPMENT_REGISTRY.values():
        result = await session.execute(
            delete(config.model).where(config.model.site_id == site_id)
        )
        deleted += result.rowcount
    return deleted


# --- Sources ---


async def create_source(session: AsyncSession, payload: SourceCreate) -> Source:
    return await _create(session, "source", payload)


async def get_source(session: AsyncSession, source_id: str) -> Source:
    return await _get(session, "source", source_id)


async def list_sources(session: AsyncSession, site_id: str) -> list[Source]:
    return await _list(session, "source", site_id)


async def update_source(session: AsyncSession, source_id: str, changes: SourceUpdate) -> Source:
    return await _update(session, "source", source_id, changes)


async def delete_source(
    session: AsyncSession, blob_store: BlobStore, source_id: str, cascade: bool = False
) -> dict[str, int]:
    return await _delete(session, blob_store, "source", source_id, cascade)


# --- Valves ---


async def create_valve(session: AsyncSession, payload: ValveCreate) -> Valve:
    return await _create(session, "valve", payload)


async def get_valve(session: AsyncSession, valve_id: str) -> Valve:
    return await _get(session, "valve", valve_id)


async def list_valves(session: AsyncSession, site_id: str) -> list[Valve]:
    return await _list(session, "valve", site_id)


async def update_valve(session: AsyncSession, valve_id: str, changes: ValveUpdate) -> Valve:
    return await _update(session, "valve", valve_id, changes)


async def delete_valve(
    session: AsyncSession, blob_store: BlobStore, valve_id: str, cascade: bool = False
) -> dict[str, int]:
    return await _delete(session, blob_store, "valve", valve_id, cascade)


# --- Fittings ---


async def create_fitting(session: AsyncSession, payload: FittingCreate) -> Fitting:
    return await _create(session, "fitting", payload)


async def get_fitting(session: AsyncSession, fitting_id: str) -> Fitting:
    return await _get(session, "fitting", fitting_id)


async def list_fittings(session: AsyncSession, site_id: str) -> list[Fitting]:
    return await _list(session, "fitting", site_id)


async def update_fitting(
    session: AsyncSession, fitting_id: str, changes: FittingUpdate
) -> Fitting:
    return await _update(session, "fitting", fitting_id, changes)


async def delete_fitting(
    session: AsyncSession, blob_store: BlobStore, fitting_id: str, cascade: bool = False
) -> dict[str, int]:
    return await _delete(session, blob_store, "fitting", fitting_id, cascade)
