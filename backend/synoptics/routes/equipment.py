"""Equipment API routes: one identical CRUD surface per equipment kind."""

from collections.abc import Awaitable, Callable
from typing import Any

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from synoptics.database import get_db
from synoptics.integrations import BlobStore, get_blob_store, require_caller
from synoptics.schemas import (
    DeletionSummary,
    FittingCreate,
    FittingUpdate,
    MediaOut,
    SourceCreate,
    SourceUpdate,
    ValveCreate,
    ValveUpdate,
)
from synoptics.services import equipment_service, media_service
from synoptics.services._registry import get_equipment_config

router = APIRouter(
    prefix="/api/synoptics", tags=["equipment"], dependencies=[Depends(require_caller)]
)


def _register(
    kind: str,
    create_schema: type[BaseModel],
    update_schema: type[BaseModel],
    create: Callable[..., Awaitable[Any]],
    get: Callable[..., Awaitable[Any]],
    list_for_site: Callable[..., Awaitable[list[Any]]],
    update: Callable[..., Awaitable[Any]],
    delete: Callable[..., Awaitable[dict[str, int]]],
) -> None:
    """Attach list/create/get/update/delete/media routes for one equipment kind."""
    out_schema = get_equipment_config(kind).out_schema
    collection = f"/{kind}s"
    item = f"/{kind}s/{{element_id}}"

    @router.get(collection, response_model=list[out_schema], name=f"list_{kind}s")
    async def list_elements(
        site_id: str = Query(..., description="Site whose equipment to list"),
        session: AsyncSession = Depends(get_db),
    ):
        return [out_schema.model_validate(row) for row in await list_for_site(session, site_id)]

    @router.post(collection, response_model=out_schema, status_code=201, name=f"create_{kind}")
    async def create_element(
        payload: create_schema,  # type: ignore[valid-type]
        session: AsyncSession = Depends(get_db),
    ):
        return out_schema.model_validate(await create(session, payload))

    @router.get(item, response_model=out_schema, name=f"get_{kind}")
    async def get_element(element_id: str, session: AsyncSession = Depends(get_db)):
        return out_schema.model_validate(await get(session, element_id))

    @router.patch(item, response_model=out_schema, name=f"update_{kind}")
    async def update_element(
        element_id: str,
        changes: update_schema,  # type: ignore[valid-type]
        session: AsyncSession = Depends(get_db),
    ):
        return out_schema.model_validate(await update(session, element_id, changes))

    @router.delete(item, response_model=DeletionSummary, name=f"delete_{kind}")
    async def delete_element(
        element_id: str,
        cascade: bool = Query(False, description="Also delete the node wrapping this element"),
        session: AsyncSession = Depends(get_db),
        blob_store: BlobStore = Depends(get_blob_store),
    ):
        return DeletionSummary(deleted=await delete(session, blob_store, element_id, cascade))

    @router.get(f"{item}/media", response_model=list[MediaOut], name=f"list_{kind}_media")
    async def list_element_media(
        element_id: str,
        session: AsyncSession = Depends(get_db),
        blob_store: BlobStore = Depends(get_blob_store),
    ):
        rows = await media_service.list_media_for_element(session, kind, element_id)
        return [media_service.media_out(row, blob_store) for row in rows]


_register(
    "source",
    SourceCreate,
    SourceUpdate,
    equipment_service.create_source,
    equipment_service.get_source,
    equipment_service.list_sources,
    equipment_service.update_source,
    equipment_service.delete_source,
)
_register(
    "valve",
    ValveCreate,
    ValveUpdate,
    equipment_service.create_valve,
    equipment_service.get_valve,
    equipment_service.list_valves,
    equipment_service.update_valve,
    equipment_service.delete_valve,
)
_register(
    "fitting",
    FittingCreate,
    FittingUpdate,
    equipment_service.create_fitting,
    equipment_service.get_fitting,
    equipment_service.list_fittings,
    equipment_service.update_fitting,
    equipment_service.delete_fitting,
)
