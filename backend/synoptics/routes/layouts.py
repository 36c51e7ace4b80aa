"""Layout API routes: layouts, their node views, and annotations."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from synoptics.database import get_db
from synoptics.errors import ValidationError
from synoptics.integrations import require_caller
from synoptics.schemas import (
    AnnotationIn,
    AnnotationOut,
    AnnotationUpdate,
    BulkAnnotationsRequest,
    BulkAnnotationsResponse,
    CountResponse,
    DeletionSummary,
    LayoutCreate,
    LayoutOut,
    LayoutUpdate,
    LayoutView,
    PlacedNode,
)
from synoptics.services import annotation_service, layout_service

router = APIRouter(
    prefix="/api/synoptics", tags=["layouts"], dependencies=[Depends(require_caller)]
)


# --- Layouts ---


@router.get("/layouts", response_model=list[LayoutOut])
async def list_layouts(
    site_id: str | None = Query(None),
    floor_id: str | None = Query(None),
    session: AsyncSession = Depends(get_db),
) -> list[LayoutOut]:
    if floor_id:
        layouts = await layout_service.list_layouts_by_floor(session, floor_id)
    elif site_id:
        layouts = await layout_service.list_layouts_by_site(session, site_id)
    else:
        raise ValidationError(
            "site_id or floor_id is required", {"fields": ["site_id", "floor_id"]}
        )
    return [LayoutOut.from_model(layout) for layout in layouts]


@router.post("/layouts", response_model=LayoutOut, status_code=201)
async def create_layout(
    payload: LayoutCreate, session: AsyncSession = Depends(get_db)
) -> LayoutOut:
    return LayoutOut.from_model(await layout_service.create_layout(session, payload))


@router.get("/layouts/{layout_id}", response_model=LayoutView)
async def get_layout(layout_id: str, session: AsyncSession = Depends(get_db)) -> LayoutView:
    """Layout with its placed nodes and the connections drawn between them."""
    return await layout_service.get_layout_with_nodes_and_connections(session, layout_id)


@router.patch("/layouts/{layout_id}", response_model=LayoutOut)
async def update_layout(
    layout_id: str, changes: LayoutUpdate, session: AsyncSession = Depends(get_db)
) -> LayoutOut:
    return LayoutOut.from_model(await layout_service.update_layout(session, layout_id, changes))


@router.delete("/layouts/{layout_id}", response_model=DeletionSummary)
async def delete_layout(layout_id: str, session: AsyncSession = Depends(get_db)) -> DeletionSummary:
    return DeletionSummary(deleted=await layout_service.delete_layout(session, layout_id))


@router.get("/layouts/{layout_id}/nodes", response_model=list[PlacedNode])
async def list_layout_nodes(
    layout_id: str, session: AsyncSession = Depends(get_db)
) -> list[PlacedNode]:
    return await layout_service.list_layout_nodes(session, layout_id)


# --- Annotations ---


@router.get("/layouts/{layout_id}/annotations", response_model=list[AnnotationOut])
async def list_annotations(
    layout_id: str, session: AsyncSession = Depends(get_db)
) -> list[AnnotationOut]:
    annotations = await annotation_service.list_annotations(session, layout_id)
    return [AnnotationOut.from_model(annotation) for annotation in annotations]


@router.post("/layouts/{layout_id}/annotations", response_model=AnnotationOut, status_code=201)
async def create_annotation(
    layout_id: str, payload: AnnotationIn, session: AsyncSession = Depends(get_db)
) -> AnnotationOut:
    annotation = await annotation_service.create_annotation(session, layout_id, payload)
    return AnnotationOut.from_model(annotation)


@router.delete("/layouts/{layout_id}/annotations", response_model=CountResponse)
async def delete_layout_annotations(
    layout_id: str, session: AsyncSession = Depends(get_db)
) -> CountResponse:
    count = await annotation_service.delete_layout_annotations(session, layout_id)
    return CountResponse(count=count)


@router.post("/annotations/bulk", response_model=BulkAnnotationsResponse)
async def bulk_upsert_annotations(
    payload: BulkAnnotationsRequest, session: AsyncSession = Depends(get_db)
) -> BulkAnnotationsResponse:
    """Save many annotations at once; failures are reported per item."""
    return await annotation_service.bulk_upsert_annotations(
        session, payload.layout_id, payload.annotations
    )


@router.get("/annotations/{annotation_id}", response_model=AnnotationOut)
async def get_annotation(
    annotation_id: str, session: AsyncSession = Depends(get_db)
) -> AnnotationOut:
    return AnnotationOut.from_model(await annotation_service.get_annotation(session, annotation_id))


@router.patch("/annotations/{annotation_id}", response_model=AnnotationOut)
async def update_annotation(
    annotation_id: str, changes: AnnotationUpdate, session: AsyncSession = Depends(get_db)
) -> AnnotationOut:
    annotation = await annotation_service.update_annotation(session, annotation_id, changes)
    return AnnotationOut.from_model(annotation)


@router.delete("/annotations/{annotation_id}", status_code=204)
async def delete_annotation(annotation_id: str, session: AsyncSession = Depends(get_db)) -> None:
    await annotation_service.delete_annotation(session, annotation_id)
