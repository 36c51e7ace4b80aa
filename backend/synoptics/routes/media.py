"""Media API routes: attachment metadata for equipment elements."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from synoptics.database import get_db
from synoptics.integrations import BlobStore, get_blob_store, require_caller
from synoptics.schemas import MediaCreate, MediaOut, NodeType
from synoptics.services import media_service

router = APIRouter(
    prefix="/api/synoptics", tags=["media"], dependencies=[Depends(require_caller)]
)


@router.get("/media", response_model=list[MediaOut])
async def list_media(
    element_type: NodeType = Query(...),
    element_id: str = Query(...),
    session: AsyncSession = Depends(get_db),
    blob_store: BlobStore = Depends(get_blob_store),
) -> list[MediaOut]:
    rows = await media_service.list_media_for_element(session, element_type, element_id)
    return [media_service.media_out(row, blob_store) for row in rows]


@router.post("/media", response_model=MediaOut, status_code=201)
async def create_media(
    payload: MediaCreate,
    session: AsyncSession = Depends(get_db),
    blob_store: BlobStore = Depends(get_blob_store),
) -> MediaOut:
    """Register a file already uploaded to the blob store."""
    media = await media_service.create_media(session, payload)
    return media_service.media_out(media, blob_store)


@router.get("/media/{media_id}", response_model=MediaOut)
async def get_media(
    media_id: str,
    session: AsyncSession = Depends(get_db),
    blob_store: BlobStore = Depends(get_blob_store),
) -> MediaOut:
    return media_service.media_out(await media_service.get_media(session, media_id), blob_store)


@router.delete("/media/{media_id}", status_code=204)
async def delete_media(
    media_id: str,
    session: AsyncSession = Depends(get_db),
    blob_store: BlobStore = Depends(get_blob_store),
) -> None:
    await media_service.delete_media(session, blob_store, media_id)
