"""Media service layer: photo and document metadata attached to equipment elements.

Bytes live in the blob store; rows here only hold the storage key. Blobs
are removed after the database commit so a rolled-back delete never loses
a file that is still referenced.
"""

import logging
from collections.abc import Sequence

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from synoptics.config import MEDIA_URL_TTL_SECONDS
from synoptics.errors import SynopticsError
from synoptics.integrations import BlobStore, normalize_storage_key
from synoptics.models import Media, Site
from synoptics.schemas import MediaCreate, MediaOut
from synoptics.services._lookup import (
    fetch_element,
    fetch_or_raise,
    require_same_site,
)

logger = logging.getLogger(__name__)


def media_out(media: Media, blob_store: BlobStore) -> MediaOut:
    """Outbound DTO with a short-lived signed URL for the blob."""
    return MediaOut(
        id=media.id,
        site_id=media.site_id,
        element_id=media.element_id,
        element_type=media.element_type,
        storage_path=media.storage_path,
        file_name=media.file_name,
        mime_type=media.mime_type,
        label=media.label,
        url=blob_store.signed_url(media.storage_path, MEDIA_URL_TTL_SECONDS),
        created_at=media.created_at,
    )


async def create_media(session: AsyncSession, payload: MediaCreate) -> Media:
    """Record a blob already uploaded under payload.storage_path."""
    await fetch_or_raise(session, Site, payload.site_id)
    element = await fetch_element(session, payload.element_type, payload.element_id)
    require_same_site(payload.site_id, element.site_id, f"Element {payload.element_id}")

    media = Media(
        site_id=payload.site_id,
        element_id=payload.element_id,
        element_type=payload.element_type,
        storage_path=normalize_storage_key(payload.storage_path),
        file_name=payload.file_name,
        mime_type=payload.mime_type,
        label=payload.label,
    )
    session.add(media)
    await session.commit()
    logger.info(f"Attached media {media.id} to {media.element_type} {media.element_id}")
    return media


async def get_media(session: AsyncSession, media_id: str) -> Media:
    return await fetch_or_raise(session, Media, media_id)


async def list_media_for_element(
    session: AsyncSession, element_type: str, element_id: str
) -> list[Media]:
    await fetch_element(session, element_type, element_id)
    result = await session.execute(
        select(Media)
        .where(Media.element_type == element_type, Media.element_id == element_id)
        .order_by(Media.created_at, Media.id)
    )
    return list(result.scalars().all())


async def delete_media(session: AsyncSession, blob_store: BlobStore, media_id: str) -> None:
    media = await fetch_or_raise(session, Media, media_id)
    key = media.storage_path
    await session.delete(media)
    await session.commit()
    delete_blobs(blob_store, [key])
    logger.info(f"Deleted media {media_id}")


def delete_blobs(blob_store: BlobStore, keys: Sequence[str]) -> None:
    """Remove blobs whose rows are already gone. Failures are logged, not raised."""
    for key in keys:
        try:
            blob_store.delete(key)
        except (OSError, SynopticsError) as exc:
            logger.warning(f"Could not delete blob {key}: {exc}")


# --- Cascade helpers (caller commits, then calls delete_blobs) ---


async def purge_media_for_elements(
    session: AsyncSession, element_type: str, element_ids: Sequence[str]
) -> list[str]:
    """Delete media rows of the given elements; returns their storage keys."""
    if not element_ids:
        return []
    result = await session.execute(
        delete(Media)
        .where(Media.element_type == element_type, Media.element_id.in_(element_ids))
        .returning(Media.storage_path)
    )
    return list(result.scalars().all())


async def purge_media_for_site(session: AsyncSession, site_id: str) -> list[str]:
    result = await session.execute(
        delete(Media).where(Media.site_id == site_id).returning(Media.storage_path)
    )
    return list(result.scalars().all())
