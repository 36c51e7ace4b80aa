"""Annotation service layer: labels and layer boxes drawn on a layout."""

import logging
from collections.abc import Sequence

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from synoptics.decimals import to_decimal_string
from synoptics.errors import NotFoundError, SynopticsError
from synoptics.models import Annotation, Layout
from synoptics.schemas import (
    AnnotationIn,
    AnnotationOut,
    AnnotationUpdate,
    BulkAnnotationError,
    BulkAnnotationsResponse,
)
from synoptics.services._lookup import fetch_or_raise, require_name

logger = logging.getLogger(__name__)

DEFAULT_ANNOTATION_TYPE = "label"


def _apply(annotation: Annotation, payload: AnnotationIn | AnnotationUpdate) -> None:
    """Copy the fields present in the payload onto the row."""
    fields = payload.model_fields_set
    if "type" in fields:
        annotation.annotation_type = payload.type or DEFAULT_ANNOTATION_TYPE
    if "title" in fields:
        annotation.title = require_name(payload.title, "title")
    if "subtitle" in fields:
        annotation.subtitle = payload.subtitle or None
    if "position" in fields and payload.position is not None:
        annotation.position_x = to_decimal_string(payload.position.x, field="position.x")
        annotation.position_y = to_decimal_string(payload.position.y, field="position.y")
    if "size" in fields:
        size = payload.size
        annotation.size_width = to_decimal_string(size.width, field="size.width") if size else None
        annotation.size_height = (
            to_decimal_string(size.height, field="size.height") if size else None
        )
    if "color" in fields:
        annotation.color = payload.color or None
    if "style" in fields:
        annotation.style = payload.style or None
    if "interactive" in fields and payload.interactive is not None:
        annotation.interactive = 1 if payload.interactive else 0
    if "metadata" in fields:
        annotation.metadata_ = payload.metadata


def _new_annotation(layout_id: str, item: AnnotationIn) -> Annotation:
    size = item.size
    return Annotation(
        layout_id=layout_id,
        annotation_type=item.type or DEFAULT_ANNOTATION_TYPE,
        title=require_name(item.title, "title"),
        subtitle=item.subtitle or None,
        position_x=to_decimal_string(item.position.x, field="position.x"),
        position_y=to_decimal_string(item.position.y, field="position.y"),
        size_width=to_decimal_string(size.width, field="size.width") if size else None,
        size_height=to_decimal_string(size.height, field="size.height") if size else None,
        color=item.color or None,
        style=item.style or None,
        interactive=1 if item.interactive else 0,
        metadata_=item.metadata,
    )


async def list_annotations(session: AsyncSession, layout_id: str) -> list[Annotation]:
    await fetch_or_raise(session, Layout, layout_id)
    result = await session.execute(
        select(Annotation)
        .where(Annotation.layout_id == layout_id)
        .order_by(Annotation.created_at, Annotation.id)
    )
    return list(result.scalars().all())


async def get_annotation(session: AsyncSession, annotation_id: str) -> Annotation:
    return await fetch_or_raise(session, Annotation, annotation_id)


async def create_annotation(
    session: AsyncSession, layout_id: str, item: AnnotationIn
) -> Annotation:
    await fetch_or_raise(session, Layout, layout_id)
    annotation = _new_annotation(layout_id, item)
    session.add(annotation)
    await session.commit()
    logger.info(f"Created annotation {annotation.id} on layout {layout_id}")
    return annotation


async def update_annotation(
    session: AsyncSession, annotation_id: str, changes: AnnotationUpdate
) -> Annotation:
    annotation = await fetch_or_raise(session, Annotation, annotation_id)
    _apply(annotation, changes)
    await session.commit()
    logger.info(f"Updated annotation {annotation_id}")
    return annotation


async def delete_annotation(session: AsyncSession, annotation_id: str) -> None:
    annotation = await fetch_or_raise(session, Annotation, annotation_id)
    await session.delete(annotation)
    await session.commit()
    logger.info(f"Deleted annotation {annotation_id}")


async def delete_layout_annotations(session: AsyncSession, layout_id: str) -> int:
    """Delete every annotation on a layout. Returns how many were removed."""
    await fetch_or_raise(session, Layout, layout_id)
    count = await purge_annotations_for_layouts(session, [layout_id])
    await session.commit()
    logger.info(f"Deleted {count} annotations from layout {layout_id}")
    return count


async def bulk_upsert_annotations(
    session: AsyncSession, layout_id: str, items: Sequence[AnnotationIn]
) -> BulkAnnotationsResponse:
    """Save a batch of annotations item by item.

    Items with an id update that annotation, items without one are inserted.
    Each item commits on its own, so one bad item never undoes the others;
    failures are reported per index and the caller re-fetches to reconcile.
    """
    await fetch_or_raise(session, Layout, layout_id)

    saved: list[AnnotationOut] = []
    errors: list[BulkAnnotationError] = []

    for index, item in enumerate(items):
        try:
            if item.id:
                result = await session.execute(
                    select(Annotation).where(
                        Annotation.id == item.id, Annotation.layout_id == layout_id
                    )
                )
                annotation = result.scalar_one_or_none()
                if annotation is None:
                    raise NotFoundError(f"Annotation {item.id} not found on layout {layout_id}")
                _apply(annotation, item)
            else:
                annotation = _new_annotation(layout_id, item)
                session.add(annotation)
            await session.commit()
            saved.append(AnnotationOut.from_model(annotation))
        except (SynopticsError, SQLAlchemyError) as exc:
            await session.rollback()
            message = exc.message if isinstance(exc, SynopticsError) else str(exc)
            logger.warning(f"Annotation item {index} on layout {layout_id} failed: {message}")
            errors.append(BulkAnnotationError(index=index, id=item.id, error=message))

    logger.info(
        f"Saved {len(saved)} annotations on layout {layout_id} ({len(errors)} failed)"
    )
    return BulkAnnotationsResponse(count=len(saved), annotations=saved, errors=errors)


# --- Cascade helpers (caller commits) ---


async def purge_annotations_for_layouts(session: AsyncSession, layout_ids: Sequence[str]) -> int:
    if not layout_ids:
        return 0
    result = await session.execute(delete(Annotation).where(Annotation.layout_id.in_(layout_ids)))
    return result.rowcount
