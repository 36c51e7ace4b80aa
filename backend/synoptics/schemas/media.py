"""Pydantic schemas for media attachments."""

from datetime import datetime

from synoptics.schemas.common import CamelModel, NodeType


class MediaCreate(CamelModel):
    site_id: str
    element_id: str
    element_type: NodeType
    storage_path: str
    file_name: str | None = None
    mime_type: str | None = None
    label: str | None = None


class MediaOut(CamelModel):
    id: str
    site_id: str
    element_id: str
    element_type: NodeType
    storage_path: str
    file_name: str | None = None
    mime_type: str | None = None
    label: str | None = None
    url: str | None = None
    created_at: datetime
