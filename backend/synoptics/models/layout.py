"""Diagram models: layouts, per-layout node positions, and annotations."""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from synoptics.database import Base, new_id, utcnow


class Layout(Base):
    """A named diagram of a site, optionally bound to one floor."""

    __tablename__ = "layouts"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    site_id: Mapped[str] = mapped_column(String(36), ForeignKey("sites.id"), nullable=False)
    floor_id: Mapped[str | None] = mapped_column(String(36), ForeignKey("floors.id"), nullable=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    layout_type: Mapped[str] = mapped_column(String(10), nullable=False)
    background_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    metadata_: Mapped[dict[str, Any] | None] = mapped_column("metadata", JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        Index("ix_layouts_site", "site_id"),
        Index("ix_layouts_floor", "floor_id"),
    )


class NodePosition(Base):
    """Coordinates of one node on one layout.

    The composite primary key guarantees at most one row per (node, layout).
    """

    __tablename__ = "node_positions"

    node_id: Mapped[str] = mapped_column(String(36), ForeignKey("nodes.id"), primary_key=True)
    layout_id: Mapped[str] = mapped_column(String(36), ForeignKey("layouts.id"), primary_key=True)
    x_position: Mapped[str] = mapped_column(String(20), nullable=False)
    y_position: Mapped[str] = mapped_column(String(20), nullable=False)
    rotation: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow, onupdate=utcnow
    )

    __table_args__ = (Index("ix_node_positions_layout", "layout_id"),)


class Annotation(Base):
    """Free-floating diagram decoration (label, layer box) on a layout."""

    __tablename__ = "annotations"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    layout_id: Mapped[str] = mapped_column(String(36), ForeignKey("layouts.id"), nullable=False)
    annotation_type: Mapped[str] = mapped_column(String(30), nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    subtitle: Mapped[str | None] = mapped_column(Text, nullable=True)
    position_x: Mapped[str] = mapped_column(String(20), nullable=False)
    position_y: Mapped[str] = mapped_column(String(20), nullable=False)
    size_width: Mapped[str | None] = mapped_column(String(20), nullable=True)
    size_height: Mapped[str | None] = mapped_column(String(20), nullable=True)
    color: Mapped[str | None] = mapped_column(String(30), nullable=True)
    style: Mapped[str | None] = mapped_column(String(30), nullable=True)
    interactive: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    metadata_: Mapped[dict[str, Any] | None] = mapped_column("metadata", JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow, onupdate=utcnow
    )

    __table_args__ = (Index("ix_annotations_layout", "layout_id"),)
