"""Network graph models: nodes wrapping equipment, and pipeline connections."""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from synoptics.database import Base, new_id, utcnow


class Node(Base):
    """A placed instance of one equipment element in a site's gas network."""

    __tablename__ = "nodes"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    site_id: Mapped[str] = mapped_column(String(36), ForeignKey("sites.id"), nullable=False)
    node_type: Mapped[str] = mapped_column(String(10), nullable=False)
    # Polymorphic reference: resolved through node_type to sources/valves/fittings
    element_id: Mapped[str] = mapped_column(String(36), nullable=False)

    # Optional location anchors
    building_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("buildings.id"), nullable=True
    )
    floor_id: Mapped[str | None] = mapped_column(String(36), ForeignKey("floors.id"), nullable=True)
    zone_id: Mapped[str | None] = mapped_column(String(36), ForeignKey("zones.id"), nullable=True)

    z_position: Mapped[str | None] = mapped_column(String(20), nullable=True, default="0.00")
    outlet_count: Mapped[int | None] = mapped_column(Integer, nullable=True, default=0)
    latitude: Mapped[str | None] = mapped_column(String(20), nullable=True)
    longitude: Mapped[str | None] = mapped_column(String(20), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow, onupdate=utcnow
    )

    __table_args__ = (
        UniqueConstraint("node_type", "element_id", name="uq_nodes_element"),
        Index("ix_nodes_site", "site_id"),
        Index("ix_nodes_building", "building_id"),
        Index("ix_nodes_floor", "floor_id"),
    )


class Connection(Base):
    """Site-scoped pipeline segment between two nodes."""

    __tablename__ = "connections"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    site_id: Mapped[str] = mapped_column(String(36), ForeignKey("sites.id"), nullable=False)
    from_node_id: Mapped[str] = mapped_column(String(36), ForeignKey("nodes.id"), nullable=False)
    to_node_id: Mapped[str] = mapped_column(String(36), ForeignKey("nodes.id"), nullable=False)
    gas_type: Mapped[str] = mapped_column(String(32), nullable=False)
    diameter_mm: Mapped[str | None] = mapped_column(String(20), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        Index("ix_connections_site", "site_id"),
        Index("ix_connections_from", "from_node_id"),
        Index("ix_connections_to", "to_node_id"),
    )
