"""SQLAlchemy models."""

from synoptics.models.equipment import Fitting, Source, Valve
from synoptics.models.graph import Connection, Node
from synoptics.models.hierarchy import Building, Floor, Organization, Site, Zone
from synoptics.models.layout import Annotation, Layout, NodePosition
from synoptics.models.media import Media

__all__ = [
    "Organization",
    "Site",
    "Building",
    "Floor",
    "Zone",
    "Source",
    "Valve",
    "Fitting",
    "Node",
    "Connection",
    "Layout",
    "NodePosition",
    "Annotation",
    "Media",
]
