"""Equipment kind registry for eliminating repetitive if/elif branching on node_type."""

from dataclasses import dataclass

from pydantic import BaseModel

from synoptics.errors import ValidationError
from synoptics.models import Fitting, Source, Valve
from synoptics.schemas import FittingOut, SourceOut, ValveOut


@dataclass(frozen=True)
class EquipmentKindConfig:
    """How one equipment kind is stored and presented."""

    node_type: str
    model: type
    label: str
    out_schema: type[BaseModel]
    # Kind-specific columns surfaced on NodeDetail.element
    detail_columns: tuple[str, ...] = ()


EQUIPMENT_REGISTRY: dict[str, EquipmentKindConfig] = {
    "source": EquipmentKindConfig(
        node_type="source",
        model=Source,
        label="Source",
        out_schema=SourceOut,
    ),
    "valve": EquipmentKindConfig(
        node_type="valve",
        model=Valve,
        label="Valve",
        out_schema=ValveOut,
        detail_columns=("valve_type", "state"),
    ),
    "fitting": EquipmentKindConfig(
        node_type="fitting",
        model=Fitting,
        label="Fitting",
        out_schema=FittingOut,
        detail_columns=("fitting_type",),
    ),
}


def get_equipment_config(node_type: str) -> EquipmentKindConfig:
    """Get configuration for an equipment kind; unknown kinds are a validation error."""
    config = EQUIPMENT_REGISTRY.get(node_type)
    if config is None:
        raise ValidationError(
            f"Unknown equipment kind: {node_type}",
            {"node_type": node_type, "allowed": sorted(EQUIPMENT_REGISTRY)},
        )
    return config
