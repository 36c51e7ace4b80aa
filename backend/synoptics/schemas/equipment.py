"""Pydantic schemas for equipment elements (sources, valves, fittings)."""

from datetime import datetime

from synoptics.schemas.common import CamelModel, GasType, ValveState

# --- Sources ---


class SourceCreate(CamelModel):
    site_id: str
    name: str
    gas_type: GasType


class SourceUpdate(CamelModel):
    name: str | None = None
    gas_type: GasType | None = None


class SourceOut(CamelModel):
    id: str
    site_id: str
    name: str
    gas_type: GasType
    created_at: datetime


# --- Valves ---


class ValveCreate(CamelModel):
    site_id: str
    name: str
    valve_type: str
    gas_type: GasType
    state: ValveState = "open"


class ValveUpdate(CamelModel):
    name: str | None = None
    valve_type: str | None = None
    gas_type: GasType | None = None
    state: ValveState | None = None


class ValveOut(CamelModel):
    id: str
    site_id: str
    name: str
    valve_type: str
    gas_type: GasType
    state: ValveState
    created_at: datetime


# --- Fittings ---


class FittingCreate(CamelModel):
    site_id: str
    name: str | None = None
    fitting_type: str
    gas_type: GasType


class FittingUpdate(CamelModel):
    name: str | None = None
    fitting_type: str | None = None
    gas_type: GasType | None = None


class FittingOut(CamelModel):
    id: str
    site_id: str
    name: str | None = None
    fitting_type: str
    gas_type: GasType
    created_at: datetime
