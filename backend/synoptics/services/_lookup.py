"""Small lookup and validation helpers shared by the service modules."""

from typing import Any, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

from synoptics.errors import DanglingReferenceError, NotFoundError, ValidationError
from synoptics.schemas import GAS_TYPES
from synoptics.services._registry import get_equipment_config

T = TypeVar("T")


async def fetch_or_raise(
    session: AsyncSession, model: type[T], row_id: str, label: str | None = None
) -> T:
    """Load a row by primary key or raise NotFoundError."""
    row = await session.get(model, row_id)
    if row is None:
        name = label or model.__name__
        raise NotFoundError(f"{name} not found: {row_id}", {"entity": name.lower(), "id": row_id})
    return row


async def fetch_reference(
    session: AsyncSession, model: type[T], row_id: str, label: str | None = None
) -> T:
    """Load a row referenced from another entity's payload.

    A missing row here is a dangling reference rather than a missing target.
    """
    row = await session.get(model, row_id)
    if row is None:
        name = label or model.__name__
        raise DanglingReferenceError(
            f"{name} {row_id} does not exist", {"entity": name.lower(), "id": row_id}
        )
    return row


def require_name(value: str | None, field: str = "name") -> str:
    """Reject missing or blank names; returns the trimmed value."""
    if value is None or not value.strip():
        raise ValidationError(f"{field} is required", {"field": field})
    return value.strip()


def require_gas_type(value: str) -> str:
    if value not in GAS_TYPES:
        raise ValidationError(
            f"Unknown gas type: {value}", {"field": "gas_type", "allowed": list(GAS_TYPES)}
        )
    return value


def require_same_site(site_id: str, other_site_id: str, what: str) -> None:
    if site_id != other_site_id:
        raise DanglingReferenceError(
            f"{what} belongs to a different site",
            {"expected_site_id": site_id, "actual_site_id": other_site_id},
        )


async def fetch_element(session: AsyncSession, node_type: str, element_id: str) -> Any:
    """Load the equipment element a node or media row points at."""
    config = get_equipment_config(node_type)
    element = await session.get(config.model, element_id)
    if element is None:
        raise DanglingReferenceError(
            f"{config.label} {element_id} does not exist",
            {"node_type": node_type, "element_id": element_id},
        )
    return element
