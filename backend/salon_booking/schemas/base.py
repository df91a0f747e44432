"""
Base schemas with standardized field types for consistent API responses.
"""

from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, PlainSerializer
from typing_extensions import Annotated


class StandardizedModel(BaseModel):
    """Base model for responses."""

    model_config = ConfigDict(use_enum_values=True, populate_by_name=True)


class StrictRequestModel(BaseModel):
    """Request bodies: unknown fields are rejected."""

    model_config = ConfigDict(extra="forbid", validate_default=True)


def _money_to_float(value: Optional[Decimal]) -> Optional[float]:
    return float(value) if value is not None else None


# Prices serialize as floats; None means "to be confirmed".
Money = Annotated[Optional[Decimal], PlainSerializer(_money_to_float, return_type=Optional[float])]


def strip_or_none(value: Any) -> Any:
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value
