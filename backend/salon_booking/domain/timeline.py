"""
Timeline building for a basket of services.

A basket is booked back to back in selection order. A chemical service is
followed by a processing gap that the staff member stays reserved for but
that is not itself a bookable segment.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, List, Optional, Sequence

from ..core.constants import CHEMICAL_GAP_MIN
from .chemical import ChemicalClassifier, default_classifier


@dataclass(frozen=True)
class EffectiveTerms:
    """Duration and price after any per-staff override."""

    duration: Optional[int]
    price: Optional[Decimal]


Resolver = Callable[[Any], EffectiveTerms]


def base_terms(service: Any) -> EffectiveTerms:
    """Resolver used when no staff member is chosen yet; durations fall back to base."""
    return EffectiveTerms(duration=None, price=None)


@dataclass(frozen=True)
class TimelineSegment:
    offset_min: int
    duration: int
    service: Any
    price: Optional[Decimal] = None
    is_chemical: bool = False

    @property
    def end_offset_min(self) -> int:
        return self.offset_min + self.duration


@dataclass(frozen=True)
class Timeline:
    segments: List[TimelineSegment] = field(default_factory=list)
    sum_active_duration: int = 0
    total_span_minutes: int = 0
    sum_price: Decimal = Decimal("0")
    has_unknown_price: bool = False
    has_chemical: bool = False

    @property
    def is_empty(self) -> bool:
        return not self.segments

    @property
    def label(self) -> str:
        parts = []
        for segment in self.segments:
            name = getattr(segment.service, "name", None) or "Service"
            parts.append(f"{name} (+processing gap)" if segment.is_chemical else name)
        return ", ".join(parts)

    def materialize(self, start: datetime) -> List[tuple[datetime, datetime, TimelineSegment]]:
        """Concrete (start, end, segment) triples for a booking starting at ``start``."""
        return [
            (
                start + timedelta(minutes=s.offset_min),
                start + timedelta(minutes=s.end_offset_min),
                s,
            )
            for s in self.segments
        ]


def coerce_price(value: Any) -> Optional[Decimal]:
    """
    Return a usable price or None.

    Null, empty, zero and non-numeric values all mean "price to be confirmed".
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    try:
        price = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not price.is_finite() or price == 0:
        return None
    return price


def _resolve_duration(service: Any, terms: EffectiveTerms) -> int:
    duration = terms.duration
    if duration is None or duration <= 0:
        duration = getattr(service, "base_duration", None)
    try:
        minutes = int(duration) if duration is not None else 0
    except (TypeError, ValueError):
        minutes = 0
    if minutes <= 0:
        name = getattr(service, "name", "service")
        raise ValueError(f"Service '{name}' has no usable duration")
    return minutes


def build_timeline(
    services: Sequence[Any],
    resolver: Resolver = base_terms,
    classifier: ChemicalClassifier = default_classifier,
    *,
    chemical_gap_minutes: int = CHEMICAL_GAP_MIN,
) -> Timeline:
    """
    Lay services out back to back, adding the processing gap after chemical ones.

    The total span ends at the last segment's end; a gap after the final
    service is not held. Raises ValueError for a service without a positive
    duration.
    """
    if not services:
        return Timeline()

    offset = 0
    segments: List[TimelineSegment] = []
    sum_price = Decimal("0")
    has_unknown_price = False
    has_chemical = False

    for service in services:
        terms = resolver(service)
        duration = _resolve_duration(service, terms)
        price = coerce_price(terms.price)
        chemical = classifier.is_chemical(service)

        segments.append(
            TimelineSegment(
                offset_min=offset,
                duration=duration,
                service=service,
                price=price,
                is_chemical=chemical,
            )
        )
        if price is None:
            has_unknown_price = True
        else:
            sum_price += price

        offset += duration
        if chemical:
            has_chemical = True
            offset += chemical_gap_minutes

    return Timeline(
        segments=segments,
        sum_active_duration=sum(s.duration for s in segments),
        total_span_minutes=max(s.end_offset_min for s in segments),
        sum_price=sum_price,
        has_unknown_price=has_unknown_price,
        has_chemical=has_chemical,
    )
