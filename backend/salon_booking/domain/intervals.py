"""Half-open interval helpers shared by availability and conflict checks."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional


def overlaps(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    """True when [a_start, a_end) and [b_start, b_end) share any instant."""
    return a_start < b_end and a_end > b_start


@dataclass(frozen=True)
class BusySpan:
    """Read-only projection of something occupying a staff member's time."""

    start: datetime
    end: datetime
    group_id: Optional[str] = None
    kind: str = "booking"

    def overlaps(self, start: datetime, end: datetime) -> bool:
        return overlaps(start, end, self.start, self.end)

    def to_dict(self) -> dict:
        return {
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "group_id": self.group_id,
            "kind": self.kind,
        }


def conflicting_spans(start: datetime, end: datetime, spans: Iterable[BusySpan]) -> List[BusySpan]:
    return [span for span in spans if span.overlaps(start, end)]
