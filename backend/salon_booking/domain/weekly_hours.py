"""Weekly opening hours for a staff member.

Storage holds one canonical shape, keyed by lowercase weekday name::

    {"monday": {"start": "09:00", "end": "17:00"}, "sunday": {"off": true}, ...}

Older rows used other key styles (Title-case, short names, numeric or array
indexes counted from Sunday). ``WeeklyAvailability.from_legacy`` reads those
and is only used where rows are loaded.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time
import json
from typing import Any, Dict, Mapping, Optional, Tuple

from ..core.constants import DAYS_OF_WEEK

# Legacy payloads index weekdays from Sunday (0) to Saturday (6).
_LEGACY_TITLE_KEYS = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]
_LEGACY_LONG_KEYS = [key.lower() for key in _LEGACY_TITLE_KEYS]
_LEGACY_SHORT_KEYS = ["sun", "mon", "tue", "wed", "thu", "fri", "sat"]


def parse_hhmm(value: Any) -> Optional[time]:
    """Parse "H:MM" / "HH:MM[:SS]" into a time; None when unparseable."""
    if value is None:
        return None
    parts = str(value).strip().split(":")
    try:
        hour = int(parts[0])
        minute = int(parts[1]) if len(parts) > 1 and parts[1] != "" else 0
    except ValueError:
        return None
    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        return None
    return time(hour, minute)


@dataclass(frozen=True)
class DayWindow:
    """One opening window; ``start < end`` on the same day."""

    start: time
    end: time

    def __post_init__(self) -> None:
        if self.end <= self.start:
            raise ValueError(f"Opening window must end after it starts ({self.start}-{self.end})")

    def on(self, target_date: date) -> Tuple[datetime, datetime]:
        return datetime.combine(target_date, self.start), datetime.combine(target_date, self.end)

    def to_dict(self) -> Dict[str, str]:
        return {"start": self.start.strftime("%H:%M"), "end": self.end.strftime("%H:%M")}


@dataclass(frozen=True)
class WeeklyAvailability:
    """Canonical weekly hours; a missing or None day means closed."""

    days: Mapping[str, Optional[DayWindow]] = field(default_factory=dict)

    def window_for(self, target_date: date) -> Optional[DayWindow]:
        return self.days.get(DAYS_OF_WEEK[target_date.weekday()])

    def to_dict(self) -> Dict[str, Dict[str, Any]]:
        out: Dict[str, Dict[str, Any]] = {}
        for day in DAYS_OF_WEEK:
            window = self.days.get(day)
            out[day] = window.to_dict() if window else {"off": True}
        return out

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "WeeklyAvailability":
        """Read the canonical shape. Unknown keys are ignored."""
        days: Dict[str, Optional[DayWindow]] = {}
        for day in DAYS_OF_WEEK:
            days[day] = _window_from_entry((data or {}).get(day))
        return cls(days=days)

    @classmethod
    def from_legacy(cls, raw: Any) -> "WeeklyAvailability":
        """
        Normalize any historical weekly_hours payload.

        Per weekday the lookup order is: Title-case name, lowercase long name,
        short name, numeric index (string key or list position), then a
        case-insensitive match on the long and short names. JSON strings are
        decoded first; anything unreadable yields a closed week.
        """
        if isinstance(raw, (str, bytes)):
            try:
                raw = json.loads(raw)
            except ValueError:
                return cls(days={})
        if not isinstance(raw, (Mapping, list, tuple)):
            return cls(days={})

        days: Dict[str, Optional[DayWindow]] = {}
        for python_index, day in enumerate(DAYS_OF_WEEK):
            legacy_index = (python_index + 1) % 7
            days[day] = _window_from_entry(_lookup_legacy_entry(raw, legacy_index))
        return cls(days=days)


def _lookup_legacy_entry(raw: Any, legacy_index: int) -> Any:
    if isinstance(raw, (list, tuple)):
        return raw[legacy_index] if legacy_index < len(raw) else None

    for key in (
        _LEGACY_TITLE_KEYS[legacy_index],
        _LEGACY_LONG_KEYS[legacy_index],
        _LEGACY_SHORT_KEYS[legacy_index],
        str(legacy_index),
    ):
        entry = raw.get(key)
        if entry:
            return entry

    wanted = {_LEGACY_LONG_KEYS[legacy_index], _LEGACY_SHORT_KEYS[legacy_index]}
    for key, entry in raw.items():
        if isinstance(key, str) and key.strip().lower() in wanted and entry:
            return entry
    return None


def _window_from_entry(entry: Any) -> Optional[DayWindow]:
    # Some rows stored a list of windows; only the first is honoured.
    if isinstance(entry, (list, tuple)):
        entry = entry[0] if entry else None
    if not isinstance(entry, Mapping):
        return None
    if entry.get("off") or entry.get("closed"):
        return None
    start = parse_hhmm(entry.get("start"))
    end = parse_hhmm(entry.get("end"))
    if start is None or end is None or end <= start:
        return None
    return DayWindow(start=start, end=end)
