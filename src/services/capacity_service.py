"""Capacity accounting: live counts and ceiling checks."""
from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional

from src.models.event import CATEGORIES, EVENTS, EVENT_CATALOG, get_events_by_category
from src.models.registration import Registration
from src.utils.config import CAPACITY_MODES, Settings


@dataclass
class CapacityCounts:
    """Aggregate registration counts derived from the store."""

    total: int = 0
    per_category: Dict[str, int] = field(
        default_factory=lambda: {category: 0 for category in CATEGORIES}
    )
    per_event: Dict[str, int] = field(
        default_factory=lambda: {event: 0 for event in EVENTS}
    )


def aggregate_counts(registrations: Iterable[Registration]) -> CapacityCounts:
    """
    Count registrations overall, per category and per event.

    Every catalog event and category is present in the result, with 0 when
    nothing is registered. Rows for events missing from the catalog count
    toward ``total`` and ``per_event`` only.
    """
    return count_event_names(registration.event_name for registration in registrations)


def count_event_names(event_names: Iterable[str]) -> CapacityCounts:
    """Same as aggregate_counts, over bare event names (e.g. raw store rows)."""
    counts = CapacityCounts()
    for name in event_names:
        counts.total += 1
        counts.per_event[name] = counts.per_event.get(name, 0) + 1
        event = EVENT_CATALOG.get(name)
        if event is not None:
            counts.per_category[event.category] += 1
    return counts


@dataclass(frozen=True)
class CapacityPolicy:
    """
    Which ceiling gates new registrations.

    Modes:
        category: each category holds at most ``category_ceiling``
        global: the whole portal holds at most ``global_ceiling``
        event: each event holds at most ``event_ceiling``
    """

    mode: str = "category"
    category_ceiling: int = 50
    global_ceiling: int = 100
    event_ceiling: int = 20

    def __post_init__(self):
        if self.mode not in CAPACITY_MODES:
            raise ValueError(f"Capacity mode must be one of {CAPACITY_MODES}, got: {self.mode}")
        for name in ("category_ceiling", "global_ceiling", "event_ceiling"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive")

    @classmethod
    def from_settings(cls, settings: Settings) -> "CapacityPolicy":
        return cls(
            mode=settings.capacity_policy,
            category_ceiling=settings.category_ceiling,
            global_ceiling=settings.global_ceiling,
            event_ceiling=settings.event_ceiling,
        )

    def ceiling_for(self, event_name: str) -> Optional[int]:
        """Ceiling that applies to ``event_name``, or None for unknown events."""
        if event_name not in EVENT_CATALOG:
            return None
        if self.mode == "global":
            return self.global_ceiling
        if self.mode == "event":
            return self.event_ceiling
        return self.category_ceiling

    def used_for(self, event_name: str, counts: CapacityCounts) -> int:
        """Count compared against ``ceiling_for(event_name)``."""
        if self.mode == "global":
            return counts.total
        if self.mode == "event":
            return counts.per_event.get(event_name, 0)
        event = EVENT_CATALOG.get(event_name)
        if event is None:
            return 0
        return counts.per_category.get(event.category, 0)

    def remaining(self, event_name: str, counts: CapacityCounts) -> int:
        """Seats left for ``event_name`` (0 for unknown events)."""
        ceiling = self.ceiling_for(event_name)
        if ceiling is None:
            return 0
        return max(ceiling - self.used_for(event_name, counts), 0)

    def is_event_open(self, event_name: str, counts: CapacityCounts) -> bool:
        """True iff the configured ceiling for ``event_name`` is not reached."""
        return self.remaining(event_name, counts) > 0

    def category_capacity(self, category: str) -> int:
        """Most registrations a category can hold under this policy."""
        if self.mode == "category":
            return self.category_ceiling
        if self.mode == "event":
            return self.event_ceiling * len(get_events_by_category(category))
        return self.global_ceiling

    def total_capacity(self) -> int:
        """Most registrations the portal can hold under this policy."""
        if self.mode == "category":
            return self.category_ceiling * len(CATEGORIES)
        if self.mode == "event":
            return self.event_ceiling * len(EVENT_CATALOG)
        return self.global_ceiling

    def is_category_open(self, category: str, counts: CapacityCounts) -> bool:
        """True iff at least one event of ``category`` still accepts registrations."""
        return any(
            self.is_event_open(event.name, counts)
            for event in EVENT_CATALOG.values()
            if event.category == category
        )
