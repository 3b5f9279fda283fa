"""Event catalog."""
from dataclasses import dataclass
from typing import Dict, List

from src.utils.exceptions import UnknownEventError

TECHNICAL = "Technical"
NON_TECHNICAL = "Non-Technical"
CATEGORIES = [TECHNICAL, NON_TECHNICAL]


@dataclass(frozen=True)
class EventConfig:
    """Static configuration of one symposium event."""

    name: str
    category: str
    max_team_members: int
    requires_file: bool = False

    def __post_init__(self):
        """Validate event configuration."""
        if not self.name or not self.name.strip():
            raise ValueError("Event name cannot be empty")

        if self.category not in CATEGORIES:
            raise ValueError(f"Category must be one of {CATEGORIES}, got: {self.category}")

        if self.max_team_members not in (2, 3):
            raise ValueError(f"Max team members must be 2 or 3, got: {self.max_team_members}")


EVENT_CATALOG: Dict[str, EventConfig] = {
    config.name: config
    for config in (
        EventConfig("Paper Quest", TECHNICAL, 3, requires_file=True),
        EventConfig("Hack'n'Hammer", TECHNICAL, 3),
        EventConfig("Byte Fest", TECHNICAL, 2),
        EventConfig("Cinephile", NON_TECHNICAL, 2),
        EventConfig("e-sports", NON_TECHNICAL, 3),
    )
}

EVENTS: List[str] = list(EVENT_CATALOG)


def get_event_config(event_name: str) -> EventConfig:
    """
    Look up an event by name.

    Raises:
        UnknownEventError: If the event is not in the catalog
    """
    try:
        return EVENT_CATALOG[event_name]
    except KeyError:
        raise UnknownEventError(event_name) from None


def is_known_event(event_name: str) -> bool:
    return event_name in EVENT_CATALOG


def get_events_by_category(category: str) -> List[EventConfig]:
    """Events of one category, in catalog order."""
    return [config for config in EVENT_CATALOG.values() if config.category == category]
