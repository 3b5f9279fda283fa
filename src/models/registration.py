"""Registration data model."""
from dataclasses import asdict, dataclass, fields
from datetime import datetime
from typing import Any, Dict, List, Optional


@dataclass
class Registration:
    """One participant/team submission for an event."""

    email: str
    student_name: str
    college_name: str
    department: str
    year: int
    team_member1: str
    event_name: str
    phone: Optional[str] = None
    team_member2: Optional[str] = None
    team_member3: Optional[str] = None
    uploaded_file_path: Optional[str] = None
    id: Optional[str] = None
    created_at: Optional[str] = None  # ISO 8601 format

    def __post_init__(self):
        """Normalize blank optional fields and check the stored timestamp."""
        for name in ("phone", "team_member2", "team_member3", "uploaded_file_path"):
            value = getattr(self, name)
            if value is not None and not str(value).strip():
                setattr(self, name, None)

        if self.created_at is not None:
            try:
                datetime.fromisoformat(self.created_at.replace('Z', '+00:00'))
            except ValueError as e:
                raise ValueError(f"Invalid timestamp format: {self.created_at}") from e

    @property
    def team_members(self) -> List[str]:
        """Filled team member slots, in slot order."""
        slots = (self.team_member1, self.team_member2, self.team_member3)
        return [member for member in slots if member and member.strip()]

    def to_dict(self) -> Dict[str, Any]:
        """Row representation used by the registration store."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Registration":
        """
        Build a registration from a stored row.

        Unknown keys are ignored so older rows with extra columns still load.
        """
        known = {f.name for f in fields(cls)}
        return cls(**{key: value for key, value in data.items() if key in known})

    def without_store_fields(self) -> Dict[str, Any]:
        """Row without the store-assigned id and created_at."""
        row = self.to_dict()
        row.pop("id")
        row.pop("created_at")
        return row
