"""Data validation utilities."""
import re
from typing import Optional, Tuple

from src.models.event import get_event_config, is_known_event
from src.models.registration import Registration
from src.utils.exceptions import ValidationError

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
PHONE_DIGITS = 10
MIN_YEAR = 1
MAX_YEAR = 4
MAX_TEXT_LENGTH = 100

REQUIRED_TEXT_FIELDS = {
    "email": "Email address",
    "student_name": "Full name",
    "college_name": "College/University",
    "department": "Department",
    "team_member1": "Team member 1",
}


def normalize_email(email: str) -> str:
    """
    Normalize email for duplicate comparison.

    Args:
        email: Email to normalize

    Returns:
        Normalized email (trimmed, case-folded)

    Behavior:
        - Example: " Asha@College.EDU " → "asha@college.edu"
    """
    return (email or "").strip().casefold()


def normalize_phone(phone: Optional[str]) -> Optional[str]:
    """
    Strip every non-digit from a phone number.

    Returns:
        The digits, or None if nothing was entered
    """
    if phone is None:
        return None
    digits = re.sub(r"\D", "", str(phone))
    return digits or None


def validate_email(email: str) -> Tuple[bool, str]:
    """
    Validate an email address.

    Returns:
        Tuple of (is_valid: bool, error_message: str)
    """
    if not email or not email.strip():
        return False, "Email address is required"
    if not EMAIL_PATTERN.match(email.strip()):
        return False, "Please enter a valid email address"
    return True, ""


def validate_phone(phone: Optional[str]) -> Tuple[bool, str]:
    """
    Validate an optional phone number.

    Returns:
        Tuple of (is_valid: bool, error_message: str)
        - (True, "") if empty or exactly 10 digits after normalization
        - (False, "Phone number must be exactly 10 digits.") otherwise
    """
    if phone is None or not str(phone).strip():
        return True, ""
    digits = normalize_phone(phone)
    if digits is None or len(digits) != PHONE_DIGITS:
        return False, "Phone number must be exactly 10 digits."
    return True, ""


def validate_year(year) -> Tuple[bool, str]:
    """Validate academic year (1-4)."""
    if isinstance(year, bool) or not isinstance(year, int):
        return False, "Academic year must be a whole number"
    if not MIN_YEAR <= year <= MAX_YEAR:
        return False, f"Academic year must be between {MIN_YEAR} and {MAX_YEAR}"
    return True, ""


def validate_registration(registration: Registration) -> Registration:
    """
    Validate a registration against the event catalog.

    Args:
        registration: Submitted registration (id/created_at are ignored)

    Returns:
        A cleaned copy: text trimmed, phone reduced to digits

    Raises:
        ValidationError: On the first failing field, with ``field`` set
    """
    for field_name, label in REQUIRED_TEXT_FIELDS.items():
        value = getattr(registration, field_name)
        if not isinstance(value, str) or not value.strip():
            raise ValidationError(f"{label} is required", field=field_name)
        if len(value.strip()) > MAX_TEXT_LENGTH:
            raise ValidationError(
                f"{label} cannot exceed {MAX_TEXT_LENGTH} characters", field=field_name
            )

    is_valid, error_msg = validate_email(registration.email)
    if not is_valid:
        raise ValidationError(error_msg, field="email")

    if not registration.event_name or not is_known_event(registration.event_name):
        raise ValidationError(
            f"Unknown event: {registration.event_name}", field="event_name"
        )
    event = get_event_config(registration.event_name)

    is_valid, error_msg = validate_year(registration.year)
    if not is_valid:
        raise ValidationError(error_msg, field="year")

    is_valid, error_msg = validate_phone(registration.phone)
    if not is_valid:
        raise ValidationError(error_msg, field="phone")

    # Slots above the event's team size must stay empty
    if event.max_team_members < 3 and registration.team_member3:
        raise ValidationError(
            f"{event.name} allows maximum {event.max_team_members} team members.",
            field="team_member3",
        )
    if len(registration.team_members) > event.max_team_members:
        raise ValidationError(
            f"{event.name} allows maximum {event.max_team_members} team members.",
            field="team_members",
        )

    if event.requires_file and not registration.uploaded_file_path:
        raise ValidationError(
            f"{event.name} requires a presentation upload (PPT, PPTX or PDF).",
            field="uploaded_file_path",
        )
    if not event.requires_file and registration.uploaded_file_path:
        raise ValidationError(
            f"{event.name} does not accept file uploads.",
            field="uploaded_file_path",
        )

    def _clean(value: Optional[str]) -> Optional[str]:
        return value.strip() if value else None

    return Registration(
        email=registration.email.strip(),
        student_name=registration.student_name.strip(),
        college_name=registration.college_name.strip(),
        department=registration.department.strip(),
        year=registration.year,
        team_member1=registration.team_member1.strip(),
        event_name=registration.event_name,
        phone=normalize_phone(registration.phone),
        team_member2=_clean(registration.team_member2),
        team_member3=_clean(registration.team_member3),
        uploaded_file_path=registration.uploaded_file_path,
    )
