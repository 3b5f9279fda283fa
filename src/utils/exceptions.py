"""Custom exception classes."""
from typing import Optional


class RegistrationError(Exception):
    """Base class for every error a registration submission can end in."""

    default_message = "Registration failed"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(RegistrationError):
    """Raised when submitted data fails field-level validation."""

    default_message = "Invalid registration data"

    def __init__(self, message: Optional[str] = None, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class DuplicateEmailError(RegistrationError):
    """Raised when the email already has a registration."""

    default_message = "This email is already registered for an event."


class CapacityExceededError(RegistrationError):
    """Raised when the event, its category or the portal is full."""

    default_message = "Registration is closed: the maximum capacity has been reached."


class StoreUnavailable(RegistrationError):
    """Raised when the registration store cannot be read."""

    default_message = "Registrations could not be loaded. Please try again later."


class StoreWriteError(RegistrationError):
    """Raised when a registration cannot be written."""

    default_message = "Your registration could not be saved. Please submit again."


class UnknownEventError(KeyError):
    """Raised when an event name is not in the catalog."""
    pass


class NotificationError(Exception):
    """Raised when the confirmation email cannot be delivered."""
    pass
