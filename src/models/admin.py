"""Admin data model."""
import hmac
from dataclasses import dataclass, field


@dataclass(frozen=True)
class Admin:
    """Administrator credentials configured on the server."""

    username: str
    password: str = field(repr=False)

    def __post_init__(self):
        """Validate admin data after initialization."""
        if not self.username or len(self.username) < 3:
            raise ValueError("Username must be at least 3 characters")

        if not self.password or len(self.password) < 6:
            raise ValueError("Password must be at least 6 characters")

    def matches(self, username: str, password: str) -> bool:
        """Constant-time comparison of submitted credentials."""
        username_ok = hmac.compare_digest(
            (username or "").encode("utf-8"), self.username.encode("utf-8")
        )
        password_ok = hmac.compare_digest(
            (password or "").encode("utf-8"), self.password.encode("utf-8")
        )
        return username_ok and password_ok
