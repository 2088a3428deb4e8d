from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class AdminSession:
    """The acting admin, passed explicitly to every service call for audit attribution."""

    user_id: str
    email: str = ""
    role: str = "admin"
    ip_address: Optional[str] = None

    @classmethod
    def system(cls) -> "AdminSession":
        # Used by scheduled jobs that run without an authenticated admin.
        return cls(user_id="system", email="", role="super-admin")
