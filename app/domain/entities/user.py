"""Domain entity representing a user."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class User:
    """Durable identity of a platform user as seen by the messaging core."""

    id: int | None
    name: str
    email: str
    role: str
    realtime_uid: str | None
    push_token: str | None
    is_active: bool
    created_at: datetime | None

    def has_role(self, alias: str) -> bool:
        """Return ``True`` when the user's role matches ``alias``."""

        return self.role.lower() == alias.lower()

    def is_admin(self) -> bool:
        """Return ``True`` when the user is an administrator."""

        return self.has_role("admin")
