"""Domain entity for registry users and their roles."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from uuid import uuid4


class UserRole(str, Enum):
    """Roles recognised by the registry."""

    ADMIN = "admin"
    VIEWER = "viewer"


@dataclass
class UserAccount:
    """A person allowed to sign in to the registry."""

    email: str
    password_hash: str
    role: UserRole = UserRole.VIEWER
    display_name: str | None = None
    is_active: bool = True
    id: str = field(default_factory=lambda: str(uuid4()))
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def can_edit(self) -> bool:
        """Only administrators may create, change or delete records."""
        return self.role is UserRole.ADMIN
