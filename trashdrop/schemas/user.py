from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, Field


class UserRole(str, Enum):
    """Roles carried in the Supabase JWT app_metadata"""

    USER = "user"
    COLLECTOR = "collector"
    ADMIN = "admin"

    @classmethod
    def get_hierarchy_level(cls, role: Union[str, "UserRole"]) -> int:
        """Higher number means more privileges"""
        if isinstance(role, cls):
            role = role.value

        hierarchy = {
            cls.USER.value: 1,
            cls.COLLECTOR.value: 2,
            cls.ADMIN.value: 3,
        }
        return hierarchy.get(str(role), 0)

    @classmethod
    def has_permission(
        cls, user_role: Union[str, "UserRole"], required_role: Union[str, "UserRole"]
    ) -> bool:
        return cls.get_hierarchy_level(user_role) >= cls.get_hierarchy_level(
            required_role
        )


class AuthenticatedUser(BaseModel):
    """Caller identity decoded from a Supabase access token"""

    id: str = Field(..., description="Supabase auth user id (JWT sub)")
    email: Optional[str] = None
    role: UserRole = UserRole.USER

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def is_collector(self) -> bool:
        return UserRole.has_permission(self.role, UserRole.COLLECTOR)
