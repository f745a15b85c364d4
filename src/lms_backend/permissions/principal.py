from typing import List, Optional
from pydantic import BaseModel, model_validator, Field

from lms_backend.permissions.exceptions import Unauthenticated
from lms_backend.permissions.registry import BuiltinRole


class Principal(BaseModel):
    """Authenticated actor with its currently assigned roles"""

    is_admin: bool = False
    user_id: Optional[int] = None

    roles: List[str] = Field(default_factory=list)
    role_ids: List[int] = Field(default_factory=list)

    @model_validator(mode='after')
    def set_is_admin_from_roles(self):
        """Automatically set admin flag based on roles"""
        if BuiltinRole.ADMIN in self.roles:
            self.is_admin = True
        return self

    def get_user_id_or_throw(self) -> int:
        """Get user ID or raise exception"""
        if self.user_id is None:
            raise Unauthenticated("User ID not found")
        return self.user_id

    def has_role(self, role: str) -> bool:
        return role in self.roles

    def has_any_role(self, roles: List[str]) -> bool:
        return any(role in self.roles for role in roles)
