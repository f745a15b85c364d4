from datetime import datetime
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field


class PermissionType(str, Enum):
    VIEW = "view"
    EDIT = "edit"
    DELETE = "delete"
    MANAGE = "manage"


class GranteeType(str, Enum):
    ROLE = "role"
    USER = "user"


class ContentKind(str, Enum):
    PAGE = "page"
    ASSIGNMENT = "assignment"
    QUIZ = "quiz"
    DISCUSSION = "discussion"
    ANNOUNCEMENT = "announcement"
    MODULE = "module"


class ContentRef(BaseModel):
    """Polymorphic reference to a content item: (kind, id)."""

    model_config = ConfigDict(frozen=True)

    kind: ContentKind
    id: int

    def __str__(self) -> str:
        return f"{self.kind.value}:{self.id}"


class AclEntryGet(BaseModel):
    id: int = Field(description="ACL entry identifier")
    content_type: ContentKind = Field(description="Kind of the content item")
    content_id: int = Field(description="Identifier of the content item")
    permission_type: PermissionType = Field(description="Granted permission")
    grantee_type: GranteeType = Field(description="Whether a role or a user is granted")
    grantee_id: int = Field(description="Role or user identifier")
    created_at: Optional[datetime] = Field(None, description="Creation timestamp")
    updated_at: Optional[datetime] = Field(None, description="Update timestamp")

    model_config = ConfigDict(from_attributes=True)


class AclGrant(BaseModel):
    permission_type: str = Field(description="Permission to grant or revoke")
    grantee_type: str = Field(description="'role' or 'user'")
    grantee_id: int = Field(description="Role or user identifier")


class AclBulkGrant(AclGrant):
    content_ids: List[int] = Field(description="Content items of the same kind")


class ContentPermissionsGet(BaseModel):
    content_type: ContentKind
    content_id: int
    permissions: List[PermissionType] = Field(default_factory=list)


class ContentSummary(BaseModel):
    id: int
    title: str
    course_id: Optional[int] = None
    status: Optional[str] = None
    is_public: bool = False

    model_config = ConfigDict(from_attributes=True)
