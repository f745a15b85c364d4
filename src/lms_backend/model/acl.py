from sqlalchemy import (
    Column, DateTime, Enum, Index, Integer, String, UniqueConstraint, func
)

from lms_backend.interface.permissions import ContentKind, ContentRef, GranteeType, PermissionType
from .base import Base


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class AclEntry(Base):
    __tablename__ = 'acl_entries'
    __table_args__ = (
        Index('acl_entries_content_index', 'content_type', 'content_id'),
        Index('acl_entries_grantee_index', 'grantee_type', 'grantee_id'),
        Index('acl_entries_permission_type_index', 'permission_type'),
        UniqueConstraint('content_type', 'content_id', 'permission_type', 'grantee_type', 'grantee_id', name='unique_acl_entry'),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    content_type = Column(String(64), nullable=False)
    content_id = Column(Integer, nullable=False)
    permission_type = Column(Enum(PermissionType, name='acl_permission_type', values_callable=_enum_values), nullable=False)
    grantee_type = Column(Enum(GranteeType, name='acl_grantee_type', values_callable=_enum_values), nullable=False)
    grantee_id = Column(Integer, nullable=False)
    created_at = Column(DateTime(True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(True), nullable=False, server_default=func.now(), onupdate=func.now())

    @property
    def content_ref(self) -> ContentRef:
        return ContentRef(kind=ContentKind(self.content_type), id=self.content_id)

    def __repr__(self) -> str:
        return (f"<AclEntry {self.content_type}:{self.content_id} "
                f"{self.permission_type.value} {self.grantee_type.value}:{self.grantee_id}>")
