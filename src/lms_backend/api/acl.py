from typing import Annotated, Any
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from lms_backend.database import get_db
from lms_backend.interface.permissions import (
    AclBulkGrant,
    AclEntryGet,
    AclGrant,
    ContentPermissionsGet,
    ContentSummary,
    PermissionType,
)
from lms_backend.permissions.auth import get_current_principal, require_role
from lms_backend.permissions.exceptions import AclError, acl_error_to_http_exception
from lms_backend.permissions.gate import require_acl
from lms_backend.permissions.principal import Principal
from lms_backend.permissions.registry import BuiltinRole, ensure_content_kind
from lms_backend.permissions.service import AclService

acl_router = APIRouter()

content_viewer = require_acl(PermissionType.VIEW, kind_param="kind", param="content_id")
content_manager = require_acl(PermissionType.MANAGE, kind_param="kind", param="content_id")


@acl_router.get("/{kind}", response_model=list[ContentSummary])
def list_accessible_content(principal: Annotated[Principal, Depends(get_current_principal)], kind: str,
                            permission: str = PermissionType.VIEW.value, db: Session = Depends(get_db)):

    try:
        return AclService(db).get_accessible_content(principal, kind, permission)
    except AclError as e:
        raise acl_error_to_http_exception(e)


@acl_router.post("/{kind}/bulk/grant", response_model=dict)
def bulk_grant(principal: Annotated[Principal, Depends(require_role(BuiltinRole.ADMIN))], kind: str,
               entity: AclBulkGrant, db: Session = Depends(get_db)):

    try:
        created = AclService(db).bulk_grant_permissions(
            entity.content_ids, ensure_content_kind(kind),
            entity.permission_type, entity.grantee_type, entity.grantee_id,
        )
    except AclError as e:
        raise acl_error_to_http_exception(e)

    return {"created": created}


@acl_router.post("/{kind}/bulk/revoke", response_model=dict)
def bulk_revoke(principal: Annotated[Principal, Depends(require_role(BuiltinRole.ADMIN))], kind: str,
                entity: AclBulkGrant, db: Session = Depends(get_db)):

    try:
        revoked = AclService(db).bulk_revoke_permissions(
            entity.content_ids, ensure_content_kind(kind),
            entity.permission_type, entity.grantee_type, entity.grantee_id,
        )
    except AclError as e:
        raise acl_error_to_http_exception(e)

    return {"revoked": revoked}


@acl_router.get("/{kind}/{content_id}/entries", response_model=list[AclEntryGet])
def list_acl_entries(content: Annotated[Any, Depends(content_manager)], db: Session = Depends(get_db)):

    return AclService(db).store.entries_for(content.content_ref)


@acl_router.post("/{kind}/{content_id}/entries", response_model=dict)
def grant_permission(content: Annotated[Any, Depends(content_manager)], entity: AclGrant, db: Session = Depends(get_db)):

    try:
        created = AclService(db).grant_permission(content, entity.permission_type, entity.grantee_type, entity.grantee_id)
    except AclError as e:
        raise acl_error_to_http_exception(e)

    return {"created": created}


@acl_router.delete("/{kind}/{content_id}/entries", response_model=dict)
def revoke_permission(content: Annotated[Any, Depends(content_manager)], permission_type: str, grantee_type: str,
                      grantee_id: int, db: Session = Depends(get_db)):

    try:
        revoked = AclService(db).revoke_permission(content, permission_type, grantee_type, grantee_id)
    except AclError as e:
        raise acl_error_to_http_exception(e)

    return {"revoked": revoked}


@acl_router.get("/{kind}/{content_id}/permissions", response_model=ContentPermissionsGet)
def get_my_permissions(principal: Annotated[Principal, Depends(get_current_principal)],
                       content: Annotated[Any, Depends(content_viewer)], db: Session = Depends(get_db)):

    ref = content.content_ref
    return ContentPermissionsGet(
        content_type=ref.kind,
        content_id=ref.id,
        permissions=AclService(db).get_user_permissions(principal, content),
    )


@acl_router.post("/{kind}/{content_id}/public", response_model=dict)
def make_public(content: Annotated[Any, Depends(content_manager)], db: Session = Depends(get_db)):

    try:
        AclService(db).make_content_public(content)
    except AclError as e:
        raise acl_error_to_http_exception(e)

    return {"ok": True}


@acl_router.post("/{kind}/{content_id}/private", response_model=dict)
def make_private(content: Annotated[Any, Depends(content_manager)], db: Session = Depends(get_db)):

    try:
        deleted = AclService(db).make_content_private(content)
    except AclError as e:
        raise acl_error_to_http_exception(e)

    return {"deleted": deleted}
