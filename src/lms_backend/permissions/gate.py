"""
Request gate for ACL-protected content routes.

`require_acl` is configured per route with the permission to require and,
optionally, the content kind and the name of the path parameter holding the
content id:

    @router.get("/pages/{id}", name="pages.show")
    def show_page(page = Depends(require_acl("view"))):
        ...

    @router.put("/courses/{course_id}/items/{item_id}")
    def update_item(item = Depends(require_acl("edit", kind="assignment", param="item_id"))):
        ...

Routes serving several kinds can name the path parameter holding the kind
with `kind_param` instead. The dependency returns the loaded content item
when access is granted.
"""

import logging
from typing import Any, Optional
from fastapi import Depends, Request
from sqlalchemy.orm import Session

from lms_backend.database import get_db
from lms_backend.interface.permissions import ContentKind, PermissionType
from lms_backend.permissions.auth import get_optional_principal
from lms_backend.permissions.exceptions import (
    AclError,
    ContentKindUnresolvable,
    ContentNotFound,
    MissingContentId,
    PermissionDenied,
    Unauthenticated,
    acl_error_to_http_exception,
)
from lms_backend.permissions.principal import Principal
from lms_backend.permissions.registry import (
    ensure_content_kind,
    ensure_permission,
    infer_kind_from_route_name,
)
from lms_backend.permissions.service import AclService

logger = logging.getLogger(__name__)


def resolve_route_kind(request: Request) -> Optional[ContentKind]:
    route = request.scope.get("route")
    return infer_kind_from_route_name(getattr(route, "name", None))


def authorize_content_request(request: Request, principal: Optional[Principal], service: AclService,
                              permission: PermissionType, kind: Optional[ContentKind] = None,
                              param: str = "id", kind_param: Optional[str] = None) -> Any:
    """Run the gate checks in order and return the content item, raising AclError on failure"""

    if principal is None:
        raise Unauthenticated()

    if kind is None and kind_param is not None:
        kind = ensure_content_kind(request.path_params.get(kind_param))

    kind = kind or resolve_route_kind(request)
    if kind is None:
        raise ContentKindUnresolvable()

    content_id = request.path_params.get(param)
    if content_id is None or content_id == "":
        raise MissingContentId()

    content = service.load_content(kind, content_id)
    if content is None:
        raise ContentNotFound(kind, content_id)

    if not service.has_permission(principal, content, permission):
        logger.debug(f"Denied {permission.value} on {kind.value}:{content_id} for user {principal.user_id}")
        raise PermissionDenied()

    return content


def require_acl(permission: Any, kind: Optional[Any] = None, param: str = "id",
                kind_param: Optional[str] = None):
    """Dependency factory guarding a route by a content ACL permission"""

    # Invalid configuration fails when the route is declared, not per request
    permission = ensure_permission(permission)
    kind = ensure_content_kind(kind) if kind is not None else None

    def acl_gate(request: Request,
                 principal: Optional[Principal] = Depends(get_optional_principal),
                 db: Session = Depends(get_db)) -> Any:
        try:
            return authorize_content_request(request, principal, AclService(db), permission, kind, param, kind_param)
        except AclError as e:
            raise acl_error_to_http_exception(e)

    return acl_gate
