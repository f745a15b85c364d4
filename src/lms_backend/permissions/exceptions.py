"""
Exception taxonomy of the content ACL engine.

These are plain domain exceptions. Each carries the HTTP status it maps to;
the request gate, the role gate and the ACL router raise them over HTTP with
`acl_error_to_http_exception`.
"""

from typing import Any, Optional
from fastapi import HTTPException


class AclError(Exception):
    """Base exception for ACL operations."""

    status_code: int = 500


class Unauthenticated(AclError):
    """No actor is bound to the request."""

    status_code = 401

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class InvalidPermissionKind(AclError, ValueError):
    status_code = 400

    def __init__(self, value: Any):
        super().__init__(f"Invalid permission type: {value!r}")
        self.value = value


class InvalidGranteeKind(AclError, ValueError):
    status_code = 400

    def __init__(self, value: Any):
        super().__init__(f"Invalid grantee type: {value!r}")
        self.value = value


class InvalidContentKind(AclError, ValueError):
    status_code = 400

    def __init__(self, value: Any):
        super().__init__(f"Invalid content kind: {value!r}")
        self.value = value


class ContentKindUnresolvable(AclError):
    status_code = 400

    def __init__(self, message: str = "Unable to determine content model"):
        super().__init__(message)


class MissingContentId(AclError):
    status_code = 400

    def __init__(self, message: str = "Content ID not found in route"):
        super().__init__(message)


class ContentNotFound(AclError):
    status_code = 404

    def __init__(self, kind: Any = None, content_id: Any = None, message: Optional[str] = None):
        super().__init__(message or "Content not found")
        self.kind = kind
        self.content_id = content_id


class PermissionDenied(AclError):
    status_code = 403

    def __init__(self, message: str = "Access denied"):
        super().__init__(message)


class AclStoreError(AclError):
    """Raised when the ACL entry store could not persist or read entries."""

    status_code = 500


def acl_error_to_http_exception(error: AclError) -> HTTPException:
    return HTTPException(status_code=error.status_code, detail={"message": str(error)})
