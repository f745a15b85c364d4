"""
Registration of the content models with the ACL engine.

Builds the kind -> model dispatch table and hooks ACL cascade deletion
into every registered content model and into Course. Runs once on import.

Mapper hooks only fire for deletes issued through the session. Content
removed by query-level deletes leaves orphaned entries behind until
`AclService.purge_orphaned_entries()` (or `lms acl prune`) is run.
"""

import logging
from sqlalchemy import delete, event

from lms_backend.model.acl import AclEntry
from lms_backend.model.content import CONTENT_MODELS
from lms_backend.model.course import Course
from lms_backend.permissions import cache as acl_cache
from lms_backend.permissions.registry import content_registry
from lms_backend.permissions.store import delete_orphaned_entries

logger = logging.getLogger(__name__)


def _invalidate_shared_cache(*refs):
    if acl_cache.acl_entry_cache is None:
        return
    for ref in refs:
        acl_cache.acl_entry_cache.invalidate(ref)


def _delete_acl_entries(mapper, connection, target):
    """Cascade: a deleted content item takes its ACL entries with it"""
    ref = target.content_ref
    connection.execute(
        delete(AclEntry).where(
            AclEntry.content_type == ref.kind.value,
            AclEntry.content_id == ref.id,
        )
    )
    _invalidate_shared_cache(ref)
    logger.debug(f"Deleted ACL entries of removed content {ref}")


def _delete_course_acl_entries(mapper, connection, target):
    """Content removed by the database foreign key cascade of a course has no hook of its own"""
    refs = delete_orphaned_entries(connection)
    _invalidate_shared_cache(*refs)
    if refs:
        logger.debug(f"Deleted ACL entries of {len(refs)} items removed with course {target.id}")


def initialize_content_registry():
    """Register all content models and their cascade hooks"""
    for model in CONTENT_MODELS:
        content_registry.register(model.__content_kind__, model)
        if not event.contains(model, "after_delete", _delete_acl_entries):
            event.listen(model, "after_delete", _delete_acl_entries)

    if not event.contains(Course, "after_delete", _delete_course_acl_entries):
        event.listen(Course, "after_delete", _delete_course_acl_entries)


# Initialize registry on module import
initialize_content_registry()
