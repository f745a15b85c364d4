"""
ACL entry store.

Durable mapping (content item, permission, grantee) -> grant, persisted in
the `acl_entries` table. Every mutation is committed immediately; database
failures roll the session back and surface as AclStoreError.
"""

import logging
from typing import Any, FrozenSet, Iterable, List, Optional, Set
from sqlalchemy import and_, delete, or_, select
from sqlalchemy.engine import Connection
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from lms_backend.model.acl import AclEntry
from lms_backend.interface.permissions import ContentRef, GranteeType, PermissionType
from lms_backend.permissions.cache import AclEntryCache, AclKey
from lms_backend.permissions.exceptions import AclStoreError
from lms_backend.permissions.principal import Principal
from lms_backend.permissions.registry import (
    content_registry,
    ensure_content_kind,
    ensure_grantee_type,
    ensure_permission,
)

logger = logging.getLogger(__name__)


def content_filter(ref: ContentRef):
    return and_(AclEntry.content_type == ref.kind.value, AclEntry.content_id == ref.id)


def principal_filter(principal: Principal):
    """Entries naming the user directly or any role the user holds"""
    return or_(
        and_(AclEntry.grantee_type == GranteeType.ROLE, AclEntry.grantee_id.in_(principal.role_ids)),
        and_(AclEntry.grantee_type == GranteeType.USER, AclEntry.grantee_id == principal.user_id),
    )


def grantee_filter(grantee_type: GranteeType, grantee_id: int):
    return and_(AclEntry.grantee_type == grantee_type, AclEntry.grantee_id == grantee_id)


def delete_orphaned_entries(connection: Connection) -> List[ContentRef]:
    """Delete entries whose content row no longer exists, returns the refs they named"""
    refs = []
    for kind, model in content_registry.models().items():
        orphaned = and_(
            AclEntry.content_type == kind.value,
            AclEntry.content_id.not_in(select(model.id)),
        )
        content_ids = connection.execute(select(AclEntry.content_id).where(orphaned).distinct()).scalars().all()
        if not content_ids:
            continue

        connection.execute(delete(AclEntry).where(orphaned))
        refs.extend(ContentRef(kind=kind, id=content_id) for content_id in content_ids)
    return refs


class AclEntryStore:
    """Repository over the acl_entries table"""

    def __init__(self, db: Session, cache: Optional[AclEntryCache] = None):
        self.db = db
        self.cache = cache

    # Reads

    def _load_snapshot(self, ref: ContentRef) -> FrozenSet[AclKey]:
        rows = (
            self.db.query(AclEntry.permission_type, AclEntry.grantee_type, AclEntry.grantee_id)
            .filter(content_filter(ref))
            .all()
        )
        return frozenset((row[0], row[1], row[2]) for row in rows)

    def _snapshot(self, ref: ContentRef) -> FrozenSet[AclKey]:
        return self.cache.get_or_load(ref, self._load_snapshot)

    def exists(self, ref: ContentRef, permission: Any, grantee_type: Any, grantee_id: int) -> bool:
        """Check for the exact (content, permission, grantee) entry"""
        permission = ensure_permission(permission)
        grantee_type = ensure_grantee_type(grantee_type)

        if self.cache is not None:
            return (permission, grantee_type, grantee_id) in self._snapshot(ref)

        return self._stored(ref, permission, grantee_type, grantee_id)

    def _stored(self, ref: ContentRef, permission: PermissionType, grantee_type: GranteeType, grantee_id: int) -> bool:
        return self.db.query(AclEntry.id).filter(
            content_filter(ref),
            AclEntry.permission_type == permission,
            grantee_filter(grantee_type, grantee_id),
        ).first() is not None

    def has_any(self, ref: ContentRef, permission: Any, principal: Principal) -> bool:
        """Check if any entry grants `permission` to the principal directly or through one of its roles"""
        permission = ensure_permission(permission)

        if self.cache is not None:
            snapshot = self._snapshot(ref)
            if (permission, GranteeType.USER, principal.user_id) in snapshot:
                return True
            return any((permission, GranteeType.ROLE, role_id) in snapshot for role_id in principal.role_ids)

        return self.db.query(AclEntry.id).filter(
            content_filter(ref),
            AclEntry.permission_type == permission,
            principal_filter(principal),
        ).first() is not None

    def has_entries(self, ref: ContentRef) -> bool:
        """Check if the content item has any ACL entry at all"""
        if self.cache is not None:
            return len(self._snapshot(ref)) > 0

        return self.db.query(AclEntry.id).filter(content_filter(ref)).first() is not None

    def entries_for(self, ref: ContentRef) -> List[AclEntry]:
        return (
            self.db.query(AclEntry)
            .filter(content_filter(ref))
            .order_by(AclEntry.id)
            .all()
        )

    def permissions_for(self, ref: ContentRef, principal: Principal) -> Set[PermissionType]:
        """All permissions the principal holds on the content item, fetched at once"""
        if self.cache is not None:
            return {
                permission for permission, grantee_type, grantee_id in self._snapshot(ref)
                if (grantee_type == GranteeType.USER and grantee_id == principal.user_id)
                or (grantee_type == GranteeType.ROLE and grantee_id in principal.role_ids)
            }

        rows = (
            self.db.query(AclEntry.permission_type)
            .filter(content_filter(ref), principal_filter(principal))
            .distinct()
            .all()
        )
        return {row[0] for row in rows}

    def content_ids_query(self, kind: Any, permission: Any,
                          principal: Optional[Principal] = None,
                          grantee_type: Optional[Any] = None,
                          grantee_id: Optional[int] = None):
        """Select content ids of a kind with a matching entry, for use as a subquery"""
        kind = ensure_content_kind(kind)
        permission = ensure_permission(permission)

        stmt = select(AclEntry.content_id).where(
            AclEntry.content_type == kind.value,
            AclEntry.permission_type == permission,
        )
        if principal is not None:
            stmt = stmt.where(principal_filter(principal))
        if grantee_type is not None:
            stmt = stmt.where(grantee_filter(ensure_grantee_type(grantee_type), grantee_id))
        return stmt

    # Mutations

    def _commit(self, action: str):
        try:
            self.db.commit()
        except IntegrityError:
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"ACL store failed to {action}: {e}")
            raise AclStoreError(f"Failed to {action}") from e

    def _invalidate(self, *refs: ContentRef):
        if self.cache is None:
            return
        for ref in refs:
            self.cache.invalidate(ref)

    def grant(self, ref: ContentRef, permission: Any, grantee_type: Any, grantee_id: int) -> bool:
        """
        Grant a permission. Idempotent: returns False when the entry already existed.

        Existence is checked against the database, never the cache.
        """
        permission = ensure_permission(permission)
        grantee_type = ensure_grantee_type(grantee_type)

        if self._stored(ref, permission, grantee_type, grantee_id):
            # The cached snapshot may predate this entry
            self._invalidate(ref)
            return False

        self.db.add(AclEntry(
            content_type=ref.kind.value,
            content_id=ref.id,
            permission_type=permission,
            grantee_type=grantee_type,
            grantee_id=grantee_id,
        ))

        try:
            self._commit(f"grant {permission.value} on {ref}")
        except IntegrityError:
            # A concurrent grant inserted the same entry first
            self.db.rollback()
            logger.debug(f"ACL entry {permission.value} on {ref} for {grantee_type.value}:{grantee_id} already present")
            return False
        finally:
            self._invalidate(ref)

        logger.info(f"Granted {permission.value} on {ref} to {grantee_type.value}:{grantee_id}")
        return True

    def revoke(self, ref: ContentRef, permission: Any, grantee_type: Any, grantee_id: int) -> bool:
        """Revoke a permission. Revoking a missing entry is a no-op returning False."""
        permission = ensure_permission(permission)
        grantee_type = ensure_grantee_type(grantee_type)

        deleted = self.db.query(AclEntry).filter(
            content_filter(ref),
            AclEntry.permission_type == permission,
            grantee_filter(grantee_type, grantee_id),
        ).delete(synchronize_session=False)

        try:
            self._commit(f"revoke {permission.value} on {ref}")
        except IntegrityError as e:
            self.db.rollback()
            raise AclStoreError(f"Failed to revoke {permission.value} on {ref}") from e
        finally:
            self._invalidate(ref)

        if deleted:
            logger.info(f"Revoked {permission.value} on {ref} from {grantee_type.value}:{grantee_id}")
        return deleted > 0

    def delete_all(self, ref: ContentRef) -> int:
        """Remove every entry of a content item"""
        deleted = self.db.query(AclEntry).filter(content_filter(ref)).delete(synchronize_session=False)

        try:
            self._commit(f"delete entries of {ref}")
        except IntegrityError as e:
            self.db.rollback()
            raise AclStoreError(f"Failed to delete entries of {ref}") from e
        finally:
            self._invalidate(ref)

        logger.info(f"Deleted {deleted} ACL entries of {ref}")
        return deleted

    def bulk_grant(self, kind: Any, content_ids: Iterable[int], permission: Any,
                   grantee_type: Any, grantee_id: int) -> int:
        """
        Grant one permission on many content items of the same kind.

        The whole batch is committed in a single transaction; entries that
        already exist are skipped. Returns the number of created entries.
        """
        kind = ensure_content_kind(kind)
        permission = ensure_permission(permission)
        grantee_type = ensure_grantee_type(grantee_type)
        ids = list(dict.fromkeys(int(content_id) for content_id in content_ids))

        if not ids:
            return 0

        existing = {
            row[0] for row in self.db.query(AclEntry.content_id).filter(
                AclEntry.content_type == kind.value,
                AclEntry.content_id.in_(ids),
                AclEntry.permission_type == permission,
                grantee_filter(grantee_type, grantee_id),
            ).all()
        }

        entries = [
            AclEntry(
                content_type=kind.value,
                content_id=content_id,
                permission_type=permission,
                grantee_type=grantee_type,
                grantee_id=grantee_id,
            )
            for content_id in ids if content_id not in existing
        ]

        refs = [ContentRef(kind=kind, id=content_id) for content_id in ids]
        try:
            self.db.add_all(entries)
            self._commit(f"bulk grant {permission.value} on {len(ids)} {kind.value} items")
        except IntegrityError as e:
            self.db.rollback()
            logger.error(f"Bulk grant on {kind.value} items rolled back: {e}")
            raise AclStoreError(f"Failed to bulk grant {permission.value} on {kind.value} items") from e
        finally:
            self._invalidate(*refs)

        logger.info(f"Bulk granted {permission.value} on {len(entries)} {kind.value} items to {grantee_type.value}:{grantee_id}")
        return len(entries)

    def bulk_revoke(self, kind: Any, content_ids: Iterable[int], permission: Any,
                    grantee_type: Any, grantee_id: int) -> int:
        """Revoke one permission from many content items of the same kind in a single transaction"""
        kind = ensure_content_kind(kind)
        permission = ensure_permission(permission)
        grantee_type = ensure_grantee_type(grantee_type)
        ids = list(dict.fromkeys(int(content_id) for content_id in content_ids))

        if not ids:
            return 0

        deleted = self.db.query(AclEntry).filter(
            AclEntry.content_type == kind.value,
            AclEntry.content_id.in_(ids),
            AclEntry.permission_type == permission,
            grantee_filter(grantee_type, grantee_id),
        ).delete(synchronize_session=False)

        try:
            self._commit(f"bulk revoke {permission.value} on {len(ids)} {kind.value} items")
        except IntegrityError as e:
            self.db.rollback()
            raise AclStoreError(f"Failed to bulk revoke {permission.value} on {kind.value} items") from e
        finally:
            self._invalidate(*[ContentRef(kind=kind, id=content_id) for content_id in ids])

        logger.info(f"Bulk revoked {permission.value} on {deleted} {kind.value} entries from {grantee_type.value}:{grantee_id}")
        return deleted

    def purge_orphans(self) -> int:
        """Remove entries left behind by content deleted outside the session"""
        refs = delete_orphaned_entries(self.db.connection())

        try:
            self._commit("purge orphaned entries")
        except IntegrityError as e:
            self.db.rollback()
            raise AclStoreError("Failed to purge orphaned entries") from e
        finally:
            self._invalidate(*refs)

        logger.info(f"Purged ACL entries of {len(refs)} deleted content items")
        return len(refs)
