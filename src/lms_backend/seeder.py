import logging
from sqlalchemy.orm import Session

from lms_backend.model.role import Role
from lms_backend.permissions.registry import BuiltinRole

logger = logging.getLogger(__name__)

BUILTIN_ROLE_DESCRIPTIONS = {
    BuiltinRole.ADMIN: "Full system access",
    BuiltinRole.INSTRUCTOR: "Can create courses, assignments, grade students",
    BuiltinRole.STUDENT: "Can enroll in courses, submit assignments, view grades",
    BuiltinRole.TEACHING_ASSISTANT: "Limited instructor capabilities",
}


def seed_builtin_roles(db: Session) -> int:
    """Create the builtin roles that do not exist yet, returns the number created"""

    existing = {name for (name,) in db.query(Role.name).filter(Role.name.in_(BuiltinRole.ALL)).all()}

    created = 0
    for name in BuiltinRole.ALL:
        if name in existing:
            continue
        db.add(Role(name=name, description=BUILTIN_ROLE_DESCRIPTIONS[name], builtin=True))
        created += 1

    db.commit()

    if created:
        logger.info(f"Seeded {created} builtin roles")
    return created
