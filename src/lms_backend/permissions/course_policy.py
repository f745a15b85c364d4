"""
Course-level coarse policy.

Courses are not ACL-entried content; operations on a course as a whole
(enrollments, gradebook, submissions) are decided from roles, course
ownership and enrollment directly.
"""

from typing import Optional

from lms_backend.model.course import Course
from lms_backend.permissions.lookups import CourseLookup
from lms_backend.permissions.principal import Principal
from lms_backend.permissions.registry import BuiltinRole


class CoursePolicy:

    def __init__(self, courses: CourseLookup):
        self.courses = courses

    def _owns(self, principal: Principal, course: Course) -> bool:
        return principal.user_id is not None and self.courses.instructor_id(course) == principal.user_id

    def _instructor_or_admin(self, principal: Principal, course: Course) -> bool:
        if principal.is_admin:
            return True

        if principal.has_role(BuiltinRole.INSTRUCTOR):
            return self._owns(principal, course)

        return False

    def _member(self, principal: Principal, course: Course) -> bool:
        if principal.is_admin:
            return True

        if principal.has_role(BuiltinRole.INSTRUCTOR):
            return self._owns(principal, course)

        if principal.has_role(BuiltinRole.STUDENT):
            return self.courses.is_enrolled(principal.user_id, course)

        return False

    def view_any(self, principal: Principal) -> bool:
        return principal.has_any_role([BuiltinRole.ADMIN, BuiltinRole.INSTRUCTOR, BuiltinRole.STUDENT])

    def view(self, principal: Principal, course: Course) -> bool:
        return self._member(principal, course)

    def create(self, principal: Principal, course: Optional[Course] = None) -> bool:
        return principal.is_admin

    def update(self, principal: Principal, course: Course) -> bool:
        return self._instructor_or_admin(principal, course)

    def delete(self, principal: Principal, course: Course) -> bool:
        return principal.is_admin

    def view_enrollments(self, principal: Principal, course: Course) -> bool:
        return self._instructor_or_admin(principal, course)

    def manage_enrollments(self, principal: Principal, course: Course) -> bool:
        return self._instructor_or_admin(principal, course)

    def view_submissions(self, principal: Principal, course: Course) -> bool:
        return self._instructor_or_admin(principal, course)

    def view_gradebook(self, principal: Principal, course: Course) -> bool:
        return self._member(principal, course)

    def manage_gradebook(self, principal: Principal, course: Course) -> bool:
        return self._instructor_or_admin(principal, course)

    def manage_grades(self, principal: Principal, course: Course) -> bool:
        return self._instructor_or_admin(principal, course)
