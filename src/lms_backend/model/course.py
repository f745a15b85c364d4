from sqlalchemy import (
    Column, DateTime, ForeignKey, Index, Integer, String, func, text
)
from sqlalchemy.orm import relationship

from .base import Base


class Course(Base):
    __tablename__ = 'course'

    id = Column(Integer, primary_key=True, autoincrement=True)
    created_at = Column(DateTime(True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(True), nullable=False, server_default=func.now(), onupdate=func.now())
    title = Column(String(255), nullable=False)
    code = Column(String(255), unique=True)
    description = Column(String(4096))
    instructor_id = Column(ForeignKey('user.id', ondelete='SET NULL'))

    # Relationships
    instructor = relationship('User', back_populates='taught_courses')
    enrollments = relationship('CourseEnrollment', back_populates='course', cascade='all, delete-orphan')


class CourseEnrollment(Base):
    __tablename__ = 'course_enrollment'
    __table_args__ = (
        Index('course_enrollment_course_user_key', 'course_id', 'user_id', unique=True),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    created_at = Column(DateTime(True), nullable=False, server_default=func.now())
    course_id = Column(ForeignKey('course.id', ondelete='CASCADE'), nullable=False, index=True)
    user_id = Column(ForeignKey('user.id', ondelete='CASCADE'), nullable=False, index=True)
    status = Column(String(64), nullable=False, server_default=text("'active'"))

    course = relationship('Course', back_populates='enrollments')
    user = relationship('User', back_populates='enrollments')
