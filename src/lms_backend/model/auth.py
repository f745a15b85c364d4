from sqlalchemy import Column, DateTime, Integer, String, func
from sqlalchemy.orm import relationship

from .base import Base


class User(Base):
    __tablename__ = 'user'

    id = Column(Integer, primary_key=True, autoincrement=True)
    created_at = Column(DateTime(True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(True), nullable=False, server_default=func.now(), onupdate=func.now())
    given_name = Column(String(255))
    family_name = Column(String(255))
    email = Column(String(320), unique=True)
    username = Column(String(255), unique=True)

    # Relationships
    user_roles = relationship("UserRole", back_populates="user", uselist=True, lazy="select", cascade="all, delete-orphan")
    enrollments = relationship("CourseEnrollment", back_populates="user", uselist=True, lazy="select", cascade="all, delete-orphan")
    taught_courses = relationship("Course", back_populates="instructor", uselist=True, lazy="select")
