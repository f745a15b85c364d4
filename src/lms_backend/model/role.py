from sqlalchemy import (
    Boolean, Column, DateTime, ForeignKey, Integer, String, func, text
)
from sqlalchemy.orm import relationship

from .base import Base


class Role(Base):
    __tablename__ = 'role'

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False, unique=True)
    description = Column(String(4096))
    builtin = Column(Boolean, nullable=False, server_default=text("false"))

    # Relationships
    user_roles = relationship('UserRole', back_populates='role')


class UserRole(Base):
    __tablename__ = 'user_role'

    user_id = Column(ForeignKey('user.id', ondelete='CASCADE'), primary_key=True, nullable=False)
    role_id = Column(ForeignKey('role.id', ondelete='RESTRICT', onupdate='CASCADE'), primary_key=True, nullable=False)
    created_at = Column(DateTime(True), nullable=False, server_default=func.now())

    role = relationship('Role', back_populates='user_roles')
    user = relationship('User', back_populates='user_roles')
