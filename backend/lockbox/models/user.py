"""User, Group and GroupsUser models.

Users authenticate with username/password and receive JWT tokens.
Groups are only used for sharing bookkeeping; the cleanup command removes
groups left without members.
"""

import uuid

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..database import Base

ROLE_ADMIN = "admin"
ROLE_USER = "user"


def new_uuid() -> str:
    return str(uuid.uuid4())


class User(Base):
    """User account.

    Roles:
        admin: manages users, metadata keys and instance health
        user:  manages their own items and the items shared with them
    """

    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=new_uuid)
    username = Column(String(255), unique=True, nullable=False)
    password_hash = Column(Text, nullable=True)
    role = Column(String(20), nullable=False, default=ROLE_USER)
    active = Column(Boolean, nullable=False, default=True)
    deleted = Column(Boolean, nullable=False, default=False)
    created = Column(DateTime(timezone=True), server_default=func.now())
    modified = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN


class Group(Base):
    """A named set of users."""

    __tablename__ = "groups"

    id = Column(String(36), primary_key=True, default=new_uuid)
    name = Column(String(255), nullable=False)
    deleted = Column(Boolean, nullable=False, default=False)
    created_by = Column(String(36), nullable=True)
    modified_by = Column(String(36), nullable=True)
    created = Column(DateTime(timezone=True), server_default=func.now())
    modified = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    members = relationship("GroupsUser", back_populates="group", cascade="all, delete-orphan")


class GroupsUser(Base):
    """Membership of a user in a group."""

    __tablename__ = "groups_users"
    __table_args__ = (UniqueConstraint("group_id", "user_id", name="uq_groups_users_group_user"),)

    id = Column(String(36), primary_key=True, default=new_uuid)
    group_id = Column(String(36), ForeignKey("groups.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(String(36), nullable=False, index=True)
    is_admin = Column(Boolean, nullable=False, default=False)
    created = Column(DateTime(timezone=True), server_default=func.now())

    group = relationship("Group", back_populates="members")
