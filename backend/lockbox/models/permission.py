"""Permission model: who (aro) can do what (type) on which item (aco)."""

from sqlalchemy import Column, DateTime, Index, Integer, String, UniqueConstraint
from sqlalchemy.sql import func

from ..database import Base
from .user import new_uuid

ACO_FOLDER = "Folder"
ACO_RESOURCE = "Resource"
ARO_USER = "User"

READ = 1
UPDATE = 7
OWNER = 15


class Permission(Base):
    __tablename__ = "permissions"
    __table_args__ = (
        UniqueConstraint("aco_foreign_key", "aro_foreign_key", name="uq_permissions_aco_aro"),
        Index("ix_permissions_aro", "aro_foreign_key"),
    )

    id = Column(String(36), primary_key=True, default=new_uuid)
    aco = Column(String(30), nullable=False)
    aco_foreign_key = Column(String(36), nullable=False)
    aro = Column(String(30), nullable=False, default=ARO_USER)
    aro_foreign_key = Column(String(36), nullable=False)
    type = Column(Integer, nullable=False, default=READ)
    created = Column(DateTime(timezone=True), server_default=func.now())
    modified = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
