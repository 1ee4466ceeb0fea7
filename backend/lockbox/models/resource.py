"""Resource model: one secret entry (login, note...)."""

from sqlalchemy import Boolean, Column, DateTime, String, Text
from sqlalchemy.sql import func

from ..database import Base
from .folderizable import Folderizable, FolderizableBehavior
from .user import new_uuid


class Resource(Folderizable, Base):
    """A resource. Clear v4 fields and encrypted v5 ``metadata`` are mutually exclusive."""

    __tablename__ = "resources"

    id = Column(String(36), primary_key=True, default=new_uuid)
    name = Column(String(255), nullable=True)
    username = Column(String(255), nullable=True)
    uri = Column(Text, nullable=True)
    description = Column(Text, nullable=True)
    metadata_ = Column("metadata", Text, nullable=True)
    metadata_key_id = Column(String(36), nullable=True)
    metadata_key_type = Column(String(16), nullable=True)
    deleted = Column(Boolean, nullable=False, default=False)
    created_by = Column(String(36), nullable=False)
    modified_by = Column(String(36), nullable=False)
    created = Column(DateTime(timezone=True), server_default=func.now())
    modified = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


FolderizableBehavior.attach(Resource)
