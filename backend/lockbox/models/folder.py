"""Folder and FoldersRelation models.

Folders are shared objects; their placement is not. Every user who can see a
folder or a resource has one FoldersRelation row for it, telling in which of
*their* folders the item sits (``folder_parent_id``; NULL means the root of
their tree).
"""

from sqlalchemy import Column, DateTime, Index, String, Text, UniqueConstraint
from sqlalchemy.sql import func

from ..database import Base
from .folderizable import Folderizable, FolderizableBehavior
from .user import new_uuid

FOREIGN_MODEL_FOLDER = "Folder"
FOREIGN_MODEL_RESOURCE = "Resource"

METADATA_KEY_TYPE_USER = "user_key"
METADATA_KEY_TYPE_SHARED = "shared_key"


class Folder(Folderizable, Base):
    """A folder. ``name`` holds clear metadata (v4); ``metadata`` the encrypted one (v5)."""

    __tablename__ = "folders"

    MAX_NAME_LENGTH = 256

    id = Column(String(36), primary_key=True, default=new_uuid)
    name = Column(String(MAX_NAME_LENGTH), nullable=True)
    # "metadata" is reserved on declarative classes, hence the trailing underscore.
    metadata_ = Column("metadata", Text, nullable=True)
    metadata_key_id = Column(String(36), nullable=True)
    metadata_key_type = Column(String(16), nullable=True)
    created_by = Column(String(36), nullable=False)
    modified_by = Column(String(36), nullable=False)
    created = Column(DateTime(timezone=True), server_default=func.now())
    modified = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    @property
    def is_v5(self) -> bool:
        return self.metadata_ is not None


FolderizableBehavior.attach(Folder)


class FoldersRelation(Base):
    """Position of an item (folder or resource) in one user's tree."""

    __tablename__ = "folders_relations"
    __table_args__ = (
        UniqueConstraint("foreign_id", "user_id", name="uq_folders_relations_foreign_user"),
        Index("ix_folders_relations_user_id", "user_id"),
        Index("ix_folders_relations_folder_parent_id", "folder_parent_id"),
    )

    id = Column(String(36), primary_key=True, default=new_uuid)
    foreign_model = Column(String(30), nullable=False)
    foreign_id = Column(String(36), nullable=False, index=True)
    user_id = Column(String(36), nullable=False)
    folder_parent_id = Column(String(36), nullable=True)
    created = Column(DateTime(timezone=True), server_default=func.now())
    modified = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
