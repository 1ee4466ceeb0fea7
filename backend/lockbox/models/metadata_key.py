"""Shared metadata keys and their per-user encrypted private parts."""

from sqlalchemy import Column, DateTime, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..database import Base
from .user import new_uuid


class MetadataKey(Base):
    """Public half of a shared metadata key.

    ``expired`` and ``deleted`` are timestamps; NULL means active.
    """

    __tablename__ = "metadata_keys"

    id = Column(String(36), primary_key=True, default=new_uuid)
    fingerprint = Column(String(51), nullable=False, index=True)
    armored_key = Column(Text, nullable=False)
    expired = Column(DateTime(timezone=True), nullable=True)
    deleted = Column(DateTime(timezone=True), nullable=True)
    created_by = Column(String(36), nullable=True)
    modified_by = Column(String(36), nullable=True)
    created = Column(DateTime(timezone=True), server_default=func.now())
    modified = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    metadata_private_keys = relationship(
        "MetadataPrivateKey",
        back_populates="metadata_key",
        cascade="all, delete-orphan",
    )

    @property
    def is_active(self) -> bool:
        return self.expired is None and self.deleted is None


class MetadataPrivateKey(Base):
    """Private half of a metadata key, encrypted for one user.

    ``user_id`` NULL marks the copy encrypted for the server key.
    """

    __tablename__ = "metadata_private_keys"
    __table_args__ = (
        UniqueConstraint("metadata_key_id", "user_id", name="uq_metadata_private_keys_key_user"),
    )

    id = Column(String(36), primary_key=True, default=new_uuid)
    metadata_key_id = Column(String(36), ForeignKey("metadata_keys.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(String(36), nullable=True, index=True)
    data = Column(Text, nullable=False)
    created_by = Column(String(36), nullable=True)
    modified_by = Column(String(36), nullable=True)
    created = Column(DateTime(timezone=True), server_default=func.now())
    modified = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    metadata_key = relationship("MetadataKey", back_populates="metadata_private_keys")
