"""OpenPGP public key model."""

from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text
from sqlalchemy.sql import func

from ..database import Base
from .user import new_uuid


class Gpgkey(Base):
    """A user's public OpenPGP key (one active key per user)."""

    __tablename__ = "gpgkeys"

    id = Column(String(36), primary_key=True, default=new_uuid)
    # No foreign key: keys of removed users are kept until cleanup.
    user_id = Column(String(36), nullable=False, index=True)
    armored_key = Column(Text, nullable=False)
    bits = Column(Integer, nullable=True)
    uid = Column(String(128), nullable=True)
    key_id = Column(String(16), nullable=False, index=True)
    fingerprint = Column(String(51), nullable=False)
    type = Column(String(16), nullable=True)
    expires = Column(DateTime(timezone=True), nullable=True)
    key_created = Column(DateTime(timezone=True), nullable=True)
    deleted = Column(Boolean, nullable=False, default=False)
    created = Column(DateTime(timezone=True), server_default=func.now())
    modified = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

