"""Gpgkey schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class GpgkeyResponse(BaseModel):
    id: str
    user_id: str
    armored_key: str
    bits: Optional[int] = None
    uid: Optional[str] = None
    key_id: str
    fingerprint: str
    type: Optional[str] = None
    expires: Optional[datetime] = None
    key_created: Optional[datetime] = None
    deleted: bool = False
    created: Optional[datetime] = None
    modified: Optional[datetime] = None

    class Config:
        from_attributes = True
