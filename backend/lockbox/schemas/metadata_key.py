"""Metadata key schemas: the create form and the index response."""

from datetime import datetime
from typing import Any, ClassVar, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic_core import PydanticCustomError

from .validation import alpha_numeric, armored_message, armored_public_key, ascii_rule, not_empty, uuid_rule


class MetadataPrivateKeyCreate(BaseModel):
    """One encrypted copy of the private key. ``user_id`` None means the server copy."""

    user_id: Optional[str] = Field(...)
    data: str

    @field_validator("user_id")
    @classmethod
    def validate_user_id(cls, v):
        if v is None:
            return v
        return uuid_rule(v, "The user identifier should be a valid UUID.")

    @field_validator("data")
    @classmethod
    def validate_data(cls, v):
        not_empty(v, "The private key data should not be empty.")
        ascii_rule(v, "The private key data should be a valid ASCII string.")
        return armored_message(v, "The private key data should be a valid OpenPGP message.")


class MetadataKeyCreate(BaseModel):
    """Payload of ``POST /metadata/keys.json``."""

    required_messages: ClassVar[Dict[str, str]] = {
        "fingerprint": "A fingerprint is required.",
        "armored_key": "An armored key is required.",
        "metadata_private_keys": "The metadata private keys are required.",
        "user_id": "A user identifier is required.",
        "data": "The private key data is required.",
    }

    fingerprint: str
    armored_key: str
    metadata_private_keys: List[MetadataPrivateKeyCreate]
    expired: Optional[datetime] = None
    deleted: Optional[datetime] = None

    @field_validator("fingerprint")
    @classmethod
    def validate_fingerprint(cls, v):
        not_empty(v, "The fingerprint should not be empty.")
        return alpha_numeric(v, "The fingerprint should be a valid alphanumeric string.")

    @field_validator("armored_key")
    @classmethod
    def validate_armored_key(cls, v):
        not_empty(v, "The armored key should not be empty.")
        ascii_rule(v, "The armored key should be a valid ASCII string.")
        return armored_public_key(v, "The armored key should be a valid OpenPGP public key.")

    @field_validator("metadata_private_keys", mode="before")
    @classmethod
    def validate_metadata_private_keys(cls, v: Any):
        if not isinstance(v, list):
            raise PydanticCustomError("array", "The metadata private keys should be an array.")
        if len(v) < 1:
            raise PydanticCustomError("hasAtLeast", "The metadata private keys should contain at least one key.")
        return v

    @field_validator("expired", "deleted", mode="before")
    @classmethod
    def validate_null_on_create(cls, v: Any):
        if v is None or v == "":
            return None
        raise PydanticCustomError("isNullOnCreate", "The value should be empty on creation.")


class MetadataPrivateKeyResponse(BaseModel):
    id: str
    metadata_key_id: str
    user_id: Optional[str] = None
    data: str
    created: Optional[datetime] = None
    modified: Optional[datetime] = None
    created_by: Optional[str] = None
    modified_by: Optional[str] = None

    class Config:
        from_attributes = True


class MetadataKeyResponse(BaseModel):
    id: str
    fingerprint: str
    armored_key: str
    expired: Optional[datetime] = None
    deleted: Optional[datetime] = None
    created: Optional[datetime] = None
    modified: Optional[datetime] = None
    created_by: Optional[str] = None
    modified_by: Optional[str] = None
    metadata_private_keys: List[MetadataPrivateKeyResponse] = []

    class Config:
        from_attributes = True
