"""Folder schemas.

A folder is written either with clear metadata (v4: ``name``) or with
encrypted metadata (v5: ``metadata``, ``metadata_key_id``,
``metadata_key_type``). The ``*Create`` variants require the fields that must
be present on creation; ``*Update`` variants validate whatever is sent.
"""

from datetime import datetime
from typing import ClassVar, Dict, Optional

from pydantic import AliasChoices, BaseModel, Field, field_validator

from ..models.folder import METADATA_KEY_TYPE_SHARED, METADATA_KEY_TYPE_USER, Folder
from .validation import (
    armored_message,
    ascii_rule,
    in_list,
    max_length,
    not_empty,
    utf8_extended,
    uuid_rule,
)

METADATA_KEY_TYPES = [METADATA_KEY_TYPE_USER, METADATA_KEY_TYPE_SHARED]


class _FolderAuthorship(BaseModel):
    """Fields common to both metadata versions."""

    required_messages: ClassVar[Dict[str, str]] = {
        "name": "A name is required.",
        "metadata": "The metadata is required.",
        "created_by": "The identifier of the user who created the folder is required.",
        "modified_by": "The identifier of the user who modified the folder is required.",
    }

    id: Optional[str] = None
    created_by: Optional[str] = None
    modified_by: Optional[str] = None
    folder_parent_id: Optional[str] = None

    @field_validator("id")
    @classmethod
    def validate_id(cls, v):
        if v is None:
            return v
        return uuid_rule(v, "The identifier should be a valid UUID.")

    @field_validator("created_by")
    @classmethod
    def validate_created_by(cls, v):
        not_empty(v, "The identifier of the user who created the folder should not be empty.")
        return uuid_rule(v, "The identifier of the user who created the folder should be a valid UUID.")

    @field_validator("modified_by")
    @classmethod
    def validate_modified_by(cls, v):
        not_empty(v, "The identifier of the user who modified the folder should not be empty.")
        return uuid_rule(v, "The identifier of the user who modified the folder should be a valid UUID.")

    @field_validator("folder_parent_id")
    @classmethod
    def validate_folder_parent_id(cls, v):
        if v is None:
            return v
        return uuid_rule(v, "The folder parent identifier should be a valid UUID.")


class FolderV4Update(_FolderAuthorship):
    name: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        not_empty(v, "The name should not be empty.")
        utf8_extended(v, "The name should be a valid UTF8 string.")
        return max_length(
            v,
            Folder.MAX_NAME_LENGTH,
            f"The name length should be maximum {Folder.MAX_NAME_LENGTH} characters.",
        )


class FolderV4Create(FolderV4Update):
    name: str
    created_by: str
    modified_by: str


class FolderV5Update(_FolderAuthorship):
    """v5 payload: the v4 ``name`` is not validated and never stored."""

    metadata: Optional[str] = None
    metadata_key_id: Optional[str] = None
    metadata_key_type: Optional[str] = None

    @field_validator("metadata")
    @classmethod
    def validate_metadata(cls, v):
        not_empty(v, "The metadata should not be empty.")
        ascii_rule(v, "The metadata should be a valid ASCII string.")
        return armored_message(v, "The metadata should be a valid OpenPGP armored message.")

    @field_validator("metadata_key_id")
    @classmethod
    def validate_metadata_key_id(cls, v):
        if v is None or v == "":
            return None
        return uuid_rule(v, "The metadata key ID should be a valid UUID.")

    @field_validator("metadata_key_type")
    @classmethod
    def validate_metadata_key_type(cls, v):
        if v is None or v == "":
            return None
        utf8_extended(v, "The metadata key type should be a valid UTF8 string.")
        return in_list(
            v,
            METADATA_KEY_TYPES,
            f"The metadata key type should be one of the following: {', '.join(METADATA_KEY_TYPES)}.",
        )


class FolderV5Create(FolderV5Update):
    metadata: str
    created_by: str
    modified_by: str


class FolderResponse(BaseModel):
    """Folder as returned by the API, decorated for the reader."""

    id: str
    name: Optional[str] = None
    metadata: Optional[str] = Field(default=None, validation_alias=AliasChoices("metadata_", "metadata"))
    metadata_key_id: Optional[str] = None
    metadata_key_type: Optional[str] = None
    created: Optional[datetime] = None
    modified: Optional[datetime] = None
    created_by: str
    modified_by: str
    folder_parent_id: Optional[str] = None
    personal: Optional[bool] = None

    class Config:
        from_attributes = True
