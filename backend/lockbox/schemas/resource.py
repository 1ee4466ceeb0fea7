"""Resource schemas (v4 clear metadata or v5 encrypted metadata)."""

from datetime import datetime
from typing import ClassVar, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, Field, field_validator

from ..models.permission import OWNER, READ, UPDATE
from .folder import METADATA_KEY_TYPES
from .validation import (
    armored_message,
    ascii_rule,
    in_list,
    max_length,
    not_empty,
    utf8_extended,
    uuid_rule,
)

NAME_MAX_LENGTH = 255
USERNAME_MAX_LENGTH = 255
URI_MAX_LENGTH = 1024
DESCRIPTION_MAX_LENGTH = 10000


class _ResourceAuthorship(BaseModel):
    required_messages: ClassVar[Dict[str, str]] = {
        "name": "A name is required.",
        "metadata": "The metadata is required.",
        "created_by": "The identifier of the user who created the resource is required.",
        "modified_by": "The identifier of the user who modified the resource is required.",
    }

    id: Optional[str] = None
    created_by: Optional[str] = None
    modified_by: Optional[str] = None
    folder_parent_id: Optional[str] = None

    @field_validator("id", "folder_parent_id")
    @classmethod
    def validate_optional_uuid(cls, v):
        if v is None:
            return v
        return uuid_rule(v, "The identifier should be a valid UUID.")

    @field_validator("created_by", "modified_by")
    @classmethod
    def validate_author(cls, v):
        not_empty(v, "The user identifier should not be empty.")
        return uuid_rule(v, "The user identifier should be a valid UUID.")


class ResourceV4Update(_ResourceAuthorship):
    name: Optional[str] = None
    username: Optional[str] = None
    uri: Optional[str] = None
    description: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        not_empty(v, "The name should not be empty.")
        utf8_extended(v, "The name should be a valid UTF8 string.")
        return max_length(v, NAME_MAX_LENGTH, f"The name length should be maximum {NAME_MAX_LENGTH} characters.")

    @field_validator("username")
    @classmethod
    def validate_username(cls, v):
        if v is None:
            return v
        utf8_extended(v, "The username should be a valid UTF8 string.")
        return max_length(
            v, USERNAME_MAX_LENGTH, f"The username length should be maximum {USERNAME_MAX_LENGTH} characters."
        )

    @field_validator("uri")
    @classmethod
    def validate_uri(cls, v):
        if v is None:
            return v
        utf8_extended(v, "The URI should be a valid UTF8 string.")
        return max_length(v, URI_MAX_LENGTH, f"The URI length should be maximum {URI_MAX_LENGTH} characters.")

    @field_validator("description")
    @classmethod
    def validate_description(cls, v):
        if v is None:
            return v
        utf8_extended(v, "The description should be a valid UTF8 string.")
        return max_length(
            v,
            DESCRIPTION_MAX_LENGTH,
            f"The description length should be maximum {DESCRIPTION_MAX_LENGTH} characters.",
        )


class ResourceV4Create(ResourceV4Update):
    name: str
    created_by: str
    modified_by: str


class ResourceV5Update(_ResourceAuthorship):
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
        return in_list(
            v,
            METADATA_KEY_TYPES,
            f"The metadata key type should be one of the following: {', '.join(METADATA_KEY_TYPES)}.",
        )


class ResourceV5Create(ResourceV5Update):
    metadata: str
    created_by: str
    modified_by: str


class ResourceResponse(BaseModel):
    id: str
    name: Optional[str] = None
    username: Optional[str] = None
    uri: Optional[str] = None
    description: Optional[str] = None
    metadata: Optional[str] = Field(default=None, validation_alias=AliasChoices("metadata_", "metadata"))
    metadata_key_id: Optional[str] = None
    metadata_key_type: Optional[str] = None
    deleted: bool = False
    created: Optional[datetime] = None
    modified: Optional[datetime] = None
    created_by: str
    modified_by: str
    folder_parent_id: Optional[str] = None
    personal: Optional[bool] = None

    class Config:
        from_attributes = True


# --- Share / move ---

class SharePermission(BaseModel):
    required_messages: ClassVar[Dict[str, str]] = {"user_id": "The user identifier is required."}

    user_id: str
    type: int = READ

    @field_validator("user_id")
    @classmethod
    def validate_user_id(cls, v):
        return uuid_rule(v, "The user identifier should be a valid UUID.")

    @field_validator("type")
    @classmethod
    def validate_type(cls, v):
        return in_list(v, [READ, UPDATE, OWNER], "The permission type should be one of the following: 1, 7, 15.")


class ShareRequest(BaseModel):
    """Users to give access to an item."""

    permissions: List[SharePermission]

    @field_validator("permissions")
    @classmethod
    def validate_permissions(cls, v):
        return not_empty(v, "At least one permission should be provided.")


class MoveRequest(BaseModel):
    """New parent of an item in the caller's tree (None for the root)."""

    folder_parent_id: Optional[str] = None

    @field_validator("folder_parent_id")
    @classmethod
    def validate_folder_parent_id(cls, v):
        if v is None:
            return v
        return uuid_rule(v, "The folder parent identifier should be a valid UUID.")
