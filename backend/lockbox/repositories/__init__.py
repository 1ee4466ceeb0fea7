"""Data access layer."""

from .base import BaseRepository
from .folder_repository import FolderRepository
from .folders_relation_repository import FoldersRelationRepository
from .gpgkey_repository import GpgkeyRepository
from .metadata_key_repository import MetadataKeyRepository
from .permission_repository import PermissionRepository
from .resource_repository import ResourceRepository
from .user_repository import UserRepository

__all__ = [
    "BaseRepository",
    "FolderRepository",
    "FoldersRelationRepository",
    "GpgkeyRepository",
    "MetadataKeyRepository",
    "PermissionRepository",
    "ResourceRepository",
    "UserRepository",
]
