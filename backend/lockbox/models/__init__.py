"""Database models."""

from .user import User, Group, GroupsUser
from .gpgkey import Gpgkey
from .permission import Permission
from .folder import Folder, FoldersRelation
from .resource import Resource
from .metadata_key import MetadataKey, MetadataPrivateKey
from .folderizable import Folderizable, FolderizableBehavior

__all__ = [
    "User", "Group", "GroupsUser",
    "Gpgkey",
    "Permission",
    "Folder", "FoldersRelation",
    "Resource",
    "MetadataKey", "MetadataPrivateKey",
    "Folderizable", "FolderizableBehavior",
]
