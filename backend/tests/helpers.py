"""Factories shared by the test modules."""

from typing import Optional

from lockbox.core.armor import PUBLIC_KEY_BLOCK, armor
from lockbox.core.auth import UserAccessControl
from lockbox.core.config import settings
from lockbox.core.token_factory import create_token
from lockbox.models import Folder, FoldersRelation, Gpgkey, MetadataKey, MetadataPrivateKey, Permission, Resource, User
from lockbox.models.folder import FOREIGN_MODEL_FOLDER, FOREIGN_MODEL_RESOURCE
from lockbox.models.permission import ACO_FOLDER, ACO_RESOURCE, ARO_USER, OWNER
from lockbox.models.user import ROLE_USER, new_uuid

# A public-key-encrypted session key packet (tag 1), enough for the structural checks.
ENCRYPTED_MESSAGE = armor(b"\xc1\x0c" + bytes(12))
# A literal data packet (tag 11): parsable, but not encrypted.
CLEAR_MESSAGE = armor(b"\xcb\x07" + b"b\x00hello")
PUBLIC_KEY = armor(b"\xc6\x0d" + bytes(13), PUBLIC_KEY_BLOCK)


def make_user(db, username: str, role: str = ROLE_USER, active: bool = True, deleted: bool = False) -> User:
    user = User(id=new_uuid(), username=username, role=role, active=active, deleted=deleted)
    db.add(user)
    db.commit()
    return user


def uac_for(user: User) -> UserAccessControl:
    return UserAccessControl(user_id=user.id, role=user.role, username=user.username)


def auth_headers(user: User) -> dict:
    token = create_token(user.id, user.role, settings.jwt_secret_key)
    return {"Authorization": f"Bearer {token}"}


def make_folder(db, owner: User, name: str = "Folder", parent: Optional[Folder] = None) -> Folder:
    """Insert a folder owned by *owner*, placed under *parent* in the owner's tree."""
    folder = Folder(id=new_uuid(), name=name, created_by=owner.id, modified_by=owner.id)
    db.add(folder)
    db.add(Permission(aco=ACO_FOLDER, aco_foreign_key=folder.id, aro=ARO_USER, aro_foreign_key=owner.id, type=OWNER))
    db.add(
        FoldersRelation(
            foreign_model=FOREIGN_MODEL_FOLDER,
            foreign_id=folder.id,
            user_id=owner.id,
            folder_parent_id=parent.id if parent is not None else None,
        )
    )
    db.commit()
    return folder


def make_resource(db, owner: User, name: str = "Resource", parent: Optional[Folder] = None, **fields) -> Resource:
    resource = Resource(id=new_uuid(), name=name, created_by=owner.id, modified_by=owner.id, **fields)
    db.add(resource)
    db.add(
        Permission(aco=ACO_RESOURCE, aco_foreign_key=resource.id, aro=ARO_USER, aro_foreign_key=owner.id, type=OWNER)
    )
    db.add(
        FoldersRelation(
            foreign_model=FOREIGN_MODEL_RESOURCE,
            foreign_id=resource.id,
            user_id=owner.id,
            folder_parent_id=parent.id if parent is not None else None,
        )
    )
    db.commit()
    return resource


def place(db, user: User, item, parent: Optional[Folder] = None, permission_type: int = OWNER) -> None:
    """Give *user* a permission on *item* and place it in their tree."""
    foreign_model = FOREIGN_MODEL_FOLDER if isinstance(item, Folder) else FOREIGN_MODEL_RESOURCE
    db.add(
        Permission(
            aco=ACO_FOLDER if isinstance(item, Folder) else ACO_RESOURCE,
            aco_foreign_key=item.id,
            aro=ARO_USER,
            aro_foreign_key=user.id,
            type=permission_type,
        )
    )
    db.add(
        FoldersRelation(
            foreign_model=foreign_model,
            foreign_id=item.id,
            user_id=user.id,
            folder_parent_id=parent.id if parent is not None else None,
        )
    )
    db.commit()


def make_gpgkey(db, user: User, key_id: str = "0123456789ABCDEF", deleted: bool = False, **fields) -> Gpgkey:
    key = Gpgkey(
        id=new_uuid(),
        user_id=user.id,
        armored_key=PUBLIC_KEY,
        key_id=key_id,
        fingerprint=(key_id * 3)[:40],
        deleted=deleted,
        **fields,
    )
    db.add(key)
    db.commit()
    return key


def make_metadata_key(db, creator: User, fingerprint: str = "ABCDEF0123456789ABCDEF0123456789ABCDEF01", **fields):
    key = MetadataKey(
        id=new_uuid(),
        fingerprint=fingerprint,
        armored_key=PUBLIC_KEY,
        created_by=creator.id,
        modified_by=creator.id,
        **fields,
    )
    db.add(key)
    db.commit()
    return key


def make_metadata_private_key(db, metadata_key: MetadataKey, user: Optional[User]) -> MetadataPrivateKey:
    private_key = MetadataPrivateKey(
        id=new_uuid(),
        metadata_key_id=metadata_key.id,
        user_id=user.id if user is not None else None,
        data=ENCRYPTED_MESSAGE,
    )
    db.add(private_key)
    db.commit()
    return private_key
