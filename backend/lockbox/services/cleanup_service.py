"""Relational integrity cleanups.

Each cleanup finds rows left inconsistent by earlier deletions (memberships
of removed users, relations of deleted items...) and, outside dry-run,
fixes them. Cleanups live in a registry so plugins and tests can add or
reset them.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List

from sqlalchemy import and_, exists, inspect, or_
from sqlalchemy.orm import Session, aliased

from ..models.folder import FOREIGN_MODEL_FOLDER, FOREIGN_MODEL_RESOURCE, Folder, FoldersRelation
from ..models.gpgkey import Gpgkey
from ..models.metadata_key import MetadataPrivateKey
from ..models.permission import ACO_FOLDER, ACO_RESOURCE, Permission
from ..models.resource import Resource
from ..models.user import ROLE_ADMIN, Group, GroupsUser, User

logger = logging.getLogger(__name__)

# (db, dry_run) -> number of issues found (and fixed unless dry_run)
CleanupFn = Callable[[Session, bool], int]


@dataclass(frozen=True)
class CleanupResult:
    name: str
    count: int
    dry_run: bool

    def message(self) -> str:
        if self.count == 0:
            return f"No {self.name} found."
        if self.dry_run:
            return f"{self.count} {self.name} found (dry-run)."
        return f"{self.count} {self.name} fixed."


# ---------------------------------------------------------------------------
# Cleanups
# ---------------------------------------------------------------------------

def _user_missing_or_deleted(user_id_column):
    return ~exists().where(User.id == user_id_column, User.deleted.is_(False))


def _delete_ids(db: Session, model, ids: List[str], dry_run: bool) -> int:
    if ids and not dry_run:
        db.query(model).filter(model.id.in_(ids)).delete(synchronize_session=False)
    return len(ids)


def cleanup_groups_with_no_members(db: Session, dry_run: bool) -> int:
    """Delete active groups without any member. Soft-deleted groups are left alone."""
    ids = [
        row[0]
        for row in db.query(Group.id)
        .filter(Group.deleted.is_(False), ~exists().where(GroupsUser.group_id == Group.id))
        .all()
    ]
    return _delete_ids(db, Group, ids, dry_run)


def cleanup_folders_relations_of_deleted_items(db: Session, dry_run: bool) -> int:
    folder_missing = and_(
        FoldersRelation.foreign_model == FOREIGN_MODEL_FOLDER,
        ~exists().where(Folder.id == FoldersRelation.foreign_id),
    )
    resource_missing = and_(
        FoldersRelation.foreign_model == FOREIGN_MODEL_RESOURCE,
        ~exists().where(Resource.id == FoldersRelation.foreign_id, Resource.deleted.is_(False)),
    )
    ids = [row[0] for row in db.query(FoldersRelation.id).filter(or_(folder_missing, resource_missing)).all()]
    return _delete_ids(db, FoldersRelation, ids, dry_run)


def cleanup_folders_relations_of_deleted_users(db: Session, dry_run: bool) -> int:
    ids = [
        row[0]
        for row in db.query(FoldersRelation.id).filter(_user_missing_or_deleted(FoldersRelation.user_id)).all()
    ]
    return _delete_ids(db, FoldersRelation, ids, dry_run)


def cleanup_folders_relations_with_missing_parent(db: Session, dry_run: bool) -> int:
    """Items whose parent folder no longer exists go back to the root."""
    parent = aliased(Folder)
    ids = [
        row[0]
        for row in db.query(FoldersRelation.id)
        .filter(
            FoldersRelation.folder_parent_id.isnot(None),
            ~exists().where(parent.id == FoldersRelation.folder_parent_id),
        )
        .all()
    ]
    if ids and not dry_run:
        db.query(FoldersRelation).filter(FoldersRelation.id.in_(ids)).update(
            {FoldersRelation.folder_parent_id: None}, synchronize_session=False
        )
    return len(ids)


def cleanup_permissions_of_deleted_items(db: Session, dry_run: bool) -> int:
    resource_missing = and_(
        Permission.aco == ACO_RESOURCE,
        ~exists().where(Resource.id == Permission.aco_foreign_key, Resource.deleted.is_(False)),
    )
    folder_missing = and_(
        Permission.aco == ACO_FOLDER,
        ~exists().where(Folder.id == Permission.aco_foreign_key),
    )
    ids = [row[0] for row in db.query(Permission.id).filter(or_(resource_missing, folder_missing)).all()]
    return _delete_ids(db, Permission, ids, dry_run)


def cleanup_metadata_private_keys_of_deleted_users(db: Session, dry_run: bool) -> int:
    """Server copies (no user) are kept."""
    ids = [
        row[0]
        for row in db.query(MetadataPrivateKey.id)
        .filter(
            MetadataPrivateKey.user_id.isnot(None),
            _user_missing_or_deleted(MetadataPrivateKey.user_id),
        )
        .all()
    ]
    return _delete_ids(db, MetadataPrivateKey, ids, dry_run)


def cleanup_gpgkeys_of_missing_users(db: Session, dry_run: bool) -> int:
    ids = [row[0] for row in db.query(Gpgkey.id).filter(~exists().where(User.id == Gpgkey.user_id)).all()]
    return _delete_ids(db, Gpgkey, ids, dry_run)


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

_DEFAULT_CLEANUPS: Dict[str, CleanupFn] = {
    "groups with no members": cleanup_groups_with_no_members,
    "folders relations of deleted items": cleanup_folders_relations_of_deleted_items,
    "folders relations of deleted users": cleanup_folders_relations_of_deleted_users,
    "folders relations with a missing parent folder": cleanup_folders_relations_with_missing_parent,
    "permissions of deleted items": cleanup_permissions_of_deleted_items,
    "metadata private keys of deleted users": cleanup_metadata_private_keys_of_deleted_users,
    "gpgkeys of missing users": cleanup_gpgkeys_of_missing_users,
}

_cleanups: Dict[str, CleanupFn] = dict(_DEFAULT_CLEANUPS)


def reset_cleanups() -> None:
    """Restore the default registry."""
    _cleanups.clear()
    _cleanups.update(_DEFAULT_CLEANUPS)


def add_cleanup(name: str, cleanup: CleanupFn) -> None:
    _cleanups[name] = cleanup


def get_cleanups() -> Dict[str, CleanupFn]:
    return dict(_cleanups)


# ---------------------------------------------------------------------------
# Preconditions and run
# ---------------------------------------------------------------------------

def has_users_table(db: Session) -> bool:
    return inspect(db.get_bind()).has_table(User.__tablename__)


def has_active_admin(db: Session) -> bool:
    return (
        db.query(User.id)
        .filter(User.role == ROLE_ADMIN, User.active.is_(True), User.deleted.is_(False))
        .first()
        is not None
    )


def run_cleanups(db: Session, dry_run: bool = False) -> List[CleanupResult]:
    """Run every registered cleanup in one transaction (rolled back in dry-run)."""
    results = []
    for name, cleanup in _cleanups.items():
        count = cleanup(db, dry_run)
        results.append(CleanupResult(name=name, count=count, dry_run=dry_run))
        if count:
            logger.info("Cleanup %s", name, extra={"count": count, "dry_run": dry_run})
    if dry_run:
        db.rollback()
    else:
        db.commit()
    return results
