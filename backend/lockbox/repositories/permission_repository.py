"""Repository for permissions on folders and resources."""

from typing import List, Optional

from sqlalchemy.orm import Session

from ..models.permission import ARO_USER, Permission


class PermissionRepository:
    """Data access layer for permissions."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, aco_foreign_key: str, user_id: str) -> Optional[Permission]:
        return (
            self.db.query(Permission)
            .filter(
                Permission.aco_foreign_key == aco_foreign_key,
                Permission.aro == ARO_USER,
                Permission.aro_foreign_key == user_id,
            )
            .first()
        )

    def get_type(self, aco_foreign_key: str, user_id: str) -> Optional[int]:
        """Permission type the user holds on the item, or None."""
        permission = self.get(aco_foreign_key, user_id)
        return permission.type if permission is not None else None

    def grant(self, aco: str, aco_foreign_key: str, user_id: str, permission_type: int) -> Permission:
        """Add a user permission, or raise the existing one to *permission_type*."""
        permission = self.get(aco_foreign_key, user_id)
        if permission is None:
            permission = Permission(
                aco=aco,
                aco_foreign_key=aco_foreign_key,
                aro=ARO_USER,
                aro_foreign_key=user_id,
                type=permission_type,
            )
            self.db.add(permission)
        elif permission.type < permission_type:
            permission.type = permission_type
        return permission

    def list_for_item(self, aco_foreign_key: str) -> List[Permission]:
        return self.db.query(Permission).filter(Permission.aco_foreign_key == aco_foreign_key).all()

    def user_ids_with_access(self, aco_foreign_key: str) -> List[str]:
        rows = (
            self.db.query(Permission.aro_foreign_key)
            .filter(Permission.aco_foreign_key == aco_foreign_key, Permission.aro == ARO_USER)
            .all()
        )
        return [row[0] for row in rows]

    def delete_for_item(self, aco_foreign_key: str) -> int:
        return (
            self.db.query(Permission)
            .filter(Permission.aco_foreign_key == aco_foreign_key)
            .delete(synchronize_session=False)
        )
