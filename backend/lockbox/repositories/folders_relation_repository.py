"""Repository for folder relations (the per-user placement of items)."""

from typing import List, Optional

from sqlalchemy.orm import Session

from ..models.folder import FoldersRelation
from ..models.folderizable import get_item_folder_parent_id_in_user_tree, is_item_personal


class FoldersRelationRepository:
    """Data access layer for folders relations."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, user_id: str, foreign_id: str) -> Optional[FoldersRelation]:
        return (
            self.db.query(FoldersRelation)
            .filter(FoldersRelation.user_id == user_id, FoldersRelation.foreign_id == foreign_id)
            .first()
        )

    def create(
        self,
        foreign_model: str,
        foreign_id: str,
        user_id: str,
        folder_parent_id: Optional[str] = None,
    ) -> FoldersRelation:
        relation = FoldersRelation(
            foreign_model=foreign_model,
            foreign_id=foreign_id,
            user_id=user_id,
            folder_parent_id=folder_parent_id,
        )
        self.db.add(relation)
        return relation

    def get_item_folder_parent_id_in_user_tree(self, user_id: str, foreign_id: str) -> Optional[str]:
        return get_item_folder_parent_id_in_user_tree(self.db, user_id, foreign_id)

    def is_item_personal(self, foreign_id: str) -> bool:
        return is_item_personal(self.db, foreign_id)

    def count_for_item(self, foreign_id: str) -> int:
        return self.db.query(FoldersRelation).filter(FoldersRelation.foreign_id == foreign_id).count()

    def children_in_user_tree(self, user_id: str, folder_id: str) -> List[FoldersRelation]:
        return (
            self.db.query(FoldersRelation)
            .filter(FoldersRelation.user_id == user_id, FoldersRelation.folder_parent_id == folder_id)
            .all()
        )

    def move_children_to_root(self, folder_id: str) -> int:
        """Detach every item placed in *folder_id*, in every user's tree."""
        return (
            self.db.query(FoldersRelation)
            .filter(FoldersRelation.folder_parent_id == folder_id)
            .update({FoldersRelation.folder_parent_id: None}, synchronize_session=False)
        )

    def delete_by_foreign_id(self, foreign_id: str) -> int:
        return (
            self.db.query(FoldersRelation)
            .filter(FoldersRelation.foreign_id == foreign_id)
            .delete(synchronize_session=False)
        )
