"""Repository for folders.

Folder reads go through ``_visible_query`` so a user only sees the folders
they hold a permission on. Each read carries the ``folder_parent_user_id``
execution option so results come back decorated with the reader's
``folder_parent_id`` and the ``personal`` flag.
"""

from datetime import datetime
from typing import List, Optional, Sequence

from sqlalchemy import and_, or_, select
from sqlalchemy.orm import Query

from ..exceptions import FolderNotFoundError
from ..models.folder import Folder, FoldersRelation
from ..models.folderizable import FIND_OPTION
from ..models.permission import ARO_USER, Permission
from .base import BaseRepository
from .search import search_case_insensitive_on_field


class FolderRepository(BaseRepository[Folder]):
    """Data access layer for folders."""

    model_class = Folder
    not_found_error = FolderNotFoundError

    def _visible_query(self, user_id: str) -> Query:
        return (
            self.db.query(Folder)
            .join(
                Permission,
                and_(
                    Permission.aco_foreign_key == Folder.id,
                    Permission.aro == ARO_USER,
                    Permission.aro_foreign_key == user_id,
                ),
            )
            .execution_options(**{FIND_OPTION: user_id})
        )

    def find_index(
        self,
        user_id: str,
        search: Optional[str] = None,
        has_id: Optional[Sequence[str]] = None,
        has_parent: Optional[Sequence[Optional[str]]] = None,
    ) -> List[Folder]:
        """Folders visible to *user_id*, filtered and ordered by name.

        ``has_parent`` matches the parent in the reader's own tree; a ``None``
        or empty entry (``filter[has-parent][]=``) matches folders at the root.
        """
        query = self._visible_query(user_id)
        if search:
            query = search_case_insensitive_on_field(query, Folder.name, search)
        if has_id:
            query = query.filter(Folder.id.in_(list(has_id)))
        if has_parent:
            parent_ids = [p for p in has_parent if p]
            conditions = []
            if parent_ids:
                conditions.append(FoldersRelation.folder_parent_id.in_(parent_ids))
            if len(parent_ids) != len(has_parent):
                conditions.append(FoldersRelation.folder_parent_id.is_(None))
            relation_ids = select(FoldersRelation.foreign_id).where(
                FoldersRelation.user_id == user_id, or_(*conditions)
            )
            query = query.filter(Folder.id.in_(relation_ids))
        return query.order_by(Folder.name, Folder.created).all()

    def find_view(self, user_id: str, folder_id: str) -> Folder:
        folder = self._visible_query(user_id).filter(Folder.id == folder_id).first()
        if folder is None:
            raise FolderNotFoundError(folder_id)
        return folder

    def is_visible(self, user_id: str, folder_id: str) -> bool:
        return (
            self.db.query(Permission.id)
            .filter(
                Permission.aco_foreign_key == folder_id,
                Permission.aro == ARO_USER,
                Permission.aro_foreign_key == user_id,
            )
            .first()
            is not None
        )

    def create(self, **values) -> Folder:
        folder = Folder(**values)
        self.db.add(folder)
        return folder

    def delete(self, folder: Folder) -> None:
        self.db.delete(folder)

    def get_created_date(self, folder_id: str) -> datetime:
        row = self.db.query(Folder.created).filter(Folder.id == folder_id).first()
        if row is None:
            raise FolderNotFoundError(folder_id)
        return row[0]
