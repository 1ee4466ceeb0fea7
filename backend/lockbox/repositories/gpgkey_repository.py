"""Repository for users' OpenPGP public keys."""

from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from sqlalchemy.orm import Query

from ..exceptions import GpgkeyNotFoundError
from ..models.gpgkey import Gpgkey
from .base import BaseRepository

SORTABLE_FIELDS = {"Gpgkeys.key_id": Gpgkey.key_id}


class GpgkeyRepository(BaseRepository[Gpgkey]):
    """Data access layer for gpgkeys."""

    model_class = Gpgkey
    not_found_error = GpgkeyNotFoundError

    def _index_query(
        self,
        modified_after: Optional[datetime] = None,
        is_deleted: bool = False,
        has_users: Optional[Sequence[str]] = None,
    ) -> Query:
        query = self.db.query(Gpgkey).filter(Gpgkey.deleted.is_(is_deleted))
        if modified_after is not None:
            query = query.filter(Gpgkey.modified > modified_after)
        if has_users:
            query = query.filter(Gpgkey.user_id.in_(list(has_users)))
        return query

    def find_index(
        self,
        modified_after: Optional[datetime] = None,
        is_deleted: bool = False,
        has_users: Optional[Sequence[str]] = None,
        sort: Optional[str] = None,
        direction: str = "asc",
        page: int = 1,
        limit: Optional[int] = None,
    ) -> Tuple[List[Gpgkey], int]:
        """Filtered keys for the requested page, plus the total count before paging."""
        query = self._index_query(modified_after, is_deleted, has_users)
        total = query.count()

        if sort is not None:
            column = SORTABLE_FIELDS[sort]
            query = query.order_by(column.desc() if direction == "desc" else column.asc())
        else:
            query = query.order_by(Gpgkey.created, Gpgkey.id)

        if limit is not None:
            query = query.offset((page - 1) * limit).limit(limit)
        return query.all(), total

    def get_active_for_user(self, user_id: str, gpgkey_id: Optional[str] = None) -> Optional[Gpgkey]:
        query = self.db.query(Gpgkey).filter(Gpgkey.user_id == user_id, Gpgkey.deleted.is_(False))
        if gpgkey_id is not None:
            query = query.filter(Gpgkey.id == gpgkey_id)
        return query.first()
