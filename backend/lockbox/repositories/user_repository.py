"""Repository for user accounts."""

from typing import List, Optional

from ..exceptions import UserNotFoundError
from ..models.user import ROLE_ADMIN, User
from .base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Data access layer for users."""

    model_class = User
    not_found_error = UserNotFoundError

    def _base_query(self):
        return self.db.query(User).filter(User.deleted.is_(False))

    def get_active(self, user_id: str) -> Optional[User]:
        return self._base_query().filter(User.id == user_id, User.active.is_(True)).first()

    def find_active_admins(self) -> List[User]:
        return (
            self._base_query()
            .filter(User.role == ROLE_ADMIN, User.active.is_(True))
            .order_by(User.created)
            .all()
        )

    def existing_active_ids(self, user_ids: List[str]) -> set:
        if not user_ids:
            return set()
        rows = self._base_query().filter(User.id.in_(user_ids), User.active.is_(True)).with_entities(User.id).all()
        return {row[0] for row in rows}
