"""Common lookups shared by the repositories."""

from typing import Generic, Optional, Type, TypeVar

from sqlalchemy.orm import Query, Session

from ..database import Base
from ..exceptions import NotFoundError

ModelT = TypeVar("ModelT", bound=Base)


class BaseRepository(Generic[ModelT]):
    """Primary-key lookups for one model.

    Subclasses set ``model_class`` and the ``not_found_error`` raised by
    ``get_by_id``. Override ``_base_query`` to hide rows from every lookup
    (soft-deleted resources, deleted users).
    """

    model_class: Type[ModelT]
    not_found_error: Type[NotFoundError]

    def __init__(self, db: Session):
        self.db = db

    def _base_query(self) -> Query:
        return self.db.query(self.model_class)

    def get_by_id(self, entity_id: str) -> ModelT:
        entity = self.get_by_id_optional(entity_id)
        if entity is None:
            raise self.not_found_error(entity_id)
        return entity

    def get_by_id_optional(self, entity_id: str) -> Optional[ModelT]:
        return self._base_query().filter(self.model_class.id == entity_id).first()
