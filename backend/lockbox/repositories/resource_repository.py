"""Repository for resources. Soft-deleted resources are excluded from reads."""

from typing import List, Optional, Sequence

from sqlalchemy import and_, or_, select
from sqlalchemy.orm import Query

from ..exceptions import ResourceNotFoundError
from ..models.folder import FoldersRelation
from ..models.folderizable import FIND_OPTION
from ..models.permission import ARO_USER, Permission
from ..models.resource import Resource
from .base import BaseRepository
from .search import search_case_insensitive_on_multiple_fields


class ResourceRepository(BaseRepository[Resource]):
    """Data access layer for resources."""

    model_class = Resource
    not_found_error = ResourceNotFoundError

    def _base_query(self) -> Query:
        return self.db.query(Resource).filter(Resource.deleted.is_(False))

    def _visible_query(self, user_id: str) -> Query:
        return (
            self._base_query()
            .join(
                Permission,
                and_(
                    Permission.aco_foreign_key == Resource.id,
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
    ) -> List[Resource]:
        query = self._visible_query(user_id)
        if search:
            query = search_case_insensitive_on_multiple_fields(
                query, [Resource.name, Resource.username, Resource.uri], search
            )
        if has_id:
            query = query.filter(Resource.id.in_(list(has_id)))
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
            query = query.filter(Resource.id.in_(relation_ids))
        return query.order_by(Resource.modified.desc(), Resource.name).all()

    def find_view(self, user_id: str, resource_id: str) -> Resource:
        resource = self._visible_query(user_id).filter(Resource.id == resource_id).first()
        if resource is None:
            raise ResourceNotFoundError(resource_id)
        return resource

    def create(self, **values) -> Resource:
        resource = Resource(**values)
        self.db.add(resource)
        return resource
