"""Resource operations: index, view, create, soft delete."""

import logging
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.auth import UserAccessControl
from ..exceptions import CustomValidationError, InternalError
from ..models.folder import FOREIGN_MODEL_RESOURCE
from ..models.permission import ACO_RESOURCE, OWNER
from ..models.resource import Resource
from ..models.user import new_uuid
from ..repositories.folder_repository import FolderRepository
from ..repositories.folders_relation_repository import FoldersRelationRepository
from ..repositories.permission_repository import PermissionRepository
from ..repositories.resource_repository import ResourceRepository
from ..schemas.resource import ResourceV4Create, ResourceV5Create
from ..schemas.validation import validate_data
from . import permission_service
from .folder_service import V5_FIELDS, is_v5_data
from .metadata_rules import ON_CREATE, V4_RULES, V5_RULES, RuleContext, check_rules

logger = logging.getLogger(__name__)

VALIDATION_MESSAGE = "Could not validate resource data."
SAVE_ERROR_MESSAGE = "The resource could not be saved."


def remove_folders_relations_after_soft_delete(db: Session, resource: Resource) -> int:
    """A soft-deleted resource leaves every user's tree."""
    return FoldersRelationRepository(db).delete_by_foreign_id(resource.id)


class ResourceService:
    """Resource operations for one request."""

    def __init__(self, db: Session):
        self.db = db
        self.resource_repo = ResourceRepository(db)
        self.folder_repo = FolderRepository(db)
        self.relation_repo = FoldersRelationRepository(db)
        self.permission_repo = PermissionRepository(db)

    def index(
        self,
        uac: UserAccessControl,
        search: Optional[str] = None,
        has_id: Optional[Sequence[str]] = None,
        has_parent: Optional[Sequence[Optional[str]]] = None,
    ) -> List[Resource]:
        return self.resource_repo.find_index(uac.user_id, search=search, has_id=has_id, has_parent=has_parent)

    def view(self, uac: UserAccessControl, resource_id: str) -> Resource:
        return self.resource_repo.find_view(uac.user_id, resource_id)

    def create(self, uac: UserAccessControl, data: Dict[str, Any]) -> Resource:
        data = {**data, "created_by": uac.user_id, "modified_by": uac.user_id}
        v5 = is_v5_data(data)
        dto = validate_data(ResourceV5Create if v5 else ResourceV4Create, data, VALIDATION_MESSAGE)

        ctx = RuleContext(
            db=self.db,
            uac=uac,
            item_label="resource",
            values={k: getattr(dto, k) for k in V5_FIELDS} if v5 else {},
        )
        errors = check_rules(V5_RULES if v5 else V4_RULES, ctx, ON_CREATE)
        if dto.folder_parent_id is not None and not self.folder_repo.is_visible(uac.user_id, dto.folder_parent_id):
            errors.setdefault("folder_parent_id", {})["folder_exists"] = "The folder parent does not exist."
        if errors:
            raise CustomValidationError(VALIDATION_MESSAGE, errors)

        resource_id = dto.id or new_uuid()
        values = {"id": resource_id, "created_by": dto.created_by, "modified_by": dto.modified_by}
        if v5:
            values.update(
                metadata_=dto.metadata,
                metadata_key_id=dto.metadata_key_id,
                metadata_key_type=dto.metadata_key_type,
            )
        else:
            values.update(name=dto.name, username=dto.username, uri=dto.uri, description=dto.description)

        resource = self.resource_repo.create(**values)
        self.permission_repo.grant(ACO_RESOURCE, resource_id, uac.user_id, OWNER)
        self.relation_repo.create(FOREIGN_MODEL_RESOURCE, resource_id, uac.user_id, dto.folder_parent_id)
        self._commit()

        logger.info("Resource created", extra={"resource_id": resource_id, "user_id": uac.user_id, "v5": v5})
        return resource

    def soft_delete(self, uac: UserAccessControl, resource_id: str) -> None:
        resource = self.resource_repo.find_view(uac.user_id, resource_id)
        permission_service.assert_permission(
            self.permission_repo.get_type(resource.id, uac.user_id), "delete", "resource"
        )
        self.soft_delete_entity(resource)
        self._commit()
        logger.info("Resource deleted", extra={"resource_id": resource_id, "user_id": uac.user_id})

    def soft_delete_entity(self, resource: Resource) -> None:
        """Mark *resource* deleted and detach it from every tree. Does not commit."""
        resource.deleted = True
        self.db.flush()
        remove_folders_relations_after_soft_delete(self.db, resource)

    def _commit(self) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise InternalError(SAVE_ERROR_MESSAGE, original_error=e) from e
