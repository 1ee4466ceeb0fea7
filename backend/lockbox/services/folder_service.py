"""Deep module for folder operations: index, view, create, update, delete.

Callers pass a UserAccessControl and raw request data; validation, save
rules, permissions and the caller's folder relation are handled here.
Returned folders are decorated for the caller (``folder_parent_id``,
``personal``).
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.auth import UserAccessControl
from ..exceptions import CustomValidationError, InternalError
from ..models.folder import FOREIGN_MODEL_FOLDER, FOREIGN_MODEL_RESOURCE, Folder
from ..models.permission import ACO_FOLDER, OWNER
from ..models.user import new_uuid
from ..repositories.folder_repository import FolderRepository
from ..repositories.folders_relation_repository import FoldersRelationRepository
from ..repositories.permission_repository import PermissionRepository
from ..schemas.folder import FolderV4Create, FolderV4Update, FolderV5Create, FolderV5Update
from ..schemas.validation import REQUIRED, validate_data
from . import permission_service
from .metadata_rules import ON_CREATE, ON_UPDATE, V4_RULES, V5_RULES, RuleContext, check_rules

logger = logging.getLogger(__name__)

VALIDATION_MESSAGE = "Could not validate folder data."
SAVE_ERROR_MESSAGE = "The folder could not be saved."

V5_FIELDS = ("metadata", "metadata_key_id", "metadata_key_type")


def is_v5_data(data: Dict[str, Any]) -> bool:
    """A payload is v5 as soon as it carries a non-null encrypted metadata field."""
    return any(data.get(key) is not None for key in V5_FIELDS)


class FolderService:
    """All folder operations behind a simple interface.

    Public methods:
        index            -- folders visible to the caller, filtered
        view             -- one folder, or FolderNotFoundError
        create           -- v4 or v5 folder, owner permission, caller relation
        update           -- v4/v5 fields, upgrade/downgrade per settings
        delete           -- cascade or move children to the root
        get_created_date
    """

    def __init__(self, db: Session):
        self.db = db
        self.folder_repo = FolderRepository(db)
        self.relation_repo = FoldersRelationRepository(db)
        self.permission_repo = PermissionRepository(db)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def index(
        self,
        uac: UserAccessControl,
        search: Optional[str] = None,
        has_id: Optional[Sequence[str]] = None,
        has_parent: Optional[Sequence[Optional[str]]] = None,
    ) -> List[Folder]:
        return self.folder_repo.find_index(uac.user_id, search=search, has_id=has_id, has_parent=has_parent)

    def view(self, uac: UserAccessControl, folder_id: str) -> Folder:
        return self.folder_repo.find_view(uac.user_id, folder_id)

    def get_created_date(self, folder_id: str) -> datetime:
        return self.folder_repo.get_created_date(folder_id)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create(self, uac: UserAccessControl, data: Dict[str, Any]) -> Folder:
        """Create a folder owned by the caller, placed in their tree."""
        data = {**data, "created_by": uac.user_id, "modified_by": uac.user_id}
        v5 = is_v5_data(data)
        dto = validate_data(FolderV5Create if v5 else FolderV4Create, data, VALIDATION_MESSAGE)

        ctx = RuleContext(
            db=self.db,
            uac=uac,
            item_label="folder",
            values={k: getattr(dto, k) for k in V5_FIELDS} if v5 else {},
        )
        errors = check_rules(V5_RULES if v5 else V4_RULES, ctx, ON_CREATE)
        if dto.folder_parent_id is not None and not self.folder_repo.is_visible(uac.user_id, dto.folder_parent_id):
            errors.setdefault("folder_parent_id", {})["folder_exists"] = "The folder parent does not exist."
        if errors:
            raise CustomValidationError(VALIDATION_MESSAGE, errors)

        folder_id = dto.id or new_uuid()
        values = {
            "id": folder_id,
            "created_by": dto.created_by,
            "modified_by": dto.modified_by,
        }
        if v5:
            values.update(
                metadata_=dto.metadata,
                metadata_key_id=dto.metadata_key_id,
                metadata_key_type=dto.metadata_key_type,
            )
        else:
            values["name"] = dto.name

        folder = self.folder_repo.create(**values)
        self.permission_repo.grant(ACO_FOLDER, folder_id, uac.user_id, OWNER)
        self.relation_repo.create(FOREIGN_MODEL_FOLDER, folder_id, uac.user_id, dto.folder_parent_id)
        self._commit()

        logger.info("Folder created", extra={"folder_id": folder_id, "user_id": uac.user_id, "v5": v5})
        return folder

    def update(self, uac: UserAccessControl, folder_id: str, data: Dict[str, Any]) -> Folder:
        folder = self.folder_repo.find_view(uac.user_id, folder_id)
        permission_service.assert_permission(
            self.permission_repo.get_type(folder.id, uac.user_id), "update", "folder"
        )

        data = {k: v for k, v in data.items() if k not in ("id", "created_by", "folder_parent_id")}
        data["modified_by"] = uac.user_id
        v5 = is_v5_data(data)
        dto = validate_data(FolderV5Update if v5 else FolderV4Update, data, VALIDATION_MESSAGE)

        if v5:
            # Fields absent from the request keep their stored value.
            stored = {
                "metadata": folder.metadata_,
                "metadata_key_id": folder.metadata_key_id,
                "metadata_key_type": folder.metadata_key_type,
            }
            values = {k: getattr(dto, k) if k in dto.model_fields_set else stored[k] for k in V5_FIELDS}
            errors = {}
            if values["metadata"] is None:
                errors["metadata"] = {REQUIRED: "The metadata is required."}
            ctx = RuleContext(db=self.db, uac=uac, item_label="folder", values=values, entity=folder)
            errors.update(check_rules(V5_RULES, ctx, ON_UPDATE))
            if errors:
                raise CustomValidationError(VALIDATION_MESSAGE, errors)
            folder.name = None
            folder.metadata_ = values["metadata"]
            folder.metadata_key_id = values["metadata_key_id"]
            folder.metadata_key_type = values["metadata_key_type"]
        elif "name" in dto.model_fields_set:
            ctx = RuleContext(db=self.db, uac=uac, item_label="folder", values={}, entity=folder)
            errors = check_rules(V4_RULES, ctx, ON_UPDATE)
            if errors:
                raise CustomValidationError(VALIDATION_MESSAGE, errors)
            folder.name = dto.name
            folder.metadata_ = None
            folder.metadata_key_id = None
            folder.metadata_key_type = None

        folder.modified_by = uac.user_id
        self._commit()
        logger.info("Folder updated", extra={"folder_id": folder.id, "user_id": uac.user_id})
        return self.folder_repo.find_view(uac.user_id, folder.id)

    def delete(self, uac: UserAccessControl, folder_id: str, cascade: bool = False) -> None:
        """Delete a folder.

        With *cascade*, the items placed in the folder in the caller's tree are
        deleted too when the caller may delete them. Whatever remains in the
        folder, in any user's tree, is moved to that user's root.
        """
        from .resource_service import ResourceService

        folder = self.folder_repo.find_view(uac.user_id, folder_id)
        permission_service.assert_permission(
            self.permission_repo.get_type(folder.id, uac.user_id), "delete", "folder"
        )
        self._delete(uac, folder, cascade, ResourceService(self.db), visited=set())
        self._commit()
        logger.info("Folder deleted", extra={"folder_id": folder_id, "user_id": uac.user_id, "cascade": cascade})

    def _delete(self, uac: UserAccessControl, folder: Folder, cascade: bool, resource_service, visited: set) -> None:
        visited.add(folder.id)
        if cascade:
            for relation in self.relation_repo.children_in_user_tree(uac.user_id, folder.id):
                permission_type = self.permission_repo.get_type(relation.foreign_id, uac.user_id)
                if not permission_service.check_permission(permission_type, "delete"):
                    continue
                if relation.foreign_model == FOREIGN_MODEL_FOLDER and relation.foreign_id not in visited:
                    child = self.folder_repo.get_by_id_optional(relation.foreign_id)
                    if child is not None:
                        self._delete(uac, child, cascade, resource_service, visited)
                elif relation.foreign_model == FOREIGN_MODEL_RESOURCE:
                    resource = resource_service.resource_repo.get_by_id_optional(relation.foreign_id)
                    if resource is not None:
                        resource_service.soft_delete_entity(resource)

        self.relation_repo.move_children_to_root(folder.id)
        self.relation_repo.delete_by_foreign_id(folder.id)
        self.permission_repo.delete_for_item(folder.id)
        self.folder_repo.delete(folder)
        self.db.flush()

    def _commit(self) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise InternalError(SAVE_ERROR_MESSAGE, original_error=e) from e
