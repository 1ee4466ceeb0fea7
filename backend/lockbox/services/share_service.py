"""Share folders and resources with other users.

Sharing grants each recipient a permission and, when the item is not in
their tree yet, a folder relation at their root. The item stops being
personal as soon as a second user holds a relation on it.
"""

import logging
from typing import Any, Dict, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.auth import UserAccessControl
from ..exceptions import CustomValidationError, InternalError
from ..models.folder import FOREIGN_MODEL_FOLDER, FOREIGN_MODEL_RESOURCE, Folder
from ..models.resource import Resource
from ..repositories.folder_repository import FolderRepository
from ..repositories.folders_relation_repository import FoldersRelationRepository
from ..repositories.permission_repository import PermissionRepository
from ..repositories.resource_repository import ResourceRepository
from ..repositories.user_repository import UserRepository
from ..schemas.resource import ShareRequest
from ..schemas.validation import validate_data
from . import permission_service

logger = logging.getLogger(__name__)

VALIDATION_MESSAGE = "Could not validate the share data."


class ShareService:
    def __init__(self, db: Session):
        self.db = db
        self.permission_repo = PermissionRepository(db)
        self.relation_repo = FoldersRelationRepository(db)
        self.user_repo = UserRepository(db)

    def share(
        self,
        uac: UserAccessControl,
        foreign_model: str,
        foreign_id: str,
        data: Dict[str, Any],
    ) -> Union[Folder, Resource]:
        """Give the users listed in *data* access to an item the caller owns."""
        repo = self._repository(foreign_model)
        repo.find_view(uac.user_id, foreign_id)
        permission_service.assert_permission(
            self.permission_repo.get_type(foreign_id, uac.user_id), "share", foreign_model.lower()
        )

        dto = validate_data(ShareRequest, data, VALIDATION_MESSAGE)
        user_ids = [p.user_id for p in dto.permissions]
        active_ids = self.user_repo.existing_active_ids(user_ids)
        errors: Dict[Any, Any] = {}
        for index, user_id in enumerate(user_ids):
            if user_id not in active_ids:
                errors.setdefault("permissions", {})[index] = {
                    "user_id": {"user_exists": "The user does not exist or is not active."}
                }
        if errors:
            raise CustomValidationError(VALIDATION_MESSAGE, errors)

        for permission in dto.permissions:
            self.permission_repo.grant(foreign_model, foreign_id, permission.user_id, permission.type)
            if self.relation_repo.get(permission.user_id, foreign_id) is None:
                self.relation_repo.create(foreign_model, foreign_id, permission.user_id, None)

        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise InternalError("The permissions could not be saved.", original_error=e) from e

        logger.info(
            "Item shared",
            extra={"foreign_model": foreign_model, "foreign_id": foreign_id, "recipients": len(user_ids)},
        )
        return repo.find_view(uac.user_id, foreign_id)

    def _repository(self, foreign_model: str):
        if foreign_model == FOREIGN_MODEL_FOLDER:
            return FolderRepository(self.db)
        if foreign_model == FOREIGN_MODEL_RESOURCE:
            return ResourceRepository(self.db)
        raise ValueError(f"Unsupported foreign model: {foreign_model}")
