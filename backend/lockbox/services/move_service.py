"""Move folders and resources within the caller's own tree.

Moving only changes the caller's folder relation; other users keep their
own placement of the item.
"""

import logging
from typing import Any, Dict, Optional, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.auth import UserAccessControl
from ..exceptions import CustomValidationError, InternalError
from ..models.folder import FOREIGN_MODEL_FOLDER, Folder
from ..models.resource import Resource
from ..repositories.folder_repository import FolderRepository
from ..repositories.folders_relation_repository import FoldersRelationRepository
from ..repositories.resource_repository import ResourceRepository
from ..schemas.resource import MoveRequest
from ..schemas.validation import validate_data

logger = logging.getLogger(__name__)

VALIDATION_MESSAGE = "Could not validate the move data."


class MoveService:
    def __init__(self, db: Session):
        self.db = db
        self.folder_repo = FolderRepository(db)
        self.relation_repo = FoldersRelationRepository(db)

    def move(
        self,
        uac: UserAccessControl,
        foreign_model: str,
        foreign_id: str,
        data: Dict[str, Any],
    ) -> Union[Folder, Resource]:
        repo = self.folder_repo if foreign_model == FOREIGN_MODEL_FOLDER else ResourceRepository(self.db)
        repo.find_view(uac.user_id, foreign_id)
        dto = validate_data(MoveRequest, data, VALIDATION_MESSAGE)
        parent_id = dto.folder_parent_id

        if parent_id is not None:
            if not self.folder_repo.is_visible(uac.user_id, parent_id):
                raise CustomValidationError(
                    VALIDATION_MESSAGE,
                    {"folder_parent_id": {"folder_exists": "The folder parent does not exist."}},
                )
            if foreign_model == FOREIGN_MODEL_FOLDER and self._creates_cycle(uac.user_id, foreign_id, parent_id):
                raise CustomValidationError(
                    VALIDATION_MESSAGE,
                    {"folder_parent_id": {"cycle": "A folder cannot be moved into itself or one of its children."}},
                )

        relation = self.relation_repo.get(uac.user_id, foreign_id)
        if relation is None:
            self.relation_repo.create(foreign_model, foreign_id, uac.user_id, parent_id)
        else:
            relation.folder_parent_id = parent_id

        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise InternalError("The item could not be moved.", original_error=e) from e

        logger.info(
            "Item moved",
            extra={"foreign_model": foreign_model, "foreign_id": foreign_id, "folder_parent_id": parent_id},
        )
        return repo.find_view(uac.user_id, foreign_id)

    def _creates_cycle(self, user_id: str, folder_id: str, parent_id: Optional[str]) -> bool:
        """Walk up the caller's tree from *parent_id*; reaching *folder_id* means a cycle."""
        seen = set()
        current = parent_id
        while current is not None and current not in seen:
            if current == folder_id:
                return True
            seen.add(current)
            current = self.relation_repo.get_item_folder_parent_id_in_user_tree(user_id, current)
        return False
