"""Metadata key creation and listing.

Only administrators create metadata keys. A key comes with one encrypted
copy of its private half per user, plus optionally one for the server
(``user_id`` None).
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core import events
from ..core.auth import UserAccessControl
from ..exceptions import CustomValidationError, InternalError
from ..models.metadata_key import MetadataKey, MetadataPrivateKey
from ..models.user import new_uuid
from ..repositories.metadata_key_repository import MetadataKeyRepository
from ..repositories.user_repository import UserRepository
from ..schemas.metadata_key import MetadataKeyCreate

logger = logging.getLogger(__name__)

AFTER_CREATE_SUCCESS_EVENT = "metadata_key.after_create.success"

VALIDATION_MESSAGE = "The metadata key could not be saved."
SAVE_ERROR_MESSAGE = "Could not save the metadata key, please try again later."


class MetadataKeyCreateService:
    def __init__(self, db: Session):
        self.db = db
        self.metadata_key_repo = MetadataKeyRepository(db)
        self.user_repo = UserRepository(db)

    def create(self, uac: UserAccessControl, dto: MetadataKeyCreate) -> MetadataKey:
        """Save the key and its private keys, stamped with the caller as author.

        Raises:
            ForbiddenError: the caller is not an administrator.
            CustomValidationError: a save rule failed (error map in ``errors``).
            InternalError: the key could not be persisted.
        """
        uac.assert_is_admin()

        metadata_key = MetadataKey(
            id=new_uuid(),
            fingerprint=dto.fingerprint,
            armored_key=dto.armored_key,
            created_by=uac.user_id,
            modified_by=uac.user_id,
        )
        for private_key in dto.metadata_private_keys:
            metadata_key.metadata_private_keys.append(
                MetadataPrivateKey(
                    id=new_uuid(),
                    user_id=private_key.user_id,
                    data=private_key.data,
                    created_by=uac.user_id,
                    modified_by=uac.user_id,
                )
            )

        metadata_key = self.build_and_save_entity(metadata_key)
        events.dispatch(AFTER_CREATE_SUCCESS_EVENT, metadata_key=metadata_key, uac=uac)
        return metadata_key

    def build_and_save_entity(self, metadata_key: MetadataKey) -> MetadataKey:
        errors = self._check_rules(metadata_key)
        if errors:
            raise CustomValidationError(VALIDATION_MESSAGE, errors)

        try:
            self.metadata_key_repo.add(metadata_key)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise InternalError(SAVE_ERROR_MESSAGE, original_error=e) from e

        logger.info(
            "Metadata key created",
            extra={"metadata_key_id": metadata_key.id, "private_keys": len(metadata_key.metadata_private_keys)},
        )
        return metadata_key

    def _check_rules(self, metadata_key: MetadataKey) -> Dict[Any, Any]:
        errors: Dict[Any, Any] = {}
        if self.metadata_key_repo.fingerprint_in_use(metadata_key.fingerprint):
            errors["fingerprint"] = {"isUnique": "The fingerprint is already in use."}

        user_ids = [pk.user_id for pk in metadata_key.metadata_private_keys if pk.user_id is not None]
        active_ids = self.user_repo.existing_active_ids(user_ids)
        seen: set = set()
        for index, private_key in enumerate(metadata_key.metadata_private_keys):
            field_errors: Dict[str, str] = {}
            if private_key.user_id is not None and private_key.user_id not in active_ids:
                field_errors["user_is_active"] = "The user does not exist or is not active."
            if private_key.user_id in seen:
                field_errors["isUnique"] = "Only one private key per user is allowed."
            seen.add(private_key.user_id)
            if field_errors:
                errors.setdefault("metadata_private_keys", {})[index] = {"user_id": field_errors}
        return errors


def index(
    db: Session,
    uac: UserAccessControl,
    deleted: Optional[bool] = None,
    expired: Optional[bool] = None,
) -> List[Tuple[MetadataKey, List[MetadataPrivateKey]]]:
    """Keys matching the filters, each with the caller's own private key only."""
    repo = MetadataKeyRepository(db)
    keys = repo.find_index(deleted=deleted, expired=expired)
    private_keys = repo.private_keys_for_user([k.id for k in keys], uac.user_id)
    by_key: Dict[str, List[MetadataPrivateKey]] = {}
    for private_key in private_keys:
        by_key.setdefault(private_key.metadata_key_id, []).append(private_key)
    return [(key, by_key.get(key.id, [])) for key in keys]
