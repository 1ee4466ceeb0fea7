"""Metadata keys API."""

import logging
from typing import Any, Dict, Iterable, Optional

from fastapi import APIRouter, Body, Depends, Query, Request
from sqlalchemy.orm import Session

from ..core import response
from ..core.auth import UserAccessControl, require_admin, require_auth
from ..database import get_db
from ..models.metadata_key import MetadataKey, MetadataPrivateKey
from ..schemas.metadata_key import MetadataKeyCreate, MetadataKeyResponse, MetadataPrivateKeyResponse
from ..schemas.validation import validate_data
from ..services import metadata_key_service
from ..services.metadata_key_service import MetadataKeyCreateService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/metadata", tags=["metadata"])

FORM_ERROR_MESSAGE = "Could not validate the metadata key data."


def serialize_metadata_key(key: MetadataKey, private_keys: Iterable[MetadataPrivateKey]) -> Dict[str, Any]:
    body = MetadataKeyResponse.model_validate(key).model_dump(exclude={"metadata_private_keys"})
    body["metadata_private_keys"] = [MetadataPrivateKeyResponse.model_validate(p).model_dump() for p in private_keys]
    return body


@router.get("/keys.json")
def index_metadata_keys(
    request: Request,
    deleted: Optional[bool] = Query(None, alias="filter[deleted]"),
    expired: Optional[bool] = Query(None, alias="filter[expired]"),
    db: Session = Depends(get_db),
    uac: UserAccessControl = Depends(require_auth),
):
    """Metadata keys, each with the caller's own private key only."""
    entries = metadata_key_service.index(db, uac, deleted=deleted, expired=expired)
    return response.success(request, [serialize_metadata_key(key, own) for key, own in entries])


@router.post("/keys.json")
def create_metadata_key(
    request: Request,
    data: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    uac: UserAccessControl = Depends(require_admin),
):
    dto = validate_data(MetadataKeyCreate, data, FORM_ERROR_MESSAGE)
    key = MetadataKeyCreateService(db).create(uac, dto)
    logger.info("Metadata key created", extra={"metadata_key_id": key.id, "user_id": uac.user_id})
    return response.success(request, serialize_metadata_key(key, key.metadata_private_keys))
