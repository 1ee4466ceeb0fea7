"""Share and move endpoints for folders and resources."""

from typing import Any, Dict, Literal

from fastapi import APIRouter, Body, Depends, Request
from sqlalchemy.orm import Session

from ..core import response
from ..core.auth import UserAccessControl, require_auth
from ..database import get_db
from ..models.folder import FOREIGN_MODEL_FOLDER, FOREIGN_MODEL_RESOURCE, Folder
from ..models.folderizable import unset_personal_property_if_null
from ..services.move_service import MoveService
from ..services.share_service import ShareService
from .folders import serialize_folder
from .resources import serialize_resource

router = APIRouter(tags=["share"])

_FOREIGN_MODELS = {"folder": FOREIGN_MODEL_FOLDER, "resource": FOREIGN_MODEL_RESOURCE}

ItemType = Literal["folder", "resource"]


def _serialize(item) -> Dict[str, Any]:
    body = serialize_folder(item) if isinstance(item, Folder) else serialize_resource(item)
    return unset_personal_property_if_null(body)


@router.put("/share/{item_type}/{item_id}.json")
def share_item(
    request: Request,
    item_type: ItemType,
    item_id: str,
    data: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    uac: UserAccessControl = Depends(require_auth),
):
    item = ShareService(db).share(uac, _FOREIGN_MODELS[item_type], item_id, data)
    return response.success(request, _serialize(item), message=f"The {item_type} has been shared successfully.")


@router.put("/move/{item_type}/{item_id}.json")
def move_item(
    request: Request,
    item_type: ItemType,
    item_id: str,
    data: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    uac: UserAccessControl = Depends(require_auth),
):
    item = MoveService(db).move(uac, _FOREIGN_MODELS[item_type], item_id, data)
    return response.success(request, _serialize(item), message=f"The {item_type} has been moved successfully.")
