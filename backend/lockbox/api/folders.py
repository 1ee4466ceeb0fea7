"""Folder API: index, view, create, update, delete.

Every folder in a response is decorated for the caller: ``folder_parent_id``
is its parent in the caller's tree and ``personal`` tells whether anyone
else can see it.
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, Query, Request
from sqlalchemy.orm import Session

from ..core import response
from ..core.auth import UserAccessControl, require_auth
from ..database import get_db
from ..models.folder import Folder
from ..models.folderizable import unset_personal_property_if_null, unset_personal_property_if_null_on_result_set
from ..schemas.folder import FolderResponse
from ..services.folder_service import FolderService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["folders"])


def serialize_folder(folder: Folder) -> Dict[str, Any]:
    return FolderResponse.model_validate(folder).model_dump()


@router.get("/folders.json")
def index_folders(
    request: Request,
    search: Optional[str] = Query(None, alias="filter[search]"),
    has_id: Optional[List[str]] = Query(None, alias="filter[has-id][]"),
    has_parent: Optional[List[str]] = Query(None, alias="filter[has-parent][]"),
    db: Session = Depends(get_db),
    uac: UserAccessControl = Depends(require_auth),
):
    folders = FolderService(db).index(uac, search=search, has_id=has_id, has_parent=has_parent)
    body = unset_personal_property_if_null_on_result_set([serialize_folder(f) for f in folders])
    return response.success(request, body)


@router.get("/folders/{folder_id}.json")
def view_folder(
    request: Request,
    folder_id: str,
    db: Session = Depends(get_db),
    uac: UserAccessControl = Depends(require_auth),
):
    folder = FolderService(db).view(uac, folder_id)
    return response.success(request, unset_personal_property_if_null(serialize_folder(folder)))


@router.post("/folders.json")
def create_folder(
    request: Request,
    data: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    uac: UserAccessControl = Depends(require_auth),
):
    folder = FolderService(db).create(uac, data)
    return response.success(request, unset_personal_property_if_null(serialize_folder(folder)))


@router.put("/folders/{folder_id}.json")
def update_folder(
    request: Request,
    folder_id: str,
    data: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    uac: UserAccessControl = Depends(require_auth),
):
    folder = FolderService(db).update(uac, folder_id, data)
    return response.success(request, unset_personal_property_if_null(serialize_folder(folder)))


@router.delete("/folders/{folder_id}.json")
def delete_folder(
    request: Request,
    folder_id: str,
    cascade: bool = Query(False),
    db: Session = Depends(get_db),
    uac: UserAccessControl = Depends(require_auth),
):
    """Delete a folder; ``cascade=1`` also deletes its content in the caller's tree."""
    FolderService(db).delete(uac, folder_id, cascade=cascade)
    return response.success(request, None, message="The folder was deleted.")
