"""Resource API: index, view, create, soft delete."""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, Query, Request
from sqlalchemy.orm import Session

from ..core import response
from ..core.auth import UserAccessControl, require_auth
from ..database import get_db
from ..models.folderizable import unset_personal_property_if_null, unset_personal_property_if_null_on_result_set
from ..models.resource import Resource
from ..schemas.resource import ResourceResponse
from ..services.resource_service import ResourceService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["resources"])


def serialize_resource(resource: Resource) -> Dict[str, Any]:
    return ResourceResponse.model_validate(resource).model_dump()


@router.get("/resources.json")
def index_resources(
    request: Request,
    search: Optional[str] = Query(None, alias="filter[search]"),
    has_id: Optional[List[str]] = Query(None, alias="filter[has-id][]"),
    has_parent: Optional[List[str]] = Query(None, alias="filter[has-parent][]"),
    db: Session = Depends(get_db),
    uac: UserAccessControl = Depends(require_auth),
):
    resources = ResourceService(db).index(uac, search=search, has_id=has_id, has_parent=has_parent)
    body = unset_personal_property_if_null_on_result_set([serialize_resource(r) for r in resources])
    return response.success(request, body)


@router.get("/resources/{resource_id}.json")
def view_resource(
    request: Request,
    resource_id: str,
    db: Session = Depends(get_db),
    uac: UserAccessControl = Depends(require_auth),
):
    resource = ResourceService(db).view(uac, resource_id)
    return response.success(request, unset_personal_property_if_null(serialize_resource(resource)))


@router.post("/resources.json")
def create_resource(
    request: Request,
    data: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    uac: UserAccessControl = Depends(require_auth),
):
    resource = ResourceService(db).create(uac, data)
    return response.success(request, unset_personal_property_if_null(serialize_resource(resource)))


@router.delete("/resources/{resource_id}.json")
def delete_resource(
    request: Request,
    resource_id: str,
    db: Session = Depends(get_db),
    uac: UserAccessControl = Depends(require_auth),
):
    ResourceService(db).soft_delete(uac, resource_id)
    return response.success(request, None, message="The resource has been deleted successfully.")
