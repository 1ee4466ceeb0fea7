"""Gpgkey API: paginated, filterable index and view."""

from datetime import datetime, timezone
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from ..core import response
from ..core.auth import UserAccessControl, require_auth
from ..database import get_db
from ..exceptions import ValidationError
from ..repositories.gpgkey_repository import GpgkeyRepository
from ..schemas.gpgkey import GpgkeyResponse

router = APIRouter(tags=["gpgkeys"])


@router.get("/gpgkeys.json")
def index_gpgkeys(
    request: Request,
    modified_after: Optional[int] = Query(None, alias="filter[modified-after]", ge=0),
    is_deleted: bool = Query(False, alias="filter[is-deleted]"),
    has_users: Optional[List[str]] = Query(None, alias="filter[has-users][]"),
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1, le=1000),
    sort: Optional[Literal["Gpgkeys.key_id"]] = None,
    direction: Literal["asc", "desc"] = "asc",
    db: Session = Depends(get_db),
    uac: UserAccessControl = Depends(require_auth),
):
    """``filter[modified-after]`` is a unix timestamp; only strictly newer keys match.

    Without ``limit`` every key is returned, so only the first page exists.
    """
    if limit is None and page > 1:
        raise ValidationError("A page can only be requested together with a limit.", field="page")
    since = datetime.fromtimestamp(modified_after, tz=timezone.utc) if modified_after is not None else None
    keys, total = GpgkeyRepository(db).find_index(
        modified_after=since,
        is_deleted=is_deleted,
        has_users=has_users,
        sort=sort,
        direction=direction,
        page=page,
        limit=limit,
    )
    pagination = {"count": total, "page": page, "limit": limit}
    body = [GpgkeyResponse.model_validate(k).model_dump() for k in keys]
    return response.success(request, body, pagination=pagination)


@router.get("/gpgkeys/{gpgkey_id}.json")
def view_gpgkey(
    request: Request,
    gpgkey_id: str,
    db: Session = Depends(get_db),
    uac: UserAccessControl = Depends(require_auth),
):
    key = GpgkeyRepository(db).get_by_id(gpgkey_id)
    return response.success(request, GpgkeyResponse.model_validate(key).model_dump())
