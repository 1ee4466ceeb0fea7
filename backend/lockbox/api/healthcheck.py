"""Healthcheck endpoints.

``/healthcheck/status.json`` is a public liveness answer; the full report
is restricted to administrators.
"""

from fastapi import APIRouter, Depends, Request

from ..core import response
from ..core.auth import UserAccessControl, require_admin
from ..database import engine
from ..services.healthcheck import build_collector, to_legacy_array

router = APIRouter(tags=["healthcheck"])


@router.get("/healthcheck.json")
def healthcheck_report(request: Request, uac: UserAccessControl = Depends(require_admin)):
    results = build_collector(engine).run()
    return response.success(request, to_legacy_array(results))


@router.get("/healthcheck/status.json")
def healthcheck_status(request: Request):
    return response.success(request, "OK")
