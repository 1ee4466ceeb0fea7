"""JSON response envelope shared by every endpoint.

Each response carries a ``header`` (status, message, request id, server time,
optional pagination) and a ``body``. Errors use the same envelope with
``status == "error"`` and the field-level error map as body.
"""

import time
import uuid
from typing import Any, Optional

from fastapi import Request
from fastapi.encoders import jsonable_encoder

from .logging_config import request_id_var

STATUS_SUCCESS = "success"
STATUS_ERROR = "error"

SUCCESS_MESSAGE = "The operation was successful."


def _header(request: Request, status: str, message: str, code: int, pagination: Optional[dict] = None) -> dict:
    route = request.scope.get("route")
    header = {
        "id": request_id_var.get("") or uuid.uuid4().hex,
        "status": status,
        "servertime": int(time.time()),
        "action": getattr(route, "name", None),
        "message": message,
        "url": request.url.path,
        "code": code,
    }
    if pagination is not None:
        header["pagination"] = pagination
    return header


def success(
    request: Request,
    body: Any = None,
    message: str = SUCCESS_MESSAGE,
    code: int = 200,
    pagination: Optional[dict] = None,
) -> dict:
    """Wrap *body* in a success envelope."""
    return {
        "header": _header(request, STATUS_SUCCESS, message, code, pagination),
        "body": jsonable_encoder(body),
    }


def error(request: Request, message: str, code: int, body: Any = None) -> dict:
    """Wrap an error body (usually a field-level error map) in an error envelope."""
    return {
        "header": _header(request, STATUS_ERROR, message, code),
        "body": jsonable_encoder(body if body is not None else {}),
    }
