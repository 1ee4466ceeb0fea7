"""API routers."""

from .auth import router as auth_router
from .folders import router as folders_router
from .gpgkeys import router as gpgkeys_router
from .healthcheck import router as healthcheck_router
from .metadata import router as metadata_router
from .resources import router as resources_router
from .share import router as share_router

__all__ = [
    "auth_router",
    "folders_router",
    "gpgkeys_router",
    "healthcheck_router",
    "metadata_router",
    "resources_router",
    "share_router",
]
