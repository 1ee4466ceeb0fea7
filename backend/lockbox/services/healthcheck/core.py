"""Core healthchecks."""

from typing import Any, Callable

from ...core.config import settings
from .base import DOMAIN_CORE, LEVEL_ERROR, HealthcheckService


class FullBaseUrlCoreHealthcheck(HealthcheckService):
    """The public URL of the instance must be configured."""

    def __init__(self, read_full_base_url: Callable[[], Any] = lambda: settings.full_base_url):
        super().__init__()
        self._read = read_full_base_url
        self.full_base_url_type = ""

    def check(self) -> "FullBaseUrlCoreHealthcheck":
        value = self._read()
        self.status = value is not None
        self.full_base_url_type = type(value).__name__
        return self

    def domain(self) -> str:
        return DOMAIN_CORE

    def level(self) -> str:
        return LEVEL_ERROR

    def success_message(self) -> str:
        full_base_url = self._read()
        if not isinstance(full_base_url, str):
            full_base_url = f'"{self.full_base_url_type}"'
        return f"Full base url is set to {full_base_url}"

    def failure_message(self) -> str:
        value = self._read()
        return f"Full base url is not set. The application is using: {'' if value is None else value}."

    def help_message(self) -> str:
        return f"Edit App.fullBaseUrl in {settings.config_file_path}"

    def legacy_array_key(self) -> str:
        return "fullBaseUrl"
