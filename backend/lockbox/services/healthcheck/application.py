"""Application healthchecks."""

from typing import Callable, Optional

from ...core.config import settings
from .base import DOMAIN_APPLICATION, LEVEL_NOTICE, HealthcheckService


class SelfRegistrationProviderApplicationHealthcheck(HealthcheckService):
    """Self registration should be closed unless deliberately enabled."""

    def __init__(
        self,
        read_provider: Callable[[], Optional[str]] = lambda: settings.self_registration_provider,
    ):
        super().__init__()
        self._read = read_provider
        self.provider: Optional[str] = None

    def check(self) -> "SelfRegistrationProviderApplicationHealthcheck":
        self.provider = self._read()
        self.status = self.provider is None
        return self

    def domain(self) -> str:
        return DOMAIN_APPLICATION

    def level(self) -> str:
        return LEVEL_NOTICE

    def success_message(self) -> str:
        return "Registration is closed, only administrators can add users."

    def failure_message(self) -> str:
        return f"The self registration provider is: {self.provider}."

    def legacy_array_key(self) -> str:
        return "registrationClosed.selfRegistrationProvider"
