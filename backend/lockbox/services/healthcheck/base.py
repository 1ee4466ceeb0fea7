"""Healthcheck interface.

A healthcheck runs once (``check``) and then answers questions about the
outcome. It never raises for a failing condition: failure is a False
``is_passed`` plus a human-readable message.
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Union

DOMAIN_CORE = "core"
DOMAIN_APPLICATION = "application"
DOMAIN_ENVIRONMENT = "environment"
DOMAIN_DATABASE = "database"

LEVEL_ERROR = "error"
LEVEL_WARNING = "warning"
LEVEL_NOTICE = "notice"

HelpMessage = Optional[Union[str, List[str]]]


class HealthcheckService(ABC):
    """One probe of the instance health."""

    def __init__(self):
        self.status = False

    @abstractmethod
    def check(self) -> "HealthcheckService":
        """Run the probe and remember the outcome. Returns self."""

    @abstractmethod
    def domain(self) -> str:
        ...

    def is_passed(self) -> bool:
        return self.status

    @abstractmethod
    def level(self) -> str:
        ...

    @abstractmethod
    def success_message(self) -> str:
        ...

    @abstractmethod
    def failure_message(self) -> str:
        ...

    def help_message(self) -> HelpMessage:
        return None

    def cli_option(self) -> str:
        return self.domain()

    @abstractmethod
    def legacy_array_key(self) -> str:
        """Dotted key of the result in the legacy nested report."""
