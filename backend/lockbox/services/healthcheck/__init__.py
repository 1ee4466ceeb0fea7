"""Instance healthchecks."""

from sqlalchemy import Engine

from .application import SelfRegistrationProviderApplicationHealthcheck
from .base import (
    DOMAIN_APPLICATION,
    DOMAIN_CORE,
    DOMAIN_DATABASE,
    DOMAIN_ENVIRONMENT,
    LEVEL_ERROR,
    LEVEL_NOTICE,
    LEVEL_WARNING,
    HealthcheckService,
)
from .collector import HealthcheckResult, HealthcheckServiceCollector, count_errors, render_report, to_legacy_array
from .core import FullBaseUrlCoreHealthcheck
from .database import ConnectDatabaseHealthcheck
from .environment import ConfigWritableEnvironmentHealthcheck


def build_collector(engine: Engine) -> HealthcheckServiceCollector:
    """Collector with every healthcheck of the instance."""
    return HealthcheckServiceCollector(
        [
            ConfigWritableEnvironmentHealthcheck(),
            FullBaseUrlCoreHealthcheck(),
            SelfRegistrationProviderApplicationHealthcheck(),
            ConnectDatabaseHealthcheck(engine),
        ]
    )


__all__ = [
    "DOMAIN_APPLICATION", "DOMAIN_CORE", "DOMAIN_DATABASE", "DOMAIN_ENVIRONMENT",
    "LEVEL_ERROR", "LEVEL_NOTICE", "LEVEL_WARNING",
    "HealthcheckService", "HealthcheckResult", "HealthcheckServiceCollector",
    "FullBaseUrlCoreHealthcheck", "SelfRegistrationProviderApplicationHealthcheck",
    "ConfigWritableEnvironmentHealthcheck", "ConnectDatabaseHealthcheck",
    "build_collector", "count_errors", "render_report", "to_legacy_array",
]
