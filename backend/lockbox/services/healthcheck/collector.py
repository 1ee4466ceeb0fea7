"""Runs healthchecks and renders their results.

The collector never lets a probe's exception escape: a check that raises is
reported as failed and logged.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from .base import DOMAIN_APPLICATION, DOMAIN_CORE, DOMAIN_DATABASE, DOMAIN_ENVIRONMENT, HealthcheckService, HelpMessage

logger = logging.getLogger(__name__)

DOMAINS = (DOMAIN_ENVIRONMENT, DOMAIN_CORE, DOMAIN_APPLICATION, DOMAIN_DATABASE)


@dataclass(frozen=True)
class HealthcheckResult:
    domain: str
    legacy_key: str
    passed: bool
    level: str
    message: str
    help: HelpMessage = None


class HealthcheckServiceCollector:
    def __init__(self, services: Optional[Iterable[HealthcheckService]] = None):
        self._services: List[HealthcheckService] = list(services or [])

    def add_service(self, service: HealthcheckService) -> "HealthcheckServiceCollector":
        self._services.append(service)
        return self

    def get_services(self, domain: Optional[str] = None) -> List[HealthcheckService]:
        if domain is None:
            return list(self._services)
        return [s for s in self._services if s.cli_option() == domain or s.domain() == domain]

    def run(self, domain: Optional[str] = None) -> List[HealthcheckResult]:
        return [self._run_one(service) for service in self.get_services(domain)]

    def _run_one(self, service: HealthcheckService) -> HealthcheckResult:
        try:
            service.check()
            passed = service.is_passed()
            message = service.success_message() if passed else service.failure_message()
            help_message = None if passed else service.help_message()
        except Exception as e:
            logger.error(
                "Healthcheck %s raised", type(service).__name__,
                extra={"domain": service.domain()},
                exc_info=e,
            )
            passed = False
            message = f"The healthcheck {type(service).__name__} could not run: {e}"
            help_message = None
        return HealthcheckResult(
            domain=service.domain(),
            legacy_key=service.legacy_array_key(),
            passed=passed,
            level=service.level(),
            message=message,
            help=help_message,
        )


def to_legacy_array(results: Iterable[HealthcheckResult]) -> Dict[str, dict]:
    """Nest results as ``{domain: {key: {subkey: passed}}}`` following the dotted legacy keys."""
    report: Dict[str, dict] = {}
    for result in results:
        node = report.setdefault(result.domain, {})
        parts = result.legacy_key.split(".")
        for part in parts[:-1]:
            node = node.setdefault(part, {})
        node[parts[-1]] = result.passed
    return report


_LABELS = {True: "PASS", False: "FAIL"}
_LEVEL_LABELS = {"warning": "WARN", "notice": "INFO"}


def render_report(results: Iterable[HealthcheckResult]) -> List[str]:
    """Lines of the CLI report, grouped by domain."""
    by_domain: Dict[str, List[HealthcheckResult]] = {}
    for result in results:
        by_domain.setdefault(result.domain, []).append(result)

    lines: List[str] = []
    for domain in sorted(by_domain, key=lambda d: DOMAINS.index(d) if d in DOMAINS else len(DOMAINS)):
        lines.append(f" {domain.capitalize()}")
        lines.append("")
        for result in by_domain[domain]:
            label = _LABELS[True] if result.passed else _LEVEL_LABELS.get(result.level, _LABELS[False])
            lines.append(f" [{label}] {result.message}")
            helps = [result.help] if isinstance(result.help, str) else (result.help or [])
            for line in helps:
                lines.append(f" [HELP] {line}")
        lines.append("")
    return lines


def count_errors(results: Iterable[HealthcheckResult]) -> int:
    return sum(1 for r in results if not r.passed and r.level == "error")
