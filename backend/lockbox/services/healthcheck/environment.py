"""Environment healthchecks."""

import os
from pathlib import Path
from typing import List, Optional

from ...core.config import settings
from .base import DOMAIN_ENVIRONMENT, LEVEL_ERROR, HealthcheckService


class ConfigWritableEnvironmentHealthcheck(HealthcheckService):
    """The configuration file (or its directory, before install) must be writable."""

    def __init__(self, config_dir: Optional[str] = None, config_file_name: Optional[str] = None):
        super().__init__()
        self.config_dir = Path(config_dir if config_dir is not None else settings.config_dir)
        self.config_file = self.config_dir / (config_file_name or settings.config_file_name)

    def check(self) -> "ConfigWritableEnvironmentHealthcheck":
        if self.config_file.exists():
            self.status = os.access(self.config_file, os.W_OK)
        else:
            self.status = self.config_dir.is_dir() and os.access(self.config_dir, os.W_OK)
        return self

    def domain(self) -> str:
        return DOMAIN_ENVIRONMENT

    def level(self) -> str:
        return LEVEL_ERROR

    def success_message(self) -> str:
        return "The configuration file is writable."

    def failure_message(self) -> str:
        return "The configuration file is not writable."

    def help_message(self) -> List[str]:
        user = settings.process_user
        return [
            f"Ensure the file {self.config_file} is writable by the webserver user.",
            "you can try:",
            f"sudo chown {user}:{user} {self.config_dir}",
            f"sudo chmod 775 $(find {self.config_dir} -type d)",
        ]

    def legacy_array_key(self) -> str:
        return "configWritable"
