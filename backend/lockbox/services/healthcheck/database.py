"""Database healthchecks."""

import logging
from typing import Optional

from sqlalchemy import Engine, text
from sqlalchemy.exc import SQLAlchemyError

from .base import DOMAIN_DATABASE, LEVEL_ERROR, HealthcheckService

logger = logging.getLogger(__name__)


class ConnectDatabaseHealthcheck(HealthcheckService):
    """The application can open a connection and run a query."""

    def __init__(self, engine: Engine):
        super().__init__()
        self.engine = engine
        self.error: Optional[str] = None

    def check(self) -> "ConnectDatabaseHealthcheck":
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            self.status = True
        except SQLAlchemyError as e:
            logger.warning("Database connection check failed: %s", e)
            self.error = e.__class__.__name__
            self.status = False
        return self

    def domain(self) -> str:
        return DOMAIN_DATABASE

    def level(self) -> str:
        return LEVEL_ERROR

    def success_message(self) -> str:
        return "The application is able to connect to the database."

    def failure_message(self) -> str:
        suffix = f" ({self.error})" if self.error else ""
        return f"The application is not able to connect to the database{suffix}."

    def help_message(self) -> str:
        return "Double check the host, database name, username and password in DATABASE_URL."

    def legacy_array_key(self) -> str:
        return "connect"
