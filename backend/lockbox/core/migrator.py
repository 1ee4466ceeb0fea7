"""Schema migrations run at startup and by ``lockbox migrate``.

Migration files live in ``backend/migrations`` and are named
``NNN_description.sql``. A file whose first line is ``-- dialect: <name>``
only runs on that database dialect.

* A database without a ``users`` table is a fresh install: every table is
  created from the models and all migrations are recorded as applied.
* Otherwise missing tables are created from the models, migrations whose
  changes are already visible in the schema are recorded, and the remaining
  ones are executed in version order.

Applied versions are kept in the ``schema_migrations`` table.
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Set

from sqlalchemy import Engine, inspect, text
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).resolve().parents[2] / "migrations"
TRACKING_TABLE = "schema_migrations"

_FILE_NAME = re.compile(r"^(\d{3})_(.+)\.sql$")
_DIALECT_MARKER = re.compile(r"^--\s*dialect:\s*(\w+)\s*$")


class MigrationError(Exception):
    """A migration file could not be applied."""


@dataclass(order=True)
class Migration:
    version: str
    name: str
    file_path: Path
    dialect: Optional[str] = None

    @property
    def label(self) -> str:
        return f"{self.version}_{self.name}"

    def runs_on(self, dialect: str) -> bool:
        return self.dialect is None or self.dialect == dialect


@dataclass
class MigrationResult:
    applied: int = 0
    skipped: int = 0
    baselined: int = 0


def discover_migrations(migrations_dir: Optional[Path] = None) -> List[Migration]:
    """Migration files of *migrations_dir*, sorted by version. Rollback scripts are ignored."""
    directory = migrations_dir or MIGRATIONS_DIR
    if not directory.is_dir():
        logger.warning("Migrations directory not found", extra={"path": str(directory)})
        return []

    found = []
    for path in directory.glob("*.sql"):
        match = _FILE_NAME.match(path.name)
        if match is None or "rollback" in path.name.lower():
            continue
        first_line = path.read_text().split("\n", 1)[0]
        marker = _DIALECT_MARKER.match(first_line)
        found.append(
            Migration(match.group(1), match.group(2), path, marker.group(1) if marker else None)
        )
    return sorted(found)


def split_statements(sql_content: str) -> List[str]:
    """Split a migration file on ``;``, dropping comment-only chunks.

    SQLite drivers execute a single statement per call.
    """
    statements = []
    for chunk in sql_content.split(";"):
        lines = [line for line in chunk.splitlines() if not line.strip().startswith("--")]
        statement = "\n".join(lines).strip()
        if statement:
            statements.append(statement)
    return statements


# ---------------------------------------------------------------------------
# Schema inspection
# ---------------------------------------------------------------------------

def _schema_snapshot(engine: Engine) -> dict:
    inspector = inspect(engine)
    tables = set(inspector.get_table_names())

    def column_names(table: str) -> Set[str]:
        return {c["name"] for c in inspector.get_columns(table)} if table in tables else set()

    def index_names(table: str) -> Set[str]:
        return {i["name"] for i in inspector.get_indexes(table)} if table in tables else set()

    return {
        "tables": tables,
        "folders": column_names("folders"),
        "resources": column_names("resources"),
        "folders_relations_indexes": index_names("folders_relations"),
    }


# Signs that a migration already ran on a database that predates tracking.
_ALREADY_APPLIED: Dict[str, Callable[[dict], bool]] = {
    "001": lambda s: "metadata" in s["folders"],
    "002": lambda s: "metadata" in s["resources"],
    "003": lambda s: {"metadata_keys", "metadata_private_keys"} <= s["tables"],
    "004": lambda s: "idx_folders_relations_user_foreign" in s["folders_relations_indexes"],
}


def _already_applied(engine: Engine, migrations: Iterable[Migration]) -> Set[str]:
    snapshot = _schema_snapshot(engine)
    return {
        m.version for m in migrations
        if m.version in _ALREADY_APPLIED and _ALREADY_APPLIED[m.version](snapshot)
    }


# ---------------------------------------------------------------------------
# Tracking table
# ---------------------------------------------------------------------------

def _ensure_tracking_table(engine: Engine) -> None:
    with engine.begin() as conn:
        conn.execute(text(
            f"CREATE TABLE IF NOT EXISTS {TRACKING_TABLE} ("
            "version VARCHAR(10) PRIMARY KEY, "
            "name VARCHAR(255) NOT NULL, "
            "applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP)"
        ))


def _tracked_versions(engine: Engine) -> Set[str]:
    with engine.connect() as conn:
        return {row[0] for row in conn.execute(text(f"SELECT version FROM {TRACKING_TABLE}"))}


def _track(engine: Engine, migrations: Iterable[Migration]) -> int:
    count = 0
    with engine.begin() as conn:
        for migration in migrations:
            conn.execute(
                text(f"INSERT INTO {TRACKING_TABLE} (version, name) VALUES (:version, :name)"),
                {"version": migration.version, "name": migration.name},
            )
            count += 1
    return count


def _apply(engine: Engine, migration: Migration) -> None:
    """Run every statement of *migration* in one transaction, then track it."""
    try:
        with engine.begin() as conn:
            for statement in split_statements(migration.file_path.read_text()):
                conn.execute(text(statement))
    except SQLAlchemyError as e:
        raise MigrationError(f"Failed to apply {migration.label}: {e}") from e
    _track(engine, [migration])


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def run_migrations(engine: Engine, base: type, migrations_dir: Optional[Path] = None) -> MigrationResult:
    """Bring the schema of *engine* up to date. Safe to call on every start.

    Raises:
        MigrationError: a pending migration failed; earlier ones stay applied.
    """
    dialect = engine.dialect.name
    discovered = discover_migrations(migrations_dir)
    migrations = [m for m in discovered if m.runs_on(dialect)]
    if len(migrations) < len(discovered):
        logger.info(
            "Ignoring migrations for other dialects",
            extra={"dialect": dialect, "ignored": len(discovered) - len(migrations)},
        )

    fresh = "users" not in inspect(engine).get_table_names()
    base.metadata.create_all(bind=engine)
    _ensure_tracking_table(engine)

    if fresh:
        baselined = _track(engine, migrations)
        logger.info("Fresh install: tables created", extra={"baselined": baselined})
        return MigrationResult(baselined=baselined)

    tracked = _tracked_versions(engine)
    detected = _already_applied(engine, migrations) - tracked
    baselined = _track(engine, [m for m in migrations if m.version in detected])
    if baselined:
        logger.info("Recorded migrations found already applied", extra={"baselined": baselined})

    pending = [m for m in migrations if m.version not in tracked and m.version not in detected]
    if not pending:
        if baselined:
            return MigrationResult(baselined=baselined)
        logger.info("Database schema is up to date")
        return MigrationResult(skipped=len(migrations))

    for migration in pending:
        logger.info("Applying migration", extra={"migration": migration.label})
        _apply(engine, migration)
    logger.info("Migrations applied", extra={"applied": len(pending)})
    return MigrationResult(applied=len(pending))
