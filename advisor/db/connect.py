"""Database connection management."""
import sqlite3
import os
from pathlib import Path
from contextlib import contextmanager
from typing import Generator
from advisor.core.config import get_settings
from advisor.core.logging import get_logger
from advisor.core.utils import now_iso

logger = get_logger(__name__)

MIGRATIONS_DIR = Path(__file__).parent / "migrations"


def _parse_db_url(url: str) -> str:
    """Parse DATABASE_URL to SQLite file path."""
    if url.startswith("sqlite:///"):
        return url.replace("sqlite:///", "")
    elif url.startswith("sqlite://"):
        return url.replace("sqlite://", "")
    else:
        return url


def get_db_path() -> str:
    return os.path.abspath(_parse_db_url(get_settings().database_url))


@contextmanager
def get_conn() -> Generator[sqlite3.Connection, None, None]:
    """Get database connection context manager (commit on success, rollback on error)."""
    db_path = _parse_db_url(get_settings().database_url)

    db_dir = os.path.dirname(db_path)
    if db_dir:
        os.makedirs(db_dir, exist_ok=True)

    conn = sqlite3.connect(db_path, timeout=30)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA busy_timeout = 30000")
    conn.execute("PRAGMA foreign_keys = ON")

    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def _split_statements(sql: str) -> list:
    """Strip -- comments and split a migration file on semicolons."""
    lines = []
    for line in sql.split("\n"):
        if "--" in line:
            line = line[:line.index("--")]
        lines.append(line)
    return [s.strip() for s in "\n".join(lines).split(";") if s.strip()]


def init_db():
    """Apply pending migrations in lexical order (idempotent).

    Raises RuntimeError if the migrations directory is missing.
    """
    if not MIGRATIONS_DIR.exists():
        raise RuntimeError(
            f"Migrations directory not found: {MIGRATIONS_DIR}. "
            "Cannot start without schema."
        )

    migration_files = sorted(f.name for f in MIGRATIONS_DIR.glob("*.sql"))

    with get_conn() as conn:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS schema_migrations (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                filename TEXT NOT NULL UNIQUE,
                applied_at TEXT NOT NULL
            )
            """
        )
        cursor = conn.cursor()
        cursor.execute("SELECT filename FROM schema_migrations")
        applied = {row["filename"] for row in cursor.fetchall()}

        for migration_file in migration_files:
            if migration_file in applied:
                logger.debug(f"Migration {migration_file} already applied, skipping")
                continue

            migration_sql = (MIGRATIONS_DIR / migration_file).read_text()
            try:
                for statement in _split_statements(migration_sql):
                    conn.execute(statement)
                cursor.execute(
                    "INSERT INTO schema_migrations (filename, applied_at) VALUES (?, ?)",
                    (migration_file, now_iso())
                )
                conn.commit()
            except sqlite3.Error as e:
                logger.error(f"Failed to apply migration {migration_file}: {e}")
                raise
            logger.info(f"Applied migration: {migration_file}")

    logger.info("DB: %s | Migrations: %d known", get_db_path(), len(migration_files))


def get_schema_status() -> dict:
    """Describe DB path, readiness and pending migrations. Used by /health."""
    result = {
        "db_path": get_db_path(),
        "db_ready": False,
        "applied_migrations": [],
        "pending_migrations": [],
    }
    try:
        with get_conn() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT filename FROM schema_migrations ORDER BY id ASC")
            result["applied_migrations"] = [row["filename"] for row in cursor.fetchall()]
            result["db_ready"] = True
    except sqlite3.Error as e:
        logger.warning("Schema status check failed: %s", str(e)[:200])

    all_files = sorted(f.name for f in MIGRATIONS_DIR.glob("*.sql"))
    applied_set = set(result["applied_migrations"])
    result["pending_migrations"] = [f for f in all_files if f not in applied_set]
    return result
