"""Database connection and migration management."""

from pathlib import Path
from typing import Optional

import asyncpg
import structlog

from aitwy.config import Settings, get_settings

logger = structlog.get_logger(__name__)

MIGRATIONS_DIR = Path(__file__).parent.parent / "migrations"


class Database:
    """Owner of the asyncpg connection pool.

    Constructed once by the application lifespan, connected at startup and
    closed at shutdown. Services receive it explicitly.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self._pool: Optional[asyncpg.Pool] = None

    @property
    def is_connected(self) -> bool:
        return self._pool is not None

    @property
    def pool(self) -> asyncpg.Pool:
        """Get the connection pool.

        Raises:
            RuntimeError: If the pool is not initialized
        """
        if self._pool is None:
            raise RuntimeError("Database pool not initialized. Call connect() first.")
        return self._pool

    def acquire(self):
        """Acquire a connection from the pool (async context manager)."""
        return self.pool.acquire()

    async def connect(self) -> asyncpg.Pool:
        """Create the connection pool if it does not exist yet.

        Returns:
            asyncpg connection pool
        """
        if self._pool is not None:
            return self._pool

        try:
            self._pool = await asyncpg.create_pool(
                self.settings.postgres_url,
                min_size=self.settings.db_pool_min_size,
                max_size=self.settings.db_pool_max_size,
                command_timeout=self.settings.db_command_timeout,
            )
            logger.info(
                "database_pool_created",
                min_size=self.settings.db_pool_min_size,
                max_size=self.settings.db_pool_max_size,
            )
            return self._pool
        except Exception as e:
            logger.error("database_pool_creation_failed", error=str(e))
            raise

    async def close(self) -> None:
        """Close the connection pool."""
        if self._pool is not None:
            await self._pool.close()
            self._pool = None
            logger.info("database_pool_closed")

    async def run_migrations(self, migrations_dir: Path = MIGRATIONS_DIR) -> None:
        """Run all SQL migrations in order.

        Migrations are idempotent (IF NOT EXISTS) and can be re-run safely.
        """
        if not migrations_dir.exists():
            logger.warning("migrations_directory_not_found", path=str(migrations_dir))
            return

        migration_files = sorted(migrations_dir.glob("*.sql"))

        if not migration_files:
            logger.info("no_migrations_found")
            return

        async with self.acquire() as conn:
            for migration_file in migration_files:
                try:
                    sql = migration_file.read_text()
                    await conn.execute(sql)
                    logger.info("migration_applied", file=migration_file.name)
                except Exception as e:
                    logger.error(
                        "migration_failed",
                        file=migration_file.name,
                        error=str(e),
                    )
                    raise

    async def health_check(self) -> bool:
        """Check database connectivity.

        Returns:
            True if database is healthy, False otherwise
        """
        try:
            async with self.acquire() as conn:
                result = await conn.fetchval("SELECT 1")
                return result == 1
        except Exception as e:
            logger.error("database_health_check_failed", error=str(e))
            return False
