# Database connection management.
import asyncio
import logging
import asyncpg
from fastapi import Request

import config

logger = logging.getLogger(__name__)


# DDL for a fresh database. Mirrors models.py and the initial Alembic revision.
SCHEMA_STATEMENTS = (
    '''
    CREATE TABLE IF NOT EXISTS users (
        id SERIAL PRIMARY KEY,
        username VARCHAR(50) NOT NULL,
        password VARCHAR(255) NOT NULL,
        CONSTRAINT users_username_key UNIQUE (username)
    )
    ''',
    '''
    CREATE TABLE IF NOT EXISTS vendors (
        id SERIAL PRIMARY KEY,
        name VARCHAR(100) NOT NULL
    )
    ''',
    '''
    CREATE TABLE IF NOT EXISTS products (
        id SERIAL PRIMARY KEY,
        vendor_id INTEGER NOT NULL,
        name VARCHAR(100) NOT NULL,
        category VARCHAR(50),
        quantity INTEGER NOT NULL,
        price NUMERIC(10, 2) NOT NULL,
        contains INTEGER NOT NULL,
        box INTEGER NOT NULL,
        CONSTRAINT products_vendor_id_fkey FOREIGN KEY (vendor_id)
            REFERENCES vendors (id) ON DELETE CASCADE
    )
    ''',
)


class Database:
    """
    Handle to the PostgreSQL store.

    Created once in the application lifespan: ``connect()`` at startup,
    ``close()`` at shutdown. Handlers receive it through the ``get_db``
    dependency and borrow connections with ``acquire()``.
    """

    def __init__(self, connect_kwargs: dict | None = None,
                 min_size: int = config.DB_POOL_MIN_SIZE,
                 max_size: int = config.DB_POOL_MAX_SIZE,
                 command_timeout: float = config.DB_COMMAND_TIMEOUT):
        # host, port, user, password, database
        self.connect_kwargs = dict(config.DB_CONNECT_KWARGS if connect_kwargs is None else connect_kwargs)
        self.min_size = min_size
        self.max_size = max_size
        self.command_timeout = command_timeout
        self.pool: asyncpg.Pool | None = None

    @property
    def location(self) -> str:
        # Never includes the password
        kw = self.connect_kwargs
        return f"{kw.get('user')}@{kw.get('host')}:{kw.get('port')}/{kw.get('database')}"

    async def connect(self, retries: int = config.DB_CONNECT_RETRIES,
                      wait_seconds: float = config.DB_CONNECT_RETRY_WAIT):
        # The database container may still be starting, so give it a few attempts
        for attempt in range(1, retries + 1):
            try:
                logger.info('Connecting to %s (attempt %d/%d)', self.location, attempt, retries)
                self.pool = await asyncpg.create_pool(
                    **self.connect_kwargs,
                    min_size=self.min_size,
                    max_size=self.max_size,
                    command_timeout=self.command_timeout,
                )
                logger.info('Database connection pool created')
                await self.create_tables()
                return
            except (OSError, asyncpg.PostgresError) as e:
                logger.warning('Connection failed: %s', e)
                await self.close()
                if attempt == retries:
                    logger.error('Could not connect to the database after %d attempts', retries)
                    raise
                await asyncio.sleep(wait_seconds)

    async def create_tables(self):
        """Creates the tables if they do not exist yet."""
        async with self.acquire() as conn:
            for statement in SCHEMA_STATEMENTS:
                await conn.execute(statement)
        logger.info('Tables are ready')

    def acquire(self):
        if self.pool is None:
            raise RuntimeError('Database is not connected')
        return self.pool.acquire()

    async def close(self):
        if self.pool is not None:
            logger.info('Closing database connection pool')
            await self.pool.close()
            self.pool = None
            logger.info('Database connection pool closed')


# Dependency: any endpoint can request the store handle
def get_db(request: Request) -> Database:
    return request.app.state.db
