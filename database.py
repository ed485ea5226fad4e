import asyncpg
import json
import os
import logging
from typing import Any, Optional

from errors import CacheCorrupt


class StorageKeys:
    AUTH_TOKEN = 'auth_token'
    USER_DATA = 'user_data'
    DAILY_GOAL = 'daily_goal'
    MATERIALS_CACHE = 'materials_cache'


class Database:
    """Durable key/value store backed by Postgres.

    Values are stored as JSON text and are always fully overwritten.
    """

    def __init__(self, database_url: Optional[str] = None):
        self.pool: Optional[asyncpg.Pool] = None
        self.database_url = database_url or os.getenv('DATABASE_URL')

        if not self.database_url:
            raise ValueError("DATABASE_URL not found in environment variables")

    async def connect(self):
        """Create a connection pool to the database"""
        try:
            self.pool = await asyncpg.create_pool(
                self.database_url,
                min_size=1,
                max_size=10,
                command_timeout=60
            )
            logging.info("Database connection pool created successfully")
            await self.initialize_schema()
        except Exception as e:
            logging.error(f"Failed to connect to database: {e}")
            raise

    async def close(self):
        """Close the database connection pool"""
        if self.pool:
            await self.pool.close()
            self.pool = None
            logging.info("Database connection pool closed")

    def _require_pool(self) -> asyncpg.Pool:
        if self.pool is None:
            raise RuntimeError("Database pool not initialized. Call connect() first.")
        return self.pool

    async def initialize_schema(self):
        """Initialize the key/value table if it doesn't exist"""
        pool = self._require_pool()
        async with pool.acquire() as conn:
            await conn.execute('''
                CREATE TABLE IF NOT EXISTS kv_store (
                    key VARCHAR(255) PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            ''')

            logging.info("Database schema initialized")

    async def get_data(self, key: str) -> Any:
        """Get a stored value, or None if the key is absent.

        Raises:
            CacheCorrupt: the stored text is not valid JSON
        """
        pool = self._require_pool()
        async with pool.acquire() as conn:
            raw = await conn.fetchval('SELECT value FROM kv_store WHERE key = $1', key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except (TypeError, ValueError) as e:
            logging.warning(f"Stored value for '{key}' is not valid JSON: {e}")
            raise CacheCorrupt(f"Stored value for '{key}' is corrupt") from e

    async def save_data(self, key: str, value: Any) -> None:
        """Store a value under key, replacing any previous value"""
        await self.save_many({key: value})

    async def save_many(self, values: dict[str, Any]) -> None:
        """Store several values in one transaction so readers never see a partial write"""
        pool = self._require_pool()
        rows = [(key, json.dumps(value)) for key, value in values.items()]
        async with pool.acquire() as conn:
            async with conn.transaction():
                await conn.executemany('''
                    INSERT INTO kv_store (key, value, updated_at)
                    VALUES ($1, $2, CURRENT_TIMESTAMP)
                    ON CONFLICT (key) DO UPDATE
                    SET value = EXCLUDED.value, updated_at = EXCLUDED.updated_at
                ''', rows)

    async def remove_data(self, *keys: str) -> None:
        """Remove one or more keys"""
        pool = self._require_pool()
        async with pool.acquire() as conn:
            await conn.execute('DELETE FROM kv_store WHERE key = ANY($1::varchar[])', list(keys))

    async def clear_all(self) -> None:
        """Remove every stored value"""
        pool = self._require_pool()
        async with pool.acquire() as conn:
            await conn.execute('DELETE FROM kv_store')
        logging.info("Key/value store cleared")
