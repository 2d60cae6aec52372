# db.py
import os
from dotenv import load_dotenv
from fastapi import HTTPException
from psycopg_pool import AsyncConnectionPool
from psycopg.rows import dict_row

load_dotenv()

# --- Database settings ---
# DATABASE_URL wins; otherwise the connection string is assembled from the parts below
DB_NAME = os.getenv("DB_NAME", "freelance_tracker")
DB_USER = os.getenv("DB_USER", "postgres")
DB_PASSWORD = os.getenv("DB_PASSWORD", "postgres")
DB_HOST = os.getenv("DB_HOST", "localhost")
DB_PORT = int(os.getenv("DB_PORT", "5432"))

DATABASE_URL = os.getenv(
    "DATABASE_URL",
    f"dbname={DB_NAME} user={DB_USER} password={DB_PASSWORD} host={DB_HOST} port={DB_PORT}",
)

# Global pool, created on first use
_pool: AsyncConnectionPool | None = None


async def getDB():
    """
    FastAPI dependency.

    1. Opens the connection pool lazily on the first request.
    2. Lends one connection per request; rows come back as dicts.
    3. `async with pool.connection()` commits when the request finishes
       cleanly and rolls back if the handler raised.
    """
    global _pool

    if _pool is None:
        print("Initializing connection pool...")
        _pool = AsyncConnectionPool(
            conninfo=DATABASE_URL,
            kwargs={"row_factory": dict_row},
            open=False,
        )
        try:
            await _pool.open()
            print("Connection pool opened.")
        except Exception as e:
            print(f"Could not open connection pool: {e}")
            _pool = None
            raise

    if _pool is None:
        raise HTTPException(status_code=500, detail="Database connection pool is not available.")

    async with _pool.connection() as conn:
        yield conn


async def close_pool():
    """Called from the application lifespan on shutdown."""
    global _pool
    if _pool is not None:
        await _pool.close()
        print("Connection pool closed.")
        _pool = None
