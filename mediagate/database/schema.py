# mediagate/database/schema.py
"""
Metadata store schema.

Profiles and async upload jobs are stored as JSONB documents so the shape
of a profile can evolve without migrations.
"""

from .core import SyncDatabase

PROFILES_TABLE = "profiles"
ASYNC_UPLOADS_TABLE = "async_uploads"

SCHEMA_STATEMENTS = (
    f"""
    CREATE TABLE IF NOT EXISTS {PROFILES_TABLE} (
        name TEXT PRIMARY KEY,
        document JSONB NOT NULL,
        updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
    )
    """,
    f"""
    CREATE TABLE IF NOT EXISTS {ASYNC_UPLOADS_TABLE} (
        id BIGSERIAL PRIMARY KEY,
        key TEXT NOT NULL,
        options JSONB NOT NULL,
        files JSONB NOT NULL,
        status TEXT NOT NULL,
        created_at TIMESTAMPTZ NOT NULL,
        updated_at TIMESTAMPTZ,
        urls JSONB,
        error TEXT
    )
    """,
    f"""
    CREATE INDEX IF NOT EXISTS idx_{ASYNC_UPLOADS_TABLE}_status_created
        ON {ASYNC_UPLOADS_TABLE} (status, created_at)
    """,
)


def ensure_schema(db: SyncDatabase) -> None:
    """Create tables and indexes that do not exist yet."""
    with db.get_connection() as conn:
        with conn.cursor() as cur:
            for statement in SCHEMA_STATEMENTS:
                cur.execute(statement)
