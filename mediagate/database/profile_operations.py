# mediagate/database/profile_operations.py
"""
Profile Operations - Database layer for upload profile documents.

Responsibilities:
- Fetch a profile document by name
- Insert or replace profile documents (seeding and admin tooling)
"""

from typing import Any, Dict, List, Optional

import psycopg
from psycopg.types.json import Jsonb

from .core import SyncDatabase
from .exceptions import ProfileOperationError
from .schema import PROFILES_TABLE


class SyncProfileOperations:
    """
    Synchronous database operations for profile documents.

    Profiles are looked up fresh on every ingest; the store is the source of
    truth and nothing is cached here.
    """

    def __init__(self, db: SyncDatabase) -> None:
        """Initialize with sync database instance."""
        self.db = db

    def get_profile_document(self, name: str) -> Optional[Dict[str, Any]]:
        """
        Get the raw profile document.

        Args:
            name: Profile name

        Returns:
            The stored document, or None if no profile has that name
        """
        try:
            query = f"SELECT document FROM {PROFILES_TABLE} WHERE name = %s"

            with self.db.get_connection() as conn:
                with conn.cursor() as cur:
                    cur.execute(query, (name,))
                    result = cur.fetchone()

            if not result:
                return None
            document = dict(result["document"])
            document.setdefault("name", name)
            return document

        except (psycopg.Error, KeyError, TypeError) as e:
            raise ProfileOperationError(
                f"Failed to get profile: {e}", operation="get_profile_document"
            ) from e

    def save_profile_document(self, document: Dict[str, Any]) -> None:
        """
        Insert or replace a profile document.

        Args:
            document: Profile document; must contain ``name``
        """
        try:
            query = f"""
                INSERT INTO {PROFILES_TABLE} (name, document, updated_at)
                VALUES (%s, %s, now())
                ON CONFLICT (name)
                DO UPDATE SET document = EXCLUDED.document, updated_at = now()
            """

            with self.db.get_connection() as conn:
                with conn.cursor() as cur:
                    cur.execute(query, (document["name"], Jsonb(document)))

        except (psycopg.Error, KeyError) as e:
            raise ProfileOperationError(
                f"Failed to save profile: {e}", operation="save_profile_document"
            ) from e

    def list_profile_names(self) -> List[str]:
        """Names of all stored profiles."""
        try:
            with self.db.get_connection() as conn:
                with conn.cursor() as cur:
                    cur.execute(f"SELECT name FROM {PROFILES_TABLE} ORDER BY name")
                    return [row["name"] for row in cur.fetchall()]

        except psycopg.Error as e:
            raise ProfileOperationError(
                f"Failed to list profiles: {e}", operation="list_profile_names"
            ) from e
