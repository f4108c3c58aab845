"""
Model Store - SQLite persistence for behavior models and catalogs.

Artifacts are stored as JSON under the id "<tag>-<version>". Every read
returns freshly decoded objects, so callers never share mutable state.
"""

import json
import logging
import sqlite3
from typing import Any, Optional

from .catalog import Catalog
from .config import WorkloadModelerConfig
from .exceptions import StoreError
from .models import BehaviorModel

logger = logging.getLogger(__name__)


def artifact_id(tag: str, version: str) -> str:
    return f"{tag}-{version}"


class ModelStore:
    """SQLite-backed storage for behavior models and catalogs."""

    def __init__(self, config: Optional[WorkloadModelerConfig] = None):
        """
        Initialize the model store.

        Args:
            config: Configuration (uses defaults if None)
        """
        self.config = config or WorkloadModelerConfig()
        self._conn: Optional[sqlite3.Connection] = None
        self._init_db()

    def _init_db(self) -> None:
        """Initialize database connection and schema."""
        db_path = self.config.db_path
        db_path.parent.mkdir(parents=True, exist_ok=True)

        self._conn = sqlite3.connect(str(db_path), check_same_thread=False)
        self._conn.row_factory = sqlite3.Row

        self._create_schema()
        logger.info(f"ModelStore initialized: {db_path}")

    def _create_schema(self) -> None:
        """Create database schema if not exists."""
        schema = """
        -- Behavior models table
        CREATE TABLE IF NOT EXISTS behavior_models (
            model_id TEXT PRIMARY KEY,
            tag TEXT NOT NULL,
            version TEXT NOT NULL,
            variant_count INTEGER DEFAULT 0,
            body TEXT NOT NULL,
            created_at TEXT DEFAULT CURRENT_TIMESTAMP
        );

        CREATE INDEX IF NOT EXISTS idx_models_tag ON behavior_models(tag);

        -- Catalogs table
        CREATE TABLE IF NOT EXISTS catalogs (
            catalog_id TEXT PRIMARY KEY,
            tag TEXT NOT NULL,
            version TEXT NOT NULL,
            endpoint_count INTEGER DEFAULT 0,
            body TEXT NOT NULL,
            created_at TEXT DEFAULT CURRENT_TIMESTAMP
        );

        CREATE INDEX IF NOT EXISTS idx_catalogs_tag ON catalogs(tag);
        """
        try:
            self._conn.executescript(schema)
            self._conn.commit()
        except sqlite3.Error as e:
            logger.error(f"Failed to create schema: {e}")
            raise StoreError("schema creation", str(e)) from e

    # ========== Behavior Models ==========

    def save_model(self, tag: str, version: str, model: BehaviorModel) -> str:
        """
        Save a behavior model, replacing any model with the same id.

        Args:
            tag: Tag (name) of the system under test
            version: Version of the system under test
            model: Model to store

        Returns:
            The id the model was stored under
        """
        model_id = artifact_id(tag, version)
        try:
            self._conn.execute(
                """
                INSERT OR REPLACE INTO behavior_models
                (model_id, tag, version, variant_count, body)
                VALUES (?, ?, ?, ?, ?)
                """,
                (model_id, tag, version, model.variant_count, json.dumps(model.to_dict())),
            )
            self._conn.commit()
        except sqlite3.Error as e:
            logger.error(f"Failed to save behavior model {model_id}: {e}")
            self._conn.rollback()
            raise StoreError(f"saving behavior model {model_id}", str(e)) from e

        logger.debug(f"Saved behavior model {model_id} with {model.variant_count} behaviors")
        return model_id

    def get_model(self, tag: str, version: str) -> Optional[BehaviorModel]:
        """
        Retrieve a behavior model.

        Returns:
            BehaviorModel or None if not found
        """
        body = self._get_body("behavior_models", "model_id", artifact_id(tag, version))
        return BehaviorModel.from_dict(body) if body is not None else None

    def delete_model(self, tag: str, version: str) -> bool:
        """Delete a behavior model. Returns True if one was removed."""
        return self._delete("behavior_models", "model_id", artifact_id(tag, version))

    def list_models(self, tag: Optional[str] = None) -> list[str]:
        """Ids of all stored behavior models, optionally for one tag."""
        return self._list_ids("behavior_models", "model_id", tag)

    # ========== Catalogs ==========

    def save_catalog(self, tag: str, version: str, catalog: Catalog) -> str:
        """Save a catalog, replacing any catalog with the same id."""
        catalog_id = artifact_id(tag, version)
        try:
            self._conn.execute(
                """
                INSERT OR REPLACE INTO catalogs
                (catalog_id, tag, version, endpoint_count, body)
                VALUES (?, ?, ?, ?, ?)
                """,
                (catalog_id, tag, version, len(catalog.endpoints), json.dumps(catalog.to_dict())),
            )
            self._conn.commit()
        except sqlite3.Error as e:
            logger.error(f"Failed to save catalog {catalog_id}: {e}")
            self._conn.rollback()
            raise StoreError(f"saving catalog {catalog_id}", str(e)) from e

        logger.debug(f"Saved catalog {catalog_id} with {len(catalog.endpoints)} endpoints")
        return catalog_id

    def get_catalog(self, tag: str, version: str) -> Optional[Catalog]:
        """Retrieve a catalog, or None if not found."""
        body = self._get_body("catalogs", "catalog_id", artifact_id(tag, version))
        return Catalog.from_dict(body) if body is not None else None

    def delete_catalog(self, tag: str, version: str) -> bool:
        """Delete a catalog. Returns True if one was removed."""
        return self._delete("catalogs", "catalog_id", artifact_id(tag, version))

    def list_catalogs(self, tag: Optional[str] = None) -> list[str]:
        return self._list_ids("catalogs", "catalog_id", tag)

    # ========== Helpers ==========

    def _get_body(self, table: str, key: str, value: str) -> Optional[dict[str, Any]]:
        try:
            cursor = self._conn.execute(f"SELECT body FROM {table} WHERE {key} = ?", (value,))
            row = cursor.fetchone()
        except sqlite3.Error as e:
            logger.error(f"Failed to get {value} from {table}: {e}")
            raise StoreError(f"reading {value}", str(e)) from e

        if not row:
            return None
        return json.loads(row["body"])

    def _delete(self, table: str, key: str, value: str) -> bool:
        try:
            cursor = self._conn.execute(f"DELETE FROM {table} WHERE {key} = ?", (value,))
            self._conn.commit()
        except sqlite3.Error as e:
            logger.error(f"Failed to delete {value} from {table}: {e}")
            self._conn.rollback()
            raise StoreError(f"deleting {value}", str(e)) from e
        return cursor.rowcount > 0

    def _list_ids(self, table: str, key: str, tag: Optional[str]) -> list[str]:
        try:
            if tag:
                cursor = self._conn.execute(
                    f"SELECT {key} FROM {table} WHERE tag = ? ORDER BY {key}",
                    (tag,),
                )
            else:
                cursor = self._conn.execute(f"SELECT {key} FROM {table} ORDER BY {key}")
            return [row[0] for row in cursor]
        except sqlite3.Error as e:
            logger.error(f"Failed to list {table}: {e}")
            raise StoreError(f"listing {table}", str(e)) from e

    # ========== Statistics ==========

    def get_stats(self) -> dict:
        """Get store statistics."""
        try:
            stats = {}

            cursor = self._conn.execute("SELECT COUNT(*) FROM behavior_models")
            stats["total_models"] = cursor.fetchone()[0]

            cursor = self._conn.execute("SELECT COALESCE(SUM(variant_count), 0) FROM behavior_models")
            stats["total_behaviors"] = cursor.fetchone()[0]

            cursor = self._conn.execute("SELECT COUNT(*) FROM catalogs")
            stats["total_catalogs"] = cursor.fetchone()[0]

            cursor = self._conn.execute("SELECT COUNT(DISTINCT tag) FROM behavior_models")
            stats["systems"] = cursor.fetchone()[0]

            return stats

        except sqlite3.Error as e:
            logger.error(f"Failed to get stats: {e}")
            return {}

    def close(self) -> None:
        """Close database connection."""
        if self._conn:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> "ModelStore":
        return self

    def __exit__(self, *args) -> None:
        self.close()
