# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Repository: Forward-state data access.
One row, one key, one phone number. Last write wins; no locking.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from hotline.core.logging import get_logger

logger = get_logger(__name__)

FORWARD_KEY = "forward_number"


class ForwardStoreError(RuntimeError):
    """The durable store could not be read or written."""


class ForwardStateRepository:
    def __init__(self, engine: Engine, key: str = FORWARD_KEY) -> None:
        self._engine = engine
        self._key = key

    # ── Schema ──

    def ensure_schema(self) -> None:
        try:
            with self._engine.begin() as conn:
                conn.execute(text("""
                    CREATE TABLE IF NOT EXISTS forward_state (
                        state_key   VARCHAR(64) PRIMARY KEY,
                        state_value VARCHAR(32) NOT NULL,
                        source      VARCHAR(32) NOT NULL,
                        updated_at  VARCHAR(64) NOT NULL
                    )
                """))
        except SQLAlchemyError as exc:
            raise ForwardStoreError(f"Could not create forward_state table: {exc}") from exc

    def ping(self) -> bool:
        try:
            with self._engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError:
            return False

    # ── Read ──

    def get(self) -> Optional[str]:
        record = self.get_record()
        return record["value"] if record else None

    def get_record(self) -> Optional[dict[str, Any]]:
        try:
            with self._engine.connect() as conn:
                row = conn.execute(
                    text("""
                        SELECT state_value, source, updated_at
                        FROM forward_state WHERE state_key = :key
                    """),
                    {"key": self._key},
                ).fetchone()
        except SQLAlchemyError as exc:
            raise ForwardStoreError(f"Could not read forward number: {exc}") from exc
        if row is None:
            return None
        return {"value": row[0], "source": row[1], "updated_at": row[2]}

    # ── Write ──

    def insert_if_missing(self, value: str, source: str) -> bool:
        """Write ``value`` only when no number is stored yet. Returns True if written."""
        try:
            with self._engine.begin() as conn:
                exists = conn.execute(
                    text("SELECT 1 FROM forward_state WHERE state_key = :key"),
                    {"key": self._key},
                ).fetchone()
                if exists:
                    return False
                conn.execute(
                    text("""
                        INSERT INTO forward_state (state_key, state_value, source, updated_at)
                        VALUES (:key, :value, :source, :ts)
                    """),
                    {
                        "key": self._key,
                        "value": value,
                        "source": source,
                        "ts": datetime.now(timezone.utc).isoformat(),
                    },
                )
        except SQLAlchemyError as exc:
            raise ForwardStoreError(f"Could not seed forward number: {exc}") from exc
        logger.info("Forward number seeded: value=%s, source=%s", value, source)
        return True

    def put(self, value: str, source: str) -> None:
        params = {
            "key": self._key,
            "value": value,
            "source": source,
            "ts": datetime.now(timezone.utc).isoformat(),
        }
        try:
            with self._engine.begin() as conn:
                result = conn.execute(
                    text("""
                        UPDATE forward_state
                        SET state_value = :value, source = :source, updated_at = :ts
                        WHERE state_key = :key
                    """),
                    params,
                )
                if result.rowcount == 0:
                    conn.execute(
                        text("""
                            INSERT INTO forward_state (state_key, state_value, source, updated_at)
                            VALUES (:key, :value, :source, :ts)
                        """),
                        params,
                    )
        except SQLAlchemyError as exc:
            raise ForwardStoreError(f"Could not write forward number: {exc}") from exc
        logger.info("Forward number stored: value=%s, source=%s", value, source)
