"""Design repository — owner-scoped CRUD for designs plus app settings.

SQLite implementation of ``PersistenceAdapter``. All SQL operates against
the schema defined in ``db_manager.py``. sqlite errors and unknown ids are
reported as ``PersistenceError``.
"""

from __future__ import annotations

import functools
import json
import logging
import threading
import uuid
from datetime import datetime

from playset.constants import DUPLICATE_NAME_SUFFIX
from playset.core.exceptions import PersistenceError
from playset.core.serializers import design_to_dict, dict_to_design
from playset.database.adapter import PersistenceAdapter
from playset.database.db_manager import DatabaseManager
from playset.models.config import PricingRates, ValidationLimits
from playset.models.design import Design, DesignSummary

logger = logging.getLogger(__name__)

PRICING_RATES_KEY = "pricing_rates"
VALIDATION_LIMITS_KEY = "validation_limits"


def _wrap_db_errors(method):
    """Decorator: serialize access and turn storage errors into PersistenceError."""
    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        with self._lock:
            try:
                return method(self, *args, **kwargs)
            except PersistenceError:
                raise
            except Exception as e:
                logger.warning("%s failed: %s", method.__name__, e)
                raise PersistenceError(f"{method.__name__} failed: {e}") from e
    return wrapper


class DesignRepository(PersistenceAdapter):
    """CRUD repository for designs, scoped by owner id."""

    def __init__(self, db: DatabaseManager):
        self._db = db
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Design CRUD
    # ------------------------------------------------------------------

    @_wrap_db_errors
    def save(self, design: Design, owner_id: str) -> str:
        """Insert (``design.id`` is None) or update a design. Returns design_id."""
        conn = self._db.connect()
        now = datetime.now().isoformat()

        if design.id is None:
            design_id = str(uuid.uuid4())
            conn.execute(
                """INSERT INTO designs
                   (id, owner_id, name, design_json, instance_count,
                    total_price, created_at, updated_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
                (design_id, owner_id, design.name, self._to_json(design, design_id),
                 len(design.instances), design.metadata.total_price, now, now),
            )
        else:
            design_id = design.id
            cursor = conn.execute(
                """UPDATE designs
                   SET name = ?, design_json = ?, instance_count = ?,
                       total_price = ?, updated_at = ?
                   WHERE id = ? AND owner_id = ?""",
                (design.name, self._to_json(design, design_id), len(design.instances),
                 design.metadata.total_price, now, design_id, owner_id),
            )
            if cursor.rowcount == 0:
                conn.rollback()
                raise PersistenceError(f"Design not found: {design_id}")
        conn.commit()
        return design_id

    @_wrap_db_errors
    def load(self, design_id: str, owner_id: str) -> Design:
        """Load a stored design snapshot."""
        conn = self._db.connect()
        row = conn.execute(
            "SELECT design_json FROM designs WHERE id = ? AND owner_id = ?",
            (design_id, owner_id),
        ).fetchone()
        if row is None:
            raise PersistenceError(f"Design not found: {design_id}")
        design = dict_to_design(json.loads(row[0]))
        design.id = design_id
        return design

    @_wrap_db_errors
    def list_designs(self, owner_id: str) -> list[DesignSummary]:
        """List the owner's designs, most recently updated first."""
        conn = self._db.connect()
        rows = conn.execute(
            """SELECT id, owner_id, name, instance_count, total_price,
                      created_at, updated_at
               FROM designs WHERE owner_id = ?
               ORDER BY updated_at DESC, rowid DESC""",
            (owner_id,),
        ).fetchall()
        return [
            DesignSummary(
                id=r[0],
                owner_id=r[1],
                name=r[2],
                instance_count=r[3],
                total_price=r[4],
                created_at=r[5] or "",
                updated_at=r[6] or "",
            )
            for r in rows
        ]

    @_wrap_db_errors
    def delete(self, design_id: str, owner_id: str) -> None:
        conn = self._db.connect()
        cursor = conn.execute(
            "DELETE FROM designs WHERE id = ? AND owner_id = ?", (design_id, owner_id),
        )
        if cursor.rowcount == 0:
            conn.rollback()
            raise PersistenceError(f"Design not found: {design_id}")
        conn.commit()

    @_wrap_db_errors
    def duplicate(self, design_id: str, owner_id: str) -> str:
        """Copy the full snapshot under a new id. Returns the new design_id."""
        conn = self._db.connect()
        row = conn.execute(
            """SELECT name, design_json, instance_count, total_price
               FROM designs WHERE id = ? AND owner_id = ?""",
            (design_id, owner_id),
        ).fetchone()
        if row is None:
            raise PersistenceError(f"Design not found: {design_id}")

        new_id = str(uuid.uuid4())
        now = datetime.now().isoformat()
        design = dict_to_design(json.loads(row[1]))
        design.name = row[0] + DUPLICATE_NAME_SUFFIX
        conn.execute(
            """INSERT INTO designs
               (id, owner_id, name, design_json, instance_count,
                total_price, created_at, updated_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
            (new_id, owner_id, design.name, self._to_json(design, new_id),
             row[2], row[3], now, now),
        )
        conn.commit()
        return new_id

    @staticmethod
    def _to_json(design: Design, design_id: str) -> str:
        data = design_to_dict(design)
        data["id"] = design_id
        return json.dumps(data, ensure_ascii=False)

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    @_wrap_db_errors
    def get_setting(self, key: str, default: str | None = None) -> str | None:
        """Get an application setting."""
        conn = self._db.connect()
        row = conn.execute(
            "SELECT value FROM app_settings WHERE key = ?", (key,)
        ).fetchone()
        return row[0] if row else default

    @_wrap_db_errors
    def set_setting(self, key: str, value: str) -> None:
        """Set an application setting (upsert)."""
        conn = self._db.connect()
        conn.execute(
            "INSERT OR REPLACE INTO app_settings (key, value) VALUES (?, ?)",
            (key, value),
        )
        conn.commit()

    def _json_setting(self, key: str) -> dict:
        raw = self.get_setting(key, "{}")
        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, TypeError):
            logger.warning("Ignoring malformed %s setting", key)
            return {}
        return data if isinstance(data, dict) else {}

    def load_pricing_rates(self) -> PricingRates:
        """Pricing rates with any persisted overrides applied."""
        return PricingRates.from_dict(self._json_setting(PRICING_RATES_KEY))

    def load_validation_limits(self) -> ValidationLimits:
        return ValidationLimits.from_dict(self._json_setting(VALIDATION_LIMITS_KEY))

    def store_overrides(self, key: str, overrides: dict) -> None:
        """Persist a JSON object of overrides under *key*."""
        self.set_setting(key, json.dumps(overrides))
