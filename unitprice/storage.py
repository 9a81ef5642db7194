# unitprice/storage.py
import datetime
import json
import os
import sqlite3
import threading
import time
from contextlib import closing
from typing import Iterable, List, Optional

import pytz
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential, wait_random

from .logger import get_logger
from .models import FieldError, Item, SavedComparison
from .units import RegistryError

logger = get_logger(__name__)

DB_PATH = os.getenv(
    "DB_PATH",
    os.path.join(os.path.expanduser("~"), ".unitprice", "comparisons.sqlite3"),
)
STORAGE_KEY = os.getenv("STORAGE_KEY", "savedComparisons")
DISPLAY_TIMEZONE = os.getenv("DISPLAY_TIMEZONE", "UTC")
DATE_FORMAT = os.getenv("DATE_FORMAT", "%m/%d/%Y, %I:%M:%S %p")

REQUIRED_REASON = "All fields are required"


class ValidationError(Exception):
    """Raised by save() when one or more items are incomplete."""

    def __init__(self, errors: List[FieldError]):
        self.errors = list(errors)
        ids = ", ".join(str(e.item_id) for e in self.errors)
        super().__init__(f"{len(self.errors)} item(s) failed validation: {ids}")

    def by_item(self) -> dict:
        return {e.item_id: e.reason for e in self.errors}


class ComparisonNotFound(LookupError):
    pass


def now_millis() -> int:
    return int(time.time() * 1000)


def local_timestamp() -> str:
    try:
        tz = pytz.timezone(DISPLAY_TIMEZONE)
    except pytz.UnknownTimeZoneError:
        logger.warning("Unknown DISPLAY_TIMEZONE %r; using UTC.", DISPLAY_TIMEZONE)
        tz = pytz.UTC
    return datetime.datetime.now(tz=tz).strftime(DATE_FORMAT)


def validate_items(items: Iterable[Item]) -> List[FieldError]:
    return [
        FieldError(it.id, REQUIRED_REASON)
        for it in items
        if not it.name or not it.price or not it.amount
    ]


_locked_retry = retry(
    retry=retry_if_exception_type(sqlite3.OperationalError),
    wait=wait_exponential(multiplier=0.05, max=1) + wait_random(0, 0.05),
    stop=stop_after_attempt(5),
    reraise=True,
)


class ComparisonStore:
    """
    Saved comparisons kept as one JSON list under a fixed key in SQLite.
    Every mutation rewrites the whole list while holding the store lock.
    """

    def __init__(self, db_path: str = DB_PATH, key: str = STORAGE_KEY):
        self.db_path = db_path
        self.key = key
        self._lock = threading.Lock()

    def _connect(self):
        parent = os.path.dirname(self.db_path)
        if parent:
            os.makedirs(parent, exist_ok=True)
        return sqlite3.connect(self.db_path)

    def ensure_db(self):
        with closing(self._connect()) as con:
            con.execute(
                """
                CREATE TABLE IF NOT EXISTS kv (
                    key TEXT PRIMARY KEY,
                    value TEXT
                )
            """
            )
            con.commit()

    def _read_raw(self) -> Optional[str]:
        with closing(self._connect()) as con:
            cur = con.cursor()
            cur.execute("SELECT value FROM kv WHERE key=?", (self.key,))
            row = cur.fetchone()
        return row[0] if row else None

    @_locked_retry
    def _write(self, saved: List[SavedComparison]):
        payload = json.dumps([sc.to_dict() for sc in saved])
        with closing(self._connect()) as con:
            con.execute(
                """
                INSERT INTO kv (key, value) VALUES (?, ?)
                ON CONFLICT(key) DO UPDATE SET value=excluded.value
            """,
                (self.key, payload),
            )
            con.commit()

    def _decode(self, raw: Optional[str]) -> List[SavedComparison]:
        if raw is None:
            return []
        try:
            data = json.loads(raw)
            if not isinstance(data, list):
                raise TypeError(f"expected a list, got {type(data).__name__}")
            return [SavedComparison.from_dict(d) for d in data]
        except (ValueError, LookupError, TypeError, RegistryError) as e:
            logger.warning("Ignoring corrupt saved comparisons under %r: %s", self.key, e)
            return []

    @_locked_retry
    def _read_for_update(self) -> List[SavedComparison]:
        """
        Current list for a read-modify-write. Unlike list_saved(), database
        errors propagate once a locked database stops retrying.
        """
        self.ensure_db()
        return self._decode(self._read_raw())

    def list_saved(self) -> List[SavedComparison]:
        """
        All saved comparisons in creation order.
        Missing, unreadable or malformed storage reads as an empty list.
        """
        try:
            self.ensure_db()
            raw = self._read_raw()
        except (sqlite3.Error, OSError) as e:
            logger.warning("Cannot read saved comparisons from %s: %s", self.db_path, e)
            return []
        return self._decode(raw)

    def get(self, comparison_id: int) -> Optional[SavedComparison]:
        for sc in self.list_saved():
            if sc.id == comparison_id:
                return sc
        return None

    def save(self, items: Iterable[Item]) -> SavedComparison:
        items = [it.copy() for it in items]
        errors = validate_items(items)
        if errors:
            logger.info("Save rejected: %d incomplete item(s).", len(errors))
            raise ValidationError(errors)

        with self._lock:
            saved = self._read_for_update()
            new_id = now_millis()
            if saved:
                new_id = max(new_id, max(sc.id for sc in saved) + 1)
            comparison = SavedComparison(
                id=new_id, items=tuple(items), date=local_timestamp()
            )
            saved.append(comparison)
            self._write(saved)

        logger.info("Saved comparison %d (%s).", comparison.id, comparison.label)
        return comparison

    def delete(self, comparison_id: int):
        with self._lock:
            saved = self._read_for_update()
            remaining = [sc for sc in saved if sc.id != comparison_id]
            if len(remaining) == len(saved):
                logger.debug("Delete of unknown comparison %d; nothing to do.", comparison_id)
                return
            self._write(remaining)
        logger.info("Deleted comparison %d.", comparison_id)

    def load(self, comparison_id: int) -> List[Item]:
        comparison = self.get(comparison_id)
        if comparison is None:
            raise ComparisonNotFound(f"No saved comparison with id {comparison_id}")
        return [it.copy() for it in comparison.items]
