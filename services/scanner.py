"""Cursor-paginated scan of stored readings newer than a cutoff."""

from __future__ import annotations

import logging
from typing import List, Optional

from pydantic import ValidationError

from app.schemas import ReadingRecord
from datastore.mock_kv import KeyValueStore
from models.records import Reading

logger = logging.getLogger(__name__)

KEY_PREFIX = "data"
KEY_SEPARATOR = "_"


def parse_key_timestamp(key: str) -> Optional[int]:
    """Return the epoch-ms timestamp embedded in ``data_<ts>_<device>`` keys.

    Keys without a parseable second segment yield ``None``.
    """
    parts = key.split(KEY_SEPARATOR)
    if len(parts) < 2:
        return None
    segment = parts[1]
    if not (segment.isascii() and segment.isdigit()):
        return None
    return int(segment)


class CutoffScanner:
    """Collects readings whose key timestamp is at or after a cutoff.

    Pages are requested one at a time and pagination stops as soon as
    ``limit`` keys have been retained or the store reports the listing
    complete. All retained keys of the final page are kept, so the result may
    hold more than ``limit`` readings; callers rely on that surplus to detect
    when aggregation is needed.
    """

    def __init__(self, store: KeyValueStore) -> None:
        self.store = store

    def scan(self, cutoff_ms: Optional[int], limit: int) -> List[Reading]:
        keys = self.collect_keys(cutoff_ms, limit)

        readings: List[Reading] = []
        for key in keys:
            raw = self.store.get(key)
            if raw is None:
                logger.debug("Skipping expired reading", extra={"key": key, "reason": "absent"})
                continue
            reading = self._decode(key, raw)
            if reading is not None:
                readings.append(reading)
        return readings

    def collect_keys(self, cutoff_ms: Optional[int], limit: int) -> List[str]:
        retained: List[str] = []
        cursor: Optional[str] = None
        pages = 0

        while len(retained) < limit:
            page = self.store.list_page(cursor)
            pages += 1
            for key in page.keys:
                timestamp = parse_key_timestamp(key)
                if timestamp is None:
                    logger.debug("Skipping malformed key", extra={"key": key, "reason": "timestamp"})
                    continue
                if cutoff_ms is None or timestamp >= cutoff_ms:
                    retained.append(key)

            if page.complete or page.cursor is None:
                break
            cursor = page.cursor

        logger.debug(
            "Key scan finished",
            extra={"pages": pages, "candidate_count": len(retained), "limit": limit},
        )
        return retained

    @staticmethod
    def _decode(key: str, raw: str) -> Optional[Reading]:
        try:
            return ReadingRecord.model_validate_json(raw).to_reading()
        except ValidationError as exc:
            reason = "; ".join(error["msg"] for error in exc.errors())
            logger.warning("Skipping undecodable reading", extra={"key": key, "reason": reason})
            return None
