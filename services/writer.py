"""Validation and persistence of incoming readings."""

from __future__ import annotations

import logging
import math
import time
from typing import Any, List, Mapping, Optional, Sequence

from app.schemas import ReadingRecord
from datastore.mock_kv import KeyValueStore
from models.records import Reading
from services.scanner import KEY_PREFIX, KEY_SEPARATOR

logger = logging.getLogger(__name__)

DEFAULT_DEVICE_TOKEN = "default"
DEFAULT_TTL_SECONDS = 24 * 60 * 60


class ValidationError(ValueError):
    """Raised when a reading payload lacks usable temperature/humidity values."""

    def __init__(self, fields: Sequence[str]) -> None:
        self.fields = tuple(fields)
        super().__init__(f"Missing or invalid {' and '.join(self.fields)} value")


def build_key(timestamp: int, device_id: Optional[str]) -> str:
    return KEY_SEPARATOR.join((KEY_PREFIX, str(timestamp), device_id or DEFAULT_DEVICE_TOKEN))


def _coerce_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    elif not isinstance(value, (int, float)):
        return None
    try:
        number = float(value)
    except (OverflowError, ValueError):
        return None
    return number if math.isfinite(number) else None


class ReadingWriter:
    """Validates a payload and stores it under a timestamp-ordered key."""

    def __init__(self, store: KeyValueStore, ttl_seconds: int = DEFAULT_TTL_SECONDS) -> None:
        self.store = store
        self.ttl_seconds = ttl_seconds

    def validate(self, payload: Mapping[str, Any], now_ms: Optional[int] = None) -> Reading:
        temperature = _coerce_number(payload.get("temperature"))
        humidity = _coerce_number(payload.get("humidity"))

        invalid: List[str] = []
        if temperature is None:
            invalid.append("temperature")
        if humidity is None:
            invalid.append("humidity")
        if invalid:
            raise ValidationError(invalid)

        timestamp = payload.get("timestamp")
        if isinstance(timestamp, bool) or not isinstance(timestamp, int):
            timestamp = now_ms if now_ms is not None else int(time.time() * 1000)

        device_id = payload.get("deviceId")
        if not isinstance(device_id, str) or not device_id.strip():
            device_id = None

        return Reading(
            timestamp=timestamp,
            temperature=temperature,  # type: ignore[arg-type]
            humidity=humidity,  # type: ignore[arg-type]
            device_id=device_id.strip() if device_id else None,
        )

    def write(self, payload: Mapping[str, Any], now_ms: Optional[int] = None) -> str:
        """Persist one reading and return the key it was stored under."""
        reading = self.validate(payload, now_ms=now_ms)
        key = build_key(reading.timestamp, reading.device_id)
        value = ReadingRecord.from_reading(reading).model_dump_json(by_alias=True, exclude_none=True)
        self.store.put(key, value, ttl_seconds=self.ttl_seconds)
        logger.info("Stored reading", extra={"key": key, "device_id": reading.device_id})
        return key
