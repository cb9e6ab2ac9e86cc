"""HTTP route definitions for the service."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional, Union
from urllib.parse import parse_qsl

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import PlainTextResponse

from app.schemas import ReadingRecord, WriteResponse
from datastore.mock_kv import KVStoreError
from services.readings import ReadingService, build_default_service
from services.window import TimeScale
from services.writer import ValidationError
from settings import get_settings

logger = logging.getLogger(__name__)

router = APIRouter()

_STORE_FAILURE_DETAIL = "Reading storage is temporarily unavailable."


def get_service() -> ReadingService:
    return build_default_service()


def _parse_limit(raw: Optional[str]) -> int:
    settings = get_settings()
    if raw is None:
        return settings.default_limit
    try:
        parsed = int(raw.strip())
    except ValueError:
        return settings.default_limit
    if parsed <= 0:
        return settings.default_limit
    return min(parsed, settings.max_limit)


def _media_type(request: Request) -> str:
    header = request.headers.get("content-type") or ""
    return header.split(";", 1)[0].strip().lower()


async def _read_payload(request: Request) -> Dict[str, Any]:
    """Normalise JSON, form and raw query-string bodies to one mapping."""
    body = await request.body()
    if _media_type(request) == "application/json":
        try:
            decoded = json.loads(body or b"null")
        except ValueError:
            return {}
        return decoded if isinstance(decoded, dict) else {}

    text = body.decode("utf-8", errors="replace").strip()
    payload: Dict[str, Any] = {}
    for name, value in parse_qsl(text, keep_blank_values=True):
        payload.setdefault(name, value)
    return payload


@router.get(
    "/v1/data",
    response_model=List[ReadingRecord],
    response_model_exclude_none=True,
    summary="Fetch time-windowed, resolution-adapted reading history.",
)
async def get_readings(
    time_scale: Optional[str] = Query(
        None, alias="timeScale", description="One of 30m, 1h, 6h, 24h, 7d, 30d, all."
    ),
    limit: Optional[str] = Query(None, description="Maximum number of readings to return."),
    service: ReadingService = Depends(get_service),
) -> Union[List[ReadingRecord], PlainTextResponse]:
    scale = TimeScale.parse(time_scale)
    try:
        readings = service.fetch_history(scale, _parse_limit(limit))
    except KVStoreError:
        logger.exception("History query failed", extra={"time_scale": scale.value})
        return PlainTextResponse(
            _STORE_FAILURE_DETAIL, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR
        )
    return [ReadingRecord.from_reading(reading) for reading in readings]


@router.post(
    "/v1/data",
    status_code=status.HTTP_201_CREATED,
    response_model=WriteResponse,
    summary="Store one temperature/humidity reading.",
)
async def post_reading(
    request: Request,
    service: ReadingService = Depends(get_service),
) -> Union[WriteResponse, PlainTextResponse]:
    payload = await _read_payload(request)
    try:
        key = service.record(payload)
    except ValidationError as exc:
        logger.info("Rejected reading", extra={"fields": exc.fields})
        return PlainTextResponse(str(exc), status_code=status.HTTP_400_BAD_REQUEST)
    except KVStoreError:
        logger.exception("Failed to store reading")
        return PlainTextResponse(
            _STORE_FAILURE_DETAIL, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR
        )
    return WriteResponse(key=key)


@router.get(
    "/health",
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get(
    "/",
    summary="Root endpoint mirrors health information.",
    status_code=status.HTTP_200_OK,
)
async def root() -> dict[str, str]:
    return {"status": "ok", "detail": "See /health for service status."}
