from __future__ import annotations

from typing import Any, Dict, List, Optional

import httpx
import typer

from cli.config import CLIConfig


class ApiClient:
    """Minimal HTTP client for the sensor history service."""

    def __init__(self, config: CLIConfig) -> None:
        self._config = config
        self._client = httpx.Client(base_url=config.base_url, timeout=config.timeout)

    def close(self) -> None:
        self._client.close()

    def post_reading(
        self,
        temperature: float,
        humidity: float,
        device_id: Optional[str] = None,
    ) -> str:
        body: Dict[str, Any] = {"temperature": temperature, "humidity": humidity}
        if device_id:
            body["deviceId"] = device_id
        try:
            response = self._client.post("/v1/data", json=body)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        except httpx.TransportError as exc:
            self._handle_transport_error(exc)
        payload = response.json()
        key = payload.get("key")
        if not isinstance(key, str):
            raise typer.BadParameter("Unexpected response payload when storing reading.")
        return key

    def get_history(self, time_scale: str, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        params: Dict[str, Any] = {"timeScale": time_scale}
        if limit is not None:
            params["limit"] = limit
        try:
            response = self._client.get("/v1/data", params=params)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        except httpx.TransportError as exc:
            self._handle_transport_error(exc)
        payload = response.json()
        if not isinstance(payload, list):
            raise typer.BadParameter("Unexpected response payload when fetching history.")
        return payload

    def _handle_transport_error(self, exc: httpx.TransportError) -> None:
        typer.secho(
            f"Could not reach {self._config.base_url}: {exc}",
            fg=typer.colors.RED,
            err=True,
        )
        raise typer.Exit(code=1)

    @staticmethod
    def _handle_http_error(exc: httpx.HTTPStatusError) -> None:
        detail = exc.response.text.strip()
        message = (
            f"Request failed with status {exc.response.status_code}: {detail or 'no detail provided.'}"
        )
        typer.secho(message, fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
