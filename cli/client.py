from __future__ import annotations

from typing import Any, Dict

import httpx
import typer

from cli.config import CLIConfig


class ApiClient:
    """Minimal HTTP client for the estimator service."""

    def __init__(self, config: CLIConfig) -> None:
        self._config = config
        self._client = httpx.Client(base_url=config.base_url, timeout=config.timeout)

    def close(self) -> None:
        self._client.close()

    def get_realtime(self) -> Dict[str, Any]:
        try:
            response = self._client.get("/api/realtime")
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        except httpx.RequestError as exc:
            self._handle_transport_error(exc)
        return response.json()

    def calculate(
        self,
        flow: float,
        cost_type: str,
        cost_unit: float,
        operating_hours: float,
        operating_days: float,
    ) -> Dict[str, Any]:
        body = {
            "flow": flow,
            "costType": cost_type,
            "costUnit": cost_unit,
            "operatingHours": operating_hours,
            "operatingDays": operating_days,
        }
        try:
            response = self._client.post("/api/calculate", json=body)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        except httpx.RequestError as exc:
            self._handle_transport_error(exc)
        return response.json()

    @staticmethod
    def _handle_http_error(exc: httpx.HTTPStatusError) -> None:
        detail: str | None = None
        try:
            data = exc.response.json()
            detail = data.get("error") if isinstance(data, dict) else None
        except ValueError:
            detail = exc.response.text.strip()
        message = (
            f"Request failed with status {exc.response.status_code}: {detail or 'no detail provided.'}"
        )
        typer.secho(message, fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    def _handle_transport_error(self, exc: httpx.RequestError) -> None:
        typer.secho(
            f"Could not reach {self._config.base_url}: {exc}",
            fg=typer.colors.RED,
            err=True,
        )
        raise typer.Exit(code=1)
