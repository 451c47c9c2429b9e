from __future__ import annotations

from typing import Any, Dict, List, Optional

import httpx
import typer

from cli.config import CLIConfig


class ApiClient:
    """Minimal HTTP client for the weather station service."""

    def __init__(self, config: CLIConfig) -> None:
        self._config = config
        self._client = httpx.Client(base_url=config.base_url, timeout=config.request_timeout)

    def close(self) -> None:
        self._client.close()

    def list_streams(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/streams")

    def get_window(self, kind: str, seconds: float) -> Dict[str, Any]:
        return self._request("GET", f"/streams/{kind}", params={"seconds": seconds})

    def record(self, kind: str, value: float, source: Optional[str] = None) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"value": value}
        if source:
            payload["source"] = source
        return self._request("POST", f"/streams/{kind}/readings", json=payload)

    def calculate(self, metric: str) -> Dict[str, Any]:
        return self._request("POST", f"/calculations/{metric}")

    def get_snapshot(self, kind: str) -> Dict[str, Any]:
        return self._request("GET", f"/snapshots/{kind}")

    def _request(self, method: str, url: str, **kwargs: Any) -> Any:
        try:
            response = self._client.request(method, url, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        except httpx.TransportError as exc:
            typer.secho(
                f"Could not reach {self._config.base_url}: {exc}",
                fg=typer.colors.RED,
                err=True,
            )
            raise typer.Exit(code=1) from exc
        return response.json()

    @staticmethod
    def _handle_http_error(exc: httpx.HTTPStatusError) -> None:
        detail: str | None = None
        try:
            data = exc.response.json()
            detail = data.get("detail")
        except Exception:  # noqa: BLE001 - best effort parsing
            detail = exc.response.text.strip()
        message = (
            f"Request failed with status {exc.response.status_code}: {detail or 'no detail provided.'}"
        )
        typer.secho(message, fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
