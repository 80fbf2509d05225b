from __future__ import annotations

import time
from pathlib import Path
from typing import Any, Dict, NoReturn, Optional

import httpx
import typer

from cli.config import CLIConfig

_PENDING_STATUSES = {"uploaded", "processing"}


class ApiClient:
    """Thin httpx wrapper around the soil health service."""

    def __init__(self, config: CLIConfig, transport: Optional[httpx.BaseTransport] = None) -> None:
        self._config = config
        self._client = httpx.Client(base_url=config.base_url, timeout=30.0, transport=transport)

    def close(self) -> None:
        self._client.close()

    def upload_batch(self, path: Path) -> str:
        if not path.is_file():
            raise typer.BadParameter(f"Path {path} is not a file.")

        try:
            with path.open("rb") as handle:
                response = self._client.post(
                    "/batches",
                    files={"file": (path.name, handle, "text/csv")},
                )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            self._fail(exc)
        batch_id = response.json().get("batch_id")
        if not isinstance(batch_id, str):
            raise typer.BadParameter("Unexpected response payload when uploading batch.")
        return batch_id

    def get_batch(self, batch_id: str) -> Dict[str, Any]:
        try:
            response = self._client.get(f"/batches/{batch_id}")
            if response.status_code == 404:
                raise typer.BadParameter(f"Batch {batch_id} was not found.")
            response.raise_for_status()
        except httpx.HTTPError as exc:
            self._fail(exc)
        return response.json()

    def poll_batch(self, batch_id: str, interval: float, timeout: float) -> Dict[str, Any]:
        deadline = time.monotonic() + timeout
        last_status = "unknown"
        while time.monotonic() <= deadline:
            payload = self.get_batch(batch_id)
            last_status = payload.get("status", last_status)
            if last_status not in _PENDING_STATUSES:
                return payload
            time.sleep(interval)
        typer.secho(
            f"Timed out waiting for batch {batch_id}. Last status: {last_status}",
            fg=typer.colors.RED,
            err=True,
        )
        raise typer.Exit(code=1)

    def _fail(self, exc: httpx.HTTPError) -> NoReturn:
        if isinstance(exc, httpx.HTTPStatusError):
            try:
                detail = exc.response.json().get("detail")
            except ValueError:
                detail = exc.response.text.strip()
            message = (
                f"Request failed with status {exc.response.status_code}: "
                f"{detail or 'no detail provided.'}"
            )
        else:
            message = f"Could not reach {self._config.base_url}: {exc}"
        typer.secho(message, fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
