from __future__ import annotations

import logging
from typing import Any

import httpx

from portal.core.config import Settings, get_settings
from portal.core.exceptions import TransientError

logger = logging.getLogger(__name__)


class StoreClient:
    """Thin async access to the store's tabular and submission endpoints."""

    def __init__(self, http: httpx.AsyncClient, *, api_prefix: str = "/api") -> None:
        self._http = http
        self._prefix = api_prefix.rstrip("/")

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "StoreClient":
        settings = settings or get_settings()
        http = httpx.AsyncClient(base_url=settings.portal_base_url, timeout=settings.client_timeout_seconds)
        return cls(http, api_prefix=settings.api_prefix)

    async def aclose(self) -> None:
        await self._http.aclose()

    async def fetch_table(
        self,
        table_name: str,
        *,
        limit: int = 200,
        order_by: str | None = None,
        order_dir: str | None = None,
        **search: Any,
    ) -> list[dict]:
        """Every matching row, walking pages of `limit` until `pagination.total` is reached."""
        rows: list[dict] = []
        page = 1
        while True:
            batch, total = await self.fetch_page(
                table_name, page=page, limit=limit, order_by=order_by, order_dir=order_dir, **search
            )
            rows.extend(batch)
            if total is None or not batch or len(rows) >= total:
                return rows
            page += 1

    async def fetch_page(
        self,
        table_name: str,
        *,
        page: int = 1,
        limit: int = 200,
        order_by: str | None = None,
        order_dir: str | None = None,
        **search: Any,
    ) -> tuple[list[dict], int | None]:
        params: dict[str, Any] = {"tableName": table_name, "page": page, "limit": limit}
        if order_by:
            params["orderBy"] = order_by
            params["orderDir"] = order_dir or "ASC"
        for field, value in search.items():
            if value is not None and value != "":
                params[f"search_{field}"] = str(value)

        body = await self._request("GET", "/table/list", params=params)
        if not body.get("success"):
            raise TransientError(body.get("message") or f"Unable to load {table_name}")
        data = body.get("data")
        rows = data if isinstance(data, list) else []
        pagination = body.get("pagination")
        total = pagination.get("total") if isinstance(pagination, dict) else None
        if not isinstance(total, int):
            total = None
        return rows, total

    async def post(self, path: str, payload: dict) -> tuple[int, dict]:
        """POST a JSON payload; the caller interprets `success: false` replies."""
        response = await self._send("POST", path, json=payload)
        return response.status_code, self._decode(response, path)

    async def _request(self, method: str, path: str, **kwargs: Any) -> dict:
        response = await self._send(method, path, **kwargs)
        if response.status_code >= 500:
            raise TransientError(f"Store error {response.status_code} for {path}")
        return self._decode(response, path)

    async def _send(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            return await self._http.request(method, f"{self._prefix}{path}", **kwargs)
        except httpx.HTTPError as exc:
            logger.warning("Store request %s %s failed: %s", method, path, exc)
            raise TransientError() from exc

    @staticmethod
    def _decode(response: httpx.Response, path: str) -> dict:
        try:
            body = response.json()
        except ValueError as exc:
            raise TransientError(f"Unreadable reply from {path}") from exc
        if not isinstance(body, dict):
            raise TransientError(f"Unreadable reply from {path}")
        return body
