"""
REST HTTP client for the Discord API — used by the welcome notifier.
"""

from typing import Any, Optional

import httpx

from mayu.errors import NotificationError

DEFAULT_API_BASE = "https://discord.com/api/v10"


class HttpClient:
    def __init__(
        self,
        token: str,
        base_url: str = DEFAULT_API_BASE,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._token = token
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers={"User-Agent": "DiscordBot (mayu, 0.1.0)", "Accept": "application/json"},
            timeout=30.0,
            transport=transport,
        )

    def _auth_headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bot {self._token}",
            "Content-Type": "application/json",
        }

    async def post(self, path: str, body: Optional[dict[str, Any]] = None) -> Any:
        resp = await self._client.post(path, json=body, headers=self._auth_headers())
        if resp.status_code >= 400:
            raise NotificationError(
                f"HTTP {resp.status_code} {resp.reason_phrase}: {resp.text[:200]}",
                status_code=resp.status_code,
            )
        if not resp.content:
            return None
        return resp.json()

    async def close(self) -> None:
        await self._client.aclose()
