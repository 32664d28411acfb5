"""HTTP client for the WhatsApp Web gateway that holds the actual session.

The gateway keeps the multi-device auth state in ``auth_dir`` and streams its
``connection.update`` events as newline-delimited JSON.
"""
from __future__ import annotations

import json
from typing import AsyncIterator

import httpx
from loguru import logger

from duebot.errors import SendError
from duebot.session.state import ConnectionEvent
from duebot.utils.config import Settings, S


class BridgeTransport:
    def __init__(self, settings: Settings = S, *, client: httpx.AsyncClient | None = None):
        self._base = f"{settings.bridge_url}/sessions/{settings.bridge_session}"
        self._start_payload = {
            "authDir": settings.bridge_auth_dir,
            "browser": list(settings.browser),
        }
        self._own_client = client is None
        # the event stream stays open indefinitely, only connect/write time out
        self._client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(settings.bridge_timeout, read=None)
        )

    async def events(self) -> AsyncIterator[ConnectionEvent]:
        r = await self._client.post(f"{self._base}/start", json=self._start_payload)
        r.raise_for_status()
        async with self._client.stream("GET", f"{self._base}/events") as stream:
            stream.raise_for_status()
            async for line in stream.aiter_lines():
                if not line.strip():
                    continue
                try:
                    yield ConnectionEvent.from_json(json.loads(line))
                except (ValueError, TypeError, AttributeError) as e:
                    logger.warning(f"gateway sent a bad event line: {e}")

    async def send_text(self, jid: str, text: str) -> None:
        try:
            r = await self._client.post(f"{self._base}/messages", json={"jid": jid, "text": text})
            r.raise_for_status()
        except httpx.HTTPError as e:
            raise SendError(f"send to {jid} failed: {e}") from e

    async def aclose(self) -> None:
        if self._own_client:
            await self._client.aclose()
