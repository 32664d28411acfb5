from __future__ import annotations

import httpx
from loguru import logger
from pydantic import TypeAdapter, ValidationError

from duebot.billing.models import CustomerRecord
from duebot.errors import NetworkError
from duebot.utils.config import Settings, S

_RECORDS = TypeAdapter(list[CustomerRecord])


class BillingClient:
    """Reads the customer list from the billing API. One GET, no retries."""

    def __init__(self, settings: Settings = S, *, client: httpx.AsyncClient | None = None):
        self._url = settings.billing_url
        self._own_client = client is None
        self._client = client or httpx.AsyncClient(timeout=settings.billing_timeout)

    async def fetch_customers(self) -> list[CustomerRecord]:
        try:
            r = await self._client.get(self._url)
            r.raise_for_status()
            data = r.json()
        except httpx.HTTPError as e:
            raise NetworkError(f"billing fetch failed: {e}") from e
        except ValueError as e:
            raise NetworkError(f"billing returned non-JSON body: {e}") from e

        try:
            customers = _RECORDS.validate_python(data)
        except ValidationError as e:
            raise NetworkError(f"billing returned malformed records: {e.error_count()} error(s)") from e
        logger.debug(f"📥 {len(customers)} customer(s) from {self._url}")
        return customers

    async def aclose(self) -> None:
        if self._own_client:
            await self._client.aclose()
