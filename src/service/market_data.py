from __future__ import annotations

import logging
import math
from typing import Any

import httpx

from assessment.data_models import Listing
from service.settings import ServiceSettings

logger = logging.getLogger(__name__)


class MarketCheckClient:
    """Active used-car listings from MarketCheck, used as valuation comparables.

    Docs: https://apidocs.marketcheck.com
    Search endpoint: GET /v2/search/car/active
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.marketcheck.com",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport
        self._enabled = bool(api_key)

    @classmethod
    def from_settings(cls, settings: ServiceSettings) -> "MarketCheckClient":
        return cls(
            api_key=settings.marketcheck_api_key,
            base_url=settings.marketcheck_base_url,
            timeout=settings.market_timeout_seconds,
        )

    async def fetch_listings(
        self,
        *,
        year: int | None = None,
        make: str | None = None,
        model: str | None = None,
    ) -> list[Listing]:
        if not self._enabled:
            logger.warning("MarketCheck not configured; continuing without comparables")
            return []

        params: dict[str, Any] = {
            "api_key": self.api_key,
            "include_relevant_links": "true",
            "car_type": "used",
        }
        if year:
            params["year"] = year
        if make:
            params["make"] = make
        if model:
            params["model"] = model

        try:
            url = f"{self.base_url}/v2/search/car/active"
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                resp = await client.get(url, params=params, headers={"Accept": "application/json"})
                resp.raise_for_status()
            data = resp.json()
            rows = data.get("listings") or []
        except (httpx.HTTPError, ValueError, AttributeError) as exc:
            logger.warning("Market lookup failed for %s %s %s: %s", year, make, model, exc)
            return []

        listings = [
            Listing(price=_to_float(row.get("price")), miles=_to_float(row.get("miles")))
            for row in rows
            if isinstance(row, dict)
        ]
        logger.info("Market lookup found %d listings (num_found=%s)", len(listings), data.get("num_found"))
        return listings


def _to_float(val: Any) -> float | None:
    if val is None or isinstance(val, bool):
        return None
    try:
        f = float(val)
    except (TypeError, ValueError):
        return None
    return f if math.isfinite(f) else None
