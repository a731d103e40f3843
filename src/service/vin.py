from __future__ import annotations

import logging
from typing import Any

import httpx

from assessment.data_models import VehicleIdentity
from service.settings import ServiceSettings

logger = logging.getLogger(__name__)


def _model_year(row: dict[str, Any]) -> int | None:
    try:
        year = int(row.get("ModelYear") or 0)
    except (TypeError, ValueError):
        return None
    return year or None


class VinDecoder:
    """NHTSA vPIC lookup. Any failure degrades to ``None``; it never raises."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    @classmethod
    def from_settings(cls, settings: ServiceSettings) -> "VinDecoder":
        return cls(settings.nhtsa_base_url, timeout=settings.vin_decode_timeout_seconds)

    async def decode(self, vin: str) -> VehicleIdentity | None:
        vin = (vin or "").strip()
        if not vin:
            return None

        try:
            url = f"{self.base_url}/DecodeVinValues/{vin}"
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                resp = await client.get(url, params={"format": "json"})
                resp.raise_for_status()
            payload = resp.json()
            row = (payload.get("Results") or [{}])[0]
        except (httpx.HTTPError, ValueError, AttributeError, IndexError) as exc:
            logger.warning("VIN decode failed for %s: %s", vin, exc)
            return None
        if not isinstance(row, dict):
            return None

        make = (row.get("Make") or "").strip()
        model = (row.get("Model") or "").strip()
        if not make and not model:
            logger.warning("VIN decode returned no make/model for %s", vin)
            return None
        return VehicleIdentity(
            make=make,
            model=model,
            year=_model_year(row),
            vin=(row.get("VIN") or vin).strip(),
        )
