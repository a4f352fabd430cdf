"""
Yalidine carrier API client.

Thin requests wrapper around the Yalidine REST API (wilayas, communes,
stop desks, fee tables and parcel creation). Every call returns a Result so
callers decide how to degrade; nothing in here raises for HTTP failures.
"""

from __future__ import annotations

import logging
import secrets
import time
from dataclasses import dataclass
from typing import Any

import requests
from django.conf import settings
from django.core.cache import cache
from requests import Response

from apps.common.types import Err, Ok, Result

logger = logging.getLogger(__name__)

DEFAULT_API_BASE = "https://api.yalidine.app/v1/"
DEFAULT_FROM_WILAYA_ID = 16  # Alger

# HTTP status codes below this are considered successful
HTTP_SUCCESS_THRESHOLD = 400
HTTP_SERVER_ERROR_THRESHOLD = 500

FEES_CACHE_TTL = 15 * 60
GEOGRAPHY_CACHE_TTL = 24 * 60 * 60


def get_api_timeouts() -> dict[str, int]:
    """Get API timeout configuration from settings with fallbacks."""
    return getattr(settings, 'API_TIMEOUTS', {
        'REQUEST_TIMEOUT': 30,
        'MAX_RETRIES': 3,
    })


# ===============================================================================
# CONFIGURATION
# ===============================================================================

@dataclass(frozen=True)
class YalidineConfig:
    """Connection settings, read from Django settings on every use"""

    base_url: str
    api_id: str
    api_token: str
    from_wilaya_id: int

    @property
    def is_configured(self) -> bool:
        return bool(self.base_url and self.api_id and self.api_token)

    @classmethod
    def from_settings(cls) -> YalidineConfig:
        base_url = getattr(settings, 'YALIDINE_API_BASE', '') or DEFAULT_API_BASE
        return cls(
            base_url=base_url if base_url.endswith('/') else f"{base_url}/",
            api_id=getattr(settings, 'YALIDINE_API_ID', '') or '',
            api_token=getattr(settings, 'YALIDINE_API_TOKEN', '') or '',
            from_wilaya_id=int(getattr(settings, 'YALIDINE_FROM_WILAYA_ID', DEFAULT_FROM_WILAYA_ID)),
        )


# ===============================================================================
# FEE TABLE TYPES
# ===============================================================================

@dataclass(frozen=True)
class CommuneFees:
    """Per-commune delivery prices from the fees endpoint (DZD, None = not served)"""

    commune_id: int
    commune_name: str
    express_home: int | None
    express_desk: int | None
    economic_home: int | None
    economic_desk: int | None

    def delivery_fee(self, is_stopdesk: bool) -> int | None:
        """Express price first, economic as fallback"""
        if is_stopdesk:
            return self.express_desk or self.economic_desk or None
        return self.express_home or self.economic_home or None


@dataclass(frozen=True)
class FeeTable:
    """Parsed /fees response for one (origin, destination) wilaya pair"""

    from_wilaya_id: int
    to_wilaya_id: int
    zone: int | None
    oversize_fee: int
    retour_fee: int
    cod_percentage: float
    communes: tuple[CommuneFees, ...]

    @classmethod
    def from_payload(cls, payload: dict[str, Any], from_wilaya_id: int, to_wilaya_id: int) -> FeeTable:
        per_commune = payload.get('per_commune') or {}
        rows = per_commune.values() if isinstance(per_commune, dict) else per_commune
        communes = tuple(
            CommuneFees(
                commune_id=int(row.get('commune_id') or 0),
                commune_name=str(row.get('commune_name') or ''),
                express_home=row.get('express_home'),
                express_desk=row.get('express_desk'),
                economic_home=row.get('economic_home'),
                economic_desk=row.get('economic_desk'),
            )
            for row in rows
        )
        return cls(
            from_wilaya_id=from_wilaya_id,
            to_wilaya_id=to_wilaya_id,
            zone=payload.get('zone'),
            oversize_fee=int(payload.get('oversize_fee') or 0),
            retour_fee=int(payload.get('retour_fee') or 0),
            cod_percentage=float(payload.get('cod_percentage') or 0),
            communes=communes,
        )

    def find_commune(self, commune_name: str | None = None, commune_id: int | None = None) -> CommuneFees | None:
        """
        Pick the fee row for a destination.

        Exact commune id first (stop desks are addressed by commune id), then a
        case-insensitive substring match on the name in either direction, then
        the first commune of the wilaya.
        """
        if not self.communes:
            return None

        if commune_id:
            for row in self.communes:
                if row.commune_id == commune_id:
                    return row

        if commune_name:
            wanted = commune_name.strip().lower()
            for row in self.communes:
                name = row.commune_name.lower()
                if wanted and (wanted in name or name in wanted):
                    return row
            logger.warning(
                f"⚠️ [Yalidine] Commune '{commune_name}' not in fee table for wilaya {self.to_wilaya_id}, "
                f"using '{self.communes[0].commune_name}'"
            )

        return self.communes[0]


# ===============================================================================
# API CLIENT
# ===============================================================================

class YalidineClient:
    """🚚 Yalidine REST client with timeout and retry handling"""

    def __init__(self, config: YalidineConfig | None = None) -> None:
        self.config = config or YalidineConfig.from_settings()

    @property
    def is_configured(self) -> bool:
        return self.config.is_configured

    # --- geography -------------------------------------------------------------

    def get_wilayas(self) -> Result[list[dict[str, Any]], str]:
        return self._cached_get('yalidine:wilayas', 'wilayas/', None, GEOGRAPHY_CACHE_TTL).map(_extract_rows)

    def get_communes(self, wilaya_id: int) -> Result[list[dict[str, Any]], str]:
        return self._cached_get(
            f'yalidine:communes:{wilaya_id}', 'communes/', {'wilaya_id': wilaya_id}, GEOGRAPHY_CACHE_TTL
        ).map(_extract_rows)

    def get_stopdesks(self, wilaya_id: int) -> Result[list[dict[str, Any]], str]:
        """Communes that host a carrier pickup point"""
        return self._cached_get(
            f'yalidine:stopdesks:{wilaya_id}',
            'communes/',
            {'wilaya_id': wilaya_id, 'has_stop_desk': 1},
            GEOGRAPHY_CACHE_TTL,
        ).map(_extract_rows)

    # --- pricing ---------------------------------------------------------------

    def get_fees(self, to_wilaya_id: int) -> Result[FeeTable, str]:
        from_wilaya_id = self.config.from_wilaya_id
        return self._cached_get(
            f'yalidine:fees:{from_wilaya_id}:{to_wilaya_id}',
            'fees/',
            {'from_wilaya_id': from_wilaya_id, 'to_wilaya_id': to_wilaya_id},
            FEES_CACHE_TTL,
        ).map(lambda payload: FeeTable.from_payload(payload, from_wilaya_id, to_wilaya_id))

    # --- parcels ---------------------------------------------------------------

    def create_parcel(self, parcel: dict[str, Any]) -> Result[dict[str, Any], str]:
        """Create one shipment; the API takes a list and answers keyed by order_id"""
        result = self._request('POST', 'parcels/', json_body=[parcel], retry=False)
        if result.is_err():
            return result

        raw = result.unwrap()
        first: Any = raw[0] if isinstance(raw, list) and raw else raw
        if isinstance(first, dict) and parcel.get('order_id') in first:
            first = first[parcel['order_id']]
        if not isinstance(first, dict):
            return Err("Unexpected parcel creation response")
        if first.get('success') is False:
            return Err(str(first.get('message') or "Parcel rejected by carrier"))

        tracking = first.get('tracking') or first.get('tracking_code') or first.get('tracking_number')
        if not tracking:
            return Err("Carrier response has no tracking number")

        logger.info(f"✅ [Yalidine] Parcel {tracking} created for {parcel.get('order_id')}")
        return Ok({
            'tracking': tracking,
            'label_url': first.get('label') or first.get('label_url') or '',
            'status': first.get('status') or 'created',
        })

    def get_parcel(self, tracking: str) -> Result[dict[str, Any], str]:
        return self._request('GET', f'parcels/{tracking}/').map(_first_row)

    # --- transport -------------------------------------------------------------

    def _cached_get(
        self, cache_key: str, endpoint: str, params: dict[str, Any] | None, ttl: int
    ) -> Result[Any, str]:
        cached = cache.get(cache_key)
        if cached is not None:
            return Ok(cached)

        result = self._request('GET', endpoint, params=params)
        if result.is_ok():
            cache.set(cache_key, result.unwrap(), ttl)
        return result

    def _headers(self) -> dict[str, str]:
        return {
            'User-Agent': 'CompuCar-Platform/1.0',
            'Content-Type': 'application/json',
            'X-API-ID': self.config.api_id,
            'X-API-TOKEN': self.config.api_token,
        }

    def _request(
        self,
        method: str,
        endpoint: str,
        params: dict[str, Any] | None = None,
        json_body: Any = None,
        retry: bool = True,
    ) -> Result[Any, str]:
        """🌐 Perform one API call; transport errors are retried with backoff"""
        if not self.is_configured:
            return Err("Yalidine API credentials not configured")

        timeouts = get_api_timeouts()
        max_retries = timeouts.get('MAX_RETRIES', 3) if retry else 1
        request_timeout = timeouts.get('YALIDINE_TIMEOUT', timeouts.get('REQUEST_TIMEOUT', 30))
        url = f"{self.config.base_url}{endpoint}"

        for attempt in range(max_retries):
            try:
                logger.info(f"🌐 [Yalidine] {method} {endpoint} (attempt {attempt + 1}/{max_retries})")
                response = requests.request(
                    method=method,
                    url=url,
                    params=params,
                    json=json_body,
                    headers=self._headers(),
                    timeout=request_timeout,
                )

                if response.status_code < HTTP_SUCCESS_THRESHOLD:
                    return self._parse_success_response(response)

                logger.warning(f"⚠️ [Yalidine] HTTP {response.status_code} on {endpoint}: {response.text[:200]}")
                # Client errors will not improve on retry
                if response.status_code < HTTP_SERVER_ERROR_THRESHOLD or attempt == max_retries - 1:
                    return Err(f"HTTP {response.status_code}: {response.text[:100]}")

            except requests.exceptions.Timeout:
                logger.warning(f"⏱️ [Yalidine] Timeout on {endpoint} (attempt {attempt + 1})")
                if attempt == max_retries - 1:
                    return Err("Request timeout")

            except requests.exceptions.ConnectionError as e:
                logger.warning(f"🔌 [Yalidine] Connection error on {endpoint}: {e}")
                if attempt == max_retries - 1:
                    return Err("Connection failed")

            except requests.exceptions.RequestException as e:
                logger.error(f"🔥 [Yalidine] Unexpected error on {endpoint}: {e}")
                return Err(str(e))

            if attempt < max_retries - 1:
                self._secure_backoff(attempt)

        return Err("All retry attempts failed")

    @staticmethod
    def _parse_success_response(response: Response) -> Result[Any, str]:
        """✅ Parse successful API response"""
        try:
            return Ok(response.json())
        except ValueError:
            return Err(f"Invalid JSON response: {response.text[:100]}")

    @staticmethod
    def _secure_backoff(attempt: int) -> None:
        """⏳ Exponential backoff with jitter"""
        jitter = secrets.randbelow(1000) / 1000  # 0-1 second jitter
        time.sleep((2**attempt) + jitter)


def _extract_rows(payload: Any) -> list[dict[str, Any]]:
    """Yalidine list endpoints answer either a bare list or {"data": [...]}"""
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        for key in ('data', 'communes', 'stopdesks', 'wilayas'):
            if isinstance(payload.get(key), list):
                return payload[key]
    return []


def _first_row(payload: Any) -> dict[str, Any]:
    rows = _extract_rows(payload)
    if rows:
        return rows[0]
    return payload if isinstance(payload, dict) else {}
