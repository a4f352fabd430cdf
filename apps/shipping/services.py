"""
Shipping services for CompuCar Platform
Carrier quotes for a packed parcel and server-side verification of client estimates.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from django.conf import settings

from apps.common.types import Err, Ok, Result, ValidationError

from .packing import Parcel, calculate_overweight_fee
from .wilayas import resolve_wilaya_id, wilaya_choices, wilaya_name
from .yalidine import YalidineClient

logger = logging.getLogger(__name__)

CURRENCY = "DZD"

# Degraded pricing when the carrier cannot be reached: (max billable kg, DZD)
FALLBACK_BRACKETS: tuple[tuple[int, int], ...] = ((1, 400), (3, 500), (5, 700))
FALLBACK_HEAVY_COST = 1000
FALLBACK_STOPDESK_FACTOR = Decimal("0.8")

STOPDESK_DELIVERY_DAYS = 2
HOME_DELIVERY_DAYS = 3


# ===============================================================================
# DATA TYPES
# ===============================================================================

@dataclass(frozen=True)
class ShippingDestination:
    """Where the parcel goes: a wilaya plus either a commune (home) or a stop desk"""

    wilaya_id: int
    commune_name: str = ""
    is_stopdesk: bool = False
    stopdesk_id: int | None = None

    @property
    def wilaya_name(self) -> str:
        return wilaya_name(self.wilaya_id)

    @classmethod
    def build(
        cls,
        wilaya: int | str | None,
        commune: str | None = None,
        is_stopdesk: bool = False,
        stopdesk_id: int | None = None,
    ) -> ShippingDestination:
        """Validate raw input before any carrier call"""
        wilaya_id = resolve_wilaya_id(wilaya)
        if wilaya_id is None:
            raise ValidationError('wilaya', f"Unknown wilaya: {wilaya}")

        commune_name = (commune or "").strip()
        if is_stopdesk:
            if not stopdesk_id or stopdesk_id <= 0:
                raise ValidationError('stopdeskId', "A stop desk is required for stop desk delivery")
        elif not commune_name:
            raise ValidationError('commune', "Commune is required for home delivery")

        return cls(
            wilaya_id=wilaya_id,
            commune_name=commune_name,
            is_stopdesk=is_stopdesk,
            stopdesk_id=stopdesk_id if is_stopdesk else None,
        )


@dataclass(frozen=True)
class ShippingQuote:
    """Delivery price for one parcel and destination (DZD, whole dinars)"""

    wilaya_id: int
    is_stopdesk: bool
    cost: int
    estimated_days: int
    billable_weight_kg: Decimal
    is_confirmed: bool
    source: str  # "carrier" or "fallback"
    commune_name: str = ""
    currency: str = CURRENCY
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def cost_cents(self) -> int:
        return self.cost * 100

    def as_dict(self) -> dict[str, Any]:
        return {
            'wilaya': self.wilaya_id,
            'wilayaName': wilaya_name(self.wilaya_id),
            'commune': self.commune_name or None,
            'isStopdesk': self.is_stopdesk,
            'cost': self.cost,
            'currency': self.currency,
            'estimatedDays': self.estimated_days,
            'billableWeightKg': float(self.billable_weight_kg),
            'isConfirmed': self.is_confirmed,
            'source': self.source,
            'details': self.details,
        }


# ===============================================================================
# SHIPPING SERVICE
# ===============================================================================

class ShippingService:
    """🚚 Carrier-backed shipping quotes"""

    @staticmethod
    def estimate_shipping_cost(
        parcel: Parcel,
        destination: ShippingDestination,
        client: YalidineClient | None = None,
    ) -> Result[ShippingQuote, str]:
        """
        Price a parcel for a destination.

        Carrier failures degrade to an unconfirmed fallback quote. Err is only
        returned when the carrier answered but does not serve the destination.
        """
        client = client or YalidineClient()
        fees_result = client.get_fees(destination.wilaya_id)

        if fees_result.is_err():
            logger.warning(
                f"⚠️ [Shipping] Carrier fees unavailable for wilaya {destination.wilaya_id}: "
                f"{fees_result.error}; using fallback estimate"
            )
            return Ok(ShippingService.fallback_quote(parcel, destination, reason=fees_result.error))

        fees = fees_result.unwrap()
        commune = fees.find_commune(destination.commune_name, commune_id=destination.stopdesk_id)
        if commune is None:
            return Err(f"No delivery options available for {destination.wilaya_name}")

        base_fee = commune.delivery_fee(destination.is_stopdesk)
        mode = "stopdesk" if destination.is_stopdesk else "home"
        if not base_fee:
            return Err(f"No {mode} delivery available for {commune.commune_name}")

        billable = parcel.billable_weight_kg
        overweight_fee = calculate_overweight_fee(billable, fees.oversize_fee)
        quote = ShippingQuote(
            wilaya_id=destination.wilaya_id,
            commune_name=commune.commune_name,
            is_stopdesk=destination.is_stopdesk,
            cost=int(base_fee) + overweight_fee,
            estimated_days=STOPDESK_DELIVERY_DAYS if destination.is_stopdesk else HOME_DELIVERY_DAYS,
            billable_weight_kg=billable,
            is_confirmed=True,
            source="carrier",
            details={
                'zone': fees.zone,
                'baseFee': int(base_fee),
                'overweightFee': overweight_fee,
                'oversizeFeePerKg': fees.oversize_fee,
            },
        )
        logger.info(
            f"💰 [Shipping] {mode} quote for {destination.wilaya_name}/{commune.commune_name}: "
            f"{quote.cost} {CURRENCY} (billable {billable} kg)"
        )
        return Ok(quote)

    @staticmethod
    def fallback_quote(parcel: Parcel, destination: ShippingDestination, reason: str = "") -> ShippingQuote:
        """Bracketed estimate used while the carrier is unreachable; never authoritative"""
        billable = parcel.billable_weight_kg
        base_cost = next((cost for limit, cost in FALLBACK_BRACKETS if billable <= limit), FALLBACK_HEAVY_COST)
        if destination.is_stopdesk:
            cost = int((Decimal(base_cost) * FALLBACK_STOPDESK_FACTOR).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
        else:
            cost = base_cost

        return ShippingQuote(
            wilaya_id=destination.wilaya_id,
            commune_name=destination.commune_name,
            is_stopdesk=destination.is_stopdesk,
            cost=cost,
            estimated_days=STOPDESK_DELIVERY_DAYS if destination.is_stopdesk else HOME_DELIVERY_DAYS,
            billable_weight_kg=billable,
            is_confirmed=False,
            source="fallback",
            details={'reason': reason} if reason else {},
        )

    @staticmethod
    def verify_client_estimate(client_cost: int | Decimal | None, server_quote: ShippingQuote) -> Result[ShippingQuote, str]:
        """
        Compare the price the customer saw with the server quote.

        Ok(server_quote) when they agree within SHIPPING_PRICE_TOLERANCE_DZD,
        Err with both values otherwise. The server quote is always what gets charged.
        """
        tolerance = Decimal(str(getattr(settings, 'SHIPPING_PRICE_TOLERANCE_DZD', 0)))
        shown = Decimal(str(client_cost or 0))

        if abs(shown - server_quote.cost) > tolerance:
            logger.warning(
                f"⚠️ [Shipping] Client estimate {shown} differs from server quote {server_quote.cost} "
                f"({server_quote.source}) for wilaya {server_quote.wilaya_id}"
            )
            return Err(f"Shipping price changed from {shown} to {server_quote.cost} {CURRENCY}")

        return Ok(server_quote)

    # --- geography ---------------------------------------------------------------

    @staticmethod
    def list_wilayas(client: YalidineClient | None = None) -> list[dict[str, Any]]:
        """Carrier list when reachable, official code list otherwise"""
        client = client or YalidineClient()
        result = client.get_wilayas()
        if result.is_ok() and result.unwrap():
            return [
                {'id': row.get('id'), 'name': row.get('name'), 'code': f"{int(row.get('id') or 0):02d}"}
                for row in result.unwrap()
                if row.get('is_deliverable', 1)
            ]

        logger.info("ℹ️ [Shipping] Using built-in wilaya list")
        return wilaya_choices()

    @staticmethod
    def list_communes(wilaya_id: int, client: YalidineClient | None = None) -> Result[list[dict[str, Any]], str]:
        client = client or YalidineClient()
        return client.get_communes(wilaya_id).map(
            lambda rows: [
                {
                    'id': row.get('id'),
                    'name': row.get('name') or row.get('commune_name'),
                    'wilayaId': row.get('wilaya_id') or wilaya_id,
                    'hasStopDesk': bool(row.get('has_stop_desk')),
                }
                for row in rows
            ]
        )

    @staticmethod
    def list_stopdesks(wilaya_id: int, client: YalidineClient | None = None) -> Result[list[dict[str, Any]], str]:
        client = client or YalidineClient()
        region = wilaya_name(wilaya_id)
        return client.get_stopdesks(wilaya_id).map(
            lambda rows: [
                {
                    'id': row.get('id'),
                    'name': f"Agence Yalidine {row.get('name')}",
                    'address': f"{row.get('name')}, {region}",
                    'communeName': row.get('name'),
                }
                for row in rows
            ]
        )
