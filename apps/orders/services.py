"""
Order Management Services for CompuCar Platform
COD checkout with server-side shipping re-verification, status lifecycle and carrier shipments.
"""

from __future__ import annotations

import logging
import unicodedata
import uuid
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, ClassVar

from django.db import DatabaseError, transaction
from django.utils import timezone

from apps.common.types import Err, Ok, Result, ValidationError, validate_algerian_phone
from apps.common.validators import log_security_event
from apps.notifications.events import OrderPlaced, ShipmentUpdated, event_bus
from apps.products.models import Product
from apps.shipping.packing import CartLineItem, Parcel, apply_parcel_overrides, compute_parcel, summarize_items
from apps.shipping.services import ShippingDestination, ShippingQuote, ShippingService
from apps.shipping.wilayas import wilaya_name
from apps.shipping.yalidine import YalidineClient

from .models import Order, OrderItem, OrderStatusHistory

if TYPE_CHECKING:
    from apps.users.models import User

logger = logging.getLogger(__name__)

MAX_LINE_QUANTITY = 100
MAX_NOTES_LENGTH = 1000

# ===============================================================================
# CHECKOUT PARAMETER OBJECTS
# ===============================================================================

@dataclass(frozen=True)
class CheckoutLine:
    product_id: uuid.UUID
    quantity: int


@dataclass
class CheckoutRequest:
    """Everything the storefront submits for one COD order"""
    customer_name: str
    phone: str
    wilaya: int | str
    lines: list[CheckoutLine]
    commune: str = ''
    address: str = ''
    is_stopdesk: bool = False
    stopdesk_id: int | None = None
    calculated_shipping: int | None = None  # price the customer was shown, DZD
    email: str = ''
    notes: str = ''
    user: User | None = None


@dataclass(frozen=True)
class CheckoutError:
    """
    Why a checkout was refused.

    code is one of CheckoutError.INVALID (400), SHIPPING_CHANGED (409, carries the
    server quote), UNDELIVERABLE (422) or PERSISTENCE (500).
    """
    INVALID: ClassVar[str] = 'invalid'
    SHIPPING_CHANGED: ClassVar[str] = 'shipping_changed'
    UNDELIVERABLE: ClassVar[str] = 'undeliverable'
    PERSISTENCE: ClassVar[str] = 'persistence'

    code: str
    message: str
    field: str | None = None
    quote: ShippingQuote | None = None

    @classmethod
    def invalid(cls, field_name: str, message: str) -> CheckoutError:
        return cls(cls.INVALID, message, field=field_name)


@dataclass
class ShipmentOverrides:
    """Staff-measured parcel values that replace the computed ones"""
    length_cm: int | None = None
    width_cm: int | None = None
    height_cm: int | None = None
    weight_gr: int | None = None
    extra: dict[str, Any] = field(default_factory=dict)


# ===============================================================================
# CARRIER STATUS MAPPING
# ===============================================================================

def _fold_status(value: str) -> str:
    decomposed = unicodedata.normalize('NFKD', value.strip().lower().replace('_', ' '))
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


CARRIER_STATUS_MAP: dict[str, str] = {
    # Carrier hand-over and transit
    'picked up': Order.STATUS_SHIPPED,
    'ramasse': Order.STATUS_SHIPPED,
    'expedie': Order.STATUS_SHIPPED,
    'shipped': Order.STATUS_SHIPPED,
    'in transit': Order.STATUS_SHIPPED,
    'en transit': Order.STATUS_SHIPPED,
    'centre': Order.STATUS_SHIPPED,
    'out for delivery': Order.STATUS_SHIPPED,
    'sorti en livraison': Order.STATUS_SHIPPED,
    # Delivered
    'delivered': Order.STATUS_DELIVERED,
    'livre': Order.STATUS_DELIVERED,
    'remis': Order.STATUS_DELIVERED,
    'complete': Order.STATUS_DELIVERED,
    'completed': Order.STATUS_DELIVERED,
    # Back to the shop
    'returned': Order.STATUS_RETURNED,
    'retourne': Order.STATUS_RETURNED,
    'retourne au vendeur': Order.STATUS_RETURNED,
    # Delivery failed
    'failed': Order.STATUS_FAILED,
    'failed delivery': Order.STATUS_FAILED,
    'echec livraison': Order.STATUS_FAILED,
    'echec de livraison': Order.STATUS_FAILED,
    # Cancelled at the carrier
    'cancelled': Order.STATUS_CANCELLED,
    'canceled': Order.STATUS_CANCELLED,
    'annule': Order.STATUS_CANCELLED,
}


def map_carrier_status(carrier_status: str | None) -> str | None:
    """Order status for a carrier status label, None when it does not move the order"""
    if not carrier_status:
        return None
    return CARRIER_STATUS_MAP.get(_fold_status(carrier_status))


# ===============================================================================
# CHECKOUT SERVICE
# ===============================================================================

class CheckoutService:
    """🛒 Cash-on-delivery checkout"""

    @staticmethod
    def place_order(request: CheckoutRequest, client: YalidineClient | None = None) -> Result[Order, CheckoutError]:
        """
        Validate, re-price shipping on the server and persist the order.

        Validation happens before any carrier call. The customer is charged the
        server quote; a client estimate that disagrees is refused with the quote
        so the storefront can ask for confirmation.
        """
        customer_name = (request.customer_name or '').strip()
        if not customer_name:
            return Err(CheckoutError.invalid('customerName', "Name is required"))

        phone_result = validate_algerian_phone(request.phone)
        if phone_result.is_err():
            return Err(CheckoutError.invalid('phone', phone_result.error))

        if len(request.notes or '') > MAX_NOTES_LENGTH:
            return Err(CheckoutError.invalid('notes', f"Notes must be at most {MAX_NOTES_LENGTH} characters"))

        try:
            destination = ShippingDestination.build(
                wilaya=request.wilaya,
                commune=request.commune,
                is_stopdesk=request.is_stopdesk,
                stopdesk_id=request.stopdesk_id,
            )
            line_items = CheckoutService.load_line_items(request.lines)
            parcel = compute_parcel(line_items)
        except ValidationError as e:
            return Err(CheckoutError.invalid(e.field, e.message))

        quote_result = ShippingService.estimate_shipping_cost(parcel, destination, client=client)
        if quote_result.is_err():
            return Err(CheckoutError(CheckoutError.UNDELIVERABLE, quote_result.error, field='wilaya'))
        quote = quote_result.unwrap()

        verified = ShippingService.verify_client_estimate(request.calculated_shipping, quote)
        if verified.is_err():
            return Err(CheckoutError(CheckoutError.SHIPPING_CHANGED, verified.error, field='calculatedShipping', quote=quote))

        try:
            order = CheckoutService._create_order(request, customer_name, phone_result.unwrap(), destination, parcel, line_items, quote)
        except DatabaseError:
            logger.exception(f"🔥 [Checkout] Could not save order for {customer_name}")
            return Err(CheckoutError(CheckoutError.PERSISTENCE, "The order could not be saved"))

        logger.info(
            f"✅ [Checkout] Order {order.order_number} placed: {len(line_items)} line(s), "
            f"total {order.total_cents / 100:.2f} DZD, shipping {quote.cost} DZD ({quote.source})"
        )
        return Ok(order)

    @staticmethod
    def load_line_items(lines: list[CheckoutLine]) -> list[CartLineItem]:
        """Cart lines priced and measured from the catalog, never from client input"""
        if not lines:
            raise ValidationError('items', "Cart is empty")

        quantities: OrderedDict[uuid.UUID, int] = OrderedDict()
        for line in lines:
            if not 1 <= line.quantity <= MAX_LINE_QUANTITY:
                raise ValidationError('items', f"Quantity must be between 1 and {MAX_LINE_QUANTITY}")
            quantities[line.product_id] = quantities.get(line.product_id, 0) + line.quantity

        products = Product.objects.filter(id__in=quantities.keys(), is_active=True).in_bulk()
        missing = [str(product_id) for product_id in quantities if product_id not in products]
        if missing:
            raise ValidationError('items', f"Products unavailable: {', '.join(missing)}")

        items = []
        for product_id, quantity in quantities.items():
            product = products[product_id]
            length_cm, width_cm, height_cm = product.packing_dimensions
            items.append(
                CartLineItem(
                    name=product.name,
                    sku=product.sku,
                    quantity=quantity,
                    weight_gr=product.weight_gr,
                    length_cm=length_cm,
                    width_cm=width_cm,
                    height_cm=height_cm,
                    product_id=str(product.id),
                    unit_price_cents=product.price_cents,
                )
            )
        return items

    @staticmethod
    def _create_order(  # noqa: PLR0913
        request: CheckoutRequest,
        customer_name: str,
        phone: str,
        destination: ShippingDestination,
        parcel: Parcel,
        line_items: list[CartLineItem],
        quote: ShippingQuote,
    ) -> Order:
        subtotal_cents = sum(item.line_total_cents for item in line_items)

        with transaction.atomic():
            order = Order.objects.create(
                user=request.user if request.user is not None and request.user.is_authenticated else None,
                customer_name=customer_name,
                customer_phone=phone,
                customer_email=(request.email or '').strip(),
                wilaya_id=destination.wilaya_id,
                wilaya_name=destination.wilaya_name,
                commune_name=quote.commune_name or destination.commune_name,
                address=(request.address or '').strip(),
                is_stopdesk=destination.is_stopdesk,
                stopdesk_id=destination.stopdesk_id,
                subtotal_cents=subtotal_cents,
                shipping_cents=quote.cost_cents,
                total_cents=subtotal_cents + quote.cost_cents,
                shipping_quote_source=quote.source,
                parcel_weight_gr=parcel.total_weight_gr,
                parcel_length_cm=parcel.length_cm,
                parcel_width_cm=parcel.width_cm,
                parcel_height_cm=parcel.height_cm,
                notes=(request.notes or '').strip(),
            )
            OrderItem.objects.bulk_create([
                OrderItem(
                    order=order,
                    product_id=item.product_id,
                    product_name=item.name,
                    product_sku=item.sku,
                    quantity=item.quantity,
                    unit_price_cents=item.unit_price_cents,
                    line_total_cents=item.line_total_cents,
                    weight_gr=item.weight_gr,
                )
                for item in line_items
            ])
            OrderService._create_status_history(order, None, Order.STATUS_PENDING, "Order placed", request.user)

            event_bus.publish_on_commit(
                OrderPlaced(
                    order_id=str(order.id),
                    order_number=order.order_number,
                    user_id=order.user_id,
                    customer_name=order.customer_name,
                    total_cents=order.total_cents,
                    wilaya_name=order.wilaya_name,
                )
            )
        return order


# ===============================================================================
# MAIN ORDER SERVICE
# ===============================================================================

class OrderService:
    """📦 Order lifecycle after checkout"""

    VALID_TRANSITIONS: ClassVar[dict[str, tuple[str, ...]]] = {
        Order.STATUS_PENDING: (Order.STATUS_CONFIRMED, Order.STATUS_SHIPPED, Order.STATUS_CANCELLED),
        Order.STATUS_CONFIRMED: (Order.STATUS_SHIPPED, Order.STATUS_CANCELLED),
        Order.STATUS_SHIPPED: (Order.STATUS_DELIVERED, Order.STATUS_RETURNED, Order.STATUS_FAILED),
        Order.STATUS_FAILED: (Order.STATUS_SHIPPED, Order.STATUS_RETURNED, Order.STATUS_CANCELLED),
        Order.STATUS_DELIVERED: (),
        Order.STATUS_RETURNED: (),
        Order.STATUS_CANCELLED: (),
    }

    @staticmethod
    def is_valid_transition(old_status: str, new_status: str) -> bool:
        return new_status in OrderService.VALID_TRANSITIONS.get(old_status, ())

    @staticmethod
    def update_status(
        order: Order,
        new_status: str,
        changed_by: User | None = None,
        reason: str = '',
        is_automatic: bool = False,
    ) -> Result[Order, str]:
        """Move an order to new_status with a history entry"""
        old_status = order.status
        if not OrderService.is_valid_transition(old_status, new_status):
            return Err(f"Invalid status transition from {old_status} to {new_status}")

        now = timezone.now()
        order.status = new_status
        fields = ['status', 'updated_at']
        if new_status == Order.STATUS_SHIPPED and order.shipped_at is None:
            order.shipped_at = now
            fields.append('shipped_at')
        if new_status == Order.STATUS_DELIVERED:
            order.delivered_at = now
            fields.append('delivered_at')

        with transaction.atomic():
            order.save(update_fields=fields)
            OrderService._create_status_history(order, old_status, new_status, reason, changed_by, is_automatic)

        logger.info(f"📦 [Orders] {order.order_number}: {old_status} → {new_status}")
        return Ok(order)

    @staticmethod
    def apply_carrier_status(order: Order, carrier_status: str) -> Result[Order, str]:
        """
        Record a carrier status for a shipped order.

        The carrier label is always stored; the order moves only when the label
        maps to a reachable status. ShipmentUpdated is published after commit.
        """
        with transaction.atomic():
            order = Order.objects.select_for_update().get(pk=order.pk)
            if order.carrier_status == carrier_status:
                return Ok(order)

            order.carrier_status = carrier_status
            order.save(update_fields=['carrier_status', 'updated_at'])

            new_status = map_carrier_status(carrier_status)
            if new_status and new_status != order.status:
                if OrderService.is_valid_transition(order.status, new_status):
                    OrderService.update_status(
                        order, new_status, reason=f"Carrier status: {carrier_status}", is_automatic=True
                    )
                else:
                    logger.warning(
                        f"⚠️ [Orders] {order.order_number}: carrier status '{carrier_status}' "
                        f"cannot move order from {order.status} to {new_status}"
                    )

            event_bus.publish_on_commit(
                ShipmentUpdated(
                    order_id=str(order.id),
                    order_number=order.order_number,
                    user_id=order.user_id,
                    tracking_number=order.tracking_number,
                    carrier_status=carrier_status,
                    order_status=order.status,
                )
            )
        return Ok(order)

    @staticmethod
    def refresh_carrier_status(order: Order, client: YalidineClient | None = None) -> Result[Order, str]:
        """Poll Yalidine for the parcel's latest status (for carriers that missed a webhook)"""
        if not order.tracking_number:
            return Err(f"Order {order.order_number} has no tracking number")

        client = client or YalidineClient()
        result = client.get_parcel(order.tracking_number)
        if result.is_err():
            logger.warning(f"⚠️ [Orders] Tracking lookup for {order.tracking_number} failed: {result.error}")
            return Err(result.error)

        parcel = result.unwrap()
        carrier_status = parcel.get('last_status') or parcel.get('status')
        if not carrier_status:
            return Err(f"No carrier status for parcel {order.tracking_number}")
        return OrderService.apply_carrier_status(order, carrier_status)

    @staticmethod
    def create_shipment(
        order: Order,
        actor: User | None = None,
        overrides: ShipmentOverrides | None = None,
        client: YalidineClient | None = None,
    ) -> Result[Order, str]:
        """Register the parcel with Yalidine and mark the order shipped"""
        if not order.can_ship:
            return Err(f"Order {order.order_number} cannot be shipped in status {order.status}")

        overrides = overrides or ShipmentOverrides()
        try:
            parcel = apply_parcel_overrides(
                Parcel(order.parcel_weight_gr, order.parcel_length_cm, order.parcel_width_cm, order.parcel_height_cm),
                length_cm=overrides.length_cm,
                width_cm=overrides.width_cm,
                height_cm=overrides.height_cm,
                weight_gr=overrides.weight_gr,
            )
        except ValidationError as e:
            return Err(e.message)

        items = [
            CartLineItem(name=item.product_name, sku=item.product_sku, quantity=item.quantity, weight_gr=item.weight_gr)
            for item in order.items.all()
        ]
        client = client or YalidineClient()
        first_name, _sep, last_name = order.customer_name.partition(' ')
        payload = {
            'order_id': order.order_number,
            'from_wilaya_name': wilaya_name(client.config.from_wilaya_id),
            'firstname': first_name,
            'familyname': last_name or first_name,
            'contact_phone': order.customer_phone,
            'address': order.address or order.commune_name,
            'to_commune_name': order.commune_name,
            'to_wilaya_name': order.wilaya_name,
            'product_list': summarize_items(items),
            'price': order.total_cents // 100,
            'do_insurance': False,
            'declared_value': order.subtotal_cents // 100,
            'length': parcel.length_cm,
            'width': parcel.width_cm,
            'height': parcel.height_cm,
            'weight': parcel.weight_kg,
            'freeshipping': False,
            'is_stopdesk': order.is_stopdesk,
            'stopdesk_id': order.stopdesk_id,
            'has_exchange': False,
            **overrides.extra,
        }
        payload = {key: value for key, value in payload.items() if value is not None}

        result = client.create_parcel(payload)
        if result.is_err():
            logger.warning(f"⚠️ [Orders] Shipment for {order.order_number} refused: {result.error}")
            return Err(result.error)

        shipment = result.unwrap()
        with transaction.atomic():
            order.tracking_number = shipment['tracking']
            order.label_url = shipment.get('label_url') or ''
            order.carrier_status = shipment.get('status') or ''
            order.parcel_weight_gr = parcel.total_weight_gr
            order.parcel_length_cm = parcel.length_cm
            order.parcel_width_cm = parcel.width_cm
            order.parcel_height_cm = parcel.height_cm
            order.save(update_fields=[
                'tracking_number', 'label_url', 'carrier_status', 'parcel_weight_gr',
                'parcel_length_cm', 'parcel_width_cm', 'parcel_height_cm', 'updated_at',
            ])
            status_result = OrderService.update_status(
                order, Order.STATUS_SHIPPED, changed_by=actor, reason=f"Parcel {order.tracking_number} created"
            )

        log_security_event(
            'order_shipped',
            {
                'order_number': order.order_number,
                'tracking_number': order.tracking_number,
                'user_id': str(actor.id) if actor else None,
            },
        )
        return status_result

    @staticmethod
    def _create_status_history(  # noqa: PLR0913
        order: Order,
        old_status: str | None,
        new_status: str,
        reason: str,
        changed_by: User | None,
        is_automatic: bool = False,
    ) -> None:
        OrderStatusHistory.objects.create(
            order=order,
            old_status=old_status or '',
            new_status=new_status,
            reason=reason[:255],
            changed_by=changed_by if changed_by is not None and changed_by.is_authenticated else None,
            is_automatic=is_automatic,
        )


# ===============================================================================
# ORDER QUERY SERVICE
# ===============================================================================

class OrderQueryService:
    """Read-side helpers for the order API"""

    @staticmethod
    def orders_for_user(user: User, status: str | None = None) -> Any:
        queryset = Order.objects.filter(user=user).prefetch_related('items')
        if status:
            queryset = queryset.filter(status=status)
        return queryset.order_by('-created_at')

    @staticmethod
    def get_order_for_user(user: User, order_id: uuid.UUID) -> Order | None:
        """Owner-scoped lookup; staff see every order"""
        queryset = Order.objects.prefetch_related('items', 'status_history')
        if not user.is_staff:
            queryset = queryset.filter(user=user)
        return queryset.filter(id=order_id).first()

    @staticmethod
    def get_by_tracking(tracking_number: str) -> Order | None:
        if not tracking_number:
            return None
        return Order.objects.filter(tracking_number=tracking_number).first()
