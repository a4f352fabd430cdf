"""
📦 Checkout, carrier status mapping and shipment creation
"""

from unittest.mock import Mock

from django.contrib.auth import get_user_model
from django.test import SimpleTestCase, TestCase

from apps.common.types import Err, Ok
from apps.notifications.models import Notification
from apps.orders.models import Order
from apps.orders.services import (
    CheckoutError,
    CheckoutLine,
    CheckoutRequest,
    CheckoutService,
    OrderQueryService,
    OrderService,
    ShipmentOverrides,
    map_carrier_status,
)
from apps.products.models import Product
from apps.shipping.yalidine import FeeTable, YalidineClient
from tests.shipping.test_shipping_services import FEES_PAYLOAD

User = get_user_model()


def _fees_client(result=None):
    client = Mock(spec=YalidineClient)
    client.get_fees.return_value = result or Ok(FeeTable.from_payload(FEES_PAYLOAD, 16, 31))
    return client


class CarrierStatusMappingTests(SimpleTestCase):
    def test_french_and_english_labels(self):
        for label, expected in [
            ("Livré", Order.STATUS_DELIVERED),
            ("delivered", Order.STATUS_DELIVERED),
            ("EN_TRANSIT", Order.STATUS_SHIPPED),
            ("Sorti en livraison", Order.STATUS_SHIPPED),
            ("Échec de livraison", Order.STATUS_FAILED),
            ("Retourné au vendeur", Order.STATUS_RETURNED),
            ("Annulé", Order.STATUS_CANCELLED),
        ]:
            with self.subTest(label=label):
                self.assertEqual(map_carrier_status(label), expected)

    def test_unmapped_labels(self):
        for label in [None, "", "En préparation", "Tentative échouée"]:
            with self.subTest(label=label):
                self.assertIsNone(map_carrier_status(label))


class CheckoutServiceTestCase(TestCase):
    def setUp(self):
        self.customer = User.objects.create_user(email="client@compucar.dz", password="testpass123")
        self.admin = User.objects.create_user(
            email="admin@compucar.dz", password="testpass123", is_staff=True, staff_role="super_admin"
        )
        self.scanner = Product.objects.create(
            slug="obd-scanner", name="OBD2 Scanner", sku="OBD-01", price_cents=450_000,
            weight_gr=800, length_cm=25, width_cm=18, height_cm=6,
        )
        self.cable = Product.objects.create(slug="k-line", name="K-Line Cable", price_cents=150_000, weight_gr=200)

    def _request(self, **overrides):
        values = {
            "customer_name": "Amine Benali",
            "phone": "0550 12 34 56",
            "wilaya": "Oran",
            "commune": "Oran",
            "lines": [CheckoutLine(self.scanner.id, 1)],
            "calculated_shipping": 600,
            "user": self.customer,
        }
        values.update(overrides)
        return CheckoutRequest(**values)


class PlaceOrderTests(CheckoutServiceTestCase):
    def test_order_uses_catalog_prices_and_server_shipping(self):
        with self.captureOnCommitCallbacks(execute=True):
            order = CheckoutService.place_order(self._request(), client=_fees_client()).unwrap()

        self.assertEqual(order.order_number, "COD-000001")
        self.assertEqual(order.status, Order.STATUS_PENDING)
        self.assertEqual(order.customer_phone, "0550123456")
        self.assertEqual((order.subtotal_cents, order.shipping_cents, order.total_cents), (450_000, 60_000, 510_000))
        self.assertEqual(order.shipping_quote_source, "carrier")
        self.assertEqual(order.parcel_weight_gr, 800)
        self.assertEqual(order.items.get().product_name, "OBD2 Scanner")
        self.assertEqual(order.status_history.get().new_status, Order.STATUS_PENDING)

        self.assertTrue(Notification.objects.filter(recipient=self.customer, notification_type="order_placed").exists())
        self.assertTrue(Notification.objects.filter(recipient=self.admin, notification_type="order_placed").exists())

    def test_order_numbers_are_sequential(self):
        first = CheckoutService.place_order(self._request(), client=_fees_client()).unwrap()
        second = CheckoutService.place_order(self._request(), client=_fees_client()).unwrap()
        self.assertEqual((first.order_number, second.order_number), ("COD-000001", "COD-000002"))

    def test_duplicate_lines_are_merged(self):
        lines = [CheckoutLine(self.cable.id, 1), CheckoutLine(self.cable.id, 2), CheckoutLine(self.scanner.id, 1)]
        order = CheckoutService.place_order(self._request(lines=lines), client=_fees_client()).unwrap()

        cable_line = order.items.get(product_sku="")
        self.assertEqual(cable_line.quantity, 3)
        self.assertEqual(order.subtotal_cents, 3 * 150_000 + 450_000)

    def test_shipping_mismatch_returns_server_quote(self):
        result = CheckoutService.place_order(self._request(calculated_shipping=450), client=_fees_client())

        error = result.error
        self.assertEqual(error.code, CheckoutError.SHIPPING_CHANGED)
        self.assertEqual(error.quote.cost, 600)
        self.assertFalse(Order.objects.exists())

    def test_invalid_input_stops_before_carrier(self):
        client = _fees_client()
        for overrides, field in [
            ({"customer_name": "  "}, "customerName"),
            ({"phone": "12345"}, "phone"),
            ({"wilaya": "Atlantis"}, "wilaya"),
            ({"commune": ""}, "commune"),
            ({"lines": []}, "items"),
            ({"lines": [CheckoutLine(self.scanner.id, 0)]}, "items"),
        ]:
            with self.subTest(field=field):
                error = CheckoutService.place_order(self._request(**overrides), client=client).error
                self.assertEqual((error.code, error.field), (CheckoutError.INVALID, field))
        client.get_fees.assert_not_called()

    def test_inactive_product_rejected(self):
        self.scanner.is_active = False
        self.scanner.save()
        error = CheckoutService.place_order(self._request(), client=_fees_client()).error
        self.assertEqual(error.field, "items")

    def test_stopdesk_not_served_is_undeliverable(self):
        request = self._request(commune="", is_stopdesk=True, stopdesk_id=902)
        error = CheckoutService.place_order(request, client=_fees_client()).error
        self.assertEqual(error.code, CheckoutError.UNDELIVERABLE)

    def test_carrier_down_charges_fallback_when_customer_saw_it(self):
        client = _fees_client(Err("Connection failed"))
        mismatch = CheckoutService.place_order(self._request(), client=client).error
        self.assertFalse(mismatch.quote.is_confirmed)

        order = CheckoutService.place_order(
            self._request(calculated_shipping=mismatch.quote.cost), client=client
        ).unwrap()
        self.assertEqual(order.shipping_quote_source, "fallback")

    def test_guest_checkout(self):
        order = CheckoutService.place_order(self._request(user=None), client=_fees_client()).unwrap()
        self.assertIsNone(order.user)


class OrderLifecycleTests(CheckoutServiceTestCase):
    def setUp(self):
        super().setUp()
        self.order = CheckoutService.place_order(self._request(), client=_fees_client()).unwrap()

    def _carrier(self, result):
        client = Mock()
        client.config.from_wilaya_id = 16
        client.create_parcel.return_value = result
        return client

    def test_status_transitions(self):
        self.assertTrue(OrderService.update_status(self.order, Order.STATUS_CONFIRMED, self.admin).is_ok())
        self.assertTrue(OrderService.update_status(self.order, Order.STATUS_DELIVERED, self.admin).is_err())
        self.assertTrue(OrderService.update_status(self.order, Order.STATUS_CANCELLED, self.admin).is_ok())
        self.assertTrue(OrderService.update_status(self.order, Order.STATUS_CONFIRMED, self.admin).is_err())

    def test_create_shipment(self):
        client = self._carrier(Ok({"tracking": "yal-NEW001", "label_url": "https://label/1", "status": "created"}))

        order = OrderService.create_shipment(
            self.order, actor=self.admin, overrides=ShipmentOverrides(height_cm=10), client=client
        ).unwrap()

        self.assertEqual(order.status, Order.STATUS_SHIPPED)
        self.assertEqual(order.tracking_number, "yal-NEW001")
        self.assertIsNotNone(order.shipped_at)
        self.assertEqual(order.parcel_height_cm, 10)

        payload = client.create_parcel.call_args.args[0]
        self.assertEqual(payload["order_id"], "COD-000001")
        self.assertEqual((payload["firstname"], payload["familyname"]), ("Amine", "Benali"))
        self.assertEqual(payload["price"], 5100)
        self.assertEqual(payload["from_wilaya_name"], "Alger")
        self.assertEqual(payload["product_list"], "OBD2 Scanner (OBD-01)")
        self.assertNotIn("stopdesk_id", payload)

        self.assertFalse(order.can_ship)
        self.assertTrue(OrderService.create_shipment(order, client=client).is_err())

    def test_carrier_refusal_leaves_order(self):
        result = OrderService.create_shipment(self.order, client=self._carrier(Err("Commune invalide")))
        self.assertEqual(result.error, "Commune invalide")
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, Order.STATUS_PENDING)
        self.assertEqual(self.order.tracking_number, "")

    def test_carrier_status_moves_shipped_order(self):
        OrderService.create_shipment(self.order, client=self._carrier(Ok({"tracking": "yal-NEW001"}))).unwrap()

        with self.captureOnCommitCallbacks(execute=True):
            order = OrderService.apply_carrier_status(self.order, "Retourné").unwrap()

        self.assertEqual(order.status, Order.STATUS_RETURNED)
        self.assertTrue(Notification.objects.filter(recipient=self.admin, notification_type="shipment_update").exists())
        self.assertEqual(OrderQueryService.get_by_tracking("yal-NEW001"), order)

    def test_unreachable_carrier_status_is_only_recorded(self):
        with self.assertLogs("apps.orders.services", level="WARNING"):
            order = OrderService.apply_carrier_status(self.order, "Livré").unwrap()
        self.assertEqual(order.status, Order.STATUS_PENDING)
        self.assertEqual(order.carrier_status, "Livré")

    def test_refresh_carrier_status_polls_parcel(self):
        OrderService.create_shipment(self.order, client=self._carrier(Ok({"tracking": "yal-NEW001"}))).unwrap()
        client = Mock(spec=YalidineClient)
        client.get_parcel.return_value = Ok({"tracking": "yal-NEW001", "last_status": "Livré"})

        order = OrderService.refresh_carrier_status(self.order, client=client).unwrap()

        client.get_parcel.assert_called_once_with("yal-NEW001")
        self.assertEqual(order.status, Order.STATUS_DELIVERED)
        self.assertEqual(order.carrier_status, "Livré")

    def test_refresh_carrier_status_errors(self):
        client = Mock(spec=YalidineClient)
        self.assertTrue(OrderService.refresh_carrier_status(self.order, client=client).is_err())
        client.get_parcel.assert_not_called()

        OrderService.create_shipment(self.order, client=self._carrier(Ok({"tracking": "yal-NEW001"}))).unwrap()
        client.get_parcel.return_value = Err("Yalidine API unavailable")
        with self.assertLogs("apps.orders.services", level="WARNING"):
            result = OrderService.refresh_carrier_status(self.order, client=client)
        self.assertEqual(result.error, "Yalidine API unavailable")

        client.get_parcel.return_value = Ok({"tracking": "yal-NEW001"})
        self.assertTrue(OrderService.refresh_carrier_status(self.order, client=client).is_err())
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, Order.STATUS_SHIPPED)

    def test_owner_scoped_lookup(self):
        other = User.objects.create_user(email="other@compucar.dz", password="testpass123")
        self.assertEqual(OrderQueryService.get_order_for_user(self.customer, self.order.id), self.order)
        self.assertIsNone(OrderQueryService.get_order_for_user(other, self.order.id))
        self.assertEqual(OrderQueryService.get_order_for_user(self.admin, self.order.id), self.order)
