"""
🛒 Checkout and order API endpoints
"""

from unittest.mock import patch

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.urls import reverse
from rest_framework.test import APIClient

from apps.common.types import Err, Ok
from apps.orders.models import Order
from apps.products.models import Product
from apps.shipping.yalidine import FeeTable
from tests.shipping.test_shipping_services import FEES_PAYLOAD

User = get_user_model()


@patch("apps.shipping.yalidine.YalidineClient.get_fees", return_value=Ok(FeeTable.from_payload(FEES_PAYLOAD, 16, 31)))
class CheckoutApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.product = Product.objects.create(
            slug="obd-scanner", name="OBD2 Scanner", sku="OBD-01", price_cents=450_000,
            weight_gr=800, length_cm=25, width_cm=18, height_cm=6,
        )
        self.url = reverse("orders:checkout")

    def _payload(self, **overrides):
        payload = {
            "customerName": "Amine Benali",
            "phone": "0550123456",
            "wilaya": "Oran",
            "commune": "Oran",
            "address": "12 rue Larbi Ben M'hidi",
            "calculatedShipping": 600,
            "items": [{"productId": str(self.product.id), "quantity": 1}],
        }
        payload.update(overrides)
        return payload

    def test_guest_checkout(self, _fees):
        response = self.client.post(self.url, self._payload(), format="json")

        self.assertEqual(response.status_code, 201)
        data = response.json()["data"]
        self.assertEqual(data["order_number"], "COD-000001")
        self.assertEqual(data["total_cents"], 510_000)
        self.assertEqual(data["status_history"][0]["new_status"], "PENDING")

    def test_signed_in_checkout_links_account(self, _fees):
        customer = User.objects.create_user(email="client@compucar.dz", password="testpass123")
        self.client.force_authenticate(customer)
        self.client.post(self.url, self._payload(), format="json")
        self.assertEqual(Order.objects.get().user, customer)

    def test_shipping_changed(self, _fees):
        response = self.client.post(self.url, self._payload(calculatedShipping=500), format="json")

        self.assertEqual(response.status_code, 409)
        body = response.json()
        self.assertEqual(body["code"], "shipping_changed")
        self.assertEqual(body["shipping"]["cost"], 600)
        self.assertTrue(body["shipping"]["isConfirmed"])

    def test_invalid_phone(self, _fees):
        response = self.client.post(self.url, self._payload(phone="123"), format="json")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["field"], "phone")

    def test_malformed_body(self, _fees):
        response = self.client.post(self.url, self._payload(items=[]), format="json")
        self.assertEqual(response.status_code, 400)
        self.assertIn("items", response.json()["errors"])

    def test_undeliverable(self, _fees):
        payload = self._payload(commune="", isStopdesk=True, stopdeskId=902)
        response = self.client.post(self.url, payload, format="json")
        self.assertEqual(response.status_code, 422)


class OrderApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.customer = User.objects.create_user(email="client@compucar.dz", password="testpass123")
        self.other = User.objects.create_user(email="other@compucar.dz", password="testpass123")
        self.admin = User.objects.create_user(
            email="admin@compucar.dz", password="testpass123", is_staff=True, staff_role="super_admin"
        )
        self.order = Order.objects.create(
            user=self.customer, customer_name="Amine Benali", customer_phone="0550123456",
            wilaya_id=31, wilaya_name="Oran", commune_name="Oran",
            subtotal_cents=450_000, shipping_cents=60_000, total_cents=510_000,
            parcel_weight_gr=800, parcel_length_cm=25, parcel_width_cm=18, parcel_height_cm=6,
        )

    def test_list_only_own_orders(self):
        Order.objects.create(user=self.other, customer_name="X", customer_phone="0661000000", wilaya_id=16, wilaya_name="Alger")
        self.client.force_authenticate(self.customer)
        body = self.client.get(reverse("orders:order_list")).json()
        self.assertEqual([row["order_number"] for row in body["results"]], [self.order.order_number])

    def test_detail_hidden_from_other_customers(self):
        self.client.force_authenticate(self.other)
        response = self.client.get(reverse("orders:order_detail", args=[self.order.id]))
        self.assertEqual(response.status_code, 404)

    def test_staff_confirms_order(self):
        self.client.force_authenticate(self.admin)
        response = self.client.post(
            reverse("orders:admin_update_status", args=[self.order.id]),
            {"status": "CONFIRMED", "reason": "Phone confirmed"},
            format="json",
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["data"]["status"], "CONFIRMED")

    def test_customer_cannot_ship(self):
        self.client.force_authenticate(self.customer)
        response = self.client.post(reverse("orders:admin_create_shipment", args=[self.order.id]), {}, format="json")
        self.assertEqual(response.status_code, 403)

    @patch("apps.shipping.yalidine.YalidineClient.create_parcel")
    def test_ship(self, mock_create):
        mock_create.return_value = Ok({"tracking": "yal-XYZ789", "label_url": "", "status": "created"})
        self.client.force_authenticate(self.admin)

        response = self.client.post(
            reverse("orders:admin_create_shipment", args=[self.order.id]), {"weightGr": 1000}, format="json"
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["data"]["tracking_number"], "yal-XYZ789")
        self.assertEqual(mock_create.call_args.args[0]["weight"], 1)

        again = self.client.post(reverse("orders:admin_create_shipment", args=[self.order.id]), {}, format="json")
        self.assertEqual(again.status_code, 409)

    @patch("apps.shipping.yalidine.YalidineClient.create_parcel", return_value=Err("Commune invalide"))
    def test_ship_refused_by_carrier(self, _mock):
        self.client.force_authenticate(self.admin)
        response = self.client.post(reverse("orders:admin_create_shipment", args=[self.order.id]), {}, format="json")
        self.assertEqual(response.status_code, 502)

    @patch("apps.shipping.yalidine.YalidineClient.get_parcel")
    def test_refresh_tracking(self, mock_get_parcel):
        mock_get_parcel.return_value = Ok({"tracking": "yal-XYZ789", "last_status": "Livré"})
        url = reverse("orders:admin_refresh_tracking", args=[self.order.id])

        self.client.force_authenticate(self.customer)
        self.assertEqual(self.client.post(url).status_code, 403)

        self.client.force_authenticate(self.admin)
        self.assertEqual(self.client.post(url).status_code, 409)
        mock_get_parcel.assert_not_called()

        Order.objects.filter(pk=self.order.pk).update(status=Order.STATUS_SHIPPED, tracking_number="yal-XYZ789")
        response = self.client.post(url)

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["data"]["status"], "DELIVERED")
        mock_get_parcel.assert_called_once_with("yal-XYZ789")

    @patch("apps.shipping.yalidine.YalidineClient.get_parcel", return_value=Err("Yalidine API unavailable"))
    def test_refresh_tracking_carrier_down(self, _mock):
        Order.objects.filter(pk=self.order.pk).update(status=Order.STATUS_SHIPPED, tracking_number="yal-XYZ789")
        self.client.force_authenticate(self.admin)

        response = self.client.post(reverse("orders:admin_refresh_tracking", args=[self.order.id]))

        self.assertEqual(response.status_code, 502)
        self.assertEqual(response.json()["error"], "Yalidine API unavailable")
