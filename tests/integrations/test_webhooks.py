"""
🔄 Inbound webhooks: Telegram bot updates and Yalidine parcel statuses
"""

import hashlib
import hmac
import json
from unittest.mock import patch

from django.contrib.auth import get_user_model
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import TestCase, override_settings
from django.urls import reverse

from apps.integrations.models import WebhookEvent
from apps.integrations.webhooks.base import get_webhook_processor, verify_hmac_signature, verify_shared_secret
from apps.orders.models import Order
from apps.tuning.models import TuningAuditEntry
from apps.tuning.services import TuningFileService

User = get_user_model()

ADMIN_CHAT_ID = "-100500"
TELEGRAM_SECRET = "test-telegram-secret"
YALIDINE_SECRET = "test-yalidine-secret"


class SignatureHelperTests(TestCase):
    def test_hmac(self):
        body = b'{"a": 1}'
        signature = hmac.new(b"secret", body, hashlib.sha256).hexdigest()
        self.assertTrue(verify_hmac_signature(body, signature, "secret"))
        self.assertTrue(verify_hmac_signature(body, signature.upper(), "secret"))
        self.assertFalse(verify_hmac_signature(body, signature, "other"))
        self.assertFalse(verify_hmac_signature(body, "", "secret"))

    def test_shared_secret(self):
        self.assertTrue(verify_shared_secret("abc", "abc"))
        self.assertFalse(verify_shared_secret("abc", "abd"))
        self.assertFalse(verify_shared_secret("", ""))

    def test_processor_factory(self):
        self.assertEqual(get_webhook_processor("yalidine").source_name, "yalidine")
        self.assertEqual(get_webhook_processor("telegram_file_admin").bot_type, "file_admin")
        self.assertIsNone(get_webhook_processor("telegram_marketing"))
        self.assertIsNone(get_webhook_processor("stripe"))


@override_settings(
    TELEGRAM_SUPER_ADMIN_ENABLED=True,
    TELEGRAM_SUPER_ADMIN_BOT_TOKEN="123:abc",
    TELEGRAM_SUPER_ADMIN_CHAT_ID=ADMIN_CHAT_ID,
)
class TelegramWebhookTests(TestCase):
    def setUp(self):
        self.customer = User.objects.create_user(email="client@compucar.dz", password="testpass123")
        self.admin = User.objects.create_user(
            email="boss@compucar.dz", password="testpass123", is_staff=True,
            staff_role="super_admin", telegram_chat_id="4242",
        )
        upload = SimpleUploadedFile("golf.bin", b"ECU" * 50, content_type="application/octet-stream")
        self.tuning_file = TuningFileService.create_upload(self.customer, upload).unwrap()
        self.url = reverse("integrations:telegram_webhook", args=["super_admin"])
        self.update_id = 5000

    def _callback(self, data, chat_id=ADMIN_CHAT_ID, secret=TELEGRAM_SECRET):
        self.update_id += 1
        payload = {
            "update_id": self.update_id,
            "callback_query": {
                "id": f"cb-{self.update_id}",
                "from": {"id": 4242},
                "message": {"message_id": 9, "chat": {"id": int(chat_id)}},
                "data": data,
            },
        }
        return self._post(payload, secret)

    def _post(self, payload, secret=TELEGRAM_SECRET):
        return self.client.post(
            self.url, json.dumps(payload), content_type="application/json",
            HTTP_X_TELEGRAM_BOT_API_SECRET_TOKEN=secret,
        )

    def test_set_status_button(self):
        response = self._callback(f"sa_fs_{self.tuning_file.short_id}_PENDING")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["status"], "success")
        self.tuning_file.refresh_from_db()
        self.assertEqual(self.tuning_file.status, "PENDING")
        entry = TuningAuditEntry.objects.get(file=self.tuning_file)
        self.assertEqual((entry.source, entry.actor), ("telegram", self.admin))

    def test_ready_button_works_as_override(self):
        response = self._callback(f"sa_fs_{self.tuning_file.short_id}_READY")
        self.assertEqual(response.json()["status"], "success")
        self.tuning_file.refresh_from_db()
        self.assertEqual(self.tuning_file.status, "READY")

    def test_time_button(self):
        self._callback(f"sa_t_{self.tuning_file.short_id}_120")

        self.tuning_file.refresh_from_db()
        self.assertEqual(self.tuning_file.status, "PENDING")
        self.assertEqual(self.tuning_file.estimated_processing_time_minutes, 120)

    def test_bot_calls_wait_for_commit(self):
        with patch("apps.integrations.telegram.requests.post") as mock_post, \
                self.captureOnCommitCallbacks(execute=False) as callbacks:
            self._callback(f"sa_et_{self.tuning_file.short_id}")
        mock_post.assert_not_called()
        self.assertEqual(len(callbacks), 2)

    def test_unauthorized_chat(self):
        response = self._callback(f"sa_fs_{self.tuning_file.short_id}_READY", chat_id="-999")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["status"], "error")
        self.tuning_file.refresh_from_db()
        self.assertEqual(self.tuning_file.status, "RECEIVED")
        self.assertEqual(WebhookEvent.objects.get().status, "failed")

    def test_unknown_file(self):
        response = self._callback("sa_fs_00000000_READY")
        self.assertEqual(response.json()["status"], "error")

    def test_bad_secret(self):
        response = self._callback(f"sa_fs_{self.tuning_file.short_id}_READY", secret="nope")
        self.assertEqual(response.status_code, 403)
        self.assertFalse(WebhookEvent.objects.exists())

    def test_duplicate_update_is_applied_once(self):
        payload = {
            "update_id": 7000,
            "callback_query": {
                "id": "cb", "from": {"id": 4242},
                "message": {"message_id": 9, "chat": {"id": int(ADMIN_CHAT_ID)}},
                "data": f"sa_t_{self.tuning_file.short_id}_30",
            },
        }
        self._post(payload)
        second = self._post(payload)

        self.assertIn("Duplicate", second.json()["message"])
        self.assertEqual(TuningAuditEntry.objects.filter(file=self.tuning_file).count(), 1)

    def test_start_message(self):
        response = self._post({"update_id": 8000, "message": {"text": "/start", "chat": {"id": 4242}}})
        self.assertIn("4242", response.json()["message"])

    def test_unknown_bot_url(self):
        url = reverse("integrations:telegram_webhook", args=["marketing"])
        response = self.client.post(url, "{}", content_type="application/json")
        self.assertEqual(response.status_code, 400)

    def test_non_json_rejected(self):
        response = self.client.post(self.url, "update_id=1", content_type="application/x-www-form-urlencoded")
        self.assertEqual(response.status_code, 400)


class YalidineWebhookTests(TestCase):
    def setUp(self):
        self.customer = User.objects.create_user(email="client@compucar.dz", password="testpass123")
        self.order = Order.objects.create(
            user=self.customer, customer_name="Amine Benali", customer_phone="0550123456",
            wilaya_id=31, wilaya_name="Oran", commune_name="Oran", status=Order.STATUS_SHIPPED,
            tracking_number="yal-ABC123", subtotal_cents=450_000, shipping_cents=60_000, total_cents=510_000,
        )
        self.url = reverse("integrations:yalidine_webhook")

    def _post(self, payload, secret=YALIDINE_SECRET):
        body = json.dumps(payload).encode()
        signature = hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()
        return self.client.post(self.url, body, content_type="application/json", HTTP_X_YALIDINE_SIGNATURE=signature)

    def _status_payload(self, status, event_id="evt-1"):
        return {
            "type": "parcel_status_updated",
            "events": [{"event_id": event_id, "data": {"tracking": "yal-ABC123", "status": status}}],
        }

    def test_delivered(self):
        with self.captureOnCommitCallbacks(execute=True):
            response = self._post(self._status_payload("Livré"))

        self.assertEqual(response.status_code, 200)
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, Order.STATUS_DELIVERED)
        self.assertEqual(self.order.carrier_status, "Livré")
        self.assertIsNotNone(self.order.delivered_at)
        self.assertTrue(self.order.status_history.get(new_status=Order.STATUS_DELIVERED).is_automatic)
        self.assertTrue(self.customer.notifications.filter(notification_type="shipment_update").exists())

    def test_transit_status_only_recorded(self):
        self._post(self._status_payload("En transit"))
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, Order.STATUS_SHIPPED)
        self.assertEqual(self.order.carrier_status, "En transit")

    def test_bad_signature(self):
        response = self._post(self._status_payload("Livré"), secret="wrong")
        self.assertEqual(response.status_code, 403)
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, Order.STATUS_SHIPPED)

    def test_redelivery_is_skipped(self):
        self._post(self._status_payload("Livré"))
        response = self._post(self._status_payload("Livré"))
        self.assertIn("Duplicate", response.json()["message"])
        self.assertEqual(WebhookEvent.objects.filter(source="yalidine").count(), 1)

    def test_unknown_parcel_is_not_an_error(self):
        payload = {"type": "parcel_status_updated", "events": [{"event_id": "evt-9", "data": {"tracking": "yal-ZZZ", "status": "Livré"}}]}
        response = self._post(payload)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["message"], "No matching orders")

    def test_subscription_check_echoes_crc_token(self):
        response = self.client.get(self.url, {"subscribe": "parcel_status_updated", "crc_token": "abc123"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.content, b"abc123")
        self.assertEqual(self.client.get(self.url).status_code, 400)


class WebhookManagementTests(TestCase):
    def setUp(self):
        self.customer = User.objects.create_user(email="client@compucar.dz", password="testpass123")
        self.admin = User.objects.create_user(
            email="admin@compucar.dz", password="testpass123", is_staff=True, staff_role="super_admin"
        )
        self.order = Order.objects.create(
            user=self.customer, customer_name="Amine Benali", customer_phone="0550123456",
            wilaya_id=31, wilaya_name="Oran", status=Order.STATUS_SHIPPED, tracking_number="yal-ABC123",
        )
        self.failed = WebhookEvent.objects.create(
            source="yalidine", event_id="evt-42", event_type="parcel_status_updated", status="failed",
            payload={"type": "parcel_status_updated", "data": {"tracking": "yal-ABC123", "status": "Livré"}},
        )

    def test_status_is_staff_only(self):
        self.client.force_login(self.customer)
        self.assertEqual(self.client.get(reverse("integrations:webhook_status")).status_code, 403)

    def test_status_counts(self):
        self.client.force_login(self.admin)
        body = self.client.get(reverse("integrations:webhook_status")).json()
        self.assertEqual(body["stats"]["failed"], 1)
        self.assertEqual(body["by_source"]["yalidine"]["total"], 1)
        self.assertEqual(body["recent_webhooks"][0]["id"], str(self.failed.id))

    def test_retry_failed_event(self):
        self.client.force_login(self.admin)
        response = self.client.post(reverse("integrations:retry_webhook", args=[self.failed.id]))

        self.assertEqual(response.status_code, 200)
        self.failed.refresh_from_db()
        self.assertEqual(self.failed.status, "processed")
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, Order.STATUS_DELIVERED)

    def test_retry_rejects_processed_and_unknown(self):
        self.client.force_login(self.admin)
        self.failed.mark_processed()
        self.assertEqual(self.client.post(reverse("integrations:retry_webhook", args=[self.failed.id])).status_code, 400)

        unknown = reverse("integrations:retry_webhook", args=["00000000-0000-4000-8000-000000000000"])
        self.assertEqual(self.client.post(unknown).status_code, 404)
