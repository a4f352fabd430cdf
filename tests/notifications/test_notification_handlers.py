"""
🔔 Fan-out of domain events to the inbox, live streams and bots
"""

from decimal import Decimal
from unittest.mock import patch

from django.contrib.auth import get_user_model
from django.test import TestCase

from apps.integrations import telegram
from apps.notifications.events import (
    AdminCommentAdded,
    FilePriceSet,
    FileStatusChanged,
    FileUploaded,
    OrderPlaced,
    ShipmentUpdated,
    event_bus,
)
from apps.notifications.handlers import (
    forward_to_telegram,
    live_payload,
    notification_specs,
    persist_notifications,
    push_live_update,
)
from apps.notifications.models import Notification
from apps.notifications.realtime import registry
from apps.tuning.models import TuningFile

User = get_user_model()


class HandlerTestCase(TestCase):
    def setUp(self):
        self.customer = User.objects.create_user(email="client@compucar.dz", password="testpass123")
        self.admin = User.objects.create_user(
            email="admin@compucar.dz", password="testpass123", is_staff=True, staff_role="super_admin",
            first_name="Nadia", last_name="Haddad",
        )
        # Staff without a file role: sees orders, not tuning files
        self.clerk = User.objects.create_user(email="clerk@compucar.dz", password="testpass123", is_staff=True)
        self.tuning_file = TuningFile.objects.create(
            owner=self.customer, original_filename="golf.bin", original_file="tuning/original/golf.bin", file_size=2048
        )
        self.file_id = str(self.tuning_file.id)

    def tearDown(self):
        registry.clear()

    def _status_event(self, new_status="READY", old_status="PENDING"):
        return FileStatusChanged(
            file_id=self.file_id, owner_id=self.customer.pk, file_name="golf.bin",
            old_status=old_status, new_status=new_status, actor_id=self.admin.pk,
        )


class NotificationSpecTests(HandlerTestCase):
    def test_status_change_notifies_owner_then_file_admins(self):
        specs = notification_specs(self._status_event())

        self.assertEqual([spec.recipient_id for spec in specs], [self.customer.pk, self.admin.pk])
        self.assertEqual(specs[0].title, "Your file is ready")
        self.assertEqual(specs[0].priority, "high")
        self.assertEqual(specs[1].notification_type, Notification.TYPE_FILE_UPDATE_BY_ADMIN)
        self.assertEqual(specs[1].message, 'Nadia Haddad updated file "golf.bin": status changed to READY')

    def test_admin_note_notifies_file_admins(self):
        event = AdminCommentAdded(
            file_id=self.file_id, owner_id=self.customer.pk, file_name="golf.bin",
            note="Map tested on the dyno", actor_id=self.admin.pk,
        )
        specs = notification_specs(event)

        self.assertEqual(specs[0].notification_type, Notification.TYPE_ADMIN_COMMENT)
        self.assertEqual(specs[1].recipient_id, self.admin.pk)
        self.assertIn("admin notes updated", specs[1].message)

    def test_upload_notifies_owner_then_file_admins(self):
        event = FileUploaded(
            file_id=self.file_id, owner_id=self.customer.pk, file_name="golf.bin", file_size=2048,
            owner_email=self.customer.email,
        )
        specs = notification_specs(event)
        self.assertEqual([spec.recipient_id for spec in specs], [self.customer.pk, self.admin.pk])

    def test_guest_order_notifies_all_staff_only(self):
        event = OrderPlaced(
            order_id="1", order_number="COD-000001", user_id=None,
            customer_name="Amine", total_cents=480_000, wilaya_name="Oran",
        )
        specs = notification_specs(event)
        self.assertEqual({spec.recipient_id for spec in specs}, {self.admin.pk, self.clerk.pk})
        self.assertIn("4,800.00 DZD", specs[0].message)

    def test_in_transit_shipment_is_not_a_staff_alert(self):
        common = {"order_id": "1", "order_number": "COD-000001", "user_id": self.customer.pk, "tracking_number": "yal-1"}
        in_transit = ShipmentUpdated(**common, carrier_status="EN_TRANSIT", order_status="SHIPPED")
        returned = ShipmentUpdated(**common, carrier_status="RETOURNE", order_status="RETURNED")

        self.assertEqual(len(notification_specs(in_transit)), 1)
        self.assertEqual(len(notification_specs(returned)), 3)


class SubscriberTests(HandlerTestCase):
    def test_persist_creates_inbox_rows(self):
        persist_notifications(self._status_event(new_status="PENDING", old_status="RECEIVED"))

        notification = Notification.objects.get(recipient=self.customer)
        self.assertEqual(notification.notification_type, Notification.TYPE_FILE_STATUS)
        self.assertEqual(notification.tuning_file, self.tuning_file)
        self.assertEqual(notification.data, {"oldStatus": "RECEIVED", "newStatus": "PENDING"})
        self.assertTrue(
            Notification.objects.filter(recipient=self.admin, notification_type=Notification.TYPE_FILE_UPDATE_BY_ADMIN).exists()
        )

    def test_live_update_reaches_connected_owner(self):
        subscription = registry.subscribe(self.customer.pk)
        push_live_update(self._status_event())

        message = subscription.get(timeout=0)
        self.assertEqual(message["type"], "file_status_update")
        self.assertEqual(message["newStatus"], "READY")

    def test_price_payload(self):
        payload = live_payload(
            FilePriceSet(file_id=self.file_id, owner_id=self.customer.pk, file_name="golf.bin", price=Decimal("9000.00"))
        )
        self.assertEqual(payload["type"], "notification")
        self.assertEqual(payload["notificationType"], Notification.TYPE_FILE_PRICE)

    @patch("apps.notifications.handlers.queue_telegram_message")
    def test_upload_goes_to_both_admin_bots(self, mock_queue):
        forward_to_telegram(
            FileUploaded(file_id=self.file_id, owner_id=self.customer.pk, file_name="golf.bin", file_size=2048)
        )
        bots = [call.args[0] for call in mock_queue.call_args_list]
        self.assertEqual(bots, [telegram.BOT_FILE_ADMIN, telegram.BOT_SUPER_ADMIN])
        self.assertIn("inline_keyboard", mock_queue.call_args.kwargs["reply_markup"])

    @patch("apps.notifications.handlers.queue_telegram_message")
    def test_status_change_reaches_super_admin_bot(self, mock_queue):
        forward_to_telegram(self._status_event())

        mock_queue.assert_called_once()
        self.assertEqual(mock_queue.call_args.args[0], telegram.BOT_SUPER_ADMIN)
        self.assertIn("Nadia Haddad changed file status to READY", mock_queue.call_args.args[1])

    @patch("apps.notifications.handlers.queue_telegram_message")
    def test_customer_bot_only_with_linked_chat(self, mock_queue):
        forward_to_telegram(self._status_event())
        self.assertNotIn(telegram.BOT_CUSTOMER, [call.args[0] for call in mock_queue.call_args_list])

        self.customer.telegram_chat_id = "555000"
        self.customer.save(update_fields=["telegram_chat_id"])
        mock_queue.reset_mock()
        forward_to_telegram(self._status_event())

        self.assertEqual(mock_queue.call_args.args[0], telegram.BOT_CUSTOMER)
        self.assertEqual(mock_queue.call_args.kwargs["chat_id"], "555000")


class RegisteredHandlersTests(HandlerTestCase):
    def test_global_bus_runs_all_consumers(self):
        subscription = registry.subscribe(self.customer.pk)

        with self.captureOnCommitCallbacks(execute=True):
            event_bus.publish_on_commit(self._status_event())

        self.assertTrue(Notification.objects.filter(recipient=self.customer).exists())
        self.assertIsNotNone(subscription.get(timeout=0))

    @patch("apps.notifications.realtime.send_update_to_user", side_effect=RuntimeError("stream registry broken"))
    def test_live_push_failure_keeps_inbox_record(self, _mock_send):
        with self.assertLogs("apps.notifications.events", level="ERROR"):
            results = event_bus.publish(self._status_event())

        self.assertFalse(results["push_live_update"])
        self.assertTrue(results["persist_notifications"])
        self.assertTrue(
            Notification.objects.filter(recipient=self.customer, notification_type=Notification.TYPE_FILE_STATUS).exists()
        )
