"""
📡 Live update registry and SSE framing
"""

import json

from django.test import SimpleTestCase

from apps.notifications.realtime import ConnectionRegistry, Subscription, event_stream, format_sse, registry


class ConnectionRegistryTests(SimpleTestCase):
    def setUp(self):
        self.registry = ConnectionRegistry()

    def test_update_reaches_every_stream_of_the_user(self):
        laptop = self.registry.subscribe(7)
        phone = self.registry.subscribe(7)
        stranger = self.registry.subscribe(8)

        self.assertTrue(self.registry.send_update_to_user(7, {"type": "file_status_update"}))

        for subscription in (laptop, phone):
            message = subscription.get(timeout=0)
            self.assertEqual(message["type"], "file_status_update")
            self.assertIn("timestamp", message)
        self.assertIsNone(stranger.get(timeout=0))

    def test_offline_user(self):
        self.assertFalse(self.registry.send_update_to_user(99, {"type": "notification"}))

    def test_unsubscribe(self):
        subscription = self.registry.subscribe(7)
        self.assertTrue(self.registry.is_user_connected(7))
        self.registry.unsubscribe(subscription)
        self.assertFalse(self.registry.is_user_connected(7))

    def test_full_queue_drops_update(self):
        subscription = Subscription(1, maxsize=1)
        self.assertTrue(subscription.offer({"n": 1}))
        with self.assertLogs("apps.notifications.realtime", level="WARNING"):
            self.assertFalse(subscription.offer({"n": 2}))


class EventStreamTests(SimpleTestCase):
    def tearDown(self):
        registry.clear()

    def test_format_sse(self):
        frame = format_sse({"type": "notification", "title": "Prêt"})
        self.assertTrue(frame.startswith("data: "))
        self.assertTrue(frame.endswith("\n\n"))
        self.assertEqual(json.loads(frame[len("data: "):])["title"], "Prêt")

    def test_stream_sequence(self):
        stream = event_stream(5, keepalive_seconds=0.01)
        self.assertFalse(registry.is_user_connected(5))

        self.assertEqual(json.loads(next(stream)[6:])["type"], "connection")
        self.assertEqual(next(stream), ": keep-alive\n\n")

        registry.send_update_to_user(5, {"type": "estimated_time_update", "timeText": "2 hours"})
        self.assertEqual(json.loads(next(stream)[6:])["timeText"], "2 hours")

        stream.close()
        self.assertFalse(registry.is_user_connected(5))

    def test_unstarted_stream_never_subscribes(self):
        stream = event_stream(5)
        stream.close()
        self.assertFalse(registry.is_user_connected(5))
        self.assertFalse(registry.send_update_to_user(5, {"type": "notification"}))
