"""
📣 Event bus tests
"""

from django.test import SimpleTestCase, TestCase

from apps.notifications.events import DomainEvent, EventBus, FileStatusChanged, FileUploaded


def _status_event(**overrides):
    values = {
        "file_id": "7b0c1f52-0000-0000-0000-000000000000",
        "owner_id": 1,
        "file_name": "golf.bin",
        "old_status": "RECEIVED",
        "new_status": "PENDING",
    }
    values.update(overrides)
    return FileStatusChanged(**values)


class EventBusTests(SimpleTestCase):
    def setUp(self):
        self.bus = EventBus()
        self.received = []

    def test_handlers_match_class_hierarchy_most_specific_first(self):
        self.bus.subscribe(DomainEvent, lambda e: self.received.append(("any", e.name)))
        self.bus.subscribe(FileStatusChanged, lambda e: self.received.append(("status", e.name)))

        self.bus.publish(_status_event())
        self.bus.publish(FileUploaded(file_id="x", owner_id=1, file_name="a.bin", file_size=10))

        self.assertEqual(
            self.received,
            [("status", "FileStatusChanged"), ("any", "FileStatusChanged"), ("any", "FileUploaded")],
        )

    def test_failing_handler_does_not_stop_others(self):
        def broken(event):
            raise RuntimeError("telegram down")

        def recorder(event):
            self.received.append(event)

        self.bus.subscribe(DomainEvent, broken)
        self.bus.subscribe(DomainEvent, recorder)

        with self.assertLogs("apps.notifications.events", level="ERROR"):
            results = self.bus.publish(_status_event())

        self.assertEqual(len(self.received), 1)
        self.assertEqual(sorted(results.values()), [False, True])

    def test_subscribe_is_idempotent_and_unsubscribe(self):
        handler = self.received.append
        self.bus.subscribe(DomainEvent, handler)
        self.bus.subscribe(DomainEvent, handler)
        self.bus.publish(_status_event())
        self.assertEqual(len(self.received), 1)

        self.bus.unsubscribe(DomainEvent, handler)
        self.bus.publish(_status_event())
        self.assertEqual(len(self.received), 1)

    def test_events_are_immutable(self):
        event = _status_event()
        with self.assertRaises(AttributeError):
            event.new_status = "READY"


class PublishOnCommitTests(TestCase):
    def test_delivery_waits_for_commit(self):
        bus = EventBus()
        received = []
        bus.subscribe(DomainEvent, received.append)

        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            bus.publish_on_commit(_status_event())
            self.assertEqual(received, [])

        self.assertEqual(len(callbacks), 1)
        self.assertEqual(len(received), 1)
