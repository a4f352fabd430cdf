"""
Tuning status workflow and estimated-time helpers
"""

from datetime import timedelta

from django.test import SimpleTestCase
from django.utils import timezone

from apps.common.types import TransitionError
from apps.tuning.workflow import (
    PENDING,
    READY,
    RECEIVED,
    TuningStatusMachine,
    compute_countdown,
    format_time_text,
    validate_estimated_minutes,
)


class TuningStatusMachineTests(SimpleTestCase):
    def test_happy_path_moves(self):
        for current, target in [(RECEIVED, PENDING), (PENDING, READY), (PENDING, RECEIVED), (READY, PENDING)]:
            with self.subTest(current=current, target=target):
                transition = TuningStatusMachine.transition(current, target)
                self.assertEqual((transition.old_status, transition.new_status), (current, target))
                self.assertFalse(transition.is_override)

    def test_off_path_move_needs_override(self):
        with self.assertRaises(TransitionError):
            TuningStatusMachine.transition(RECEIVED, READY)

    def test_override_allows_any_move(self):
        with self.assertLogs('apps.tuning.workflow', level='WARNING'):
            transition = TuningStatusMachine.transition(RECEIVED, READY, override=True)
        self.assertTrue(transition.is_override)

    def test_same_status_rejected_even_with_override(self):
        with self.assertRaises(TransitionError):
            TuningStatusMachine.transition(PENDING, PENDING, override=True)

    def test_unknown_status_rejected(self):
        with self.assertRaises(TransitionError):
            TuningStatusMachine.transition(RECEIVED, "SHIPPED", override=True)


class EstimatedTimeTests(SimpleTestCase):
    def test_format_time_text(self):
        for minutes, text in [(1440, "1 day"), (240, "4 hours"), (120, "2 hours"), (60, "1 hour"), (45, "45 minutes")]:
            with self.subTest(minutes=minutes):
                self.assertEqual(format_time_text(minutes), text)

    def test_validate_estimated_minutes(self):
        self.assertEqual(validate_estimated_minutes("30"), 30)
        for value in [None, 0, -5, 10081, "soon", True]:
            with self.subTest(value=value), self.assertRaises(TransitionError):
                validate_estimated_minutes(value)


class CountdownTests(SimpleTestCase):
    def setUp(self):
        self.now = timezone.now()

    def test_remaining_time(self):
        countdown = compute_countdown(self.now - timedelta(minutes=10), 30, self.now)
        self.assertEqual(countdown.remaining_seconds, 20 * 60)
        self.assertFalse(countdown.is_overdue)
        self.assertEqual(countdown.target_at, self.now + timedelta(minutes=20))

    def test_overdue_is_clamped_at_zero(self):
        countdown = compute_countdown(self.now - timedelta(hours=2), 60, self.now)
        self.assertEqual(countdown.remaining_seconds, 0)
        self.assertTrue(countdown.is_overdue)
        self.assertTrue(countdown.as_dict()['isOverdue'])

    def test_no_estimate(self):
        self.assertIsNone(compute_countdown(None, 30, self.now))
        self.assertIsNone(compute_countdown(self.now, None, self.now))
