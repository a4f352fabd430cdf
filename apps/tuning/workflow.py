"""
Tuning file status workflow.

The normal path is RECEIVED -> PENDING -> READY, with PENDING -> RECEIVED and
READY -> PENDING allowed for rework. Staff may also jump a file to any status
through an explicit override. Overrides that skip PENDING leave the file without
estimated-time bookkeeping; they are permitted and logged so the behaviour can be
revisited with the product owner.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import ClassVar

from apps.common.types import TransitionError

logger = logging.getLogger(__name__)

RECEIVED = "RECEIVED"
PENDING = "PENDING"
READY = "READY"

STATUSES: tuple[str, ...] = (RECEIVED, PENDING, READY)

STATUS_EMOJI: dict[str, str] = {
    RECEIVED: "📥",
    PENDING: "⏳",
    READY: "✅",
}

# Quick-pick durations offered to admins (minutes)
ESTIMATED_TIME_OPTIONS: tuple[int, ...] = (5, 10, 15, 20, 30, 45, 60, 120, 240, 1440)
MAX_ESTIMATED_MINUTES = 7 * 24 * 60


@dataclass(frozen=True)
class Transition:
    old_status: str
    new_status: str
    is_override: bool


class TuningStatusMachine:
    """Allowed status moves for a tuning file"""

    HAPPY_PATH: ClassVar[dict[str, frozenset[str]]] = {
        RECEIVED: frozenset({PENDING}),
        PENDING: frozenset({READY, RECEIVED}),
        READY: frozenset({PENDING}),
    }

    @classmethod
    def allowed_targets(cls, current: str) -> frozenset[str]:
        return cls.HAPPY_PATH.get(current, frozenset())

    @classmethod
    def is_happy_path(cls, current: str, target: str) -> bool:
        return target in cls.allowed_targets(current)

    @classmethod
    def transition(cls, current: str, target: str, override: bool = False) -> Transition:
        """
        Validate a move and describe it.

        Raises TransitionError for unknown statuses, no-op moves, and off-path
        moves without override.
        """
        if target not in STATUSES:
            raise TransitionError(f"Unknown status: {target}")
        if current == target:
            raise TransitionError(f"File is already {target}")

        if cls.is_happy_path(current, target):
            return Transition(current, target, is_override=False)

        if not override:
            raise TransitionError(f"Cannot move from {current} to {target}")

        if target == READY and current != PENDING:
            logger.warning(f"⚠️ [Tuning] Admin override {current} → {target} skips estimated-time tracking")
        else:
            logger.info(f"🔀 [Tuning] Admin override {current} → {target}")
        return Transition(current, target, is_override=True)


# ===============================================================================
# ESTIMATED TIME PRESENTATION
# ===============================================================================

_TIME_TEXT_BUCKETS: dict[int, str] = {
    1440: "1 day",
    240: "4 hours",
    120: "2 hours",
    60: "1 hour",
}


def format_time_text(minutes: int) -> str:
    """Human label for an estimated processing time"""
    return _TIME_TEXT_BUCKETS.get(minutes, f"{minutes} minutes")


def validate_estimated_minutes(minutes: int | None) -> int:
    if minutes is None or isinstance(minutes, bool):
        raise TransitionError("Estimated time is required")
    try:
        value = int(minutes)
    except (TypeError, ValueError) as e:
        raise TransitionError("Estimated time must be a number of minutes") from e
    if not 1 <= value <= MAX_ESTIMATED_MINUTES:
        raise TransitionError(f"Estimated time must be between 1 and {MAX_ESTIMATED_MINUTES} minutes")
    return value


@dataclass(frozen=True)
class Countdown:
    target_at: datetime
    remaining_seconds: int
    is_overdue: bool

    def as_dict(self) -> dict[str, object]:
        return {
            'targetAt': self.target_at.isoformat(),
            'remainingSeconds': self.remaining_seconds,
            'isOverdue': self.is_overdue,
        }


def compute_countdown(set_at: datetime | None, minutes: int | None, now: datetime) -> Countdown | None:
    """
    Remaining time until the promised completion.
    Clamped at zero; a passed deadline is reported as overdue, never as negative time.
    """
    if set_at is None or not minutes:
        return None

    target_at = set_at + timedelta(minutes=minutes)
    remaining = int((target_at - now).total_seconds())
    return Countdown(target_at=target_at, remaining_seconds=max(0, remaining), is_overdue=remaining <= 0)
