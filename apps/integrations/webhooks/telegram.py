"""
🤖 Telegram bot webhook processing

Admin bots carry inline workflow buttons (set READY/PENDING, pick an
estimated time). A button press arrives here as a callback_query update; the
matching tuning file is updated through TuningFileService, which writes the
audit entry and triggers the customer notifications.
"""

from __future__ import annotations

import logging
from functools import partial
from typing import Any, ClassVar

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import transaction

from apps.common.validators import log_security_event
from apps.integrations import telegram
from apps.integrations.models import WebhookEvent
from apps.tuning.models import TuningFile
from apps.tuning.services import TuningFileService
from apps.tuning.workflow import format_time_text

from .base import BaseWebhookProcessor, WebhookRequestMetadata, verify_shared_secret

logger = logging.getLogger(__name__)

ADMIN_BOTS = frozenset({telegram.BOT_SUPER_ADMIN, telegram.BOT_FILE_ADMIN})


class TelegramWebhookProcessor(BaseWebhookProcessor):
    """🤖 Updates for one of the three bots"""

    BOT_TYPES: ClassVar[tuple[str, ...]] = telegram.BOT_TYPES

    def __init__(self, bot_type: str, client: telegram.TelegramBotClient | None = None) -> None:
        if bot_type not in self.BOT_TYPES:
            raise ValueError(f"Unknown bot type: {bot_type}")
        self.bot_type = bot_type
        self.source_name = f"telegram_{bot_type}"
        self.client = client or telegram.TelegramBotClient(bot_type)
        super().__init__()

    def extract_event_id(self, payload: dict[str, Any]) -> str | None:
        update_id = payload.get("update_id")
        return str(update_id) if update_id is not None else None

    def extract_event_type(self, payload: dict[str, Any]) -> str | None:
        for update_type in ("callback_query", "message", "edited_message"):
            if update_type in payload:
                return update_type
        other = [key for key in payload if key != "update_id"]
        return other[0] if other else None

    def verify_signature(self, payload: dict[str, Any], metadata: WebhookRequestMetadata) -> bool:
        """Telegram echoes the secret_token given to setWebhook in a header"""
        return verify_shared_secret(metadata.signature, getattr(settings, "TELEGRAM_WEBHOOK_SECRET", ""))

    def handle_event(self, webhook_event: WebhookEvent) -> tuple[bool, str]:
        payload = webhook_event.payload
        if webhook_event.event_type == "callback_query":
            return self.handle_callback_query(payload["callback_query"])
        if webhook_event.event_type == "message":
            return self.handle_message(payload["message"])
        return True, f"Ignored {webhook_event.event_type} update"

    # ===============================================================================
    # MESSAGES
    # ===============================================================================

    def handle_message(self, message: dict[str, Any]) -> tuple[bool, str]:
        """/start answers with the chat id so it can be copied into settings or a profile"""
        text = (message.get("text") or "").strip()
        chat_id = (message.get("chat") or {}).get("id")
        if not text.startswith("/start") or chat_id is None:
            return True, "Ignored message"

        reply = f"👋 CompuCar {self.bot_type.replace('_', ' ')} bot\n\nYour chat id: <code>{chat_id}</code>"
        self._after_commit(self.client.send_message, reply, chat_id=str(chat_id))
        return True, f"Sent chat id to {chat_id}"

    # ===============================================================================
    # INLINE BUTTONS
    # ===============================================================================

    def handle_callback_query(self, callback: dict[str, Any]) -> tuple[bool, str]:  # noqa: PLR0911
        callback_id = callback.get("id", "")
        message = callback.get("message") or {}
        chat_id = (message.get("chat") or {}).get("id")
        message_id = message.get("message_id")

        if self.bot_type not in ADMIN_BOTS:
            self._answer(callback_id, "This bot has no actions")
            return True, "Callback ignored on customer bot"

        if not self._is_authorized_chat(chat_id):
            log_security_event(
                "telegram_unauthorized_callback",
                {"bot": self.bot_type, "chat_id": chat_id, "from": (callback.get("from") or {}).get("id")},
            )
            self._answer(callback_id, "⛔ Not authorized", show_alert=True)
            return False, f"Callback from unauthorized chat {chat_id}"

        parsed = telegram.parse_callback_data(callback.get("data"))
        if parsed.is_err():
            self._answer(callback_id, "❓ Unknown action")
            return False, parsed.error
        action = parsed.unwrap()

        file_result = TuningFileService.resolve_short_id(action.short_id)
        if file_result.is_err():
            self._answer(callback_id, "❌ File not found", show_alert=True)
            return False, f"{file_result.error}: {action.short_id}"
        tuning_file = file_result.unwrap()
        actor = self._actor_for(callback.get("from") or {})

        if action.action == telegram.ACTION_ESTIMATED_TIME:
            self._edit(chat_id, message_id, telegram.estimated_time_prompt(tuning_file.original_filename),
                       telegram.estimated_time_keyboard(tuning_file.id))
            self._answer(callback_id)
            return True, f"Time picker shown for {tuning_file.short_id}"

        if action.action == telegram.ACTION_CANCEL:
            self._edit(chat_id, message_id, self._summary(tuning_file), telegram.file_actions_keyboard(tuning_file.id))
            self._answer(callback_id, "Cancelled")
            return True, f"Cancelled for {tuning_file.short_id}"

        if action.action == telegram.ACTION_SET_STATUS:
            result = TuningFileService.update_status(
                tuning_file.id, action.status, actor, override=True, source="telegram"
            )
            confirmation = f"✅ File status updated to {action.status}"
        else:
            result = TuningFileService.set_estimated_time(tuning_file.id, action.minutes, actor, source="telegram")
            confirmation = f"⏰ Estimated time set to {format_time_text(action.minutes)}"

        if result.is_err():
            self._answer(callback_id, f"❌ {result.error}", show_alert=True)
            return False, result.error

        updated = result.unwrap()
        self._edit(chat_id, message_id, self._summary(updated), telegram.file_actions_keyboard(updated.id))
        self._answer(callback_id, confirmation)
        logger.info(f"🤖 [Telegram] {self.bot_type} {action.to_data()} applied to {updated.short_id}")
        return True, confirmation

    # --- helpers -------------------------------------------------------------

    def _is_authorized_chat(self, chat_id: Any) -> bool:
        configured = self.client.config.chat_id
        return bool(configured) and chat_id is not None and str(chat_id) == configured

    @staticmethod
    def _actor_for(sender: dict[str, Any]) -> Any:
        """Staff user whose linked chat pressed the button, if any"""
        sender_id = sender.get("id")
        if sender_id is None:
            return None
        return get_user_model().objects.filter(is_staff=True, telegram_chat_id=str(sender_id)).first()

    @staticmethod
    def _summary(tuning_file: TuningFile) -> str:
        minutes = tuning_file.estimated_processing_time_minutes
        return "\n".join([
            telegram.new_upload_message(
                tuning_file.original_filename,
                tuning_file.owner.email,
                tuning_file.file_size,
                [m.name for m in tuning_file.modifications.all()],
                status=tuning_file.status,
            ),
            *([f"⏰ <b>Estimated Time:</b> {format_time_text(minutes)}"] if minutes else []),
        ])

    def _answer(self, callback_id: str, text: str = "", show_alert: bool = False) -> None:
        if callback_id:
            self._after_commit(self.client.answer_callback_query, callback_id, text, show_alert)

    def _edit(self, chat_id: Any, message_id: Any, text: str, reply_markup: dict[str, Any]) -> None:
        if chat_id is not None and message_id is not None:
            self._after_commit(self.client.edit_message_text, chat_id, message_id, text, reply_markup)

    @staticmethod
    def _after_commit(func: Any, *args: Any, **kwargs: Any) -> None:
        """Bot API calls run only once the workflow change is committed"""
        transaction.on_commit(partial(func, *args, **kwargs))
