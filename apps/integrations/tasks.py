"""
Telegram delivery background tasks.

Bot messages are sent from Django-Q2 workers so a slow or unreachable Bot API
never delays the request that triggered the notification.
"""

from __future__ import annotations

import logging
from typing import Any

from django_q.tasks import async_task

from .telegram import TelegramBotClient

logger = logging.getLogger(__name__)

TASK_TIME_LIMIT = 60


def send_telegram_message(
    bot_type: str, text: str, chat_id: str | None = None, reply_markup: dict[str, Any] | None = None
) -> dict[str, Any]:
    """Worker entry point: deliver one bot message"""
    result = TelegramBotClient(bot_type).send_message(text, chat_id=chat_id, reply_markup=reply_markup)
    if result.is_err():
        logger.warning(f"⚠️ [Telegram] {bot_type} message not delivered: {result.error}")
        return {"success": False, "error": result.error}
    return {"success": True, "message_id": result.unwrap().get("message_id")}


def queue_telegram_message(
    bot_type: str, text: str, chat_id: str | None = None, reply_markup: dict[str, Any] | None = None
) -> str | None:
    """Queue a bot message; skipped outright when the bot is switched off"""
    if not TelegramBotClient(bot_type).is_configured:
        logger.debug(f"ℹ️ [Telegram] {bot_type} bot disabled; message not queued")
        return None

    return async_task(
        'apps.integrations.tasks.send_telegram_message',
        bot_type,
        text,
        chat_id,
        reply_markup,
        timeout=TASK_TIME_LIMIT,
    )
