"""
Telegram Bot API client and message builders.

Three bots share one client class: the super admin bot (all events, with
workflow buttons), the file admin bot (new uploads) and the customer bot
(status updates to customers who linked a chat).
"""

from __future__ import annotations

import html
import logging
import re
from dataclasses import dataclass
from typing import Any

import requests
from django.conf import settings

from apps.common.types import Err, Ok, Result
from apps.common.utils import short_id
from apps.shipping.yalidine import get_api_timeouts
from apps.tuning.workflow import ESTIMATED_TIME_OPTIONS, PENDING, READY, STATUS_EMOJI, STATUSES, format_time_text

logger = logging.getLogger(__name__)

TELEGRAM_API_BASE = "https://api.telegram.org"

BOT_SUPER_ADMIN = "super_admin"
BOT_FILE_ADMIN = "file_admin"
BOT_CUSTOMER = "customer"
BOT_TYPES: tuple[str, ...] = (BOT_SUPER_ADMIN, BOT_FILE_ADMIN, BOT_CUSTOMER)

SHORT_ID_LENGTH = 8


# ===============================================================================
# CONFIGURATION
# ===============================================================================

@dataclass(frozen=True)
class BotConfig:
    bot_type: str
    token: str
    chat_id: str
    enabled: bool

    @property
    def is_configured(self) -> bool:
        return self.enabled and bool(self.token)

    @classmethod
    def from_settings(cls, bot_type: str) -> BotConfig:
        prefix = f"TELEGRAM_{bot_type.upper()}"
        return cls(
            bot_type=bot_type,
            token=getattr(settings, f"{prefix}_BOT_TOKEN", ""),
            chat_id=str(getattr(settings, f"{prefix}_CHAT_ID", "") or ""),
            enabled=bool(getattr(settings, f"{prefix}_ENABLED", False)),
        )


# ===============================================================================
# CALLBACK DATA
# ===============================================================================

# sa_fs_<short>_<STATUS> | sa_et_<short> | sa_t_<short>_<minutes> | sa_c_<short>
_CALLBACK_RE = re.compile(r"^sa_(?P<action>fs|et|t|c)_(?P<short>[0-9a-f]{8})(?:_(?P<arg>[A-Za-z0-9]+))?$")

ACTION_SET_STATUS = "fs"
ACTION_ESTIMATED_TIME = "et"
ACTION_SET_TIME = "t"
ACTION_CANCEL = "c"


@dataclass(frozen=True)
class CallbackAction:
    action: str
    short_id: str
    status: str | None = None
    minutes: int | None = None

    def to_data(self) -> str:
        if self.action == ACTION_SET_STATUS:
            return f"sa_fs_{self.short_id}_{self.status}"
        if self.action == ACTION_SET_TIME:
            return f"sa_t_{self.short_id}_{self.minutes}"
        return f"sa_{self.action}_{self.short_id}"


def parse_callback_data(data: str | None) -> Result[CallbackAction, str]:
    """Decode inline-button data; anything unrecognised is an Err"""
    match = _CALLBACK_RE.match(data or "")
    if not match:
        return Err(f"Unknown callback data: {data!r}")

    action, short, arg = match.group("action"), match.group("short"), match.group("arg")

    if action == ACTION_SET_STATUS:
        if arg not in STATUSES:
            return Err(f"Unknown status in callback: {arg!r}")
        return Ok(CallbackAction(action, short, status=arg))

    if action == ACTION_SET_TIME:
        if not arg or not arg.isdigit():
            return Err(f"Invalid minutes in callback: {arg!r}")
        return Ok(CallbackAction(action, short, minutes=int(arg)))

    if arg is not None:
        return Err(f"Unexpected argument in callback: {data!r}")
    return Ok(CallbackAction(action, short))


# ===============================================================================
# KEYBOARDS & MESSAGES
# ===============================================================================

def file_actions_keyboard(file_id: Any) -> dict[str, Any]:
    short = short_id(file_id, SHORT_ID_LENGTH)
    return {
        "inline_keyboard": [
            [{"text": "✅ Set to READY", "callback_data": CallbackAction(ACTION_SET_STATUS, short, status=READY).to_data()}],
            [{"text": "⏳ Set to PENDING", "callback_data": CallbackAction(ACTION_SET_STATUS, short, status=PENDING).to_data()}],
            [{"text": "⏰ Set Estimated Time", "callback_data": CallbackAction(ACTION_ESTIMATED_TIME, short).to_data()}],
        ]
    }


def estimated_time_keyboard(file_id: Any) -> dict[str, Any]:
    short = short_id(file_id, SHORT_ID_LENGTH)
    buttons = [
        {"text": format_time_text(minutes), "callback_data": CallbackAction(ACTION_SET_TIME, short, minutes=minutes).to_data()}
        for minutes in ESTIMATED_TIME_OPTIONS
    ]
    rows = [buttons[i:i + 3] for i in range(0, len(buttons), 3)]
    rows.append([{"text": "❌ Cancel", "callback_data": CallbackAction(ACTION_CANCEL, short).to_data()}])
    return {"inline_keyboard": rows}


def format_file_size(size: int) -> str:
    value = float(size)
    for unit in ("B", "KB", "MB"):
        if value < 1024:  # noqa: PLR2004
            return f"{value:.1f} {unit}" if unit != "B" else f"{int(value)} B"
        value /= 1024
    return f"{value:.1f} GB"


def new_upload_message(
    file_name: str, customer: str, file_size: int, modifications: tuple[str, ...] | list[str], status: str = "RECEIVED"
) -> str:
    mods = ", ".join(modifications) if modifications else "None"
    return (
        "📁 <b>New File Upload!</b>\n\n"
        f"📄 <b>File:</b> {html.escape(file_name)}\n"
        f"👤 <b>Customer:</b> {html.escape(customer)}\n"
        f"📏 <b>Size:</b> {format_file_size(file_size)}\n"
        f"🔧 <b>Modifications:</b> {html.escape(mods)}\n"
        f"📊 <b>Status:</b> {status}"
    )


def file_status_message(file_name: str, old_status: str, new_status: str, time_text: str | None = None) -> str:
    lines = [
        f"{STATUS_EMOJI.get(new_status, '📄')} <b>File Status Update</b>",
        "",
        f"📄 <b>File:</b> {html.escape(file_name)}",
        f"📊 <b>Status:</b> {old_status} → {new_status}",
    ]
    if time_text:
        lines.append(f"⏰ <b>Estimated Time:</b> {time_text}")
    return "\n".join(lines)


def estimated_time_prompt(file_name: str) -> str:
    return (
        "⏰ <b>Set Estimated Time</b>\n\n"
        f"📄 <b>File:</b> {html.escape(file_name)}\n\n"
        "Choose how long processing will take:"
    )


def admin_event_message(title: str, message: str, details: str | None = None) -> str:
    text = f"🔔 <b>{html.escape(title)}</b>\n\n{html.escape(message)}"
    if details:
        text += f"\n\n🔍 <b>Details:</b> {html.escape(details)}"
    return text


# ===============================================================================
# CLIENT
# ===============================================================================

class TelegramBotClient:
    """🤖 Bot API wrapper; every call returns a Result and never raises for HTTP failures"""

    def __init__(self, bot_type: str, config: BotConfig | None = None) -> None:
        if bot_type not in BOT_TYPES:
            raise ValueError(f"Unknown bot type: {bot_type}")
        self.bot_type = bot_type
        self.config = config or BotConfig.from_settings(bot_type)

    @property
    def is_configured(self) -> bool:
        return self.config.is_configured

    def send_message(
        self, text: str, chat_id: str | None = None, reply_markup: dict[str, Any] | None = None
    ) -> Result[dict[str, Any], str]:
        target = chat_id or self.config.chat_id
        if not target:
            return Err(f"No chat configured for {self.bot_type} bot")

        payload: dict[str, Any] = {
            "chat_id": target,
            "text": text,
            "parse_mode": "HTML",
            "disable_web_page_preview": True,
        }
        if reply_markup:
            payload["reply_markup"] = reply_markup
        return self._call("sendMessage", payload)

    def edit_message_text(
        self, chat_id: str | int, message_id: int, text: str, reply_markup: dict[str, Any] | None = None
    ) -> Result[dict[str, Any], str]:
        payload: dict[str, Any] = {
            "chat_id": chat_id,
            "message_id": message_id,
            "text": text,
            "parse_mode": "HTML",
        }
        if reply_markup:
            payload["reply_markup"] = reply_markup
        return self._call("editMessageText", payload)

    def answer_callback_query(
        self, callback_query_id: str, text: str = "", show_alert: bool = False
    ) -> Result[dict[str, Any], str]:
        return self._call(
            "answerCallbackQuery",
            {"callback_query_id": callback_query_id, "text": text, "show_alert": show_alert},
        )

    def _call(self, method: str, payload: dict[str, Any]) -> Result[dict[str, Any], str]:
        if not self.is_configured:
            logger.info(f"ℹ️ [Telegram] {self.bot_type} bot disabled; {method} skipped")
            return Err(f"{self.bot_type} bot is not configured")

        timeouts = get_api_timeouts()
        timeout = timeouts.get('TELEGRAM_TIMEOUT', timeouts.get('REQUEST_TIMEOUT', 30))
        url = f"{TELEGRAM_API_BASE}/bot{self.config.token}/{method}"

        try:
            response = requests.post(url, json=payload, timeout=timeout)
        except requests.exceptions.Timeout:
            logger.warning(f"⏱️ [Telegram] {self.bot_type} {method} timed out")
            return Err("Request timeout")
        except requests.exceptions.RequestException as e:
            logger.warning(f"🔌 [Telegram] {self.bot_type} {method} failed: {e}")
            return Err("Connection failed")

        try:
            body = response.json()
        except ValueError:
            body = {}

        if response.status_code >= 400 or not body.get("ok"):  # noqa: PLR2004
            description = body.get("description") or response.text[:100]
            logger.warning(f"⚠️ [Telegram] {self.bot_type} {method} rejected: HTTP {response.status_code} {description}")
            return Err(f"Telegram error: {description}")

        logger.info(f"📨 [Telegram] {self.bot_type} {method} ok")
        return Ok(body.get("result") or {})
