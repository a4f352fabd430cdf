"""
🤖 Telegram client, callback data and message builders
"""

from unittest.mock import Mock, patch

import requests
from django.test import SimpleTestCase, override_settings

from apps.integrations import telegram
from apps.integrations.tasks import queue_telegram_message, send_telegram_message

BOT_SETTINGS = {
    "TELEGRAM_SUPER_ADMIN_ENABLED": True,
    "TELEGRAM_SUPER_ADMIN_BOT_TOKEN": "123:abc",
    "TELEGRAM_SUPER_ADMIN_CHAT_ID": "-100500",
}


class CallbackDataTests(SimpleTestCase):
    def test_parse_actions(self):
        status = telegram.parse_callback_data("sa_fs_1a2b3c4d_READY").unwrap()
        self.assertEqual((status.action, status.short_id, status.status), ("fs", "1a2b3c4d", "READY"))

        time = telegram.parse_callback_data("sa_t_1a2b3c4d_120").unwrap()
        self.assertEqual(time.minutes, 120)

        self.assertEqual(telegram.parse_callback_data("sa_et_1a2b3c4d").unwrap().action, telegram.ACTION_ESTIMATED_TIME)
        self.assertEqual(telegram.parse_callback_data("sa_c_1a2b3c4d").unwrap().action, telegram.ACTION_CANCEL)

    def test_rejects_unknown_data(self):
        for data in [None, "", "hello", "sa_fs_1a2b3c4d_DONE", "sa_t_1a2b3c4d_soon", "sa_et_1a2b3c4d_5", "sa_fs_XYZ_READY"]:
            with self.subTest(data=data):
                self.assertTrue(telegram.parse_callback_data(data).is_err())

    def test_keyboard_buttons_parse_back(self):
        file_id = "1a2b3c4d-0000-4000-8000-000000000000"
        rows = telegram.file_actions_keyboard(file_id)["inline_keyboard"] + telegram.estimated_time_keyboard(file_id)["inline_keyboard"]
        for button in (button for row in rows for button in row):
            with self.subTest(button=button["text"]):
                parsed = telegram.parse_callback_data(button["callback_data"]).unwrap()
                self.assertEqual(parsed.short_id, "1a2b3c4d")

    def test_time_picker_layout(self):
        rows = telegram.estimated_time_keyboard("1a2b3c4d")["inline_keyboard"]
        self.assertEqual([len(row) for row in rows], [3, 3, 3, 1, 1])
        self.assertEqual(rows[-2][0]["text"], "1 day")


class MessageTests(SimpleTestCase):
    def test_new_upload_message_escapes_html(self):
        text = telegram.new_upload_message("<b>golf</b>.bin", "client@compucar.dz", 2048, ["Stage 1", "EGR Delete"])
        self.assertIn("&lt;b&gt;golf&lt;/b&gt;.bin", text)
        self.assertIn("2.0 KB", text)
        self.assertIn("Stage 1, EGR Delete", text)

    def test_status_message(self):
        text = telegram.file_status_message("golf.bin", "RECEIVED", "PENDING", time_text="2 hours")
        self.assertIn("RECEIVED → PENDING", text)
        self.assertIn("2 hours", text)

    def test_format_file_size(self):
        self.assertEqual(telegram.format_file_size(512), "512 B")
        self.assertEqual(telegram.format_file_size(5 * 1024 * 1024), "5.0 MB")


class TelegramBotClientTests(SimpleTestCase):
    def test_unknown_bot(self):
        with self.assertRaises(ValueError):
            telegram.TelegramBotClient("marketing")

    def test_disabled_bot_never_calls_api(self):
        with patch("apps.integrations.telegram.requests.post") as mock_post:
            result = telegram.TelegramBotClient(telegram.BOT_SUPER_ADMIN).send_message("hi")
        self.assertTrue(result.is_err())
        mock_post.assert_not_called()

    @override_settings(**BOT_SETTINGS)
    def test_send_message(self):
        response = Mock(status_code=200)
        response.json.return_value = {"ok": True, "result": {"message_id": 77}}
        with patch("apps.integrations.telegram.requests.post", return_value=response) as mock_post:
            result = telegram.TelegramBotClient(telegram.BOT_SUPER_ADMIN).send_message("hi")

        self.assertEqual(result.unwrap()["message_id"], 77)
        url = mock_post.call_args.args[0]
        self.assertEqual(url, "https://api.telegram.org/bot123:abc/sendMessage")
        payload = mock_post.call_args.kwargs["json"]
        self.assertEqual((payload["chat_id"], payload["parse_mode"]), ("-100500", "HTML"))

    @override_settings(**BOT_SETTINGS)
    def test_api_rejection(self):
        response = Mock(status_code=400, text="Bad Request")
        response.json.return_value = {"ok": False, "description": "chat not found"}
        with patch("apps.integrations.telegram.requests.post", return_value=response):
            result = telegram.TelegramBotClient(telegram.BOT_SUPER_ADMIN).send_message("hi")
        self.assertEqual(result.error, "Telegram error: chat not found")

    @override_settings(**BOT_SETTINGS)
    def test_connection_error(self):
        with patch("apps.integrations.telegram.requests.post", side_effect=requests.exceptions.ConnectionError):
            result = telegram.TelegramBotClient(telegram.BOT_SUPER_ADMIN).send_message("hi")
        self.assertEqual(result.error, "Connection failed")


class TelegramTaskTests(SimpleTestCase):
    def test_disabled_bot_is_not_queued(self):
        with patch("apps.integrations.tasks.async_task") as mock_async:
            self.assertIsNone(queue_telegram_message(telegram.BOT_FILE_ADMIN, "New upload"))
        mock_async.assert_not_called()

    @override_settings(**BOT_SETTINGS)
    def test_enabled_bot_is_queued(self):
        with patch("apps.integrations.tasks.async_task", return_value="task-1") as mock_async:
            self.assertEqual(queue_telegram_message(telegram.BOT_SUPER_ADMIN, "New upload"), "task-1")
        self.assertEqual(mock_async.call_args.args[0], "apps.integrations.tasks.send_telegram_message")

    def test_worker_reports_failure(self):
        self.assertFalse(send_telegram_message(telegram.BOT_CUSTOMER, "hi", chat_id="1")["success"])
