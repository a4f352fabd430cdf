"""
Tests for the Result type, phone validation and input sanitization helpers.
"""

from django.test import RequestFactory, SimpleTestCase, override_settings

from apps.common.types import (
    AuthorizationError,
    BusinessError,
    Err,
    Ok,
    ParcelValidationError,
    ValidationError,
    validate_algerian_phone,
)
from apps.common.utils import get_client_ip, parse_bool, short_id
from apps.common.validators import SecureInputValidator


class ResultTypeTests(SimpleTestCase):
    def test_ok_chain(self):
        result = Ok(2).map(lambda v: v * 10).and_then(lambda v: Ok(v + 1))
        self.assertTrue(result.is_ok())
        self.assertEqual(result.unwrap(), 21)

    def test_err_short_circuits(self):
        calls = []
        result = Err("boom").map(calls.append).and_then(lambda v: Ok(calls.append(v)))
        self.assertTrue(result.is_err())
        self.assertEqual(result.error, "boom")
        self.assertEqual(calls, [])

    def test_unwrap_on_err_raises(self):
        with self.assertRaises(ValueError):
            Err("nope").unwrap()
        self.assertEqual(Err("nope").unwrap_or(5), 5)

    def test_map_exception_becomes_err(self):
        result = Ok(0).map(lambda v: 1 / v)
        self.assertTrue(result.is_err())


class BusinessErrorTests(SimpleTestCase):
    def test_hierarchy(self):
        self.assertTrue(issubclass(AuthorizationError, BusinessError))
        self.assertTrue(issubclass(ParcelValidationError, ValidationError))

    def test_validation_error_carries_field(self):
        error = ParcelValidationError("items", "Cart is empty")
        self.assertEqual((error.field, error.message), ("items", "Cart is empty"))
        self.assertEqual(str(error), "items: Cart is empty")


class AlgerianPhoneTests(SimpleTestCase):
    def test_valid_numbers_are_normalized(self):
        for raw, expected in [
            ("0550 12 34 56", "0550123456"),
            ("0550-123-456", "0550123456"),
            ("021 23 45 67", "021234567"),
        ]:
            with self.subTest(raw=raw):
                self.assertEqual(validate_algerian_phone(raw).unwrap(), expected)

    def test_invalid_numbers(self):
        for raw in ["", "12345", "05501234567890", "abc"]:
            with self.subTest(raw=raw):
                self.assertTrue(validate_algerian_phone(raw).is_err())


class SecureInputValidatorTests(SimpleTestCase):
    def test_free_text_is_stripped(self):
        self.assertEqual(SecureInputValidator.validate_free_text("  hello  ", "notes", 100), "hello")

    def test_free_text_too_long(self):
        with self.assertRaises(ValidationError) as ctx:
            SecureInputValidator.validate_free_text("x" * 11, "notes", 10)
        self.assertEqual(ctx.exception.field, "notes")

    def test_script_injection_rejected(self):
        with self.assertRaises(ValidationError):
            SecureInputValidator.validate_free_text("<script>alert(1)</script>", "comment", 500)

    def test_filename_sanitized(self):
        self.assertEqual(SecureInputValidator.validate_filename("../golf:7.bin"), ".._golf_7.bin")

    def test_long_filename_keeps_extension(self):
        name = SecureInputValidator.validate_filename("a" * 300 + ".bin")
        self.assertEqual(len(name), 255)
        self.assertTrue(name.endswith(".bin"))

    @override_settings(TUNING_MAX_UPLOAD_SIZE=1024)
    def test_upload_size_bounds(self):
        self.assertEqual(SecureInputValidator.validate_upload_size(1024), 1024)
        with self.assertRaises(ValidationError):
            SecureInputValidator.validate_upload_size(0)
        with self.assertRaises(ValidationError):
            SecureInputValidator.validate_upload_size(1025)


class UtilsTests(SimpleTestCase):
    def test_client_ip_prefers_forwarded_for(self):
        request = RequestFactory().get('/', HTTP_X_FORWARDED_FOR='10.0.0.1, 172.16.0.1', REMOTE_ADDR='127.0.0.1')
        self.assertEqual(get_client_ip(request), '10.0.0.1')

    def test_client_ip_remote_addr(self):
        request = RequestFactory().get('/', REMOTE_ADDR='192.168.1.5')
        self.assertEqual(get_client_ip(request), '192.168.1.5')

    def test_parse_bool(self):
        self.assertIsNone(parse_bool(None))
        self.assertIsNone(parse_bool(''))
        self.assertTrue(parse_bool('true'))
        self.assertTrue(parse_bool('1'))
        self.assertFalse(parse_bool('false'))

    def test_short_id(self):
        self.assertEqual(short_id('1234567890abcdef'), '12345678')
