"""
📁 Tuning API tests: customer uploads and the back-office workflow endpoints
"""

from django.contrib.auth import get_user_model
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import TestCase
from django.urls import reverse
from rest_framework.test import APIClient

from apps.tuning.models import TuningFile
from apps.tuning.services import TuningFileService

User = get_user_model()


def _ecu_file(name="a4_b8.bin", content=b"ECU" * 100):
    return SimpleUploadedFile(name, content, content_type="application/octet-stream")


class TuningApiTestCase(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.customer = User.objects.create_user(email="client@compucar.dz", password="testpass123")
        self.other = User.objects.create_user(email="other@compucar.dz", password="testpass123")
        self.admin = User.objects.create_user(
            email="files@compucar.dz", password="testpass123", is_staff=True, staff_role="file_admin"
        )

    def _create_file(self):
        return TuningFileService.create_upload(self.customer, _ecu_file(), ["DPF_DELETE"]).unwrap()


class CustomerFileApiTests(TuningApiTestCase):
    def test_requires_login(self):
        response = self.client.get(reverse("tuning:file_list"))
        self.assertIn(response.status_code, (401, 403))

    def test_upload(self):
        self.client.force_authenticate(self.customer)
        response = self.client.post(
            reverse("tuning:file_list"),
            {"file": _ecu_file(), "modifications": ["STAGE_1", "EGR_DELETE"], "comment": "TDI 143"},
            format="multipart",
        )

        self.assertEqual(response.status_code, 201)
        data = response.json()["data"]
        self.assertEqual(data["status"], "RECEIVED")
        self.assertEqual({m["code"] for m in data["modifications"]}, {"STAGE_1", "EGR_DELETE"})
        self.assertEqual(TuningFile.objects.get().owner, self.customer)

    def test_upload_unknown_modification(self):
        self.client.force_authenticate(self.customer)
        response = self.client.post(
            reverse("tuning:file_list"), {"file": _ecu_file(), "modifications": ["NOPE"]}, format="multipart"
        )
        self.assertEqual(response.status_code, 400)

    def test_list_is_scoped_with_summary(self):
        self._create_file()
        TuningFileService.create_upload(self.other, _ecu_file("other.bin")).unwrap()

        self.client.force_authenticate(self.customer)
        response = self.client.get(reverse("tuning:file_list"))

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["count"], 1)
        self.assertIn("totalPaid", body["summary"])

    def test_other_customers_file_is_not_found(self):
        tuning_file = self._create_file()
        self.client.force_authenticate(self.other)

        for name in ("tuning:file_detail", "tuning:file_download"):
            with self.subTest(name=name):
                response = self.client.get(reverse(name, args=[tuning_file.id]))
                self.assertEqual(response.status_code, 404)

    def test_detail_shows_countdown_while_pending(self):
        tuning_file = self._create_file()
        TuningFileService.update_status(tuning_file.id, "PENDING", self.admin, estimated_minutes=60).unwrap()

        self.client.force_authenticate(self.customer)
        data = self.client.get(reverse("tuning:file_detail", args=[tuning_file.id])).json()["data"]

        self.assertEqual(data["estimated_time_text"], "1 hour")
        self.assertGreater(data["countdown"]["remainingSeconds"], 0)
        self.assertFalse(data["countdown"]["isOverdue"])

    def test_download_original_and_modified(self):
        tuning_file = self._create_file()
        self.client.force_authenticate(self.customer)
        url = reverse("tuning:file_download", args=[tuning_file.id])

        response = self.client.get(url)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(b"".join(response.streaming_content), b"ECU" * 100)
        self.assertEqual(self.client.get(url, {"modified": "1"}).status_code, 404)

    def test_comment(self):
        tuning_file = self._create_file()
        self.client.force_authenticate(self.customer)
        response = self.client.post(
            reverse("tuning:file_comment", args=[tuning_file.id]), {"comment": "Also EGR"}, format="json"
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["data"]["customer_comment"], "Also EGR")

    def test_modifications_catalogue(self):
        self.client.force_authenticate(self.customer)
        response = self.client.get(reverse("tuning:modification_list"))
        self.assertIn("STAGE_1", [m["code"] for m in response.json()["data"]])


class AdminFileApiTests(TuningApiTestCase):
    def setUp(self):
        super().setUp()
        self.tuning_file = self._create_file()
        self.client.force_authenticate(self.admin)

    def _post(self, name, data, format="json"):
        return self.client.post(reverse(name, args=[self.tuning_file.id]), data, format=format)

    def test_customers_cannot_use_admin_endpoints(self):
        self.client.force_authenticate(self.customer)
        self.assertEqual(self._post("tuning:admin_update_status", {"status": "PENDING"}).status_code, 403)

    def test_status_update_with_estimate(self):
        response = self._post("tuning:admin_update_status", {"status": "PENDING", "estimated_minutes": 45, "version": 1})

        self.assertEqual(response.status_code, 200)
        data = response.json()["data"]
        self.assertEqual(data["status"], "PENDING")
        self.assertEqual(data["version"], 2)
        self.assertEqual(data["audit_entries"][0]["actor_email"], "files@compucar.dz")

    def test_invalid_transition(self):
        response = self._post("tuning:admin_update_status", {"status": "READY"})
        self.assertEqual(response.status_code, 400)

    def test_override(self):
        response = self._post("tuning:admin_update_status", {"status": "READY", "override": True})
        self.assertEqual(response.status_code, 200)

    def test_stale_version_conflict(self):
        self._post("tuning:admin_set_price", {"price": "8000", "version": 1})
        response = self._post("tuning:admin_add_note", {"note": "Done", "version": 1})

        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json()["code"], "stale_version")

    def test_price_and_payment(self):
        self.assertEqual(self._post("tuning:admin_set_price", {"price": "8000.00"}).json()["data"]["price"], "8000.00")
        response = self._post("tuning:admin_set_payment", {"payment_status": "PAID"})
        self.assertEqual(response.json()["data"]["payment_status"], "PAID")

    def test_upload_modified(self):
        response = self._post(
            "tuning:admin_upload_modified", {"file": _ecu_file("a4_b8_dpf_off.bin")}, format="multipart"
        )
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()["data"]["has_modified_file"])

        self.client.force_authenticate(self.customer)
        download = self.client.get(reverse("tuning:file_download", args=[self.tuning_file.id]), {"modified": "1"})
        self.assertEqual(download.status_code, 200)

    def test_admin_list_and_detail(self):
        listing = self.client.get(reverse("tuning:admin_file_list"), {"status": "received"})
        self.assertEqual(listing.json()["count"], 1)

        detail = self.client.get(reverse("tuning:admin_file_detail", args=[self.tuning_file.id]))
        self.assertEqual(detail.json()["data"]["owner_email"], "client@compucar.dz")

    def test_unknown_file(self):
        response = self.client.post(
            reverse("tuning:admin_update_status", args=["00000000-0000-0000-0000-000000000000"]),
            {"status": "PENDING"},
            format="json",
        )
        self.assertEqual(response.status_code, 404)
