import base64
import shutil
import tempfile
from decimal import Decimal
from io import BytesIO
from types import SimpleNamespace
from unittest.mock import patch

import requests
from django.core.files.base import ContentFile
from django.core.files.storage import default_storage
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import SimpleTestCase, TestCase, override_settings
from django.urls import reverse
from pdf2image.exceptions import PDFPageCountError
from PIL import Image
from rest_framework.test import APIClient

from accounts import services as account_services
from assignments import services as assignment_services
from assignments.models import Submission
from classrooms import services as classroom_services
from evaluation.client import grade_homework, parse_evaluation
from evaluation.errors import AIServiceError, ConversionError
from evaluation.pdf import convert_pdf_to_image


def gemini_body(text):
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


class GeminiClientTests(SimpleTestCase):
    def test_parse_evaluation_strips_code_fences(self):
        body = gemini_body('```json\n{"score": 85, "feedback": "Good"}\n```')
        self.assertEqual(parse_evaluation(body), {"score": 85, "feedback": "Good"})

    def test_parse_evaluation_requires_score(self):
        with self.assertRaises(AIServiceError):
            parse_evaluation(gemini_body('{"feedback": "no score"}'))
        with self.assertRaises(AIServiceError):
            parse_evaluation({"candidates": []})

    @override_settings(GEMINI_API_KEY="")
    def test_missing_api_key(self):
        with self.assertRaises(AIServiceError):
            grade_homework("aGVsbG8=")

    @override_settings(GEMINI_API_KEY="test-key", GEMINI_MODEL="test-model")
    @patch("evaluation.client.requests.post")
    def test_grade_homework_sends_inline_image(self, post_mock):
        post_mock.return_value = SimpleNamespace(
            status_code=200, text="", json=lambda: gemini_body('{"score": 70}')
        )
        result = grade_homework("data:image/jpeg;base64,aGVsbG8=")

        self.assertEqual(result, {"score": 70, "feedback": ""})
        args, kwargs = post_mock.call_args
        self.assertTrue(args[0].endswith("/test-model:generateContent"))
        self.assertEqual(kwargs["params"], {"key": "test-key"})
        inline = kwargs["json"]["contents"][0]["parts"][1]["inline_data"]
        self.assertEqual(inline, {"mime_type": "image/jpeg", "data": "aGVsbG8="})

    @override_settings(GEMINI_API_KEY="test-key")
    @patch("evaluation.client.requests.post")
    def test_http_errors_become_service_errors(self, post_mock):
        post_mock.return_value = SimpleNamespace(status_code=500, text="boom", json=dict)
        with self.assertRaises(AIServiceError):
            grade_homework("aGVsbG8=")

        post_mock.side_effect = requests.ConnectionError("down")
        with self.assertRaises(AIServiceError):
            grade_homework("aGVsbG8=")


class PdfConversionTests(SimpleTestCase):
    @patch("evaluation.pdf.convert_from_bytes")
    def test_pages_are_stacked_vertically(self, convert_mock):
        convert_mock.return_value = [
            Image.new("RGB", (100, 50), "red"),
            Image.new("RGB", (80, 30), "blue"),
        ]
        encoded = convert_pdf_to_image(b"%PDF-1.4", dpi=72)

        image = Image.open(BytesIO(base64.b64decode(encoded)))
        self.assertEqual(image.format, "PNG")
        self.assertEqual(image.size, (100, 80))
        convert_mock.assert_called_once_with(b"%PDF-1.4", dpi=72)

    @patch("evaluation.pdf.convert_from_bytes", side_effect=PDFPageCountError("bad"))
    def test_unreadable_pdf(self, convert_mock):
        with self.assertRaises(ConversionError):
            convert_pdf_to_image(b"not a pdf")

    def test_empty_pdf(self):
        with self.assertRaises(ConversionError):
            convert_pdf_to_image(b"")


class EvaluationApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.lecturer = account_services.register_lecturer(
            name="Dr. Smith", email="lecturer@example.com", password="secret1"
        ).user
        self.student = account_services.register_student(
            name="Alice", email="student@example.com", password="secret1"
        ).user

    @patch("evaluation.services.grade_homework", return_value={"score": 90, "feedback": "Great"})
    def test_image_evaluation(self, grade_mock):
        self.client.force_authenticate(self.lecturer)
        response = self.client.post(
            reverse("evaluation:evaluate-image"), {"file_data": "aGVsbG8="}, format="json"
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["evaluation"]["score"], 90)
        grade_mock.assert_called_once_with("aGVsbG8=")

    @patch(
        "evaluation.services.grade_homework",
        side_effect=AIServiceError("The AI grading service returned HTTP 500."),
    )
    def test_upstream_failure_is_502(self, grade_mock):
        self.client.force_authenticate(self.lecturer)
        response = self.client.post(
            reverse("evaluation:evaluate-image"), {"file_data": "aGVsbG8="}, format="json"
        )
        self.assertEqual(response.status_code, 502)
        self.assertEqual(response.data["detail"], "The AI grading service returned HTTP 500.")

    @patch("evaluation.services.grade_homework", return_value={"score": 60, "feedback": ""})
    @patch("evaluation.services.convert_pdf_to_image", return_value="iVBORw0KGgo=")
    def test_pdf_evaluation(self, convert_mock, grade_mock):
        self.client.force_authenticate(self.lecturer)
        upload = SimpleUploadedFile("hw.pdf", b"%PDF-1.4", content_type="application/pdf")
        response = self.client.post(
            reverse("evaluation:evaluate-pdf"), {"homework_pdf": upload}, format="multipart"
        )
        self.assertEqual(response.status_code, 200)
        convert_mock.assert_called_once_with(b"%PDF-1.4")
        grade_mock.assert_called_once_with("iVBORw0KGgo=")

    @patch("evaluation.services.convert_pdf_to_image", side_effect=ConversionError("Could not read the PDF file."))
    def test_conversion_failure_is_502(self, convert_mock):
        self.client.force_authenticate(self.lecturer)
        upload = SimpleUploadedFile("hw.pdf", b"junk", content_type="application/pdf")
        response = self.client.post(
            reverse("evaluation:convert-pdf"), {"homework_pdf": upload}, format="multipart"
        )
        self.assertEqual(response.status_code, 502)

    def test_non_pdf_upload_is_rejected(self):
        self.client.force_authenticate(self.lecturer)
        upload = SimpleUploadedFile("hw.txt", b"text", content_type="text/plain")
        response = self.client.post(
            reverse("evaluation:convert-pdf"), {"homework_pdf": upload}, format="multipart"
        )
        self.assertEqual(response.status_code, 400)

    def test_students_cannot_evaluate(self):
        self.client.force_authenticate(self.student)
        response = self.client.post(
            reverse("evaluation:evaluate-image"), {"file_data": "aGVsbG8="}, format="json"
        )
        self.assertEqual(response.status_code, 403)


class SubmissionEvaluationTests(TestCase):
    def setUp(self):
        self.media_root = tempfile.mkdtemp()
        self.settings_override = override_settings(MEDIA_ROOT=self.media_root)
        self.settings_override.enable()

        self.client = APIClient()
        self.lecturer = account_services.register_lecturer(
            name="Dr. Smith", email="lecturer@example.com", password="secret1"
        ).user
        student = account_services.register_student(
            name="Alice", email="student@example.com", password="secret1"
        ).user
        self.classroom = classroom_services.create_classroom(self.lecturer, name="CS101")
        classroom_services.join_classroom(student, self.classroom.pk)
        self.assignment = assignment_services.create_assignment(
            self.lecturer, self.classroom.pk, title="HW1"
        )
        name = default_storage.save("submissions/hw.pdf", ContentFile(b"%PDF-1.4 stored"))
        self.submission = assignment_services.submit(student, self.assignment.pk, name)
        self.url = reverse(
            "evaluation:evaluate-submission",
            args=[self.classroom.pk, self.assignment.pk, self.submission.pk],
        )

    def tearDown(self):
        self.settings_override.disable()
        shutil.rmtree(self.media_root, ignore_errors=True)

    @patch("evaluation.services.grade_homework", return_value={"score": 80, "feedback": "Solid"})
    @patch("evaluation.services.convert_pdf_to_image", return_value="iVBORw0KGgo=")
    def test_evaluation_is_stored_without_grading(self, convert_mock, grade_mock):
        self.client.force_authenticate(self.lecturer)
        response = self.client.post(self.url, {}, format="json")

        self.assertEqual(response.status_code, 200)
        convert_mock.assert_called_once_with(b"%PDF-1.4 stored")
        self.submission.refresh_from_db()
        self.assertEqual(self.submission.ai_evaluation, {"score": 80, "feedback": "Solid"})
        self.assertEqual(self.submission.status, Submission.Status.SUBMITTED)

    @patch("evaluation.services.grade_homework", return_value={"score": 80, "feedback": "Solid"})
    @patch("evaluation.services.convert_pdf_to_image", return_value="iVBORw0KGgo=")
    def test_apply_score_grades_submission(self, convert_mock, grade_mock):
        self.client.force_authenticate(self.lecturer)
        response = self.client.post(self.url, {"apply_score": True}, format="json")

        self.assertEqual(response.status_code, 200)
        self.submission.refresh_from_db()
        self.assertEqual(self.submission.status, Submission.Status.GRADED)
        self.assertEqual(self.submission.mark, Decimal("80.00"))
        self.assertEqual(self.submission.feedback, "Solid")

    @patch("evaluation.services.grade_homework", return_value={"score": 150, "feedback": "?"})
    @patch("evaluation.services.convert_pdf_to_image", return_value="iVBORw0KGgo=")
    def test_invalid_ai_score_is_upstream_failure(self, convert_mock, grade_mock):
        self.client.force_authenticate(self.lecturer)
        response = self.client.post(self.url, {"apply_score": True}, format="json")

        self.assertEqual(response.status_code, 502)
        self.assertEqual(response.data["detail"], "The AI service returned an invalid score.")
        self.submission.refresh_from_db()
        self.assertEqual(self.submission.status, Submission.Status.SUBMITTED)
        self.assertIsNone(self.submission.mark)
        self.assertIsNone(self.submission.ai_evaluation)

    def test_other_lecturer_is_masked(self):
        other = account_services.register_lecturer(
            name="Dr. Other", email="other@example.com", password="secret1"
        ).user
        self.client.force_authenticate(other)
        response = self.client.post(self.url, {}, format="json")
        self.assertEqual(response.status_code, 404)
