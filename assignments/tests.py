import base64
import os
import shutil
import tempfile
from datetime import timedelta
from decimal import Decimal
from unittest.mock import patch

from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import TestCase, override_settings
from django.urls import reverse
from django.utils import timezone
from rest_framework import exceptions
from rest_framework.test import APIClient

from accounts import services as account_services
from assignments import services
from assignments.models import Assignment, Submission
from classrooms import services as classroom_services


def make_lecturer(email="lecturer@example.com", name="Dr. Smith"):
    return account_services.register_lecturer(name=name, email=email, password="secret1").user


def make_student(email="student@example.com", name="Alice"):
    return account_services.register_student(name=name, email=email, password="secret1").user


class SubmissionWorkflowTests(TestCase):
    def setUp(self):
        self.lecturer = make_lecturer()
        self.student = make_student()
        self.classroom = classroom_services.create_classroom(
            self.lecturer, name="CS101", code="ABC123"
        )
        classroom_services.join_classroom_by_code(self.student, "abc123")
        self.assignment = services.create_assignment(
            self.lecturer,
            self.classroom.pk,
            title="HW1",
            due_date=timezone.now() + timedelta(days=7),
        )

    def _grade(self, submission, mark, **kwargs):
        return services.grade_submission(
            self.lecturer,
            self.classroom.pk,
            self.assignment.pk,
            submission.pk,
            mark=mark,
            **kwargs,
        )

    def test_resubmit_then_grade(self):
        first = services.submit(self.student, self.assignment.pk, "f1.pdf")
        self.assertEqual(first.status, Submission.Status.SUBMITTED)

        second = services.submit(self.student, self.assignment.pk, "f2.pdf")
        self.assertEqual(second.pk, first.pk)
        self.assertEqual(second.assignment_file.name, "f2.pdf")
        self.assertEqual(Submission.objects.count(), 1)

        graded = self._grade(second, 92.5)
        graded.refresh_from_db()
        self.assertEqual(graded.status, Submission.Status.GRADED)
        self.assertIsNotNone(graded.graded_at)
        self.assertEqual(graded.graded_by, self.lecturer)
        self.assertEqual(graded.mark, Decimal("92.50"))

    def test_due_date_must_be_in_future(self):
        with self.assertRaises(exceptions.ValidationError):
            services.create_assignment(
                self.lecturer,
                self.classroom.pk,
                title="HW2",
                due_date=timezone.now() - timedelta(minutes=1),
            )
        self.assertEqual(Assignment.objects.count(), 1)

    def test_only_owner_creates_assignments(self):
        other = make_lecturer(email="other@example.com", name="Dr. Other")
        with self.assertRaises(exceptions.PermissionDenied):
            services.create_assignment(other, self.classroom.pk, title="HW2")
        with self.assertRaises(exceptions.NotFound):
            services.create_assignment(self.lecturer, 9999, title="HW2")

    def test_mark_out_of_range_leaves_row_untouched(self):
        submission = services.submit(self.student, self.assignment.pk, "f1.pdf")
        for mark in (150, -1, "abc", True):
            with self.assertRaises(exceptions.ValidationError):
                self._grade(submission, mark)
        submission.refresh_from_db()
        self.assertIsNone(submission.mark)
        self.assertIsNone(submission.graded_at)
        self.assertEqual(submission.status, Submission.Status.SUBMITTED)

    def test_mark_is_rounded_to_two_places(self):
        self.assertEqual(services.parse_mark("92.555"), Decimal("92.56"))
        self.assertEqual(services.parse_mark(0), Decimal("0.00"))
        self.assertEqual(services.parse_mark("100"), Decimal("100.00"))

    def test_regrade_keeps_latest_mark(self):
        submission = services.submit(self.student, self.assignment.pk, "f1.pdf")
        first_at = timezone.now()
        second_at = first_at + timedelta(minutes=5)
        with patch("assignments.services.timezone.now", return_value=first_at):
            self._grade(submission, 70)
        with patch("assignments.services.timezone.now", return_value=second_at):
            self._grade(submission, 88, feedback="Much better")
        submission.refresh_from_db()
        self.assertEqual(submission.mark, Decimal("88.00"))
        self.assertEqual(submission.feedback, "Much better")
        self.assertEqual(submission.graded_at, second_at)
        self.assertGreater(submission.graded_at, first_at)

    def test_feedback_without_mark_keeps_status(self):
        submission = services.submit(self.student, self.assignment.pk, "f1.pdf")
        self._grade(submission, None, feedback="Looked at it")
        submission.refresh_from_db()
        self.assertEqual(submission.status, Submission.Status.SUBMITTED)
        self.assertEqual(submission.feedback, "Looked at it")
        self.assertIsNone(submission.graded_at)

    def test_resubmission_clears_previous_grade(self):
        submission = services.submit(self.student, self.assignment.pk, "f1.pdf")
        self._grade(submission, 50, feedback="Redo it")
        services.submit(self.student, self.assignment.pk, "f2.pdf")
        submission.refresh_from_db()
        self.assertEqual(submission.status, Submission.Status.SUBMITTED)
        self.assertIsNone(submission.mark)
        self.assertEqual(submission.feedback, "")
        self.assertIsNone(submission.graded_by)

    def test_submission_after_due_date_is_late(self):
        Assignment.objects.filter(pk=self.assignment.pk).update(
            due_date=timezone.now() - timedelta(hours=1)
        )
        submission = services.submit(self.student, self.assignment.pk, "f1.pdf")
        self.assertEqual(submission.status, Submission.Status.LATE)

    def test_return_requires_graded(self):
        submission = services.submit(self.student, self.assignment.pk, "f1.pdf")
        with self.assertRaises(exceptions.ValidationError):
            services.return_submission(
                self.lecturer, self.classroom.pk, self.assignment.pk, submission.pk
            )
        self._grade(submission, 75)
        returned = services.return_submission(
            self.lecturer, self.classroom.pk, self.assignment.pk, submission.pk
        )
        self.assertEqual(returned.status, Submission.Status.RETURNED)

    def test_non_member_cannot_submit(self):
        outsider = make_student(email="bob@example.com", name="Bob")
        with self.assertRaises(exceptions.NotFound):
            services.submit(outsider, self.assignment.pk, "f1.pdf")
        with self.assertRaises(exceptions.NotFound):
            services.submit(self.lecturer, self.assignment.pk, "f1.pdf")
        self.assertFalse(Submission.objects.exists())

    def test_empty_file_reference_is_rejected(self):
        with self.assertRaises(exceptions.ValidationError):
            services.submit(self.student, self.assignment.pk, "  ")

    def test_foreign_lecturer_and_mismatched_ids_are_masked(self):
        submission = services.submit(self.student, self.assignment.pk, "f1.pdf")
        other = make_lecturer(email="other@example.com", name="Dr. Other")
        with self.assertRaises(exceptions.NotFound):
            services.grade_submission(
                other, self.classroom.pk, self.assignment.pk, submission.pk, mark=10
            )

        other_classroom = classroom_services.create_classroom(self.lecturer, name="CS102")
        other_assignment = services.create_assignment(
            self.lecturer, other_classroom.pk, title="HW1"
        )
        with self.assertRaises(exceptions.NotFound):
            services.grade_submission(
                self.lecturer, other_classroom.pk, self.assignment.pk, submission.pk, mark=10
            )
        with self.assertRaises(exceptions.NotFound):
            services.grade_submission(
                self.lecturer, self.classroom.pk, other_assignment.pk, submission.pk, mark=10
            )
        submission.refresh_from_db()
        self.assertIsNone(submission.mark)

    def test_student_listing_requires_membership(self):
        self.assertEqual(
            services.list_assignments_for_student(self.student, self.classroom.pk),
            [self.assignment],
        )
        outsider = make_student(email="bob@example.com", name="Bob")
        with self.assertRaises(exceptions.NotFound):
            services.list_assignments_for_student(outsider, self.classroom.pk)


class SubmissionApiTests(TestCase):
    def setUp(self):
        self.media_root = tempfile.mkdtemp()
        self.settings_override = override_settings(MEDIA_ROOT=self.media_root)
        self.settings_override.enable()

        self.client = APIClient()
        self.lecturer = make_lecturer()
        self.student = make_student()
        self.classroom = classroom_services.create_classroom(
            self.lecturer, name="CS101", code="ABC123"
        )
        classroom_services.join_classroom(self.student, self.classroom.pk)
        self.assignment = services.create_assignment(
            self.lecturer, self.classroom.pk, title="HW1"
        )
        self.submissions_url = reverse(
            "assignments:submission-list", args=[self.classroom.pk, self.assignment.pk]
        )

    def tearDown(self):
        self.settings_override.disable()
        shutil.rmtree(self.media_root, ignore_errors=True)

    def test_lecturer_creates_assignment(self):
        self.client.force_authenticate(self.lecturer)
        url = reverse("assignments:assignment-list", args=[self.classroom.pk])
        response = self.client.post(url, {"title": "HW2", "details": "Chapter 2"}, format="json")
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data["assignment"]["title"], "HW2")

        response = self.client.post(
            url,
            {"title": "HW3", "due_date": (timezone.now() - timedelta(days=1)).isoformat()},
            format="json",
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn("due_date", response.data)

    def test_student_lists_assignments_of_joined_classroom(self):
        self.client.force_authenticate(self.student)
        url = reverse("assignments:assignment-list", args=[self.classroom.pk])
        response = self.client.get(url)
        self.assertEqual(response.status_code, 200)
        self.assertEqual([a["title"] for a in response.data["assignments"]], ["HW1"])

        response = self.client.post(url, {"title": "Mine"}, format="json")
        self.assertEqual(response.status_code, 403)

    def test_multipart_upload_and_resubmission(self):
        self.client.force_authenticate(self.student)
        upload = SimpleUploadedFile("hw 1.pdf", b"%PDF-1.4 first", content_type="application/pdf")
        response = self.client.post(self.submissions_url, {"assignment_file": upload}, format="multipart")
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data["submission"]["status"], "submitted")

        submission = Submission.objects.get()
        self.assertTrue(
            submission.assignment_file.name.startswith(
                f"submissions/assignment_{self.assignment.pk}/student_{self.student.pk}/"
            )
        )
        with submission.assignment_file.open("rb") as handle:
            self.assertEqual(handle.read(), b"%PDF-1.4 first")

        upload = SimpleUploadedFile("hw2.pdf", b"%PDF-1.4 second", content_type="application/pdf")
        response = self.client.post(self.submissions_url, {"assignment_file": upload}, format="multipart")
        self.assertEqual(response.status_code, 201)
        self.assertEqual(Submission.objects.count(), 1)
        self.assertEqual(response.data["submission"]["file_name"], "hw2.pdf")

    def test_base64_submission(self):
        self.client.force_authenticate(self.student)
        encoded = base64.b64encode(b"%PDF-1.4 inline").decode()
        response = self.client.post(
            self.submissions_url,
            {"file_data": f"data:application/pdf;base64,{encoded}", "file_name": "inline.pdf"},
            format="json",
        )
        self.assertEqual(response.status_code, 201)
        submission = Submission.objects.get()
        with submission.assignment_file.open("rb") as handle:
            self.assertEqual(handle.read(), b"%PDF-1.4 inline")

        response = self.client.post(
            self.submissions_url, {"file_data": "not base64!", "file_name": "x.pdf"}, format="json"
        )
        self.assertEqual(response.status_code, 400)

    def test_submission_requires_a_file(self):
        self.client.force_authenticate(self.student)
        response = self.client.post(self.submissions_url, {}, format="json")
        self.assertEqual(response.status_code, 400)
        self.assertFalse(Submission.objects.exists())

    def test_outsider_upload_is_not_stored(self):
        outsider = make_student(email="bob@example.com", name="Bob")
        self.client.force_authenticate(outsider)
        upload = SimpleUploadedFile("hw.pdf", b"%PDF-1.4", content_type="application/pdf")
        response = self.client.post(self.submissions_url, {"assignment_file": upload}, format="multipart")
        self.assertEqual(response.status_code, 404)
        self.assertFalse(Submission.objects.exists())

    def test_my_submission(self):
        self.client.force_authenticate(self.student)
        url = reverse("assignments:submission-mine", args=[self.classroom.pk, self.assignment.pk])
        response = self.client.get(url)
        self.assertEqual(response.status_code, 200)
        self.assertIsNone(response.data["submission"])

        services.submit(self.student, self.assignment.pk, "f1.pdf")
        response = self.client.get(url)
        self.assertEqual(response.data["submission"]["file_name"], "f1.pdf")

    def test_grade_and_return_over_http(self):
        submission = services.submit(self.student, self.assignment.pk, "f1.pdf")
        self.client.force_authenticate(self.lecturer)
        grade_url = reverse(
            "assignments:submission-grade",
            args=[self.classroom.pk, self.assignment.pk, submission.pk],
        )

        response = self.client.put(grade_url, {"mark": 150}, format="json")
        self.assertEqual(response.status_code, 400)

        response = self.client.put(grade_url, {"mark": 92.5, "feedback": "Nice"}, format="json")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["submission"]["status"], "graded")
        self.assertEqual(response.data["submission"]["mark"], "92.50")

        response = self.client.get(self.submissions_url)
        self.assertEqual(len(response.data["submissions"]), 1)
        self.assertEqual(response.data["submissions"][0]["student_name"], "Alice")

        return_url = reverse(
            "assignments:submission-return",
            args=[self.classroom.pk, self.assignment.pk, submission.pk],
        )
        response = self.client.post(return_url)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["submission"]["status"], "returned")

    def test_resubmission_removes_replaced_file(self):
        self.client.force_authenticate(self.student)
        for content in (b"%PDF-1.4 one", b"%PDF-1.4 two", b"%PDF-1.4 three"):
            upload = SimpleUploadedFile("hw.pdf", content, content_type="application/pdf")
            with self.captureOnCommitCallbacks(execute=True):
                response = self.client.post(
                    self.submissions_url, {"assignment_file": upload}, format="multipart"
                )
            self.assertEqual(response.status_code, 201)

        submission = Submission.objects.get()
        folder = os.path.join(self.media_root, os.path.dirname(submission.assignment_file.name))
        self.assertEqual(os.listdir(folder), [os.path.basename(submission.assignment_file.name)])
        with submission.assignment_file.open("rb") as handle:
            self.assertEqual(handle.read(), b"%PDF-1.4 three")

    def test_grading_rounds_and_range_checks_marks(self):
        submission = services.submit(self.student, self.assignment.pk, "f1.pdf")
        self.client.force_authenticate(self.lecturer)
        url = reverse(
            "assignments:submission-grade",
            args=[self.classroom.pk, self.assignment.pk, submission.pk],
        )

        response = self.client.put(url, {"mark": 1000}, format="json")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["mark"], ["Mark must be between 0 and 100."])

        response = self.client.put(url, {"mark": "92.555"}, format="json")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["submission"]["mark"], "92.56")
        submission.refresh_from_db()
        self.assertEqual(submission.mark, Decimal("92.56"))

    def test_student_cannot_grade(self):
        submission = services.submit(self.student, self.assignment.pk, "f1.pdf")
        self.client.force_authenticate(self.student)
        url = reverse(
            "assignments:submission-grade",
            args=[self.classroom.pk, self.assignment.pk, submission.pk],
        )
        response = self.client.patch(url, {"mark": 100}, format="json")
        self.assertEqual(response.status_code, 403)
