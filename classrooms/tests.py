from io import StringIO
from unittest.mock import patch

from django.core.management import call_command
from django.test import TestCase, override_settings
from django.urls import reverse
from rest_framework import exceptions
from rest_framework.test import APIClient

from accounts import services as account_services
from assignments.models import Assignment, Submission
from classrooms import services
from classrooms.models import Classroom, ClassroomMembership, lecturer_owns_classroom
from homeworkhub.exceptions import Conflict, ResourceExhausted


def make_lecturer(email="lecturer@example.com", name="Dr. Smith"):
    return account_services.register_lecturer(name=name, email=email, password="secret1").user


def make_student(email="student@example.com", name="Alice"):
    return account_services.register_student(name=name, email=email, password="secret1").user


class ClassroomServiceTests(TestCase):
    def setUp(self):
        self.lecturer = make_lecturer()
        self.student = make_student()

    def test_generated_code_is_uppercase_alphanumeric(self):
        classroom = services.create_classroom(self.lecturer, name="Programming")
        self.assertEqual(len(classroom.code), 6)
        self.assertTrue(classroom.code.isalnum())
        self.assertEqual(classroom.code, classroom.code.upper())
        self.assertTrue(lecturer_owns_classroom(self.lecturer, classroom))

    def test_supplied_code_is_uppercased(self):
        classroom = services.create_classroom(self.lecturer, name="CS101", code="abc123")
        self.assertEqual(classroom.code, "ABC123")

    def test_duplicate_supplied_code_is_conflict(self):
        services.create_classroom(self.lecturer, name="CS101", code="ABC123")
        with self.assertRaises(Conflict):
            services.create_classroom(self.lecturer, name="CS102", code="abc123")
        self.assertEqual(Classroom.objects.count(), 1)

    def test_invalid_name_and_code_are_rejected(self):
        with self.assertRaises(exceptions.ValidationError):
            services.create_classroom(self.lecturer, name="X")
        with self.assertRaises(exceptions.ValidationError):
            services.create_classroom(self.lecturer, name="CS101", code="AB-12")
        self.assertFalse(Classroom.objects.exists())

    def test_generation_retries_after_collision(self):
        services.create_classroom(self.lecturer, name="First", code="AAAAAA")
        with patch(
            "classrooms.services.generate_classroom_code", side_effect=["AAAAAA", "BBBBBB"]
        ) as generate:
            classroom = services.create_classroom(self.lecturer, name="Second")
        self.assertEqual(classroom.code, "BBBBBB")
        self.assertEqual(generate.call_count, 2)

    @override_settings(CLASSROOM_CODE_MAX_ATTEMPTS=3)
    def test_generation_gives_up_after_max_attempts(self):
        services.create_classroom(self.lecturer, name="First", code="AAAAAA")
        with patch(
            "classrooms.services.generate_classroom_code", return_value="AAAAAA"
        ) as generate:
            with self.assertRaises(ResourceExhausted):
                services.create_classroom(self.lecturer, name="Second")
        self.assertEqual(generate.call_count, 3)
        self.assertEqual(Classroom.objects.count(), 1)

    def test_join_is_case_insensitive_and_only_once(self):
        classroom = services.create_classroom(self.lecturer, name="CS101", code="ABC123")
        membership = services.join_classroom_by_code(self.student, "abc123")
        self.assertEqual(membership.classroom, classroom)
        with self.assertRaises(Conflict):
            services.join_classroom_by_code(self.student, "ABC123")
        self.assertEqual(ClassroomMembership.objects.count(), 1)

    def test_unknown_code_is_not_found_for_every_student(self):
        other = make_student(email="bob@example.com", name="Bob")
        for student in (self.student, other):
            with self.assertRaises(exceptions.NotFound):
                services.join_classroom_by_code(student, "NOPE99")
        self.assertFalse(ClassroomMembership.objects.exists())

    def test_lecturer_cannot_join(self):
        classroom = services.create_classroom(self.lecturer, name="CS101")
        with self.assertRaises(exceptions.NotFound):
            services.join_classroom(self.lecturer, classroom.pk)

    def test_other_lecturer_is_masked(self):
        classroom = services.create_classroom(self.lecturer, name="CS101", code="ABC123")
        other = make_lecturer(email="other@example.com", name="Dr. Other")
        with self.assertRaises(exceptions.NotFound):
            services.get_classroom_for_lecturer(other, classroom.pk)
        with self.assertRaises(exceptions.PermissionDenied):
            services.get_classroom_by_code(other, "ABC123")
        self.assertEqual(services.get_classroom_by_code(self.student, "abc123"), classroom)

    def test_list_students_returns_members_in_join_order(self):
        classroom = services.create_classroom(self.lecturer, name="CS101")
        bob = make_student(email="bob@example.com", name="Bob")
        services.join_classroom(self.student, classroom.pk)
        services.join_classroom(bob, classroom.pk)
        memberships = services.list_students_for_classroom(self.lecturer, classroom.pk)
        self.assertEqual([m.student for m in memberships], [self.student, bob])
        self.assertEqual(services.list_classrooms_for_student(bob), [classroom])


class ClassroomApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.lecturer = make_lecturer()
        self.student = make_student()

    def test_lecturer_creates_and_lists_classrooms(self):
        self.client.force_authenticate(self.lecturer)
        response = self.client.post(
            reverse("classrooms:classroom-list"),
            {"name": "Introduction to Programming", "details": "Python", "code": "cs101a"},
            format="json",
        )
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data["classroom"]["code"], "CS101A")
        self.assertEqual(response.data["classroom"]["lecturer"]["name"], "Dr. Smith")

        response = self.client.get(reverse("classrooms:classroom-list"))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.data["classrooms"]), 1)

    def test_duplicate_code_returns_409(self):
        services.create_classroom(self.lecturer, name="CS101", code="ABC123")
        self.client.force_authenticate(self.lecturer)
        response = self.client.post(
            reverse("classrooms:classroom-list"),
            {"name": "Another", "code": "ABC123"},
            format="json",
        )
        self.assertEqual(response.status_code, 409)

    def test_student_cannot_create_classroom(self):
        self.client.force_authenticate(self.student)
        response = self.client.post(
            reverse("classrooms:classroom-list"), {"name": "Nope"}, format="json"
        )
        self.assertEqual(response.status_code, 403)

    def test_student_joins_and_lists(self):
        services.create_classroom(self.lecturer, name="CS101", code="ABC123")
        self.client.force_authenticate(self.student)
        url = reverse("classrooms:classroom-join")

        response = self.client.post(url, {"classroom_code": "abc123"}, format="json")
        self.assertEqual(response.status_code, 201)
        response = self.client.post(url, {"classroom_code": "abc123"}, format="json")
        self.assertEqual(response.status_code, 409)
        response = self.client.post(url, {"classroom_code": "ZZZ999"}, format="json")
        self.assertEqual(response.status_code, 404)

        response = self.client.get(reverse("classrooms:classroom-joined"))
        self.assertEqual([c["code"] for c in response.data["classrooms"]], ["ABC123"])

    def test_members_listing_is_owner_only(self):
        classroom = services.create_classroom(self.lecturer, name="CS101")
        services.join_classroom(self.student, classroom.pk)
        url = reverse("classrooms:classroom-students", args=[classroom.pk])

        self.client.force_authenticate(self.lecturer)
        response = self.client.get(url)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["students"][0]["email"], "student@example.com")

        other = make_lecturer(email="other@example.com", name="Dr. Other")
        self.client.force_authenticate(other)
        self.assertEqual(self.client.get(url).status_code, 404)


class SeedDemoDataCommandTests(TestCase):
    def test_seed_is_idempotent(self):
        call_command("seed_demo_data", stdout=StringIO())
        call_command("seed_demo_data", stdout=StringIO())

        self.assertEqual(
            sorted(Classroom.objects.values_list("code", flat=True)), ["CS101A", "MATH101"]
        )
        self.assertEqual(ClassroomMembership.objects.count(), 5)
        self.assertEqual(Assignment.objects.count(), 2)
        graded = Submission.objects.get(student__username="alice.brown@student.edu")
        self.assertEqual(graded.status, Submission.Status.GRADED)
        self.assertEqual(str(graded.mark), "85.50")
