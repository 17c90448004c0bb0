from django.contrib.auth import get_user_model
from django.test import TestCase
from django.urls import reverse
from rest_framework.exceptions import AuthenticationFailed
from rest_framework.test import APIClient

from accounts import services
from accounts.models import LecturerProfile, Role, StudentProfile, is_lecturer, is_student
from homeworkhub.exceptions import Conflict

User = get_user_model()


class RegistrationServiceTests(TestCase):
    def test_register_lecturer_normalises_email_and_hashes_password(self):
        profile = services.register_lecturer(
            name="Ada Lovelace",
            email="  Ada@Example.COM ",
            password="secret1",
            department="Mathematics",
        )
        self.assertEqual(profile.user.username, "ada@example.com")
        self.assertEqual(profile.email, "ada@example.com")
        self.assertNotEqual(profile.user.password, "secret1")
        self.assertTrue(profile.user.check_password("secret1"))
        self.assertTrue(is_lecturer(profile.user))
        self.assertFalse(is_student(profile.user))

    def test_duplicate_email_is_conflict_across_roles(self):
        services.register_student(name="Alice", email="alice@example.com", password="secret1")
        with self.assertRaises(Conflict):
            services.register_student(name="Alice 2", email="ALICE@example.com", password="secret1")
        with self.assertRaises(Conflict):
            services.register_lecturer(name="Alice", email="alice@example.com", password="secret1")
        self.assertEqual(User.objects.filter(username="alice@example.com").count(), 1)
        self.assertEqual(LecturerProfile.objects.count(), 0)

    def test_authenticate_rejects_wrong_password_and_wrong_role(self):
        services.register_student(name="Bob", email="bob@example.com", password="secret1")
        with self.assertRaises(AuthenticationFailed):
            services.authenticate_member(email="bob@example.com", password="nope", role=Role.STUDENT)
        with self.assertRaises(AuthenticationFailed):
            services.authenticate_member(email="bob@example.com", password="secret1", role=Role.LECTURER)
        profile = services.authenticate_member(
            email="BOB@example.com", password="secret1", role=Role.STUDENT
        )
        self.assertIsInstance(profile, StudentProfile)


class AccountApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()

    def test_lecturer_signup_and_signin(self):
        response = self.client.post(
            reverse("accounts:lecturer-signup"),
            {
                "name": "John Smith",
                "email": "john@example.com",
                "password": "lecturer123",
                "phone_number": "+1234567890",
                "department": "Computer Science",
            },
            format="json",
        )
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data["lecturer"]["email"], "john@example.com")
        self.assertNotIn("password", response.data["lecturer"])

        response = self.client.post(
            reverse("accounts:lecturer-signin"),
            {"email": "john@example.com", "password": "lecturer123"},
            format="json",
        )
        self.assertEqual(response.status_code, 200)
        self.assertIn("token", response.data)
        self.assertIn("refresh", response.data)
        self.assertEqual(response.data["lecturer"]["name"], "John Smith")

        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {response.data['token']}")
        response = self.client.get(reverse("accounts:lecturer-profile"))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["department"], "Computer Science")

    def test_duplicate_signup_returns_409(self):
        payload = {"name": "Alice", "email": "alice@example.com", "password": "student123"}
        self.assertEqual(
            self.client.post(reverse("accounts:student-signup"), payload, format="json").status_code,
            201,
        )
        response = self.client.post(reverse("accounts:student-signup"), payload, format="json")
        self.assertEqual(response.status_code, 409)

    def test_signup_validates_fields(self):
        response = self.client.post(
            reverse("accounts:student-signup"),
            {"name": "A", "email": "not-an-email", "password": "123"},
            format="json",
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn("name", response.data)
        self.assertIn("email", response.data)
        self.assertIn("password", response.data)

    def test_signin_with_wrong_password_is_401(self):
        services.register_student(name="Alice", email="alice@example.com", password="student123")
        response = self.client.post(
            reverse("accounts:student-signin"),
            {"email": "alice@example.com", "password": "wrong-password"},
            format="json",
        )
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response["WWW-Authenticate"], 'Bearer realm="api"')

    def test_student_cannot_use_lecturer_endpoint(self):
        profile = services.register_student(
            name="Alice", email="alice@example.com", password="student123"
        )
        self.client.force_authenticate(profile.user)
        response = self.client.get(reverse("accounts:lecturer-profile"))
        self.assertEqual(response.status_code, 403)

    def test_profile_requires_authentication(self):
        response = self.client.get(reverse("accounts:student-profile"))
        self.assertEqual(response.status_code, 401)

    def test_update_student_profile_name(self):
        profile = services.register_student(
            name="Alice", email="alice@example.com", password="student123"
        )
        self.client.force_authenticate(profile.user)
        response = self.client.patch(
            reverse("accounts:student-profile"), {"name": "Alice Brown"}, format="json"
        )
        self.assertEqual(response.status_code, 200)
        profile.refresh_from_db()
        self.assertEqual(profile.name, "Alice Brown")

    def test_password_change(self):
        profile = services.register_student(
            name="Alice", email="alice@example.com", password="student123"
        )
        self.client.force_authenticate(profile.user)
        url = reverse("accounts:password-change")

        response = self.client.post(
            url, {"old_password": "wrong", "new_password": "newpass123"}, format="json"
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn("old_password", response.data)

        response = self.client.post(
            url, {"old_password": "student123", "new_password": "newpass123"}, format="json"
        )
        self.assertEqual(response.status_code, 200)
        profile.user.refresh_from_db()
        self.assertTrue(profile.user.check_password("newpass123"))
