from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone

from accounts.models import LecturerProfile, StudentProfile
from assignments.models import Assignment, Submission
from classrooms.models import Classroom, ClassroomMembership

LECTURERS = [
    {
        "name": "Dr. John Smith",
        "email": "john.smith@university.edu",
        "password": "lecturer123",
        "phone_number": "+1234567890",
        "department": "Computer Science",
        "bio": "Professor of Computer Science with 15 years of experience in "
        "software engineering and artificial intelligence.",
    },
    {
        "name": "Dr. Sarah Johnson",
        "email": "sarah.johnson@university.edu",
        "password": "lecturer456",
        "phone_number": "+1234567891",
        "department": "Mathematics",
        "bio": "Associate Professor of Mathematics specializing in calculus and linear algebra.",
    },
]

STUDENTS = [
    {"name": "Alice Brown", "email": "alice.brown@student.edu", "password": "student123"},
    {"name": "Bob Wilson", "email": "bob.wilson@student.edu", "password": "student456"},
    {"name": "Charlie Davis", "email": "charlie.davis@student.edu", "password": "student789"},
]


class Command(BaseCommand):
    help = "Create demo lecturers, students, classrooms, assignments and submissions"

    def _user(self, email: str, password: str):
        User = get_user_model()
        user, created = User.objects.get_or_create(
            username=email, defaults={"email": email, "is_active": True}
        )
        if created:
            user.set_password(password)
            user.save(update_fields=["password"])
        return user

    @transaction.atomic
    def handle(self, *args, **options):
        lecturers = []
        for data in LECTURERS:
            user = self._user(data["email"], data["password"])
            LecturerProfile.objects.update_or_create(
                user=user,
                defaults={
                    "name": data["name"],
                    "phone_number": data["phone_number"],
                    "department": data["department"],
                    "bio": data["bio"],
                },
            )
            lecturers.append(user)

        students = []
        for data in STUDENTS:
            user = self._user(data["email"], data["password"])
            StudentProfile.objects.update_or_create(user=user, defaults={"name": data["name"]})
            students.append(user)

        smith, johnson = lecturers
        alice, bob, charlie = students

        programming, _ = Classroom.objects.update_or_create(
            code="CS101A",
            defaults={
                "name": "Introduction to Programming",
                "details": "Learn the fundamentals of programming using Python",
                "created_by": smith,
            },
        )
        calculus, _ = Classroom.objects.update_or_create(
            code="MATH101",
            defaults={
                "name": "Calculus I",
                "details": "Differential and integral calculus",
                "created_by": johnson,
            },
        )

        for classroom, members in ((programming, students), (calculus, [alice, bob])):
            for student in members:
                ClassroomMembership.objects.get_or_create(classroom=classroom, student=student)

        now = timezone.now()
        python_basics, _ = Assignment.objects.get_or_create(
            classroom=programming,
            title="Python Basics - Variables and Data Types",
            defaults={
                "details": "Complete exercises on Python variables, data types, and basic operations.",
                "due_date": now + timedelta(days=7),
                "created_by": smith,
            },
        )
        Assignment.objects.get_or_create(
            classroom=calculus,
            title="Limits and Continuity",
            defaults={
                "details": "Solve problems related to limits and continuity of functions.",
                "due_date": now + timedelta(days=10),
                "created_by": johnson,
            },
        )

        Submission.objects.get_or_create(
            student=alice,
            assignment=python_basics,
            defaults={
                "assignment_file": "uploads/alice_python_assignment.pdf",
                "mark": Decimal("85.50"),
                "status": Submission.Status.GRADED,
                "feedback": "Good work! Pay attention to variable naming conventions.",
                "graded_by": smith,
                "graded_at": now,
            },
        )
        Submission.objects.get_or_create(
            student=bob,
            assignment=python_basics,
            defaults={"assignment_file": "uploads/bob_python_assignment.pdf"},
        )

        self.stdout.write(
            self.style.SUCCESS(
                f"Demo data ready: {len(lecturers)} lecturers, {len(students)} students, "
                f"classrooms {programming.code} and {calculus.code}"
            )
        )
