"""Classrooms and the students who joined them."""

from django.conf import settings
from django.core.validators import MinLengthValidator
from django.db import models

CODE_MIN_LENGTH = 6
CODE_MAX_LENGTH = 10


class Classroom(models.Model):
    """A classroom owned by a lecturer, joined by students via its code."""

    name = models.CharField(max_length=100, validators=[MinLengthValidator(2)])
    details = models.TextField(blank=True)
    code = models.CharField(
        max_length=CODE_MAX_LENGTH,
        unique=True,
        validators=[MinLengthValidator(CODE_MIN_LENGTH)],
    )
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="classrooms_created",
    )
    students = models.ManyToManyField(
        settings.AUTH_USER_MODEL,
        through="ClassroomMembership",
        related_name="classrooms_joined",
        blank=True,
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at", "-id"]

    def __str__(self) -> str:  # pragma: no cover - representation only
        return f"{self.name} ({self.code})"


class ClassroomMembership(models.Model):
    classroom = models.ForeignKey(
        Classroom, on_delete=models.CASCADE, related_name="memberships"
    )
    student = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="classroom_memberships",
    )
    joined_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = ("classroom", "student")
        indexes = [models.Index(fields=["student"], name="classroom_member_student_idx")]

    def __str__(self) -> str:  # pragma: no cover - representation only
        return f"{self.student} -> {self.classroom}"


def lecturer_owns_classroom(lecturer, classroom: Classroom) -> bool:
    """Return True if ``lecturer`` created ``classroom``."""

    if not lecturer or classroom is None:
        return False
    return classroom.created_by_id == lecturer.pk


def student_in_classroom(student, classroom_id: int) -> bool:
    if not student or not classroom_id:
        return False
    return ClassroomMembership.objects.filter(
        student_id=student.pk, classroom_id=classroom_id
    ).exists()
