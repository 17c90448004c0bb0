"""Models for assignments and the students' submissions for them."""

from decimal import Decimal

from django.conf import settings
from django.core.validators import MaxValueValidator, MinLengthValidator, MinValueValidator
from django.db import models
from django.utils import timezone

from classrooms.models import Classroom

MARK_MIN = Decimal("0")
MARK_MAX = Decimal("100")


class Assignment(models.Model):
    """An assignment published by a lecturer in one of their classrooms."""

    title = models.CharField(max_length=200, validators=[MinLengthValidator(2)])
    details = models.TextField(blank=True)
    due_date = models.DateTimeField(null=True, blank=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="assignments_created",
    )
    classroom = models.ForeignKey(
        Classroom, on_delete=models.CASCADE, related_name="assignments"
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at", "-id"]

    def __str__(self) -> str:  # pragma: no cover - simple representation
        return self.title

    def is_past_due(self, at=None) -> bool:
        if self.due_date is None:
            return False
        return (at or timezone.now()) > self.due_date


def submission_upload_to(instance, filename: str) -> str:
    return (
        f"{settings.SUBMISSION_UPLOAD_DIR}/assignment_{instance.assignment_id}/"
        f"student_{instance.student_id}/{filename}"
    )


class Submission(models.Model):
    """A student's latest deliverable for one assignment."""

    class Status(models.TextChoices):
        SUBMITTED = "submitted", "Submitted"
        GRADED = "graded", "Graded"
        RETURNED = "returned", "Returned"
        LATE = "late", "Late"

    student = models.ForeignKey(
        settings.AUTH_USER_MODEL, related_name="submissions", on_delete=models.CASCADE
    )
    assignment = models.ForeignKey(
        Assignment, related_name="submissions", on_delete=models.CASCADE
    )
    assignment_file = models.FileField(upload_to=submission_upload_to, max_length=255)
    submitted_at = models.DateTimeField(default=timezone.now)
    mark = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(MARK_MIN), MaxValueValidator(MARK_MAX)],
    )
    status = models.CharField(
        max_length=16, choices=Status.choices, default=Status.SUBMITTED
    )
    feedback = models.TextField(blank=True)
    graded_at = models.DateTimeField(null=True, blank=True)
    graded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="graded_submissions",
    )
    ai_evaluation = models.JSONField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        unique_together = ("student", "assignment")
        ordering = ["-submitted_at", "-id"]

    def __str__(self) -> str:  # pragma: no cover - simple representation
        return f"{self.student} - {self.assignment}"


def classroom_owns_assignment(classroom, assignment: Assignment) -> bool:
    if classroom is None or assignment is None:
        return False
    return assignment.classroom_id == classroom.pk


def assignment_owns_submission(assignment, submission: Submission) -> bool:
    if assignment is None or submission is None:
        return False
    return submission.assignment_id == assignment.pk
