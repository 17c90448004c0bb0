"""Business rules for assignments, submissions and grading.

Ownership is checked through one predicate per link of the chain
(lecturer → classroom → assignment → submission). When the caller is a
lecturer asking about somebody else's data, every broken link is reported as
``NotFound`` so the response does not reveal whether the object exists.
"""
from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import List, Optional

from django.core.files.storage import default_storage
from django.db import transaction
from django.utils import timezone
from rest_framework import exceptions

from accounts.models import is_student
from classrooms.models import Classroom, lecturer_owns_classroom, student_in_classroom
from classrooms.services import CLASSROOM_NOT_FOUND, get_classroom_for_lecturer

from .models import (
    MARK_MAX,
    MARK_MIN,
    Assignment,
    Submission,
    assignment_owns_submission,
    classroom_owns_assignment,
)

logger = logging.getLogger(__name__)

ASSIGNMENT_NOT_FOUND = "Assignment not found."
SUBMISSION_NOT_FOUND = "Submission not found."
MARK_QUANTUM = Decimal("0.01")


def _validate_title(title: str) -> str:
    title = (title or "").strip()
    if not 2 <= len(title) <= 200:
        raise exceptions.ValidationError(
            {"title": ["Assignment title must be between 2 and 200 characters."]}
        )
    return title


def _validate_due_date(due_date):
    if due_date is None:
        return None
    if timezone.is_naive(due_date):
        due_date = timezone.make_aware(due_date)
    if due_date <= timezone.now():
        raise exceptions.ValidationError({"due_date": ["Due date must be in the future."]})
    return due_date


def parse_mark(value) -> Decimal:
    """Return ``value`` as a two-decimal mark in [0, 100]."""

    if isinstance(value, bool):
        raise exceptions.ValidationError({"mark": ["Mark must be a number."]})
    try:
        mark = Decimal(str(value).strip())
    except (InvalidOperation, ValueError, TypeError) as exc:
        raise exceptions.ValidationError({"mark": ["Mark must be a number."]}) from exc
    if not mark.is_finite() or mark < MARK_MIN or mark > MARK_MAX:
        raise exceptions.ValidationError({"mark": ["Mark must be between 0 and 100."]})
    return mark.quantize(MARK_QUANTUM, rounding=ROUND_HALF_UP)


# ---------------------------------------------------------------------------
# Assignment catalog
# ---------------------------------------------------------------------------


def create_assignment(
    lecturer,
    classroom_id: int,
    *,
    title: str,
    details: str = "",
    due_date=None,
) -> Assignment:
    classroom = Classroom.objects.filter(pk=classroom_id).first()
    if classroom is None:
        raise exceptions.NotFound(CLASSROOM_NOT_FOUND)
    if not lecturer_owns_classroom(lecturer, classroom):
        raise exceptions.PermissionDenied(
            "Only the classroom owner can create assignments."
        )

    title = _validate_title(title)
    due_date = _validate_due_date(due_date)

    assignment = Assignment.objects.create(
        title=title,
        details=details or "",
        due_date=due_date,
        created_by=lecturer,
        classroom=classroom,
    )
    logger.info(
        "Assignment %s created in classroom %s by user_id=%s",
        assignment.pk,
        classroom.code,
        lecturer.pk,
    )
    return assignment


def _assignment_in_classroom(classroom: Classroom, assignment_id: int) -> Assignment:
    assignment = Assignment.objects.filter(pk=assignment_id).first()
    if not classroom_owns_assignment(classroom, assignment):
        raise exceptions.NotFound(ASSIGNMENT_NOT_FOUND)
    return assignment


def list_assignments(lecturer, classroom_id: int) -> List[Assignment]:
    classroom = get_classroom_for_lecturer(lecturer, classroom_id)
    return list(classroom.assignments.order_by("-created_at", "-id"))


def get_assignment(lecturer, classroom_id: int, assignment_id: int) -> Assignment:
    classroom = get_classroom_for_lecturer(lecturer, classroom_id)
    return _assignment_in_classroom(classroom, assignment_id)


def list_assignments_for_student(student, classroom_id: int) -> List[Assignment]:
    """Assignments of a classroom ``student`` has joined, newest first."""

    if not student_in_classroom(student, classroom_id):
        raise exceptions.NotFound(CLASSROOM_NOT_FOUND)
    return list(
        Assignment.objects.filter(classroom_id=classroom_id).order_by("-created_at", "-id")
    )


def get_assignment_for_student(
    student, assignment_id: int, *, classroom_id: int | None = None
) -> Assignment:
    """Return an assignment the student can submit to.

    Non-members get the same ``NotFound`` as for a missing assignment.
    """

    if not is_student(student):
        raise exceptions.NotFound("Student not found.")
    assignment = Assignment.objects.filter(pk=assignment_id).first()
    if assignment is None or (
        classroom_id is not None and assignment.classroom_id != int(classroom_id)
    ):
        raise exceptions.NotFound(ASSIGNMENT_NOT_FOUND)
    if not student_in_classroom(student, assignment.classroom_id):
        raise exceptions.NotFound(ASSIGNMENT_NOT_FOUND)
    return assignment


# ---------------------------------------------------------------------------
# Submission workflow
# ---------------------------------------------------------------------------


@transaction.atomic
def submit(student, assignment_id: int, file_ref: str, *, classroom_id: int | None = None) -> Submission:
    """Create or replace ``student``'s submission for the assignment.

    The row is keyed on (student, assignment): a re-submission swaps the file,
    resets ``submitted_at`` and drops any previous grade, because the graded
    file is gone. Status is ``late`` when the due date has already passed.
    """

    assignment = get_assignment_for_student(student, assignment_id, classroom_id=classroom_id)

    file_ref = (file_ref or "").strip()
    if not file_ref:
        raise exceptions.ValidationError({"assignment_file": ["A file is required."]})

    now = timezone.now()
    status = (
        Submission.Status.LATE if assignment.is_past_due(now) else Submission.Status.SUBMITTED
    )

    previous = (
        Submission.objects.select_for_update()
        .filter(student=student, assignment=assignment)
        .values_list("assignment_file", flat=True)
        .first()
    )

    # update_or_create locks an existing row and falls back to a get when a
    # concurrent insert wins the unique (student, assignment) constraint.
    submission, created = Submission.objects.update_or_create(
        student=student,
        assignment=assignment,
        defaults={
            "assignment_file": file_ref,
            "submitted_at": now,
            "status": status,
            "mark": None,
            "feedback": "",
            "graded_at": None,
            "graded_by": None,
            "ai_evaluation": None,
        },
    )
    if previous and previous != file_ref:
        # The row only points at the newest file; drop the replaced one.
        transaction.on_commit(lambda: default_storage.delete(previous))
    logger.info(
        "%s submission %s for assignment %s by user_id=%s (%s)",
        "New" if created else "Replaced",
        submission.pk,
        assignment.pk,
        student.pk,
        status,
    )
    return submission


def get_submission_for_lecturer(
    lecturer,
    classroom_id: int,
    assignment_id: int,
    submission_id: int,
    *,
    for_update: bool = False,
) -> Submission:
    classroom = get_classroom_for_lecturer(lecturer, classroom_id)
    assignment = _assignment_in_classroom(classroom, assignment_id)
    queryset = Submission.objects.select_related("student", "assignment")
    if for_update:
        queryset = queryset.select_for_update()
    submission = queryset.filter(pk=submission_id).first()
    if not assignment_owns_submission(assignment, submission):
        raise exceptions.NotFound(SUBMISSION_NOT_FOUND)
    return submission


@transaction.atomic
def grade_submission(
    lecturer,
    classroom_id: int,
    assignment_id: int,
    submission_id: int,
    *,
    mark,
    feedback: str | None = None,
) -> Submission:
    """Attach a mark and feedback to a submission.

    Setting a mark is the only way a submission becomes ``graded``; the
    grader and ``graded_at`` are written in the same update. Without a mark
    only the feedback changes.
    """

    submission = get_submission_for_lecturer(
        lecturer, classroom_id, assignment_id, submission_id, for_update=True
    )

    if mark is None:
        if feedback is not None:
            submission.feedback = feedback
            submission.save(update_fields=["feedback", "updated_at"])
        return submission

    submission.mark = parse_mark(mark)
    if feedback is not None:
        submission.feedback = feedback
    submission.graded_by = lecturer
    submission.graded_at = timezone.now()
    submission.status = Submission.Status.GRADED
    submission.save(
        update_fields=["mark", "feedback", "graded_by", "graded_at", "status", "updated_at"]
    )
    logger.info(
        "Submission %s graded %s by user_id=%s", submission.pk, submission.mark, lecturer.pk
    )
    return submission


@transaction.atomic
def return_submission(
    lecturer, classroom_id: int, assignment_id: int, submission_id: int
) -> Submission:
    submission = get_submission_for_lecturer(
        lecturer, classroom_id, assignment_id, submission_id, for_update=True
    )
    if submission.status != Submission.Status.GRADED:
        raise exceptions.ValidationError(
            {"status": ["Only graded submissions can be returned."]}
        )
    submission.status = Submission.Status.RETURNED
    submission.save(update_fields=["status", "updated_at"])
    logger.info("Submission %s returned by user_id=%s", submission.pk, lecturer.pk)
    return submission


def list_submissions(lecturer, classroom_id: int, assignment_id: int) -> List[Submission]:
    classroom = get_classroom_for_lecturer(lecturer, classroom_id)
    assignment = _assignment_in_classroom(classroom, assignment_id)
    return list(
        assignment.submissions.select_related("student__student_profile", "graded_by")
        .order_by("-submitted_at", "-id")
    )


def find_submission(student, assignment_id: int) -> Optional[Submission]:
    return (
        Submission.objects.filter(student=student, assignment_id=assignment_id)
        .select_related("assignment")
        .first()
    )
