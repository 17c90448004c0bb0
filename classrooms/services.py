"""Classroom registry and membership rules.

Views call these helpers with the authenticated user; every rule about who
may see or change a classroom lives here so it can be tested without HTTP.
"""
from __future__ import annotations

import logging
import string
from typing import List

from django.conf import settings
from django.db import IntegrityError, transaction
from django.utils.crypto import get_random_string
from rest_framework import exceptions

from accounts.models import is_lecturer, is_student
from homeworkhub.exceptions import Conflict, ResourceExhausted

from .models import (
    CODE_MAX_LENGTH,
    CODE_MIN_LENGTH,
    Classroom,
    ClassroomMembership,
    lecturer_owns_classroom,
)

logger = logging.getLogger(__name__)

CODE_ALPHABET = string.ascii_uppercase + string.digits

CLASSROOM_NOT_FOUND = "Classroom not found or you do not have access to it."
CODE_TAKEN = "Classroom code already exists. Please use a different code."
ALREADY_JOINED = "You are already in this classroom."


def normalize_code(code: str) -> str:
    return (code or "").strip().upper()


def generate_classroom_code(length: int | None = None) -> str:
    length = length or settings.CLASSROOM_CODE_LENGTH
    return get_random_string(length, allowed_chars=CODE_ALPHABET)


def _validate_name(name: str) -> str:
    name = (name or "").strip()
    if not 2 <= len(name) <= 100:
        raise exceptions.ValidationError(
            {"name": ["Classroom name must be between 2 and 100 characters."]}
        )
    return name


def _validate_code(code: str) -> str:
    code = normalize_code(code)
    if not CODE_MIN_LENGTH <= len(code) <= CODE_MAX_LENGTH or not code.isalnum():
        raise exceptions.ValidationError(
            {
                "code": [
                    f"Classroom code must be {CODE_MIN_LENGTH}-{CODE_MAX_LENGTH} "
                    "letters or digits."
                ]
            }
        )
    return code


def _insert_classroom(owner, name: str, details: str, code: str) -> Classroom:
    with transaction.atomic():
        return Classroom.objects.create(
            name=name, details=details, code=code, created_by=owner
        )


def create_classroom(owner, *, name: str, details: str = "", code: str | None = None) -> Classroom:
    """Create a classroom owned by ``owner``.

    A supplied ``code`` is uppercased and must be free. Without one, random
    codes are drawn until one is free; a code grabbed by a concurrent insert
    between the check and the write counts as a collision, not an error.
    """

    name = _validate_name(name)
    details = details or ""

    if code:
        code = _validate_code(code)
        if Classroom.objects.filter(code=code).exists():
            raise Conflict(CODE_TAKEN)
        try:
            classroom = _insert_classroom(owner, name, details, code)
        except IntegrityError as exc:
            raise Conflict(CODE_TAKEN) from exc
        logger.info("Classroom %s created by user_id=%s", classroom.code, owner.pk)
        return classroom

    max_attempts = settings.CLASSROOM_CODE_MAX_ATTEMPTS
    for attempt in range(1, max_attempts + 1):
        candidate = generate_classroom_code()
        if Classroom.objects.filter(code=candidate).exists():
            logger.warning("Generated classroom code collided (attempt %s)", attempt)
            continue
        try:
            classroom = _insert_classroom(owner, name, details, candidate)
        except IntegrityError:
            logger.warning("Classroom code taken concurrently (attempt %s)", attempt)
            continue
        logger.info("Classroom %s created by user_id=%s", classroom.code, owner.pk)
        return classroom

    logger.error("Gave up generating a classroom code after %s attempts", max_attempts)
    raise ResourceExhausted("Could not generate a unique classroom code, try again.")


def get_classroom_for_lecturer(lecturer, classroom_id: int) -> Classroom:
    """Return the classroom if ``lecturer`` owns it.

    Missing and foreign classrooms raise the same error so other lecturers
    cannot learn which ids exist.
    """

    classroom = Classroom.objects.filter(pk=classroom_id).first()
    if classroom is None or not lecturer_owns_classroom(lecturer, classroom):
        raise exceptions.NotFound(CLASSROOM_NOT_FOUND)
    return classroom


def get_classroom_by_code(user, code: str) -> Classroom:
    classroom = Classroom.objects.filter(code=normalize_code(code)).first()
    if classroom is None:
        raise exceptions.NotFound("Invalid classroom code. Please try again.")
    if is_lecturer(user) and not lecturer_owns_classroom(user, classroom):
        raise exceptions.PermissionDenied("You do not have access to this classroom.")
    return classroom


def list_classrooms_for_lecturer(lecturer) -> List[Classroom]:
    return list(Classroom.objects.filter(created_by=lecturer).order_by("-created_at", "-id"))


def join_classroom(student, classroom_id: int) -> ClassroomMembership:
    """Add ``student`` to the classroom; a second join is a conflict."""

    if not is_student(student):
        raise exceptions.NotFound("Student not found.")
    classroom = Classroom.objects.filter(pk=classroom_id).first()
    if classroom is None:
        raise exceptions.NotFound("Classroom not found.")

    if ClassroomMembership.objects.filter(classroom=classroom, student=student).exists():
        raise Conflict(ALREADY_JOINED)
    try:
        with transaction.atomic():
            membership = ClassroomMembership.objects.create(
                classroom=classroom, student=student
            )
    except IntegrityError as exc:
        raise Conflict(ALREADY_JOINED) from exc

    logger.info("Student user_id=%s joined classroom %s", student.pk, classroom.code)
    return membership


def join_classroom_by_code(student, code: str) -> ClassroomMembership:
    classroom = Classroom.objects.filter(code=normalize_code(code)).first()
    if classroom is None:
        raise exceptions.NotFound("Invalid classroom code. Please try again.")
    return join_classroom(student, classroom.pk)


def list_classrooms_for_student(student) -> List[Classroom]:
    return list(
        Classroom.objects.filter(memberships__student=student)
        .select_related("created_by__lecturer_profile")
        .order_by("-memberships__joined_at", "-id")
    )


def list_students_for_classroom(lecturer, classroom_id: int) -> List[ClassroomMembership]:
    """Return memberships (with the student profile) of an owned classroom."""

    classroom = get_classroom_for_lecturer(lecturer, classroom_id)
    return list(
        classroom.memberships.select_related("student__student_profile").order_by(
            "joined_at", "id"
        )
    )
