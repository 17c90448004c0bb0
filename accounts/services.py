"""Signup, signin and credential changes for lecturers and students.

Password hashing is delegated to Django's configured hashers and token
issuing to ``rest_framework_simplejwt``; this module only decides who may
get an account or a token.
"""
from __future__ import annotations

import logging

from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction
from rest_framework import exceptions
from rest_framework_simplejwt.tokens import RefreshToken

from homeworkhub.exceptions import Conflict

from .models import LecturerProfile, Role, StudentProfile

logger = logging.getLogger(__name__)

DUPLICATE_EMAIL_MESSAGE = "An account with this email already exists."
INVALID_CREDENTIALS_MESSAGE = "Invalid email or password."

PROFILE_MODELS = {
    Role.LECTURER.value: LecturerProfile,
    Role.STUDENT.value: StudentProfile,
}


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def _register(role: str, *, name: str, email: str, password: str, **profile_fields):
    user_model = get_user_model()
    email = normalize_email(email)
    if user_model.objects.filter(username=email).exists():
        raise Conflict(DUPLICATE_EMAIL_MESSAGE)

    try:
        with transaction.atomic():
            user = user_model(username=email, email=email)
            user.set_password(password)
            user.save()
            profile = PROFILE_MODELS[str(role)].objects.create(
                user=user, name=name.strip(), **profile_fields
            )
    except IntegrityError as exc:
        # Lost a race against a concurrent signup with the same email.
        raise Conflict(DUPLICATE_EMAIL_MESSAGE) from exc

    logger.info("Registered %s account user_id=%s", role, user.pk)
    return profile


def register_lecturer(
    *,
    name: str,
    email: str,
    password: str,
    phone_number: str = "",
    department: str = "",
    bio: str = "",
) -> LecturerProfile:
    return _register(
        Role.LECTURER,
        name=name,
        email=email,
        password=password,
        phone_number=phone_number or "",
        department=department or "",
        bio=bio or "",
    )


def register_student(*, name: str, email: str, password: str) -> StudentProfile:
    return _register(Role.STUDENT, name=name, email=email, password=password)


def authenticate_member(*, email: str, password: str, role: str):
    """Return the profile of the ``role`` account matching the credentials.

    Unknown email, wrong password and wrong role all fail the same way so a
    caller cannot probe which accounts exist.
    """

    profile = (
        PROFILE_MODELS[str(role)]
        .objects.select_related("user")
        .filter(user__username=normalize_email(email))
        .first()
    )
    if profile is None or not profile.user.is_active or not profile.user.check_password(password):
        logger.info("Rejected %s signin", role)
        raise exceptions.AuthenticationFailed(INVALID_CREDENTIALS_MESSAGE)
    return profile


def issue_tokens(profile, role: str) -> dict[str, str]:
    refresh = RefreshToken.for_user(profile.user)
    refresh["type"] = str(role)
    refresh["email"] = profile.user.email
    refresh["name"] = profile.name
    return {"refresh": str(refresh), "access": str(refresh.access_token)}


def change_password(user, *, old_password: str, new_password: str) -> None:
    if not user.check_password(old_password):
        raise exceptions.ValidationError({"old_password": ["Current password is incorrect."]})
    user.set_password(new_password)
    user.save(update_fields=["password"])
    logger.info("Password changed for user_id=%s", user.pk)
