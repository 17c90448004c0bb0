"""Persist uploaded homework files through Django's default storage.

Submissions only keep the name returned by the storage backend, so the same
workflow runs on the local filesystem and on S3.
"""
from __future__ import annotations

import base64
import binascii
import os

from django.core.exceptions import SuspiciousFileOperation
from django.core.files.base import ContentFile
from django.core.files.storage import default_storage
from django.utils.text import get_valid_filename
from rest_framework import exceptions

from .models import Submission, submission_upload_to


def _clean_name(name: str) -> str:
    name = os.path.basename(name or "")
    try:
        return get_valid_filename(name)
    except SuspiciousFileOperation:
        return "submission"


def store_submission_file(*, student, assignment, uploaded) -> str:
    """Save ``uploaded`` under the student's folder and return its name."""

    placeholder = Submission(student=student, assignment=assignment)
    name = submission_upload_to(placeholder, _clean_name(uploaded.name))
    return default_storage.save(name, uploaded)


def decode_base64_file(file_data: str, file_name: str) -> ContentFile:
    """Turn a ``data:`` URL or bare base64 string into an uploadable file."""

    payload = (file_data or "").strip()
    if payload.startswith("data:") and "," in payload:
        payload = payload.split(",", 1)[1]
    try:
        raw = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise exceptions.ValidationError({"file_data": ["Invalid base64 data."]}) from exc
    if not raw:
        raise exceptions.ValidationError({"file_data": ["File is empty."]})
    return ContentFile(raw, name=_clean_name(file_name))
