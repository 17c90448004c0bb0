"""AI evaluation of homework files.

Collaborator failures are not retried. They are logged and re-raised as
``UpstreamFailure`` so the API answers 502 with the collaborator's message.
"""
from __future__ import annotations

import base64
import logging
import mimetypes
import os

from django.core.files.storage import default_storage
from django.db import transaction
from rest_framework import exceptions

from assignments import services as assignment_services
from assignments.models import Submission
from homeworkhub.exceptions import Conflict, UpstreamFailure

from .client import grade_homework
from .errors import EvaluationError
from .pdf import convert_pdf_to_image

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg", ".webp"}


def _upstream(exc: EvaluationError) -> UpstreamFailure:
    logger.warning("Evaluation collaborator failed: %s", exc)
    return UpstreamFailure(str(exc))


def convert_pdf(pdf_bytes: bytes) -> str:
    try:
        return convert_pdf_to_image(pdf_bytes)
    except EvaluationError as exc:
        raise _upstream(exc) from exc


def evaluate_image(image_base64: str) -> dict:
    try:
        return grade_homework(image_base64)
    except EvaluationError as exc:
        raise _upstream(exc) from exc


def evaluate_pdf(pdf_bytes: bytes) -> dict:
    return evaluate_image(convert_pdf(pdf_bytes))


def _image_for_file(name: str, content: bytes) -> str:
    extension = os.path.splitext(name)[1].lower()
    if extension == ".pdf":
        return convert_pdf(content)
    if extension in IMAGE_EXTENSIONS:
        mime_type = mimetypes.guess_type(name)[0] or "image/png"
        encoded = base64.b64encode(content).decode("ascii")
        return f"data:{mime_type};base64,{encoded}"
    raise exceptions.ValidationError(
        {"assignment_file": ["Only PDF or image submissions can be evaluated."]}
    )


def evaluate_submission(
    lecturer,
    classroom_id: int,
    assignment_id: int,
    submission_id: int,
    *,
    apply_score: bool = False,
) -> Submission:
    """Run the stored submission file through the AI grader.

    The result is kept in ``ai_evaluation``. With ``apply_score`` the score
    and feedback are also recorded as the lecturer's grade.
    """

    submission = assignment_services.get_submission_for_lecturer(
        lecturer, classroom_id, assignment_id, submission_id
    )
    file_name = submission.assignment_file.name
    try:
        with default_storage.open(file_name, "rb") as handle:
            content = handle.read()
    except FileNotFoundError as exc:
        logger.error("Submission %s file %s is missing", submission.pk, file_name)
        raise exceptions.NotFound("Submission file not found.") from exc

    evaluation = evaluate_image(_image_for_file(file_name, content))

    with transaction.atomic():
        submission = assignment_services.get_submission_for_lecturer(
            lecturer, classroom_id, assignment_id, submission_id, for_update=True
        )
        if submission.assignment_file.name != file_name:
            raise Conflict("The submission was replaced while it was being evaluated.")
        submission.ai_evaluation = evaluation
        submission.save(update_fields=["ai_evaluation", "updated_at"])
        logger.info("Stored AI evaluation for submission %s", submission.pk)

        if apply_score:
            try:
                submission = assignment_services.grade_submission(
                    lecturer,
                    classroom_id,
                    assignment_id,
                    submission_id,
                    mark=evaluation.get("score"),
                    feedback=str(evaluation.get("feedback") or ""),
                )
            except exceptions.ValidationError as exc:
                logger.warning(
                    "AI score %r rejected for submission %s",
                    evaluation.get("score"),
                    submission.pk,
                )
                raise UpstreamFailure("The AI service returned an invalid score.") from exc
    return submission
