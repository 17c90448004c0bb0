"""Thin client for the Gemini ``generateContent`` endpoint."""
from __future__ import annotations

import json
import logging

import requests
from django.conf import settings

from .errors import AIServiceError

logger = logging.getLogger(__name__)

GRADING_PROMPT = (
    "You are a strict but fair university teaching assistant. Grade the "
    "handwritten or typed homework in this image. Reply with JSON only, using "
    'the keys "score" (a number from 0 to 100), "feedback" (a short paragraph '
    'for the student), "strengths" and "improvements" (lists of strings).'
)


def _split_data_url(image_base64: str) -> tuple[str, str]:
    payload = (image_base64 or "").strip()
    mime_type = "image/png"
    if payload.startswith("data:") and "," in payload:
        header, payload = payload.split(",", 1)
        mime_type = header[len("data:"):].split(";", 1)[0] or mime_type
    return mime_type, payload


def _strip_fences(text: str) -> str:
    text = text.strip()
    if text.startswith("```"):
        text = text.split("\n", 1)[1] if "\n" in text else ""
        if text.rstrip().endswith("```"):
            text = text.rstrip()[:-3]
    return text.strip()


def parse_evaluation(body: dict) -> dict:
    """Pull the model's JSON answer out of a ``generateContent`` response."""

    try:
        text = body["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError) as exc:
        raise AIServiceError("The AI service returned an empty response.") from exc

    try:
        evaluation = json.loads(_strip_fences(text))
    except ValueError as exc:
        raise AIServiceError("The AI service returned a malformed evaluation.") from exc

    if not isinstance(evaluation, dict) or "score" not in evaluation:
        raise AIServiceError("The AI service returned an evaluation without a score.")
    evaluation.setdefault("feedback", "")
    return evaluation


def grade_homework(image_base64: str) -> dict:
    """Ask the model to grade one homework image and return its evaluation."""

    if not settings.GEMINI_API_KEY:
        raise AIServiceError("AI grading is not configured.")

    mime_type, data = _split_data_url(image_base64)
    if not data:
        raise AIServiceError("No image data to evaluate.")

    url = f"{settings.GEMINI_API_URL.rstrip('/')}/{settings.GEMINI_MODEL}:generateContent"
    payload = {
        "contents": [
            {
                "parts": [
                    {"text": GRADING_PROMPT},
                    {"inline_data": {"mime_type": mime_type, "data": data}},
                ]
            }
        ],
        "generationConfig": {"responseMimeType": "application/json"},
    }

    logger.info("Requesting AI evaluation", extra={"model": settings.GEMINI_MODEL})
    try:
        response = requests.post(
            url,
            params={"key": settings.GEMINI_API_KEY},
            json=payload,
            timeout=settings.GEMINI_TIMEOUT,
        )
    except requests.RequestException as exc:
        logger.exception("AI evaluation request failed")
        raise AIServiceError("Could not reach the AI grading service.") from exc

    if response.status_code >= 400:
        logger.warning("AI service returned %s: %s", response.status_code, response.text)
        raise AIServiceError(f"The AI grading service returned HTTP {response.status_code}.")

    try:
        body = response.json()
    except ValueError as exc:
        raise AIServiceError("The AI service returned a non-JSON response.") from exc
    return parse_evaluation(body)
