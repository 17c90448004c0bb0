from rest_framework import permissions
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.permissions import IsLecturer
from assignments.serializers import SubmissionSerializer

from . import services
from .serializers import (
    ImageEvaluationSerializer,
    PdfUploadSerializer,
    SubmissionEvaluationSerializer,
)


class PdfConversionView(APIView):
    """Convert an uploaded PDF to the image the grader would see."""

    permission_classes = [permissions.IsAuthenticated, IsLecturer]

    def post(self, request, *args, **kwargs):
        serializer = PdfUploadSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        image = services.convert_pdf(serializer.validated_data["homework_pdf"].read())
        return Response(
            {"message": "PDF converted successfully.", "image": f"data:image/png;base64,{image}"}
        )


class PdfEvaluationView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsLecturer]

    def post(self, request, *args, **kwargs):
        serializer = PdfUploadSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        evaluation = services.evaluate_pdf(serializer.validated_data["homework_pdf"].read())
        return Response({"evaluation": evaluation})


class ImageEvaluationView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsLecturer]

    def post(self, request, *args, **kwargs):
        serializer = ImageEvaluationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        evaluation = services.evaluate_image(serializer.validated_data["file_data"])
        return Response({"evaluation": evaluation})


class SubmissionEvaluationView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsLecturer]

    def post(self, request, classroom_id: int, assignment_id: int, submission_id: int, *args, **kwargs):
        serializer = SubmissionEvaluationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        submission = services.evaluate_submission(
            request.user,
            classroom_id,
            assignment_id,
            submission_id,
            apply_score=serializer.validated_data["apply_score"],
        )
        return Response(
            {
                "message": "Submission evaluated.",
                "submission": SubmissionSerializer(
                    submission, context={"request": request}
                ).data,
            }
        )
