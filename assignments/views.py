from rest_framework import permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.models import is_lecturer
from accounts.permissions import IsLecturer, IsLecturerOrStudent, IsStudent

from . import services
from .serializers import (
    AssignmentCreateSerializer,
    AssignmentSerializer,
    GradeSerializer,
    SubmissionCreateSerializer,
    SubmissionSerializer,
)
from .storage import decode_base64_file, store_submission_file


class AssignmentListCreateView(APIView):
    """Lecturers list and publish assignments; members of the class list them."""

    def get_permissions(self):
        if self.request.method == "POST":
            return [permissions.IsAuthenticated(), IsLecturer()]
        return [permissions.IsAuthenticated(), IsLecturerOrStudent()]

    def get(self, request, classroom_id: int, *args, **kwargs):
        if is_lecturer(request.user):
            assignments = services.list_assignments(request.user, classroom_id)
        else:
            assignments = services.list_assignments_for_student(request.user, classroom_id)
        return Response({"assignments": AssignmentSerializer(assignments, many=True).data})

    def post(self, request, classroom_id: int, *args, **kwargs):
        serializer = AssignmentCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        assignment = services.create_assignment(
            request.user, classroom_id, **serializer.validated_data
        )
        return Response(
            {
                "message": "Assignment created successfully.",
                "assignment": AssignmentSerializer(assignment).data,
            },
            status=status.HTTP_201_CREATED,
        )


class AssignmentDetailView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsLecturer]

    def get(self, request, classroom_id: int, assignment_id: int, *args, **kwargs):
        assignment = services.get_assignment(request.user, classroom_id, assignment_id)
        return Response({"assignment": AssignmentSerializer(assignment).data})


class SubmissionListCreateView(APIView):
    """GET lists every submission for the lecturer; POST hands in a file.

    The upload is stored only after the student is known to be allowed to
    submit, so rejected requests leave nothing behind in storage.
    """

    def get_permissions(self):
        if self.request.method == "POST":
            return [permissions.IsAuthenticated(), IsStudent()]
        return [permissions.IsAuthenticated(), IsLecturer()]

    def get(self, request, classroom_id: int, assignment_id: int, *args, **kwargs):
        submissions = services.list_submissions(request.user, classroom_id, assignment_id)
        return Response(
            {
                "submissions": SubmissionSerializer(
                    submissions, many=True, context={"request": request}
                ).data
            }
        )

    def post(self, request, classroom_id: int, assignment_id: int, *args, **kwargs):
        serializer = SubmissionCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        assignment = services.get_assignment_for_student(
            request.user, assignment_id, classroom_id=classroom_id
        )
        uploaded = data.get("assignment_file")
        if uploaded is None:
            uploaded = decode_base64_file(data["file_data"], data["file_name"])

        file_ref = store_submission_file(
            student=request.user, assignment=assignment, uploaded=uploaded
        )
        submission = services.submit(
            request.user, assignment.pk, file_ref, classroom_id=classroom_id
        )
        return Response(
            {
                "message": "Assignment submitted successfully.",
                "submission": SubmissionSerializer(
                    submission, context={"request": request}
                ).data,
            },
            status=status.HTTP_201_CREATED,
        )


class MySubmissionView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsStudent]

    def get(self, request, classroom_id: int, assignment_id: int, *args, **kwargs):
        services.get_assignment_for_student(
            request.user, assignment_id, classroom_id=classroom_id
        )
        submission = services.find_submission(request.user, assignment_id)
        data = None
        if submission is not None:
            data = SubmissionSerializer(submission, context={"request": request}).data
        return Response({"submission": data})


class SubmissionGradeView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsLecturer]

    def put(self, request, classroom_id: int, assignment_id: int, submission_id: int, *args, **kwargs):
        serializer = GradeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        submission = services.grade_submission(
            request.user,
            classroom_id,
            assignment_id,
            submission_id,
            mark=serializer.validated_data["mark"],
            feedback=serializer.validated_data["feedback"],
        )
        return Response(
            {
                "message": "Submission graded successfully.",
                "submission": SubmissionSerializer(
                    submission, context={"request": request}
                ).data,
            }
        )

    patch = put


class SubmissionReturnView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsLecturer]

    def post(self, request, classroom_id: int, assignment_id: int, submission_id: int, *args, **kwargs):
        submission = services.return_submission(
            request.user, classroom_id, assignment_id, submission_id
        )
        return Response(
            {
                "message": "Submission returned to the student.",
                "submission": SubmissionSerializer(
                    submission, context={"request": request}
                ).data,
            }
        )
