from rest_framework import permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.permissions import IsLecturer, IsLecturerOrStudent, IsStudent

from . import services
from .serializers import (
    ClassroomCreateSerializer,
    ClassroomSerializer,
    ClassroomStudentSerializer,
    JoinClassroomSerializer,
    MembershipSerializer,
)


class ClassroomListCreateView(APIView):
    """List the lecturer's classrooms or create a new one."""

    permission_classes = [permissions.IsAuthenticated, IsLecturer]

    def get(self, request, *args, **kwargs):
        classrooms = services.list_classrooms_for_lecturer(request.user)
        return Response({"classrooms": ClassroomSerializer(classrooms, many=True).data})

    def post(self, request, *args, **kwargs):
        serializer = ClassroomCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        classroom = services.create_classroom(request.user, **serializer.validated_data)
        return Response(
            {
                "message": "Classroom created successfully.",
                "classroom": ClassroomSerializer(classroom).data,
            },
            status=status.HTTP_201_CREATED,
        )


class ClassroomDetailView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsLecturer]

    def get(self, request, pk: int, *args, **kwargs):
        classroom = services.get_classroom_for_lecturer(request.user, pk)
        return Response({"classroom": ClassroomSerializer(classroom).data})


class ClassroomByCodeView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsLecturerOrStudent]

    def get(self, request, code: str, *args, **kwargs):
        classroom = services.get_classroom_by_code(request.user, code)
        return Response({"classroom": ClassroomSerializer(classroom).data})


class JoinClassroomView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsStudent]

    def post(self, request, *args, **kwargs):
        serializer = JoinClassroomSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        membership = services.join_classroom_by_code(
            request.user, serializer.validated_data["classroom_code"]
        )
        return Response(
            {
                "message": "Joined classroom successfully.",
                "membership": MembershipSerializer(membership).data,
            },
            status=status.HTTP_201_CREATED,
        )


class JoinedClassroomListView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsStudent]

    def get(self, request, *args, **kwargs):
        classrooms = services.list_classrooms_for_student(request.user)
        return Response({"classrooms": ClassroomSerializer(classrooms, many=True).data})


class ClassroomStudentListView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsLecturer]

    def get(self, request, pk: int, *args, **kwargs):
        memberships = services.list_students_for_classroom(request.user, pk)
        return Response({"students": ClassroomStudentSerializer(memberships, many=True).data})
