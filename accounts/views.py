from rest_framework import generics, permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView

from . import services
from .models import Role
from .permissions import IsLecturer, IsStudent
from .serializers import (
    LecturerSerializer,
    LecturerSignupSerializer,
    PasswordChangeSerializer,
    SigninSerializer,
    StudentSerializer,
    StudentSignupSerializer,
)


class LecturerSignupView(APIView):
    authentication_classes = []
    permission_classes = [permissions.AllowAny]

    def post(self, request, *args, **kwargs):
        serializer = LecturerSignupSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        profile = services.register_lecturer(**serializer.validated_data)
        return Response(
            {
                "message": "Lecturer registered successfully.",
                "lecturer": LecturerSerializer(profile).data,
            },
            status=status.HTTP_201_CREATED,
        )


class StudentSignupView(APIView):
    authentication_classes = []
    permission_classes = [permissions.AllowAny]

    def post(self, request, *args, **kwargs):
        serializer = StudentSignupSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        profile = services.register_student(**serializer.validated_data)
        return Response(
            {
                "message": "Student registered successfully.",
                "student": StudentSerializer(profile).data,
            },
            status=status.HTTP_201_CREATED,
        )


class SigninView(APIView):
    """Exchange email and password for a JWT pair for one role."""

    authentication_classes = []
    permission_classes = [permissions.AllowAny]
    role = None
    profile_serializer_class = None

    def get_authenticate_header(self, request):
        # Bad credentials answer 401, which DRF only sends with a challenge.
        return 'Bearer realm="api"'

    def post(self, request, *args, **kwargs):
        serializer = SigninSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        profile = services.authenticate_member(role=self.role, **serializer.validated_data)
        tokens = services.issue_tokens(profile, self.role)
        return Response(
            {
                "message": "Sign in successful.",
                "token": tokens["access"],
                "refresh": tokens["refresh"],
                str(self.role): self.profile_serializer_class(profile).data,
            }
        )


class LecturerSigninView(SigninView):
    role = Role.LECTURER
    profile_serializer_class = LecturerSerializer


class StudentSigninView(SigninView):
    role = Role.STUDENT
    profile_serializer_class = StudentSerializer


class LecturerProfileView(generics.RetrieveUpdateAPIView):
    serializer_class = LecturerSerializer
    permission_classes = [permissions.IsAuthenticated, IsLecturer]

    def get_object(self):
        return self.request.user.lecturer_profile


class StudentProfileView(generics.RetrieveUpdateAPIView):
    serializer_class = StudentSerializer
    permission_classes = [permissions.IsAuthenticated, IsStudent]

    def get_object(self):
        return self.request.user.student_profile


class PasswordChangeView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request, *args, **kwargs):
        serializer = PasswordChangeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        services.change_password(request.user, **serializer.validated_data)
        return Response({"message": "Password updated successfully."})
