from django.urls import path
from rest_framework_simplejwt.views import TokenRefreshView

from .views import (
    LecturerProfileView,
    LecturerSigninView,
    LecturerSignupView,
    PasswordChangeView,
    StudentProfileView,
    StudentSigninView,
    StudentSignupView,
)

app_name = "accounts"

urlpatterns = [
    path("lecturers/signup/", LecturerSignupView.as_view(), name="lecturer-signup"),
    path("lecturers/signin/", LecturerSigninView.as_view(), name="lecturer-signin"),
    path("lecturers/profile/", LecturerProfileView.as_view(), name="lecturer-profile"),
    path("students/signup/", StudentSignupView.as_view(), name="student-signup"),
    path("students/signin/", StudentSigninView.as_view(), name="student-signin"),
    path("students/profile/", StudentProfileView.as_view(), name="student-profile"),
    path("auth/password/", PasswordChangeView.as_view(), name="password-change"),
    path("auth/token/refresh/", TokenRefreshView.as_view(), name="token-refresh"),
]
