from django.urls import path

from .views import (
    ClassroomByCodeView,
    ClassroomDetailView,
    ClassroomListCreateView,
    ClassroomStudentListView,
    JoinClassroomView,
    JoinedClassroomListView,
)

app_name = "classrooms"

urlpatterns = [
    path("", ClassroomListCreateView.as_view(), name="classroom-list"),
    path("join/", JoinClassroomView.as_view(), name="classroom-join"),
    path("joined/", JoinedClassroomListView.as_view(), name="classroom-joined"),
    path("code/<str:code>/", ClassroomByCodeView.as_view(), name="classroom-by-code"),
    path("<int:pk>/", ClassroomDetailView.as_view(), name="classroom-detail"),
    path("<int:pk>/students/", ClassroomStudentListView.as_view(), name="classroom-students"),
]
