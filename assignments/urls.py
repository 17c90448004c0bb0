from django.urls import path

from .views import (
    AssignmentDetailView,
    AssignmentListCreateView,
    MySubmissionView,
    SubmissionGradeView,
    SubmissionListCreateView,
    SubmissionReturnView,
)

app_name = "assignments"

urlpatterns = [
    path(
        "<int:classroom_id>/assignments/",
        AssignmentListCreateView.as_view(),
        name="assignment-list",
    ),
    path(
        "<int:classroom_id>/assignments/<int:assignment_id>/",
        AssignmentDetailView.as_view(),
        name="assignment-detail",
    ),
    path(
        "<int:classroom_id>/assignments/<int:assignment_id>/submissions/",
        SubmissionListCreateView.as_view(),
        name="submission-list",
    ),
    path(
        "<int:classroom_id>/assignments/<int:assignment_id>/submissions/mine/",
        MySubmissionView.as_view(),
        name="submission-mine",
    ),
    path(
        "<int:classroom_id>/assignments/<int:assignment_id>/submissions/<int:submission_id>/",
        SubmissionGradeView.as_view(),
        name="submission-grade",
    ),
    path(
        "<int:classroom_id>/assignments/<int:assignment_id>/submissions/<int:submission_id>/return/",
        SubmissionReturnView.as_view(),
        name="submission-return",
    ),
]
