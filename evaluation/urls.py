from django.urls import path

from .views import (
    ImageEvaluationView,
    PdfConversionView,
    PdfEvaluationView,
    SubmissionEvaluationView,
)

app_name = "evaluation"

urlpatterns = [
    path("evaluation/convert/", PdfConversionView.as_view(), name="convert-pdf"),
    path("evaluation/pdf/", PdfEvaluationView.as_view(), name="evaluate-pdf"),
    path("evaluation/image/", ImageEvaluationView.as_view(), name="evaluate-image"),
    path(
        "classrooms/<int:classroom_id>/assignments/<int:assignment_id>/"
        "submissions/<int:submission_id>/evaluate/",
        SubmissionEvaluationView.as_view(),
        name="evaluate-submission",
    ),
]
