from django.contrib import admin

from .models import Assignment, Submission


@admin.register(Assignment)
class AssignmentAdmin(admin.ModelAdmin):
    list_display = ("title", "classroom", "due_date", "created_by", "created_at")
    list_filter = ("classroom",)
    search_fields = ("title", "classroom__code")


@admin.register(Submission)
class SubmissionAdmin(admin.ModelAdmin):
    list_display = ("assignment", "student", "status", "mark", "submitted_at")
    list_filter = ("status",)
    search_fields = ("assignment__title", "student__email")
    readonly_fields = ("created_at", "updated_at", "ai_evaluation")
