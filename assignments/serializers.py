import os

from rest_framework import serializers

from .models import Assignment, Submission


class AssignmentSerializer(serializers.ModelSerializer):
    created_by = serializers.PrimaryKeyRelatedField(read_only=True)
    classroom = serializers.PrimaryKeyRelatedField(read_only=True)
    is_past_due = serializers.SerializerMethodField()

    class Meta:
        model = Assignment
        fields = [
            "id",
            "title",
            "details",
            "due_date",
            "is_past_due",
            "created_by",
            "classroom",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_is_past_due(self, obj) -> bool:
        return obj.is_past_due()


class AssignmentCreateSerializer(serializers.Serializer):
    title = serializers.CharField(allow_blank=True)
    details = serializers.CharField(required=False, allow_blank=True, default="")
    due_date = serializers.DateTimeField(required=False, allow_null=True, default=None)


class SubmissionSerializer(serializers.ModelSerializer):
    student_name = serializers.SerializerMethodField()
    student_email = serializers.EmailField(source="student.email", read_only=True)
    file_name = serializers.SerializerMethodField()

    class Meta:
        model = Submission
        fields = [
            "id",
            "student",
            "student_name",
            "student_email",
            "assignment",
            "assignment_file",
            "file_name",
            "submitted_at",
            "status",
            "mark",
            "feedback",
            "graded_at",
            "graded_by",
            "ai_evaluation",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_student_name(self, obj) -> str:
        profile = getattr(obj.student, "student_profile", None)
        return profile.name if profile else ""

    def get_file_name(self, obj) -> str:
        return os.path.basename(obj.assignment_file.name or "")


class SubmissionCreateSerializer(serializers.Serializer):
    """Either a multipart ``assignment_file`` or base64 ``file_data``."""

    assignment_file = serializers.FileField(required=False)
    file_data = serializers.CharField(required=False, trim_whitespace=True)
    file_name = serializers.CharField(required=False, default="submission.pdf")

    def validate(self, attrs):
        has_upload = attrs.get("assignment_file") is not None
        has_data = bool(attrs.get("file_data"))
        if has_upload == has_data:
            raise serializers.ValidationError(
                {"assignment_file": ["Provide either an uploaded file or base64 file_data."]}
            )
        return attrs


class GradeSerializer(serializers.Serializer):
    # Passed through as sent; parse_mark rounds and range-checks it.
    mark = serializers.JSONField(required=False, allow_null=True, default=None)
    feedback = serializers.CharField(
        required=False, allow_blank=True, allow_null=True, default=None
    )
