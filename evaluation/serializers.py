from rest_framework import serializers


class PdfUploadSerializer(serializers.Serializer):
    homework_pdf = serializers.FileField()

    def validate_homework_pdf(self, value):
        if not value.name.lower().endswith(".pdf"):
            raise serializers.ValidationError("Upload a PDF file.")
        return value


class ImageEvaluationSerializer(serializers.Serializer):
    file_data = serializers.CharField(help_text="Base64 image, optionally as a data: URL.")


class SubmissionEvaluationSerializer(serializers.Serializer):
    apply_score = serializers.BooleanField(required=False, default=False)
