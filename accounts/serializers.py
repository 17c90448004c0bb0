from rest_framework import serializers

from .models import LecturerProfile, StudentProfile


class StudentSignupSerializer(serializers.Serializer):
    name = serializers.CharField(min_length=2, max_length=100)
    email = serializers.EmailField()
    password = serializers.CharField(
        min_length=6, max_length=100, write_only=True, trim_whitespace=False
    )


class LecturerSignupSerializer(StudentSignupSerializer):
    phone_number = serializers.CharField(
        min_length=10, max_length=15, required=False, allow_blank=True
    )
    department = serializers.CharField(
        min_length=2, max_length=100, required=False, allow_blank=True
    )
    bio = serializers.CharField(required=False, allow_blank=True)


class SigninSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, trim_whitespace=False)


class PasswordChangeSerializer(serializers.Serializer):
    old_password = serializers.CharField(write_only=True, trim_whitespace=False)
    new_password = serializers.CharField(
        min_length=6, max_length=100, write_only=True, trim_whitespace=False
    )


class LecturerSerializer(serializers.ModelSerializer):
    id = serializers.IntegerField(source="user_id", read_only=True)
    email = serializers.EmailField(source="user.email", read_only=True)

    class Meta:
        model = LecturerProfile
        fields = [
            "id",
            "name",
            "email",
            "phone_number",
            "department",
            "bio",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "email", "created_at", "updated_at"]


class StudentSerializer(serializers.ModelSerializer):
    id = serializers.IntegerField(source="user_id", read_only=True)
    email = serializers.EmailField(source="user.email", read_only=True)

    class Meta:
        model = StudentProfile
        fields = ["id", "name", "email", "created_at", "updated_at"]
        read_only_fields = ["id", "email", "created_at", "updated_at"]
