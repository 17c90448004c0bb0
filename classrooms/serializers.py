from rest_framework import serializers

from .models import Classroom, ClassroomMembership


class LecturerSummarySerializer(serializers.Serializer):
    id = serializers.IntegerField(source="pk")
    name = serializers.CharField(source="lecturer_profile.name", default="")
    email = serializers.EmailField()
    department = serializers.CharField(source="lecturer_profile.department", default="")


class ClassroomSerializer(serializers.ModelSerializer):
    created_by = serializers.PrimaryKeyRelatedField(read_only=True)
    lecturer = LecturerSummarySerializer(source="created_by", read_only=True)

    class Meta:
        model = Classroom
        fields = [
            "id",
            "name",
            "details",
            "code",
            "created_by",
            "lecturer",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class ClassroomCreateSerializer(serializers.Serializer):
    # Bounds are enforced by the service so the same rules hold outside HTTP.
    name = serializers.CharField(allow_blank=True)
    details = serializers.CharField(required=False, allow_blank=True, default="")
    code = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class JoinClassroomSerializer(serializers.Serializer):
    classroom_code = serializers.CharField()


class MembershipSerializer(serializers.ModelSerializer):
    classroom = ClassroomSerializer(read_only=True)

    class Meta:
        model = ClassroomMembership
        fields = ["id", "classroom", "student", "joined_at"]
        read_only_fields = fields


class ClassroomStudentSerializer(serializers.ModelSerializer):
    id = serializers.IntegerField(source="student_id", read_only=True)
    name = serializers.CharField(source="student.student_profile.name", read_only=True)
    email = serializers.EmailField(source="student.email", read_only=True)

    class Meta:
        model = ClassroomMembership
        fields = ["id", "name", "email", "joined_at"]
        read_only_fields = fields
