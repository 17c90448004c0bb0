from django.conf import settings
from django.core.validators import MinLengthValidator
from django.db import models


class LecturerProfile(models.Model):
    """Lecturer identity attached to a Django user.

    The user's ``username`` and ``email`` both hold the normalised email
    address, so the store's unique username column keeps emails unique.
    """

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="lecturer_profile"
    )
    name = models.CharField(max_length=100, validators=[MinLengthValidator(2)])
    phone_number = models.CharField(
        max_length=15, blank=True, validators=[MinLengthValidator(10)]
    )
    department = models.CharField(
        max_length=100, blank=True, validators=[MinLengthValidator(2)]
    )
    bio = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.name} (lecturer)"

    @property
    def email(self) -> str:
        return self.user.email


class StudentProfile(models.Model):
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="student_profile"
    )
    name = models.CharField(max_length=100, validators=[MinLengthValidator(2)])
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.name} (student)"

    @property
    def email(self) -> str:
        return self.user.email


class Role(models.TextChoices):
    LECTURER = "lecturer", "Lecturer"
    STUDENT = "student", "Student"


def is_lecturer(user) -> bool:
    if not user or not getattr(user, "is_authenticated", False):
        return False
    return LecturerProfile.objects.filter(user_id=user.pk).exists()


def is_student(user) -> bool:
    if not user or not getattr(user, "is_authenticated", False):
        return False
    return StudentProfile.objects.filter(user_id=user.pk).exists()
