from django.contrib import admin

from .models import LecturerProfile, StudentProfile


@admin.register(LecturerProfile)
class LecturerProfileAdmin(admin.ModelAdmin):
    list_display = ("name", "email", "department", "created_at")
    search_fields = ("name", "user__email", "department")
    readonly_fields = ("created_at", "updated_at")


@admin.register(StudentProfile)
class StudentProfileAdmin(admin.ModelAdmin):
    list_display = ("name", "email", "created_at")
    search_fields = ("name", "user__email")
    readonly_fields = ("created_at", "updated_at")
