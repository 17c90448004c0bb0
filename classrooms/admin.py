from django.contrib import admin

from .models import Classroom, ClassroomMembership


@admin.register(Classroom)
class ClassroomAdmin(admin.ModelAdmin):
    list_display = ("name", "code", "created_by", "created_at")
    search_fields = ("name", "code", "created_by__email")
    readonly_fields = ("created_at", "updated_at")


@admin.register(ClassroomMembership)
class ClassroomMembershipAdmin(admin.ModelAdmin):
    list_display = ("classroom", "student", "joined_at")
    list_filter = ("classroom",)
    search_fields = ("classroom__code", "student__email")
