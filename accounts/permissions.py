from rest_framework import permissions

from .models import is_lecturer, is_student


class IsLecturer(permissions.BasePermission):
    message = "Lecturer access required."

    def has_permission(self, request, view):
        return is_lecturer(request.user)


class IsStudent(permissions.BasePermission):
    message = "Student access required."

    def has_permission(self, request, view):
        return is_student(request.user)


class IsLecturerOrStudent(permissions.BasePermission):
    message = "Lecturer or student access required."

    def has_permission(self, request, view):
        return is_lecturer(request.user) or is_student(request.user)
