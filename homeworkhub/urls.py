"""
URL configuration for the homeworkhub project.

Every app exposes its JSON API under ``/api/``; the admin site stays at
``/admin/``.
"""
from django.conf import settings
from django.conf.urls.static import static
from django.contrib import admin
from django.urls import include, path

urlpatterns = [
    path("admin/", admin.site.urls),
    path("api/", include("accounts.urls")),
    path("api/classrooms/", include("classrooms.urls")),
    path("api/classrooms/", include("assignments.urls")),
    path("api/", include("evaluation.urls")),
]

# Serve uploaded media locally during development when S3 is not configured
if settings.DEBUG and not settings.USE_S3_MEDIA:
    urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)
