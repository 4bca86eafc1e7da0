"""
URL configuration for the invitations backend.

Every API endpoint lives under `/api/`; admin-only endpoints are nested under
`/api/admin/` inside each app's URL module.
"""
from django.contrib import admin
from django.urls import include, path

urlpatterns = [
    path("django-admin/", admin.site.urls),
    path("api/", include("orders.urls")),
    path("api/", include("events.urls")),
]
