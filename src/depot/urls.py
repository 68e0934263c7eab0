"""URL configuration for the depot project."""

from django.contrib import admin
from django.urls import include, path

from depot.views import health_check

urlpatterns = [
    path("admin/", admin.site.urls),
    path("health/", health_check, name="health_check"),
    path("smartpackage/", include("smartpackage.urls")),
]
