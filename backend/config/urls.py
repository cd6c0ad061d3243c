from django.contrib import admin
from django.urls import include, path

urlpatterns = [
    path("admin/", admin.site.urls),
    path("cases/", include("apps.cases.urls")),
    path("targets/", include("apps.targets.urls")),
]
