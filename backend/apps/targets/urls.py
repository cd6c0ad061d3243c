from django.urls import path

from .views import revenue_target_collection, revenue_target_delete, revenue_target_performance

urlpatterns = [
    path("", revenue_target_collection, name="revenue_target_collection"),
    path("performance/", revenue_target_performance, name="revenue_target_performance"),
    path("<int:target_id>/delete/", revenue_target_delete, name="revenue_target_delete"),
]
