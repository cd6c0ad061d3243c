from django.urls import path

from .views import credit_case_collection, credit_case_escalate, legal_case_collection

urlpatterns = [
    path("credit/", credit_case_collection, name="credit_case_collection"),
    path("credit/<int:case_id>/escalate/", credit_case_escalate, name="credit_case_escalate"),
    path("legal/", legal_case_collection, name="legal_case_collection"),
]
