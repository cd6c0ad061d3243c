from django.core.exceptions import ValidationError
from django.test import TestCase
from django.urls import reverse

from .models import Department, LawFirm


class RoleGuardTests(TestCase):
    def setUp(self):
        self.firm = LawFirm.objects.create(name="Acme Advocates", firm_code="ACME")

    def test_targets_require_a_role(self):
        response = self.client.get(reverse("revenue_target_collection"))

        self.assertEqual(response.status_code, 403)
        self.assertFalse(response.json()["success"])

    def test_role_without_law_firm_is_refused(self):
        session = self.client.session
        session["role"] = "law_firm_admin"
        session.save()

        response = self.client.get(reverse("revenue_target_collection"))

        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json()["message"], "User must be associated with a law firm")

    def test_credit_cases_refuse_accountants(self):
        session = self.client.session
        session["role"] = "accountant"
        session["law_firm_id"] = self.firm.id
        session.save()

        response = self.client.get(reverse("credit_case_collection"))

        self.assertEqual(response.status_code, 403)


class DepartmentModelTests(TestCase):
    def test_code_is_stored_upper_case(self):
        firm = LawFirm.objects.create(name="Acme Advocates", firm_code="ACME")

        department = Department.objects.create(
            law_firm=firm,
            name="Credit",
            code="cc",
            department_type="credit_collection",
        )

        department.refresh_from_db()
        self.assertEqual(department.code, "CC")

    def test_escalation_code_is_reserved(self):
        firm = LawFirm.objects.create(name="Acme Advocates", firm_code="ACME")

        with self.assertRaises(ValidationError):
            Department.objects.create(
                law_firm=firm,
                name="Escrow",
                code="esc",
                department_type="custom",
            )
        self.assertFalse(Department.objects.exists())
