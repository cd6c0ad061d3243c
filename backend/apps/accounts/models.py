from django.core.exceptions import ValidationError
from django.db import models

DEPARTMENT_TYPE_CREDIT = "credit_collection"
DEPARTMENT_TYPE_LEGAL = "legal"
DEPARTMENT_TYPE_CUSTOM = "custom"
DEPARTMENT_TYPE_CHOICES = [
    (DEPARTMENT_TYPE_CREDIT, "credit collection"),
    (DEPARTMENT_TYPE_LEGAL, "legal"),
    (DEPARTMENT_TYPE_CUSTOM, "custom"),
]

DEFAULT_FIRM_CODE = "LEG"
# Taken by the firm-wide escalation sequence.
RESERVED_DEPARTMENT_CODES = {"ESC"}


class LawFirm(models.Model):
    name = models.CharField(max_length=128)
    firm_code = models.CharField(max_length=16, unique=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["name"]

    def __str__(self) -> str:
        return f"{self.name} ({self.firm_code})"

    @property
    def case_prefix(self) -> str:
        return self.firm_code.strip() or DEFAULT_FIRM_CODE


class Department(models.Model):
    law_firm = models.ForeignKey(
        LawFirm,
        on_delete=models.CASCADE,
        related_name="departments",
    )
    code = models.CharField(max_length=32)
    name = models.CharField(max_length=64)
    department_type = models.CharField(max_length=32, choices=DEPARTMENT_TYPE_CHOICES)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["law_firm__name", "code"]
        unique_together = ("law_firm", "code")

    def __str__(self) -> str:
        return f"{self.name} ({self.code})"

    def clean(self):
        if self.code.strip().upper() in RESERVED_DEPARTMENT_CODES:
            raise ValidationError({"code": f"Department code {self.code.upper()} is reserved"})

    def save(self, *args, **kwargs):
        self.code = self.code.upper()
        self.clean()
        super().save(*args, **kwargs)


class Member(models.Model):
    law_firm = models.ForeignKey(
        LawFirm,
        on_delete=models.CASCADE,
        related_name="members",
    )
    department = models.ForeignKey(
        Department,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="members",
    )
    name = models.CharField(max_length=64)
    email = models.EmailField(unique=True)
    role = models.CharField(max_length=32)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.name} ({self.email})"
