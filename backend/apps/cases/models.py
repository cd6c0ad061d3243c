from django.db import models

from apps.accounts.models import Department, LawFirm, Member

CREDIT_STATUS_NEW = "new"
CREDIT_STATUS_ASSIGNED = "assigned"
CREDIT_STATUS_IN_PROGRESS = "in_progress"
CREDIT_STATUS_FOLLOW_UP = "follow_up_required"
CREDIT_STATUS_ESCALATED = "escalated_to_legal"
CREDIT_STATUS_RESOLVED = "resolved"
CREDIT_STATUS_CLOSED = "closed"
CREDIT_STATUS_CHOICES = [
    (CREDIT_STATUS_NEW, "new"),
    (CREDIT_STATUS_ASSIGNED, "assigned"),
    (CREDIT_STATUS_IN_PROGRESS, "in progress"),
    (CREDIT_STATUS_FOLLOW_UP, "follow up required"),
    (CREDIT_STATUS_ESCALATED, "escalated to legal"),
    (CREDIT_STATUS_RESOLVED, "resolved"),
    (CREDIT_STATUS_CLOSED, "closed"),
]

LEGAL_STATUS_PENDING_ASSIGNMENT = "pending_assignment"
LEGAL_STATUS_CHOICES = [
    (LEGAL_STATUS_PENDING_ASSIGNMENT, "pending assignment"),
    ("filed", "filed"),
    ("assigned", "assigned"),
    ("under_review", "under review"),
    ("court_proceedings", "court proceedings"),
    ("settlement", "settlement"),
    ("resolved", "resolved"),
    ("closed", "closed"),
]

LEGAL_CASE_TYPE_DEBT_COLLECTION = "debt_collection"
LEGAL_CASE_TYPE_CHOICES = [
    ("civil", "civil"),
    ("criminal", "criminal"),
    ("corporate", "corporate"),
    ("family", "family"),
    ("property", "property"),
    ("labor", "labor"),
    (LEGAL_CASE_TYPE_DEBT_COLLECTION, "debt collection"),
    ("other", "other"),
]

PAYMENT_STATUS_PENDING = "pending"
PAYMENT_STATUS_COMPLETED = "completed"
PAYMENT_STATUS_FAILED = "failed"
PAYMENT_STATUS_CHOICES = [
    (PAYMENT_STATUS_PENDING, "pending"),
    (PAYMENT_STATUS_COMPLETED, "completed"),
    (PAYMENT_STATUS_FAILED, "failed"),
]

REVENUE_PAYMENT_PURPOSES = ("escalation_fee", "service_charge", "consultation", "subscription")
PAYMENT_PURPOSE_CHOICES = [(purpose, purpose.replace("_", " ")) for purpose in REVENUE_PAYMENT_PURPOSES] + [
    ("filing_fee", "filing fee"),
    ("other", "other"),
]


class CaseNumberCounter(models.Model):
    key = models.CharField(max_length=255, unique=True)
    sequence = models.PositiveIntegerField(default=0)
    year = models.PositiveIntegerField()
    prefix = models.CharField(max_length=64)
    law_firm = models.ForeignKey(
        LawFirm,
        on_delete=models.CASCADE,
        related_name="case_number_counters",
    )
    department = models.ForeignKey(
        Department,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="case_number_counters",
    )
    escalated = models.BooleanField(default=False)

    class Meta:
        ordering = ["-year", "prefix"]

    def __str__(self) -> str:
        return f"{self.key} -> {self.sequence}"


class CaseRecord(models.Model):
    case_number = models.CharField(max_length=64, unique=True, blank=True)
    title = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.case_number} {self.title}"

    @property
    def is_escalated(self) -> bool:
        return False


class CreditCase(CaseRecord):
    law_firm = models.ForeignKey(
        LawFirm,
        on_delete=models.CASCADE,
        related_name="credit_cases",
    )
    department = models.ForeignKey(
        Department,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="credit_cases",
    )
    created_by = models.ForeignKey(
        Member,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="created_credit_cases",
    )
    debtor_name = models.CharField(max_length=128)
    debt_amount = models.DecimalField(max_digits=14, decimal_places=2, default=0)
    status = models.CharField(max_length=32, choices=CREDIT_STATUS_CHOICES, default=CREDIT_STATUS_NEW)
    resolved_at = models.DateTimeField(null=True, blank=True)

    class Meta(CaseRecord.Meta):
        pass


class LegalCase(CaseRecord):
    law_firm = models.ForeignKey(
        LawFirm,
        on_delete=models.CASCADE,
        related_name="legal_cases",
    )
    department = models.ForeignKey(
        Department,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="legal_cases",
    )
    created_by = models.ForeignKey(
        Member,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="created_legal_cases",
    )
    case_type = models.CharField(max_length=32, choices=LEGAL_CASE_TYPE_CHOICES)
    status = models.CharField(
        max_length=32,
        choices=LEGAL_STATUS_CHOICES,
        default=LEGAL_STATUS_PENDING_ASSIGNMENT,
    )
    filing_fee_amount = models.DecimalField(max_digits=14, decimal_places=2, default=0)
    filing_fee_paid = models.BooleanField(default=False)
    filing_fee_paid_at = models.DateTimeField(null=True, blank=True)
    escalated_from = models.OneToOneField(
        CreditCase,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="escalated_legal_case",
    )

    class Meta(CaseRecord.Meta):
        pass

    @property
    def is_escalated(self) -> bool:
        return self.escalated_from_id is not None


class Payment(models.Model):
    law_firm = models.ForeignKey(
        LawFirm,
        on_delete=models.CASCADE,
        related_name="payments",
    )
    department = models.ForeignKey(
        Department,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="payments",
    )
    credit_case = models.ForeignKey(
        CreditCase,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="payments",
    )
    amount = models.DecimalField(max_digits=14, decimal_places=2)
    purpose = models.CharField(max_length=32, choices=PAYMENT_PURPOSE_CHOICES)
    status = models.CharField(max_length=16, choices=PAYMENT_STATUS_CHOICES, default=PAYMENT_STATUS_PENDING)
    paid_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.purpose} {self.amount} ({self.status})"
