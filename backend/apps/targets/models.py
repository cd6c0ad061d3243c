from django.db import models
from django.db.models import Q

from apps.accounts.models import Department, LawFirm, Member

from .breakdown import decompose_yearly_target

MIN_TARGET_YEAR = 2020
MAX_TARGET_YEAR = 2100


class RevenueTarget(models.Model):
    year = models.PositiveIntegerField()
    law_firm = models.ForeignKey(
        LawFirm,
        on_delete=models.CASCADE,
        related_name="revenue_targets",
    )
    department = models.ForeignKey(
        Department,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="revenue_targets",
    )
    yearly_target = models.DecimalField(max_digits=16, decimal_places=2)
    monthly_targets = models.JSONField(default=list, blank=True)
    created_by = models.ForeignKey(
        Member,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="created_revenue_targets",
    )
    updated_by = models.ForeignKey(
        Member,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="updated_revenue_targets",
    )
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-year", "department__code", "id"]
        unique_together = ("year", "law_firm", "department")
        constraints = [
            models.UniqueConstraint(
                fields=["year", "law_firm"],
                condition=Q(department__isnull=True),
                name="unique_firm_wide_revenue_target",
            ),
        ]

    def __str__(self) -> str:
        scope = self.department.code if self.department else "firm-wide"
        return f"{self.law_firm.firm_code} {self.year} {scope}: {self.yearly_target}"

    def recalculate(self) -> "RevenueTarget":
        self.monthly_targets = decompose_yearly_target(self.yearly_target, self.year)
        return self
