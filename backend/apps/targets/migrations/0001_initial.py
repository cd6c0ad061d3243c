from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("accounts", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="RevenueTarget",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("year", models.PositiveIntegerField()),
                ("yearly_target", models.DecimalField(decimal_places=2, max_digits=16)),
                ("monthly_targets", models.JSONField(blank=True, default=list)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="created_revenue_targets",
                        to="accounts.member",
                    ),
                ),
                (
                    "department",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="revenue_targets",
                        to="accounts.department",
                    ),
                ),
                (
                    "law_firm",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="revenue_targets",
                        to="accounts.lawfirm",
                    ),
                ),
                (
                    "updated_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="updated_revenue_targets",
                        to="accounts.member",
                    ),
                ),
            ],
            options={
                "ordering": ["-year", "department__code", "id"],
                "unique_together": {("year", "law_firm", "department")},
            },
        ),
        migrations.AddConstraint(
            model_name="revenuetarget",
            constraint=models.UniqueConstraint(
                condition=models.Q(("department__isnull", True)),
                fields=("year", "law_firm"),
                name="unique_firm_wide_revenue_target",
            ),
        ),
    ]
