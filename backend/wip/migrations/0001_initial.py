from decimal import Decimal

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("accounting", "0001_initial"),
        ("projects", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="WipSnapshot",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("date", models.DateField()),
                ("total_cost", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=15)),
                ("total_billed", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=15)),
                ("completion_percentage", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=5)),
                ("earned_value", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=15)),
                ("wip_value", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=15)),
                ("risk_score", models.PositiveSmallIntegerField(default=0)),
                ("age_in_days", models.PositiveIntegerField(default=0)),
                ("notes", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "adjustment_journal",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="wip_snapshots",
                        to="accounting.journal",
                    ),
                ),
                (
                    "project",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="wip_snapshots",
                        to="projects.project",
                    ),
                ),
            ],
            options={
                "ordering": ["-date", "-id"],
                "indexes": [
                    models.Index(fields=["project", "date", "id"], name="wip_project_date_idx"),
                    models.Index(fields=["date"], name="wip_date_idx"),
                ],
            },
        ),
    ]
