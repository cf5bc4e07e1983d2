# sales/migrations/0002_payment_debt.py

from __future__ import annotations

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):
    dependencies = [
        ("sales", "0001_initial"),
        ("debts", "0001_initial"),
    ]

    operations = [
        migrations.AddField(
            model_name="payment",
            name="debt",
            field=models.ForeignKey(
                to="debts.debt",
                null=True,
                blank=True,
                on_delete=django.db.models.deletion.PROTECT,
                related_name="payments",
                help_text="Set when this payment collects on a debt.",
            ),
        ),
    ]
