import decimal

import django.core.validators
from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ("budgeting", "0001_initial"),
    ]

    operations = [
        migrations.AlterField(
            model_name="materialbudgetitem",
            name="amount",
            field=models.DecimalField(
                blank=True,
                decimal_places=4,
                help_text="Manual cost that replaces the calculated one",
                max_digits=15,
                null=True,
                validators=[django.core.validators.MinValueValidator(decimal.Decimal("0"))],
            ),
        ),
        migrations.AlterField(
            model_name="laborbudgetitem",
            name="amount",
            field=models.DecimalField(
                blank=True,
                decimal_places=4,
                help_text="Manual cost that replaces the calculated one",
                max_digits=15,
                null=True,
                validators=[django.core.validators.MinValueValidator(decimal.Decimal("0"))],
            ),
        ),
    ]
