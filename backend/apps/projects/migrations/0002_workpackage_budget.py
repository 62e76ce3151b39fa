import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ("projects", "0001_initial"),
        ("budgeting", "0001_initial"),
    ]

    operations = [
        migrations.AddField(
            model_name="workpackage",
            name="budget",
            field=models.ForeignKey(
                blank=True,
                null=True,
                on_delete=django.db.models.deletion.SET_NULL,
                related_name="work_packages",
                to="budgeting.budget",
            ),
        ),
    ]
