from datetime import date
from decimal import Decimal

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError

from apps.budgeting.items import LABOR, MATERIAL
from apps.budgeting.models import Budget
from apps.costs.models import CostRate, CostType, HourlyRate
from apps.permissions.models import Role
from apps.projects.models import Project
from apps.users.models import User, UserProjectRole


class Command(BaseCommand):
    help = "Seed a demo project budget with material and labor items."

    def add_arguments(self, parser):
        parser.add_argument('--project', default="demo", help="Identifier of the project to seed")
        parser.add_argument('--username', required=True, help="User that authors the budget and plans labor")

    def handle(self, *args, **options):
        try:
            user = User.objects.get(username=options['username'])
        except User.DoesNotExist as exc:
            raise CommandError(f"User '{options['username']}' does not exist") from exc

        project, _ = Project.objects.get_or_create(
            identifier=options['project'], defaults={'name': options['project'].replace("-", " ").title()}
        )

        # The author needs a role that lets them edit budgets and take on work
        role = Role.objects.filter(name=settings.BUDGETS.get('DEFAULT_ROLE_NAME', 'Budget Manager')).first()
        if role is None:
            raise CommandError("Run 'manage.py seed_permissions' first")
        UserProjectRole.objects.get_or_create(user=user, project=project, role=role)

        start = date.today().replace(month=1, day=1)
        cost_types = [
            ("Concrete", "m³", "m³", Decimal("95.00")),
            ("Steel beam", "beam", "beams", Decimal("410.00")),
        ]
        for name, unit, unit_plural, rate in cost_types:
            cost_type, _ = CostType.objects.get_or_create(
                name=name, defaults={'unit': unit, 'unit_plural': unit_plural}
            )
            CostRate.objects.get_or_create(cost_type=cost_type, valid_from=start, defaults={'rate': rate})
        HourlyRate.objects.get_or_create(
            user=user, project=None, valid_from=start, defaults={'rate': Decimal("60.00")}
        )

        budget, created = Budget.objects.get_or_create(
            project=project,
            subject="Demo construction budget",
            defaults={'author': user, 'fixed_date': date.today()},
        )
        if created:
            concrete = CostType.objects.get(name="Concrete")
            steel = CostType.objects.get(name="Steel beam")
            budget.apply_new_items(
                {
                    "0": {"units": "120", "cost_type_id": concrete.pk, "comments": "Foundation"},
                    "1": {"units": "14", "cost_type_id": steel.pk, "comments": "Frame"},
                },
                MATERIAL,
            )
            budget.apply_new_items({"0": {"hours": "80", "user_id": user.pk, "comments": "Site supervision"}}, LABOR)
            budget.save()

        self.stdout.write(self.style.SUCCESS(
            f"Seeded budget '{budget}' in project '{project.identifier}' "
            f"(planned {budget.budget()}, {len(budget.material_items)} material / {len(budget.labor_items)} labor items)."
        ))
