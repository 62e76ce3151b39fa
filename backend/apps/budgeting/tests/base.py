from datetime import date
from decimal import Decimal
from itertools import count

from apps.budgeting.models import Budget
from apps.costs.models import CostRate, CostType, HourlyRate
from apps.permissions.models import Permission, Role
from apps.projects.models import Project
from apps.users.models import User, UserProjectRole

_role_numbers = count(1)

MANAGER_CODES = (
    "view_budgets",
    "edit_budgets",
    "view_cost_rates",
    "view_hourly_rates",
    "view_cost_entries",
    "view_time_entries",
    "work_package_assigned",
)

WORKER_CODES = (
    "view_budgets",
    "work_package_assigned",
    "view_own_hourly_rate",
    "view_own_time_entries",
)


def grant(user, project, *codes):
    role = Role.objects.create(name=f"Test role {next(_role_numbers)}")
    for code in codes:
        permission, _ = Permission.objects.get_or_create(code=code, defaults={"name": code, "module": "tests"})
        role.permissions.add(permission)
    return UserProjectRole.objects.create(user=user, project=project, role=role)


class BudgetFixturesMixin:
    """
    A project with a budget manager, a worker and an outsider, one cost type
    whose price doubles on 2025-01-01, and hourly rates for both members.
    """

    fixed_date = date(2025, 6, 1)

    def create_fixtures(self):
        self.project = Project.objects.create(name="Bridge", identifier="bridge")
        self.manager = User.objects.create_user(username="manager", password="pass1234")
        self.worker = User.objects.create_user(username="worker", password="pass1234")
        self.outsider = User.objects.create_user(username="outsider", password="pass1234")
        grant(self.manager, self.project, *MANAGER_CODES)
        grant(self.worker, self.project, *WORKER_CODES)

        self.concrete = CostType.objects.create(name="Concrete", unit="m³", unit_plural="m³")
        CostRate.objects.create(cost_type=self.concrete, valid_from=date(2024, 1, 1), rate=Decimal("10"))
        CostRate.objects.create(cost_type=self.concrete, valid_from=date(2025, 1, 1), rate=Decimal("20"))

        HourlyRate.objects.create(user=self.manager, valid_from=date(2024, 1, 1), rate=Decimal("50"))
        HourlyRate.objects.create(user=self.worker, valid_from=date(2024, 1, 1), rate=Decimal("40"))
        HourlyRate.objects.create(
            user=self.worker, project=self.project, valid_from=date(2025, 1, 1), rate=Decimal("45")
        )

        self.budget = Budget.objects.create_budget("Phase 1", self.project, self.fixed_date, actor=self.manager)

    def material_bag(self, units, **extra):
        return {"units": units, "cost_type_id": str(self.concrete.pk), **extra}

    def labor_bag(self, hours, user, **extra):
        return {"hours": hours, "user_id": str(user.pk), **extra}

    def add_items(self, budget=None, material=("3.5",), labor=(("10", None),)):
        """Build and save items; labor entries are (hours, user) with the worker as default."""
        budget = budget or self.budget
        budget.apply_new_items({str(i): self.material_bag(units) for i, units in enumerate(material)}, "material")
        budget.apply_new_items(
            {str(i): self.labor_bag(hours, user or self.worker) for i, (hours, user) in enumerate(labor)},
            "labor",
        )
        budget.save()
        return budget
