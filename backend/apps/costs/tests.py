from datetime import date
from decimal import Decimal

from django.test import TestCase

from apps.budgeting.tests.base import grant
from apps.costs.models import CostEntry, CostRate, CostType, HourlyRate, TimeEntry, money
from apps.projects.models import Project, WorkPackage
from apps.users.models import User


class RateLookupTests(TestCase):
    def setUp(self):
        self.project = Project.objects.create(name="Bridge", identifier="bridge")
        self.user = User.objects.create_user(username="carol", password="pass1234")
        self.steel = CostType.objects.create(name="Steel", unit="t", unit_plural="t")
        CostRate.objects.create(cost_type=self.steel, valid_from=date(2024, 1, 1), rate=Decimal("700"))
        CostRate.objects.create(cost_type=self.steel, valid_from=date(2025, 1, 1), rate=Decimal("750"))

    def test_unit_price_is_the_rate_in_force(self):
        self.assertEqual(self.steel.unit_price_at(date(2023, 12, 31)), Decimal("0"))
        self.assertEqual(self.steel.unit_price_at(date(2024, 7, 1)), Decimal("700"))
        self.assertEqual(self.steel.unit_price_at(date(2025, 1, 1)), Decimal("750"))

    def test_project_rate_takes_precedence_over_default(self):
        HourlyRate.objects.create(user=self.user, valid_from=date(2024, 1, 1), rate=Decimal("30"))
        HourlyRate.objects.create(user=self.user, project=self.project, valid_from=date(2024, 6, 1), rate=Decimal("35"))
        other = Project.objects.create(name="Tunnel", identifier="tunnel")

        self.assertEqual(HourlyRate.amount_for(self.user, self.project, date(2024, 3, 1)), Decimal("30"))
        self.assertEqual(HourlyRate.amount_for(self.user, self.project, date(2024, 7, 1)), Decimal("35"))
        self.assertEqual(HourlyRate.amount_for(self.user, other, date(2024, 7, 1)), Decimal("30"))
        self.assertEqual(HourlyRate.amount_for(None, self.project, date(2024, 7, 1)), Decimal("0"))

    def test_money_rounds_to_four_places(self):
        self.assertEqual(str(money(Decimal("1.23456"))), "1.2346")
        self.assertEqual(str(money(None)), "0.0000")


class EntryVisibilityTests(TestCase):
    def setUp(self):
        self.project = Project.objects.create(name="Bridge", identifier="bridge")
        self.work_package = WorkPackage.objects.create(project=self.project, subject="Pour")
        self.alice = User.objects.create_user(username="alice", password="pass1234")
        self.bob = User.objects.create_user(username="bob", password="pass1234")
        self.steel = CostType.objects.create(name="Steel", unit="t", unit_plural="t")
        CostRate.objects.create(cost_type=self.steel, valid_from=date(2024, 1, 1), rate=Decimal("700"))
        HourlyRate.objects.create(user=self.alice, valid_from=date(2024, 1, 1), rate=Decimal("30"))
        for user in (self.alice, self.bob):
            CostEntry.objects.create(
                user=user,
                project=self.project,
                work_package=self.work_package,
                cost_type=self.steel,
                units=Decimal("2"),
                spent_on=date(2024, 5, 1),
            )
            TimeEntry.objects.create(
                user=user,
                project=self.project,
                work_package=self.work_package,
                hours=Decimal("3"),
                spent_on=date(2024, 5, 1),
            )

    def test_costs_are_computed_on_save(self):
        entry = CostEntry.objects.filter(user=self.alice).get()
        self.assertEqual(entry.costs, Decimal("1400"))
        self.assertEqual(TimeEntry.objects.filter(user=self.alice).get().costs, Decimal("90"))
        # No rate for bob
        self.assertEqual(TimeEntry.objects.filter(user=self.bob).get().costs, Decimal("0"))

    def test_real_costs_prefer_override(self):
        entry = CostEntry.objects.filter(user=self.alice).get()
        entry.overridden_costs = Decimal("12")
        self.assertEqual(entry.real_costs, Decimal("12"))

    def test_system_context_sees_everything(self):
        self.assertEqual(CostEntry.objects.visible_costs(None, self.project).count(), 2)
        self.assertEqual(TimeEntry.objects.visible_costs(None, self.project).count(), 2)

    def test_cost_entries_need_cost_rate_permission(self):
        grant(self.alice, self.project, "view_cost_entries")
        self.assertEqual(CostEntry.objects.visible_costs(self.alice, self.project).count(), 0)

        grant(self.alice, self.project, "view_cost_rates")
        self.assertEqual(CostEntry.objects.visible_costs(self.alice, self.project).count(), 2)

    def test_own_cost_entries(self):
        grant(self.alice, self.project, "view_cost_rates", "view_own_cost_entries")
        entries = CostEntry.objects.visible_costs(self.alice, self.project)
        self.assertEqual([entry.user for entry in entries], [self.alice])

    def test_time_entries_need_entry_and_rate_permission(self):
        grant(self.bob, self.project, "view_time_entries")
        self.assertEqual(TimeEntry.objects.visible_costs(self.bob, self.project).count(), 0)

        grant(self.bob, self.project, "view_own_hourly_rate")
        entries = TimeEntry.objects.visible_costs(self.bob, self.project)
        self.assertEqual([entry.user for entry in entries], [self.bob])

        grant(self.bob, self.project, "view_hourly_rates")
        self.assertEqual(TimeEntry.objects.visible_costs(self.bob, self.project).count(), 2)
