from datetime import date
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.test import TestCase

from apps.budgeting.models import Budget, LaborBudgetItem, MaterialBudgetItem
from apps.costs.models import CostEntry, TimeEntry
from apps.projects.models import WorkPackage

from .base import BudgetFixturesMixin, grant


class BudgetCreationTests(BudgetFixturesMixin, TestCase):
    def setUp(self):
        self.create_fixtures()

    def test_author_defaults_to_actor(self):
        self.assertEqual(self.budget.author, self.manager)
        self.assertEqual(str(self.budget), "Phase 1")
        self.assertEqual(self.budget.name, "Phase 1")
        self.assertEqual(str(self.budget.type_label), "Budget")

    def test_explicit_author_wins_over_actor(self):
        budget = Budget.objects.create_budget(
            "Phase 2", self.project, self.fixed_date, author=self.worker, actor=self.manager
        )
        self.assertEqual(budget.author, self.worker)

    def test_required_fields_are_reported_per_field(self):
        cases = [
            (dict(subject="", project=self.project, fixed_date=self.fixed_date, actor=self.manager), "subject"),
            (dict(subject="x" * 256, project=self.project, fixed_date=self.fixed_date, actor=self.manager), "subject"),
            (dict(subject="   ", project=self.project, fixed_date=self.fixed_date, actor=self.manager), "subject"),
            (dict(subject="Ok", project=None, fixed_date=self.fixed_date, actor=self.manager), "project"),
            (dict(subject="Ok", project=self.project, fixed_date=None, actor=self.manager), "fixed_date"),
            (dict(subject="Ok", project=self.project, fixed_date=self.fixed_date), "author"),
        ]
        for kwargs, field in cases:
            with self.subTest(field=field, subject=kwargs["subject"][:10]):
                with self.assertRaises(ValidationError) as ctx:
                    Budget.objects.create_budget(**kwargs)
                self.assertIn(field, ctx.exception.message_dict)
        self.assertEqual(Budget.objects.count(), 1)

    def test_subject_of_255_chars_is_accepted(self):
        budget = Budget.objects.create_budget("x" * 255, self.project, self.fixed_date, actor=self.manager)
        self.assertIsNotNone(budget.pk)

    def test_deleting_budget_removes_items_and_detaches_work_packages(self):
        self.add_items()
        work_package = WorkPackage.objects.create(project=self.project, subject="Pour", budget=self.budget)

        self.budget.delete()

        self.assertFalse(MaterialBudgetItem.objects.exists())
        self.assertFalse(LaborBudgetItem.objects.exists())
        work_package.refresh_from_db()
        self.assertIsNone(work_package.budget)


class BudgetPermissionTests(BudgetFixturesMixin, TestCase):
    def setUp(self):
        self.create_fixtures()

    def test_edit_allowed_follows_project_role(self):
        self.assertTrue(self.budget.edit_allowed(self.manager))
        self.assertFalse(self.budget.edit_allowed(self.worker))
        self.assertFalse(self.budget.edit_allowed(self.outsider))
        self.assertFalse(self.budget.edit_allowed(None))

    def test_system_admin_may_edit_everywhere(self):
        self.outsider.is_system_admin = True
        self.outsider.save(update_fields=["is_system_admin"])
        self.assertTrue(self.budget.edit_allowed(self.outsider))

    def test_visible_limits_budgets_to_viewable_projects(self):
        self.assertEqual(list(Budget.objects.visible(self.worker)), [self.budget])
        self.assertEqual(list(Budget.objects.visible(self.outsider)), [])

        grant(self.outsider, self.project, "view_budgets")
        self.assertEqual(list(Budget.objects.visible(self.outsider)), [self.budget])


class BudgetFiguresTests(BudgetFixturesMixin, TestCase):
    def setUp(self):
        self.create_fixtures()

    def test_empty_budget_is_zero_with_four_places(self):
        for figure in (self.budget.material_budget(), self.budget.labor_budget(), self.budget.budget()):
            self.assertEqual(figure, Decimal("0"))
            self.assertEqual(figure.as_tuple().exponent, -4)
        self.assertEqual(self.budget.spent(), Decimal("0"))
        self.assertEqual(self.budget.budget_ratio(), 0)

    def test_item_costs_use_rates_at_fixed_date(self):
        self.add_items()
        # 3.5 units at the 2025 price of 20; 10 hours at the worker's project rate of 45
        self.assertEqual(self.budget.material_budget(), Decimal("70.0000"))
        self.assertEqual(self.budget.labor_budget(), Decimal("450.0000"))
        self.assertEqual(self.budget.budget(), Decimal("520.0000"))
        self.assertEqual(
            self.budget.budget(),
            self.budget.material_budget() + self.budget.labor_budget(),
        )

    def test_earlier_fixed_date_uses_older_rates(self):
        budget = Budget.objects.create_budget("Old", self.project, date(2024, 6, 1), actor=self.manager)
        self.add_items(budget)
        self.assertEqual(budget.material_budget(), Decimal("35.0000"))
        # The project rate is not in force yet, so the default rate applies
        self.assertEqual(budget.labor_budget(), Decimal("400.0000"))

    def test_manual_amount_replaces_calculated_costs(self):
        self.budget.apply_new_items({"0": self.material_bag("3", amount="1,250.50")}, "material")
        self.budget.save()
        self.assertEqual(self.budget.material_budget(), Decimal("1250.5000"))

    def test_totals_are_not_cached_between_changes(self):
        self.assertEqual(self.budget.material_budget(), Decimal("0"))
        self.budget.apply_new_items({"0": self.material_bag("1")}, "material")
        self.assertEqual(self.budget.material_budget(), Decimal("20.0000"))

    def test_budget_figures_respect_cost_visibility(self):
        self.add_items(labor=(("10", None), ("2", self.manager)))

        self.assertEqual(self.budget.material_budget(self.manager), Decimal("70.0000"))
        self.assertEqual(self.budget.labor_budget(self.manager), Decimal("550.0000"))

        # The worker sees no material prices and only their own planned hours
        self.assertEqual(self.budget.material_budget(self.worker), Decimal("0"))
        self.assertEqual(self.budget.labor_budget(self.worker), Decimal("450.0000"))

        self.assertEqual(self.budget.budget(self.outsider), Decimal("0"))

    def _book(self):
        work_package = WorkPackage.objects.create(project=self.project, subject="Pour", budget=self.budget)
        CostEntry.objects.create(
            user=self.manager,
            project=self.project,
            work_package=work_package,
            cost_type=self.concrete,
            units=Decimal("2"),
            spent_on=date(2025, 3, 1),
        )
        CostEntry.objects.create(
            user=self.manager,
            project=self.project,
            work_package=work_package,
            cost_type=self.concrete,
            units=Decimal("1"),
            spent_on=date(2025, 3, 1),
            overridden_costs=Decimal("15"),
        )
        TimeEntry.objects.create(
            user=self.worker,
            project=self.project,
            work_package=work_package,
            hours=Decimal("2"),
            spent_on=date(2025, 2, 1),
        )
        TimeEntry.objects.create(
            user=self.manager,
            project=self.project,
            work_package=work_package,
            hours=Decimal("1"),
            spent_on=date(2025, 2, 1),
        )

    def test_spent_sums_bookings_with_overrides(self):
        self._book()
        self.assertEqual(self.budget.spent_material(), Decimal("55.0000"))
        self.assertEqual(self.budget.spent_labor(), Decimal("140.0000"))
        self.assertEqual(self.budget.spent(), Decimal("195.0000"))

    def test_spent_ignores_work_packages_of_other_budgets(self):
        self._book()
        other = Budget.objects.create_budget("Other", self.project, self.fixed_date, actor=self.manager)
        self.assertEqual(other.spent(), Decimal("0"))

    def test_spent_respects_entry_visibility(self):
        self._book()
        self.assertEqual(self.budget.spent(self.manager), Decimal("195.0000"))
        # Own time entries at own rate only; no material cost visibility
        self.assertEqual(self.budget.spent_material(self.worker), Decimal("0"))
        self.assertEqual(self.budget.spent_labor(self.worker), Decimal("90.0000"))
        self.assertEqual(self.budget.spent(self.outsider), Decimal("0"))

    def test_budget_ratio(self):
        self.budget.apply_new_items({"0": self.material_bag("1", amount="200")}, "material")
        self.budget.save()
        work_package = WorkPackage.objects.create(project=self.project, subject="Pour", budget=self.budget)
        CostEntry.objects.create(
            user=self.manager,
            project=self.project,
            work_package=work_package,
            cost_type=self.concrete,
            units=Decimal("1"),
            overridden_costs=Decimal("50"),
        )
        self.assertEqual(self.budget.budget_ratio(), 25)

    def test_budget_ratio_rounds_half_up(self):
        self.budget.apply_new_items({"0": self.material_bag("1", amount="8")}, "material")
        self.budget.save()
        work_package = WorkPackage.objects.create(project=self.project, subject="Pour", budget=self.budget)
        CostEntry.objects.create(
            user=self.manager,
            project=self.project,
            work_package=work_package,
            cost_type=self.concrete,
            units=Decimal("1"),
            overridden_costs=Decimal("1"),
        )
        # 1 / 8 = 12.5 %
        self.assertEqual(self.budget.budget_ratio(), 13)

    def test_budget_ratio_is_zero_when_nothing_is_budgeted(self):
        self._book()
        self.assertEqual(self.budget.budget(), Decimal("0"))
        self.assertEqual(self.budget.budget_ratio(), 0)


class BudgetCopyTests(BudgetFixturesMixin, TestCase):
    def setUp(self):
        self.create_fixtures()
        self.add_items()

    def test_copy_is_unsaved_with_equal_items(self):
        copy = Budget.copy_from(self.budget, actor=self.worker)

        self.assertIsNone(copy.pk)
        self.assertEqual(copy.subject, self.budget.subject)
        self.assertEqual(copy.project, self.project)
        self.assertEqual(copy.fixed_date, self.fixed_date)
        self.assertEqual(copy.author, self.worker)

        source_items = list(self.budget.material_items)
        copied_items = list(copy.material_items)
        self.assertEqual(len(copied_items), 1)
        self.assertIsNot(copied_items[0], source_items[0])
        self.assertIsNone(copied_items[0].pk)
        self.assertEqual(copied_items[0].units, source_items[0].units)
        self.assertEqual(copied_items[0].cost_type_id, source_items[0].cost_type_id)
        self.assertEqual(len(copy.labor_items), 1)

    def test_mutating_copy_leaves_source_untouched(self):
        copy = Budget.copy_from(self.budget.pk)
        self.assertEqual(copy.author, self.manager)

        copy.material_items[0].units = Decimal("99")
        self.assertEqual(self.budget.material_items[0].units, Decimal("3.5"))

    def test_saving_copy_creates_new_items(self):
        copy = Budget.copy_from(self.budget, actor=self.manager)
        copy.subject = "Phase 1 (copy)"
        copy.full_clean()
        copy.save()

        self.assertNotEqual(copy.pk, self.budget.pk)
        self.assertTrue(all(result.saved for result in copy.item_save_results))
        self.assertEqual(MaterialBudgetItem.objects.filter(budget=copy).count(), 1)
        self.assertEqual(LaborBudgetItem.objects.filter(budget=copy).count(), 1)
        self.assertEqual(MaterialBudgetItem.objects.filter(budget=self.budget).count(), 1)
        self.assertEqual(copy.budget(), self.budget.budget())
