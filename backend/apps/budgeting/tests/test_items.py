from decimal import Decimal

from django.core.exceptions import ValidationError
from django.test import SimpleTestCase, TestCase
from django.utils import translation

from apps.budgeting.items import normalize_attributes, permitted_attributes, to_int, valid_labor_attributes
from apps.budgeting.models import Budget, LaborBudgetItem, MaterialBudgetItem

from .base import BudgetFixturesMixin


class ItemAttributeTests(SimpleTestCase):
    def test_quantity_is_parsed_and_bag_left_untouched(self):
        bag = {"units": "1,234.5", "cost_type_id": "3"}
        normalized = normalize_attributes("material", bag)
        self.assertEqual(normalized["units"], Decimal("1234.5"))
        self.assertEqual(bag["units"], "1,234.5")

    def test_missing_bag_stays_missing(self):
        self.assertIsNone(normalize_attributes("labor", None))

    def test_unknown_attributes_are_not_permitted(self):
        values = permitted_attributes("material", {"units": Decimal("1"), "budget_id": 99, "id": 5, "cost_type_id": "3"})
        self.assertEqual(values, {"units": Decimal("1"), "cost_type_id": 3, "amount": None})

    def test_labor_validity_needs_assignable_user(self):
        bag = {"hours": Decimal("2"), "user_id": "7"}
        self.assertTrue(valid_labor_attributes(bag, {7}))
        self.assertFalse(valid_labor_attributes(bag, {8}))
        self.assertFalse(valid_labor_attributes({"hours": Decimal("2"), "user_id": "-7"}, {-7}))
        self.assertFalse(valid_labor_attributes({"hours": Decimal("0"), "user_id": "7"}, {7}))

    def test_ids_use_their_leading_integer(self):
        self.assertEqual(to_int("7.0"), 7)
        self.assertEqual(to_int(" 7abc"), 7)
        self.assertEqual(to_int("-3"), -3)
        self.assertEqual(to_int("abc"), 0)
        self.assertEqual(to_int(None), 0)

    def test_quantity_and_amount_are_rounded_to_four_places(self):
        normalized = normalize_attributes("labor", {"hours": "1.23456", "amount": "10.00005"})
        self.assertEqual(normalized["hours"], Decimal("1.2346"))
        self.assertEqual(permitted_attributes("labor", normalized)["amount"], Decimal("10.0001"))


class ApplyNewItemsTests(BudgetFixturesMixin, TestCase):
    def setUp(self):
        self.create_fixtures()

    def test_material_with_zero_units_is_dropped(self):
        built = self.budget.apply_new_items({"0": self.material_bag("0")}, "material")
        self.assertEqual(built, [])
        self.assertEqual(len(self.budget.material_items), 0)

    def test_material_with_malformed_or_missing_units_is_dropped(self):
        bags = {"0": self.material_bag("abc"), "1": self.material_bag(""), "2": {"cost_type_id": "1"}}
        self.budget.apply_new_items(bags, "material")
        self.assertEqual(len(self.budget.material_items), 0)

    def test_material_with_positive_units_is_built_but_not_saved(self):
        built = self.budget.apply_new_items({"0": self.material_bag("3.5", comments="Slab")}, "material")

        self.assertEqual(len(built), 1)
        item = self.budget.material_items[0]
        self.assertIs(item, built[0])
        self.assertEqual(item.units, Decimal("3.5"))
        self.assertEqual(item.comments, "Slab")
        self.assertIs(item.budget, self.budget)
        self.assertIsNone(item.pk)
        self.assertFalse(MaterialBudgetItem.objects.exists())

    def test_units_below_storable_precision_are_dropped(self):
        self.budget.apply_new_items({"0": self.material_bag("0.00001")}, "material")
        self.assertEqual(len(self.budget.material_items), 0)

    def test_extra_fractional_digits_are_rounded(self):
        self.budget.apply_new_items({"0": self.material_bag("1.23456")}, "material")
        item = self.budget.material_items[0]
        self.assertEqual(item.units, Decimal("1.2346"))
        self.budget.full_clean()

    def test_labor_user_id_with_trailing_fraction_is_accepted(self):
        self.budget.apply_new_items({"0": {"hours": "2", "user_id": f"{self.worker.pk}.0"}}, "labor")
        self.assertEqual(self.budget.labor_items[0].user, self.worker)

    def test_units_follow_active_locale(self):
        with translation.override("de"):
            self.budget.apply_new_items({"0": self.material_bag("1.234,5")}, "material")
        self.assertEqual(self.budget.material_items[0].units, Decimal("1234.5"))

    def test_labor_for_user_outside_project_is_dropped(self):
        self.budget.apply_new_items({"0": self.labor_bag("2", self.outsider)}, "labor")
        self.assertEqual(len(self.budget.labor_items), 0)

    def test_labor_with_invalid_user_id_is_dropped(self):
        bags = {
            "0": {"hours": "2", "user_id": "0"},
            "1": {"hours": "2", "user_id": "abc"},
            "2": {"hours": "2"},
            "3": self.labor_bag("0", self.worker),
        }
        self.budget.apply_new_items(bags, "labor")
        self.assertEqual(len(self.budget.labor_items), 0)

    def test_labor_for_possible_assignee_is_built(self):
        self.budget.apply_new_items({"0": self.labor_bag("2", self.worker)}, "labor")
        item = self.budget.labor_items[0]
        self.assertEqual(item.user, self.worker)
        self.assertEqual(item.hours, Decimal("2"))

    def test_inactive_user_is_no_possible_assignee(self):
        self.worker.is_active = False
        self.worker.save(update_fields=["is_active"])
        self.budget.apply_new_items({"0": self.labor_bag("2", self.worker)}, "labor")
        self.assertEqual(len(self.budget.labor_items), 0)

    def test_save_persists_new_items(self):
        self.add_items()
        self.assertEqual(len(self.budget.item_save_results), 2)
        self.assertTrue(all(result.saved for result in self.budget.item_save_results))

        fresh = Budget.objects.get(pk=self.budget.pk)
        self.assertEqual(len(fresh.material_items), 1)
        self.assertEqual(len(fresh.labor_items), 1)

    def test_unknown_item_type_is_rejected(self):
        with self.assertRaises(ValueError):
            self.budget.apply_new_items({}, "equipment")


class ReconcileExistingItemsTests(BudgetFixturesMixin, TestCase):
    def setUp(self):
        self.create_fixtures()
        self.add_items(material=("3.5", "2"))
        self.budget = Budget.objects.get(pk=self.budget.pk)
        self.first, self.second = list(self.budget.material_items)
        self.labor = self.budget.labor_items[0]
        self.first_id, self.second_id, self.labor_id = self.first.pk, self.second.pk, self.labor.pk

    def _material_bags(self, **overrides):
        bags = {
            str(self.first.pk): self.material_bag("3.5"),
            str(self.second.pk): self.material_bag("2"),
        }
        bags.update(overrides)
        return bags

    def test_actor_without_edit_permission_changes_nothing(self):
        before = [(item.pk, item.units) for item in self.budget.material_items]

        result = self.budget.reconcile_existing_items({}, "material", actor=self.worker)

        self.assertFalse(result.changed)
        self.assertEqual([(item.pk, item.units) for item in self.budget.material_items], before)
        self.assertEqual(MaterialBudgetItem.objects.filter(budget=self.budget).count(), 2)

    def test_item_without_bag_is_removed_and_deleted(self):
        bags = self._material_bags()
        del bags[str(self.second.pk)]

        result = self.budget.reconcile_existing_items(bags, "material", actor=self.manager)

        self.assertEqual(result.removed_ids, [self.second_id])
        self.assertEqual(list(self.budget.material_items), [self.first])
        # Removal does not wait for the budget to be saved
        self.assertFalse(MaterialBudgetItem.objects.filter(pk=self.second_id).exists())

    def test_item_with_invalid_bag_is_removed(self):
        bags = self._material_bags(**{str(self.first.pk): self.material_bag("-1")})
        result = self.budget.reconcile_existing_items(bags, "material", actor=self.manager)
        self.assertEqual(result.removed_ids, [self.first_id])
        self.assertEqual(len(self.budget.material_items), 1)

    def test_valid_bag_updates_item_in_memory_only(self):
        bags = self._material_bags(**{str(self.first.pk): {"units": "5", "amount": "100.00"}})

        result = self.budget.reconcile_existing_items(bags, "material", actor=self.manager)

        self.assertEqual(result.updated, [self.first, self.second])
        self.assertEqual(self.first.units, Decimal("5"))
        self.assertEqual(self.first.amount, Decimal("100.00"))
        self.assertIn(self.first, list(self.budget.material_items))
        stored = MaterialBudgetItem.objects.get(pk=self.first.pk)
        self.assertEqual(stored.units, Decimal("3.5"))
        self.assertIsNone(stored.amount)

        self.budget.save()
        stored.refresh_from_db()
        self.assertEqual(stored.units, Decimal("5"))
        self.assertEqual(stored.amount, Decimal("100"))
        self.assertEqual(stored.cost_type, self.concrete)

    def test_bag_without_amount_clears_override(self):
        MaterialBudgetItem.objects.filter(pk=self.first.pk).update(amount=Decimal("999"))
        budget = Budget.objects.get(pk=self.budget.pk)
        first = budget.material_items.find(self.first.pk)
        self.assertEqual(first.amount, Decimal("999"))

        budget.reconcile_existing_items(self._material_bags(), "material", actor=self.manager)

        self.assertIsNone(first.amount)

    def test_negative_amount_is_reported_and_not_saved(self):
        bags = self._material_bags(**{str(self.first_id): self.material_bag("3.5", amount="-500")})
        self.budget.reconcile_existing_items(bags, "material", actor=self.manager)

        with self.assertRaises(ValidationError) as ctx:
            self.budget.full_clean()
        self.assertIn("material_budget_items", ctx.exception.message_dict)
        self.assertIsNone(MaterialBudgetItem.objects.get(pk=self.first_id).amount)

    def test_pending_items_are_not_candidates(self):
        self.budget.apply_new_items({"0": self.material_bag("1")}, "material")
        result = self.budget.reconcile_existing_items(self._material_bags(), "material", actor=self.manager)
        self.assertEqual(len(result.updated), 2)
        self.assertEqual(len(self.budget.material_items), 3)

    def test_labor_item_of_user_who_left_project_is_removed(self):
        self.worker.userprojectrole_set.update(is_active=False)
        bags = {str(self.labor.pk): self.labor_bag("10", self.worker)}

        result = self.budget.reconcile_existing_items(bags, "labor", actor=self.manager)

        self.assertEqual(result.removed_ids, [self.labor_id])
        self.assertFalse(LaborBudgetItem.objects.exists())


class PersistItemsTests(BudgetFixturesMixin, TestCase):
    def setUp(self):
        self.create_fixtures()

    def test_failing_item_does_not_stop_siblings(self):
        broken = self.budget.material_items.build(units=Decimal("1"))
        self.budget.apply_new_items({"0": self.material_bag("2")}, "material")

        with self.assertLogs("apps.budgeting.models", level="WARNING"):
            results = self.budget.persist_items("material")

        self.assertEqual([result.saved for result in results], [False, True])
        self.assertIs(results[0].item, broken)
        self.assertIsNotNone(results[0].error)
        self.assertEqual(MaterialBudgetItem.objects.filter(budget=self.budget).count(), 1)

    def test_unsaved_budget_cannot_persist_items(self):
        budget = Budget(subject="Draft", project=self.project, author=self.manager, fixed_date=self.fixed_date)
        with self.assertRaises(ValueError):
            budget.persist_items("material")


class BudgetItemValidationTests(BudgetFixturesMixin, TestCase):
    def setUp(self):
        self.create_fixtures()

    def test_negative_units_are_reported(self):
        self.budget.material_items.build(units=Decimal("-1"), cost_type=self.concrete)
        with self.assertRaises(ValidationError) as ctx:
            self.budget.full_clean()
        self.assertIn("material_budget_items", ctx.exception.message_dict)

    def test_labor_user_must_be_possible_assignee(self):
        self.budget.labor_items.build(hours=Decimal("1"), user=self.outsider)
        with self.assertRaises(ValidationError) as ctx:
            self.budget.full_clean()
        self.assertIn("labor_budget_items", ctx.exception.message_dict)

    def test_negative_amount_on_new_item_is_reported(self):
        self.budget.apply_new_items({"0": self.material_bag("1", amount="-1000")}, "material")
        with self.assertRaises(ValidationError) as ctx:
            self.budget.full_clean()
        self.assertIn("material_budget_items", ctx.exception.message_dict)

    def test_negative_labor_amount_is_reported(self):
        self.budget.apply_new_items({"0": self.labor_bag("1", self.worker, amount="-1")}, "labor")
        with self.assertRaises(ValidationError) as ctx:
            self.budget.full_clean()
        self.assertIn("labor_budget_items", ctx.exception.message_dict)

    def test_valid_items_pass(self):
        self.budget.apply_new_items({"0": self.material_bag("1")}, "material")
        self.budget.apply_new_items({"0": self.labor_bag("1", self.worker)}, "labor")
        self.budget.full_clean()
