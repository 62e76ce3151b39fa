from datetime import date
from decimal import Decimal

from django.test import TestCase

from apps.budgeting.models import Budget, LaborBudgetItem
from apps.budgeting.tests.base import BudgetFixturesMixin
from apps.costs.models import CostEntry, TimeEntry
from apps.projects.models import WorkPackage
from apps.users.models import DeletedUser, User
from shared.event_bus import USER_BEFORE_DESTROY, event_bus


class DeletedUserSentinelTests(TestCase):
    def test_sentinel_is_created_once(self):
        first = DeletedUser.objects.get_sentinel()
        second = DeletedUser.objects.get_sentinel()

        self.assertEqual(first.pk, second.pk)
        self.assertEqual(first.username, "deleted-user")
        self.assertTrue(first.is_deleted_user)
        self.assertFalse(first.is_active)
        self.assertFalse(first.has_usable_password())

    def test_manager_only_returns_placeholder_accounts(self):
        User.objects.create_user(username="alice", password="pass12345")
        DeletedUser.objects.get_sentinel()
        self.assertEqual(list(DeletedUser.objects.values_list("username", flat=True)), ["deleted-user"])


class UserRemovalTests(BudgetFixturesMixin, TestCase):
    def setUp(self):
        self.create_fixtures()
        self.add_items()

    def test_removed_author_is_replaced_by_sentinel(self):
        self.manager.delete()

        self.budget.refresh_from_db()
        sentinel = DeletedUser.objects.get_sentinel()
        self.assertEqual(self.budget.author_id, sentinel.pk)
        self.assertFalse(User.objects.filter(username="manager").exists())

    def test_planned_hours_and_bookings_move_to_sentinel(self):
        work_package = WorkPackage.objects.create(project=self.project, subject="Pour", budget=self.budget)
        TimeEntry.objects.create(
            user=self.worker,
            project=self.project,
            work_package=work_package,
            hours=Decimal("1"),
            spent_on=date(2025, 2, 1),
        )
        CostEntry.objects.create(
            user=self.worker,
            project=self.project,
            work_package=work_package,
            cost_type=self.concrete,
            units=Decimal("1"),
        )

        self.worker.delete()

        sentinel = DeletedUser.objects.get_sentinel()
        self.assertEqual(LaborBudgetItem.objects.get().user_id, sentinel.pk)
        self.assertEqual(TimeEntry.objects.get().user_id, sentinel.pk)
        self.assertEqual(CostEntry.objects.get().user_id, sentinel.pk)
        # Bookings keep the costs computed for the removed user
        self.assertEqual(TimeEntry.objects.get().costs, Decimal("45"))

    def test_replace_author_with_deleted_user_returns_count(self):
        Budget.objects.create_budget("Phase 2", self.project, self.fixed_date, actor=self.manager)
        self.assertEqual(Budget.replace_author_with_deleted_user(self.manager), 2)

    def test_event_is_published_before_deletion(self):
        seen = []

        def handler(sender, user, **kwargs):
            seen.append((user.pk, User.objects.filter(pk=user.pk).exists()))

        event_bus.subscribe(USER_BEFORE_DESTROY, handler, dispatch_uid="tests.user_removal")
        self.addCleanup(event_bus.unsubscribe, USER_BEFORE_DESTROY, dispatch_uid="tests.user_removal")
        pk = self.outsider.pk

        self.outsider.delete()

        self.assertEqual(seen, [(pk, True)])
