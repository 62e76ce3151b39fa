from django.conf import settings
from django.core.management import call_command
from django.test import TestCase

from apps.budgeting.tests.base import grant
from apps.permissions.models import Permission, Role
from apps.permissions.permissions import has_permission, projects_allowed_to
from apps.permissions.registry import registered_codes
from apps.projects.models import Project
from apps.users.models import User


class HasPermissionTests(TestCase):
    def setUp(self):
        self.project = Project.objects.create(name="Bridge", identifier="bridge")
        self.other = Project.objects.create(name="Tunnel", identifier="tunnel")
        self.user = User.objects.create_user(username="dave", password="pass1234")

    def test_role_grants_permission_in_its_project_only(self):
        grant(self.user, self.project, "edit_budgets")
        self.assertTrue(has_permission(self.user, "edit_budgets", self.project))
        self.assertFalse(has_permission(self.user, "edit_budgets", self.other))
        self.assertFalse(has_permission(self.user, "view_budgets", self.project))
        self.assertEqual(list(projects_allowed_to(self.user, "edit_budgets")), [self.project])

    def test_inactive_membership_or_user_grants_nothing(self):
        membership = grant(self.user, self.project, "edit_budgets")
        membership.is_active = False
        membership.save(update_fields=["is_active"])
        self.assertFalse(has_permission(self.user, "edit_budgets", self.project))

        membership.is_active = True
        membership.save(update_fields=["is_active"])
        self.user.is_active = False
        self.user.save(update_fields=["is_active"])
        self.assertFalse(has_permission(self.user, "edit_budgets", self.project))

    def test_missing_actor_or_project(self):
        self.assertFalse(has_permission(None, "edit_budgets", self.project))
        self.assertFalse(has_permission(self.user, "edit_budgets", None))

    def test_superuser_staff_is_unrestricted(self):
        admin = User.objects.create_superuser(username="root", password="pass1234", email="root@example.com")
        self.assertTrue(has_permission(admin, "edit_budgets", self.project))
        self.assertEqual(set(projects_allowed_to(admin, "view_budgets")), {self.project, self.other})


class SeedPermissionsTests(TestCase):
    def test_registered_codes_are_synced_with_default_roles(self):
        call_command("seed_permissions", verbosity=0)

        codes = set(Permission.objects.values_list("code", flat=True))
        self.assertTrue(set(registered_codes()) <= codes)
        self.assertIn("edit_budgets", codes)
        self.assertIn("view_cost_rates", codes)

        manager = Role.objects.get(name=settings.BUDGETS["DEFAULT_ROLE_NAME"])
        self.assertEqual(
            set(manager.permissions.values_list("code", flat=True)),
            set(registered_codes()),
        )
        member = Role.objects.get(name="Project Member")
        self.assertIn("work_package_assigned", member.permissions.values_list("code", flat=True))

    def test_seeding_is_idempotent(self):
        call_command("seed_permissions", verbosity=0)
        count = Permission.objects.count()
        call_command("seed_permissions", verbosity=0)
        self.assertEqual(Permission.objects.count(), count)
