from __future__ import annotations

from typing import Dict, List

from django.conf import settings
from django.core.management.base import BaseCommand
from django.db import transaction

from apps.permissions.models import Permission, Role
from apps.permissions.registry import ALL_PERMISSIONS


def default_roles() -> Dict[str, List[str]]:
    member_codes = [
        "view_budgets",
        "work_package_assigned",
        "view_own_hourly_rate",
        "view_own_time_entries",
        "view_own_cost_entries",
    ]
    manager_name = settings.BUDGETS.get("DEFAULT_ROLE_NAME", "Budget Manager")
    return {
        manager_name: [perm["code"] for perm in ALL_PERMISSIONS],
        "Project Member": member_codes,
    }


class Command(BaseCommand):
    help = "Sync registered permission codes to the database and provision default roles."

    @transaction.atomic
    def handle(self, *args, **options):
        created = 0
        for perm in ALL_PERMISSIONS:
            _, was_created = Permission.objects.update_or_create(
                code=perm["code"],
                defaults={
                    "name": perm.get("description", perm["code"]),
                    "module": perm.get("category", ""),
                    "description": perm.get("description", ""),
                },
            )
            created += int(was_created)

        for role_name, codes in default_roles().items():
            role, _ = Role.objects.get_or_create(name=role_name, defaults={"is_system_role": True})
            role.permissions.add(*Permission.objects.filter(code__in=codes))

        if options.get("verbosity", 1) > 0:
            self.stdout.write(self.style.SUCCESS(
                f"Permissions synced: {len(ALL_PERMISSIONS)} registered, {created} created."
            ))
