# backend/apps/budgeting/permissions.py

from apps.permissions.registry import register_permissions

BUDGETING_PERMISSIONS = [
    {"code": "view_budgets", "description": "Can view project budgets", "category": "Budgeting"},
    {"code": "edit_budgets", "description": "Can create, edit, copy and delete project budgets", "category": "Budgeting"},
]

register_permissions(BUDGETING_PERMISSIONS)
