from apps.permissions.registry import register_permissions

PROJECTS_PERMISSIONS = [
    {"code": "view_work_packages", "description": "Can view work packages", "category": "projects"},
    {"code": "work_package_assigned", "description": "Can be assigned work packages and labor budget hours", "category": "projects"},
]

register_permissions(PROJECTS_PERMISSIONS)
