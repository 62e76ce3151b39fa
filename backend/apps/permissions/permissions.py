"""
Core permission checking logic.
"""
from __future__ import annotations


def is_unrestricted(user) -> bool:
    """System administrators and superusers hold every permission implicitly."""
    return bool(
        getattr(user, 'is_system_admin', False)
        or (getattr(user, 'is_staff', False) and getattr(user, 'is_superuser', False))
    )


def has_permission(user, permission_code: str, project) -> bool:
    """
    Checks if a user holds a permission within the context of a project.

    This is the central function for all permission checks across the system.

    Args:
        user: The acting user (may be None or anonymous).
        permission_code: The code of the permission (e.g., 'edit_budgets').
        project: The project the permission is checked against.

    Returns:
        True if the user has the permission, False otherwise.
    """
    if not user or not getattr(user, 'is_authenticated', False) or not user.is_active:
        return False

    if is_unrestricted(user):
        return True

    if project is None or getattr(project, 'pk', None) is None:
        return False

    return user.userprojectrole_set.filter(
        project=project,
        is_active=True,
        role__permissions__code=permission_code,
    ).exists()


def projects_allowed_to(user, permission_code: str):
    """Queryset of projects in which ``user`` holds ``permission_code``."""
    from apps.projects.models import Project

    if not user or not getattr(user, 'is_authenticated', False) or not user.is_active:
        return Project.objects.none()
    if is_unrestricted(user):
        return Project.objects.all()
    return Project.objects.filter(
        userprojectrole__user=user,
        userprojectrole__is_active=True,
        userprojectrole__role__permissions__code=permission_code,
    ).distinct()
