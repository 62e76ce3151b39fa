from rest_framework.permissions import BasePermission
from .permissions import has_permission


class HasProjectPermission(BasePermission):
    """
    DRF permission class that checks the view's ``permission_code`` against
    the project of the object being accessed.

    Views declare the code required for unsafe methods:

        class BudgetViewSet(viewsets.ModelViewSet):
            permission_classes = [IsAuthenticated, HasProjectPermission]
            permission_code = 'edit_budgets'

    Safe methods are left to the view's queryset scoping.
    """

    def has_object_permission(self, request, view, obj):
        if request.method in ('GET', 'HEAD', 'OPTIONS'):
            return True
        permission_code = getattr(view, 'permission_code', None)
        if not permission_code:
            # Deny when a view forgets to state the required permission.
            return False
        project = getattr(obj, 'project', None)
        return has_permission(request.user, permission_code, project)
