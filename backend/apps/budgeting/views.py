from __future__ import annotations

import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import serializers, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from apps.audit.utils import client_ip, log_audit_event
from apps.permissions.drf_permissions import HasProjectPermission
from apps.permissions.permissions import has_permission

from .models import Budget
from .serializers import BudgetSerializer

logger = logging.getLogger(__name__)


class BudgetViewSet(viewsets.ModelViewSet):
    """
    Budgets of the projects the user may view budgets in.

    Writes need ``edit_budgets`` in the budget's project. ``?project=<id>``
    narrows the list to one project.
    """
    permission_classes = [IsAuthenticated, HasProjectPermission]
    permission_code = "edit_budgets"
    serializer_class = BudgetSerializer

    def get_queryset(self):
        qs = Budget.objects.visible(self.request.user).select_related("project", "author")
        project_id = self.request.query_params.get("project")
        if project_id:
            qs = qs.filter(project_id=project_id)
        return qs

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        project = serializer.validated_data["project"]
        if not has_permission(request.user, self.permission_code, project):
            return Response(
                {"detail": "You do not have permission to create budgets in this project."},
                status=status.HTTP_403_FORBIDDEN,
            )
        self.perform_create(serializer)
        headers = self.get_success_headers(serializer.data)
        return Response(serializer.data, status=status.HTTP_201_CREATED, headers=headers)

    def perform_create(self, serializer):
        instance = serializer.save()
        logger.info(f"[BudgetViewSet.perform_create] Created budget id={instance.id} project={instance.project_id}")
        log_audit_event(
            user=self.request.user,
            project=instance.project,
            action="CREATE",
            entity_type="Budget",
            entity_id=str(instance.id),
            description=f"Budget {instance.name} created.",
            after=serializer.data,
            ip_address=client_ip(self.request),
        )

    def perform_update(self, serializer):
        before = BudgetSerializer(serializer.instance, context=self.get_serializer_context()).data
        instance = serializer.save()
        log_audit_event(
            user=self.request.user,
            project=instance.project,
            action="UPDATE",
            entity_type="Budget",
            entity_id=str(instance.id),
            description=f"Budget {instance.name} updated.",
            before=before,
            after=serializer.data,
            ip_address=client_ip(self.request),
        )

    def perform_destroy(self, instance):
        project = instance.project
        entity_id = str(instance.id)
        name = instance.name
        instance.delete()
        logger.info(f"[BudgetViewSet.perform_destroy] Deleted budget id={entity_id} project={project.pk}")
        log_audit_event(
            user=self.request.user,
            project=project,
            action="DELETE",
            entity_type="Budget",
            entity_id=entity_id,
            description=f"Budget {name} deleted.",
            ip_address=client_ip(self.request),
        )

    @action(detail=True, methods=["post"])
    def copy(self, request, pk=None):
        source = self.get_object()
        budget = Budget.copy_from(source, actor=request.user)
        subject = request.data.get("subject")
        if subject:
            budget.subject = subject
        try:
            budget.full_clean()
        except DjangoValidationError as exc:
            raise serializers.ValidationError(exc.message_dict) from exc
        budget.save()
        data = self.get_serializer(budget).data
        log_audit_event(
            user=request.user,
            project=budget.project,
            action="COPY",
            entity_type="Budget",
            entity_id=str(budget.id),
            description=f"Budget {budget.name} copied from budget {source.id}.",
            after=data,
            ip_address=client_ip(request),
        )
        return Response(data, status=status.HTTP_201_CREATED)
