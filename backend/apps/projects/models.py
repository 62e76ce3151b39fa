from django.conf import settings
from django.db import models

ASSIGNABLE_PERMISSION = "work_package_assigned"


class Project(models.Model):
    name = models.CharField(max_length=255)
    identifier = models.SlugField(max_length=100, unique=True)
    description = models.TextField(blank=True)
    start_date = models.DateField(null=True, blank=True)
    end_date = models.DateField(null=True, blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return self.name

    def possible_assignees(self):
        """Active users holding a role that allows work package assignment here."""
        from apps.users.models import User

        return User.objects.filter(
            is_active=True,
            userprojectrole__project=self,
            userprojectrole__is_active=True,
            userprojectrole__role__permissions__code=ASSIGNABLE_PERMISSION,
        ).distinct()

    def possible_assignee_ids(self) -> set[int]:
        if self.pk is None:
            return set()
        return set(self.possible_assignees().values_list("id", flat=True))


class WorkPackage(models.Model):
    project = models.ForeignKey(Project, on_delete=models.CASCADE, related_name='work_packages')
    subject = models.CharField(max_length=255)
    budget = models.ForeignKey(
        'budgeting.Budget',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='work_packages',
    )
    assigned_to = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='assigned_work_packages',
    )
    start_date = models.DateField(null=True, blank=True)
    due_date = models.DateField(null=True, blank=True)
    depends_on = models.ForeignKey('self', on_delete=models.SET_NULL, null=True, blank=True, related_name='dependents')

    class Meta:
        ordering = ["start_date", "id"]

    def __str__(self):
        return f"#{self.pk} {self.subject}"
