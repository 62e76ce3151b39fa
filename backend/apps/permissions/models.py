from django.db import models


class Permission(models.Model):
    """
    Granular permission codes checked per project (e.g. 'edit_budgets').
    """
    code = models.CharField(max_length=100, unique=True)
    name = models.CharField(max_length=255)
    module = models.CharField(max_length=50)
    description = models.TextField(blank=True)

    class Meta:
        db_table = 'permissions'
        ordering = ['module', 'code']

    def __str__(self):
        return self.code


class Role(models.Model):
    """
    Named permission set granted to users per project via memberships.
    """
    name = models.CharField(max_length=100, unique=True)
    permissions = models.ManyToManyField(Permission, blank=True)
    description = models.TextField(blank=True)
    is_system_role = models.BooleanField(default=False)

    class Meta:
        db_table = 'roles'
        ordering = ['name']

    def __str__(self):
        return self.name
