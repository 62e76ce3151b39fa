from django.conf import settings
from django.contrib.auth.models import AbstractUser, UserManager
from django.db import models, transaction

from shared.event_bus import USER_BEFORE_DESTROY, event_bus


class User(AbstractUser):
    """
    Extended user model with per-project role memberships
    """
    phone = models.CharField(max_length=20, blank=True)
    is_system_admin = models.BooleanField(default=False)
    is_deleted_user = models.BooleanField(
        default=False,
        help_text="Placeholder account that inherits authorship of removed users",
    )

    class Meta:
        db_table = 'users'

    def is_member_of(self, project):
        return self.userprojectrole_set.filter(project=project, is_active=True).exists()

    def delete(self, *args, **kwargs):
        # Subscribers repoint protected references before deletion collects them.
        with transaction.atomic():
            if not self.is_deleted_user:
                event_bus.publish(USER_BEFORE_DESTROY, user=self)
            return super().delete(*args, **kwargs)


class DeletedUserManager(UserManager):
    use_in_migrations = False

    def get_queryset(self):
        return super().get_queryset().filter(is_deleted_user=True)

    def get_sentinel(self):
        """Return the placeholder account, creating it on first use."""
        sentinel = self.get_queryset().order_by('pk').first()
        if sentinel is not None:
            return sentinel
        sentinel = self.model(
            username=settings.BUDGETS.get('DELETED_USER_USERNAME', 'deleted-user'),
            first_name='Deleted',
            last_name='user',
            is_active=False,
            is_deleted_user=True,
        )
        sentinel.set_unusable_password()
        sentinel.save()
        return sentinel


class DeletedUser(User):
    """Proxy over the placeholder account that replaces removed authors."""
    objects = DeletedUserManager()

    class Meta:
        proxy = True
        verbose_name = 'deleted user'


class UserProjectRole(models.Model):
    """
    Many-to-many relationship between users and projects
    with role assignment
    """
    user = models.ForeignKey(User, on_delete=models.CASCADE)
    project = models.ForeignKey('projects.Project', on_delete=models.CASCADE)
    role = models.ForeignKey('permissions.Role', on_delete=models.PROTECT)
    is_active = models.BooleanField(default=True)
    assigned_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = [['user', 'project', 'role']]
        db_table = 'user_project_roles'

    def __str__(self):
        return f"{self.user} @ {self.project}: {self.role}"
