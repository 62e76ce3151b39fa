import logging

from django.core.management import call_command
from django.db.models.signals import post_migrate
from django.dispatch import receiver

logger = logging.getLogger(__name__)


@receiver(post_migrate)
def seed_defaults_after_migrate(sender, app_config, **kwargs):
    """Sync registered permission codes and the default role after migrations.

    Idempotent: safe to run multiple times.
    """
    if not app_config or app_config.label != 'permissions':
        return
    call_command('seed_permissions', verbosity=0)
