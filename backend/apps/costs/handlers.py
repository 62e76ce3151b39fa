import logging

from apps.users.models import DeletedUser

from .models import CostEntry, TimeEntry

logger = logging.getLogger(__name__)


def replace_entry_user_with_deleted_user(sender, user, **kwargs):
    substitute = DeletedUser.objects.get_sentinel()
    cost_count = CostEntry.objects.filter(user=user).update(user=substitute)
    time_count = TimeEntry.objects.filter(user=user).update(user=substitute)
    logger.info(
        f"Reassigned {cost_count} cost entries and {time_count} time entries "
        f"of user {user.pk} to the deleted-user placeholder"
    )
