import logging

from .models import Budget, LaborBudgetItem

logger = logging.getLogger(__name__)


def replace_user_with_deleted_user(sender, user, **kwargs):
    """Hand a removed user's budgets and planned hours over to the placeholder account."""
    budget_count = Budget.replace_author_with_deleted_user(user)
    item_count = LaborBudgetItem.replace_user_with_deleted_user(user)
    logger.info(
        f"Reassigned {budget_count} budgets and {item_count} labor budget items "
        f"of user {user.pk} to the deleted-user placeholder"
    )
