from django.apps import AppConfig


class BudgetingConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.budgeting'
    verbose_name = 'Project Budgets'

    def ready(self):
        from shared.event_bus import USER_BEFORE_DESTROY, event_bus

        from . import permissions  # noqa: F401
        from .handlers import replace_user_with_deleted_user

        event_bus.subscribe(
            USER_BEFORE_DESTROY,
            replace_user_with_deleted_user,
            dispatch_uid="budgeting.replace_user_with_deleted_user",
        )
