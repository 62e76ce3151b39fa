from django.apps import AppConfig


class CostsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.costs'
    verbose_name = 'Cost Types, Rates & Bookings'

    def ready(self):
        from shared.event_bus import USER_BEFORE_DESTROY, event_bus

        from . import permissions  # noqa: F401
        from .handlers import replace_entry_user_with_deleted_user

        event_bus.subscribe(
            USER_BEFORE_DESTROY,
            replace_entry_user_with_deleted_user,
            dispatch_uid="costs.replace_entry_user_with_deleted_user",
        )
