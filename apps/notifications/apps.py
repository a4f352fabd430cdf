from django.apps import AppConfig
from django.utils.translation import gettext_lazy as _


class NotificationsConfig(AppConfig):
    """🔔 In-app inbox, live stream and bot fan-out for domain events"""
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.notifications'
    verbose_name = _('Notifications')

    def ready(self) -> None:
        from .handlers import register_handlers  # noqa: PLC0415

        register_handlers()
