from django.apps import AppConfig
from django.utils.translation import gettext_lazy as _


class IntegrationsConfig(AppConfig):
    """
    🔌 External service integrations and webhook management

    Handles:
    - Webhook deduplication for every inbound source
    - Telegram bot updates (super admin, file admin, customer)
    - Yalidine parcel status changes
    - Outbound Telegram messages through Django-Q2
    """
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.integrations'
    verbose_name = _('🔌 Integrations')
