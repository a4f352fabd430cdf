from django.apps import AppConfig
from django.utils.translation import gettext_lazy as _


class CommonConfig(AppConfig):
    """🧰 Shared types, validators and middleware"""
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.common'
    verbose_name = _('Common')
