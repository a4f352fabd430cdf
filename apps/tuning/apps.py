from django.apps import AppConfig
from django.utils.translation import gettext_lazy as _


class TuningConfig(AppConfig):
    """🔧 ECU tuning file uploads and processing workflow"""
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.tuning'
    verbose_name = _('Tuning Files')
