"""
Integration URL Configuration
Mounted under /integrations/.
"""

from django.urls import path

from . import views

app_name = 'integrations'

urlpatterns = [
    path('webhooks/telegram/<str:bot_type>/', views.TelegramWebhookView.as_view(), name='telegram_webhook'),
    path('webhooks/yalidine/', views.YalidineWebhookView.as_view(), name='yalidine_webhook'),
    path('webhooks/status/', views.webhook_status, name='webhook_status'),
    path('webhooks/<uuid:webhook_id>/retry/', views.retry_webhook, name='retry_webhook'),
]
