"""
URL configuration for CompuCar Platform
JSON API for the storefront, back-office API, admin and integration webhooks.
"""

from django.conf import settings
from django.conf.urls.static import static
from django.contrib import admin
from django.urls import include, path

# ===============================================================================
# MAIN URL PATTERNS
# ===============================================================================

urlpatterns = [
    path("admin/", admin.site.urls),
    # Storefront & customer API
    path("api/shipping/", include("apps.shipping.urls")),
    path("api/orders/", include("apps.orders.urls")),
    path("api/notifications/", include("apps.notifications.urls")),
    # Tuning routes carry their own tuning/ and admin/tuning/ prefixes
    path("api/", include("apps.tuning.urls")),
    # Telegram bots & carrier webhooks
    path("integrations/", include("apps.integrations.urls")),
]

# ===============================================================================
# DEVELOPMENT URLS (Uploaded media)
# ===============================================================================

if settings.DEBUG:
    urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)
