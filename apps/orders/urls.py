"""
Order URL Configuration
Mounted under /api/orders/.
"""

from django.urls import path

from . import views

app_name = 'orders'

urlpatterns = [
    path('', views.order_list, name='order_list'),
    path('checkout/', views.checkout, name='checkout'),
    path('<uuid:order_id>/', views.order_detail, name='order_detail'),
    path('<uuid:order_id>/status/', views.admin_update_status, name='admin_update_status'),
    path('<uuid:order_id>/ship/', views.admin_create_shipment, name='admin_create_shipment'),
    path('<uuid:order_id>/tracking/refresh/', views.admin_refresh_tracking, name='admin_refresh_tracking'),
]
