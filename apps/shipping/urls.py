"""
Shipping API URLs for CompuCar Platform
"""

from django.urls import path

from . import views

app_name = 'shipping'

urlpatterns = [
    path('wilayas/', views.wilaya_list, name='wilaya_list'),
    path('communes/', views.commune_list, name='commune_list'),
    path('stopdesks/', views.stopdesk_list, name='stopdesk_list'),
    path('calculate/', views.calculate_shipping, name='calculate'),
]
