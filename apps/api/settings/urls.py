"""
Site settings API URLs
"""

from django.urls import path

from . import views

urlpatterns = [
    path('settings/', views.public_settings, name='settings_public'),
    path('settings/shipping-cost/', views.shipping_cost, name='settings_shipping_cost'),
]

admin_urlpatterns = [
    path('settings/', views.admin_settings, name='admin_settings'),
]
