"""
Newsletter API URLs
"""

from django.urls import path

from . import views

urlpatterns = [
    path('newsletter/subscribe/', views.subscribe, name='newsletter_subscribe'),
    path('newsletter/confirm/', views.confirm, name='newsletter_confirm'),
    path('newsletter/unsubscribe/', views.unsubscribe, name='newsletter_unsubscribe'),
]
