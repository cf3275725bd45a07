"""
Tickets API URLs
Public contact form and back-office support desk.
"""

from django.urls import include, path
from rest_framework.routers import SimpleRouter

from . import views

admin_router = SimpleRouter()
admin_router.register('tickets', views.TicketAdminViewSet, basename='admin-ticket')

urlpatterns = [
    path('contact/', views.submit_contact, name='contact_submit'),
]

admin_urlpatterns = [
    path('', include(admin_router.urls)),
]
