"""
Order API URLs
Checkout, order tracking and back-office order routes.
"""

from django.urls import include, path
from rest_framework.routers import SimpleRouter

from . import views

admin_router = SimpleRouter()
admin_router.register('orders', views.OrderAdminViewSet, basename='admin-order')

urlpatterns = [
    path('orders/', views.create_order, name='order_create'),
    path('orders/<str:order_number>/', views.OrderDetailAPIView.as_view(), name='order_detail'),
    path('orders/<str:order_number>/upload-receipt/', views.upload_receipt, name='order_upload_receipt'),
]

admin_urlpatterns = [
    path('', include(admin_router.urls)),
]
