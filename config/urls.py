"""
URL configuration for the firewood storefront
JSON API under /api/, Django admin for the back office.
"""

from django.conf import settings
from django.conf.urls.static import static
from django.contrib import admin
from django.urls import include, path

# ===============================================================================
# MAIN URL PATTERNS
# ===============================================================================

urlpatterns = [
    # Django admin (staff back office)
    path("admin/", admin.site.urls),
    # Storefront + staff JSON API
    path("api/", include("apps.api.urls")),
]

# ===============================================================================
# DEVELOPMENT URLS (uploaded media)
# ===============================================================================

if settings.DEBUG:
    urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)
