# ===============================================================================
# STOREFRONT API MAIN URLS 🚀
# ===============================================================================
#
# Central API routing, the single entry point for all API endpoints.
#
# URL Structure:
#   /api/products/ /api/categories/ /api/testimonials/ → catalog
#   /api/cart/                                         → session cart
#   /api/orders/                                       → checkout and tracking
#   /api/newsletter/                                   → newsletter
#   /api/contact/                                      → contact form
#   /api/settings/                                     → public site settings
#   /api/admin/...                                     → back-office (staff only)
#

from django.urls import include, path

from .cart import urls as cart_urls
from .newsletter import urls as newsletter_urls
from .orders import urls as order_urls
from .products import urls as product_urls
from .settings import urls as settings_urls
from .tickets import urls as ticket_urls

app_name = 'api'

# ===============================================================================
# BACK-OFFICE ROUTING 🛠️
# ===============================================================================

admin_urlpatterns = [
    *product_urls.admin_urlpatterns,
    *order_urls.admin_urlpatterns,
    *ticket_urls.admin_urlpatterns,
    *settings_urls.admin_urlpatterns,
]

# ===============================================================================
# API ROUTING 📍
# ===============================================================================

urlpatterns = [
    *product_urls.urlpatterns,
    *cart_urls.urlpatterns,
    *order_urls.urlpatterns,
    *newsletter_urls.urlpatterns,
    *ticket_urls.urlpatterns,
    *settings_urls.urlpatterns,
    path('admin/', include(admin_urlpatterns)),
]
