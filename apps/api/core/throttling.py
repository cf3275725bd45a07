# ===============================================================================
# API THROTTLING CLASSES 🚦
# ===============================================================================
#
# Rates live in REST_FRAMEWORK["DEFAULT_THROTTLE_RATES"] under each scope.

from rest_framework.request import Request
from rest_framework.throttling import SimpleRateThrottle
from rest_framework.views import APIView


class StorefrontThrottle(SimpleRateThrottle):
    """
    Fixed-scope throttle keyed on the user (staff) or client IP (guests).
    ScopedRateThrottle would take its scope from the view instead.
    """

    def get_cache_key(self, request: Request, view: APIView) -> str:
        if request.user and request.user.is_authenticated:
            ident = request.user.pk
        else:
            ident = self.get_ident(request)
        return self.cache_format % {'scope': self.scope, 'ident': ident}


class CatalogThrottle(StorefrontThrottle):
    """Product browsing and search"""
    scope = 'catalog'


class OrderCreateThrottle(StorefrontThrottle):
    """Checkout (expensive, locks stock rows)"""
    scope = 'order_create'


class ContactThrottle(StorefrontThrottle):
    """Contact form, on top of the per-email anti-spam window"""
    scope = 'contact'


class NewsletterThrottle(StorefrontThrottle):
    """Subscribe / confirm / unsubscribe"""
    scope = 'newsletter'
