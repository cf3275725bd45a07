"""
Secure client IP detection for the firewood storefront

Proxy headers are honored only when the direct peer is listed in
IPWARE_TRUSTED_PROXY_LIST, so anti-spam checks and subscriber metadata
cannot be poisoned with a forged X-Forwarded-For.

Usage:
    from apps.common.request_ip import get_safe_client_ip

    def my_view(request):
        client_ip = get_safe_client_ip(request)
"""

from django.conf import settings
from django.http import HttpRequest
from ipware import get_client_ip  # type: ignore[import-untyped]

DEFAULT_CLIENT_IP = '127.0.0.1'


def get_safe_client_ip(request: HttpRequest) -> str:
    """
    Get the real client IP address, respecting proxy trust configuration.

    Configuration is done via IPWARE_TRUSTED_PROXY_LIST in Django settings:
    - Dev/Test: [] (proxy headers ignored, REMOTE_ADDR only)
    - Prod: ['10.0.0.0/8'] style prefixes of the load balancer
    """
    remote_addr = request.META.get('REMOTE_ADDR') or DEFAULT_CLIENT_IP
    trusted_proxies = getattr(settings, 'IPWARE_TRUSTED_PROXY_LIST', [])

    if not trusted_proxies:
        return remote_addr

    client_ip, _routable = get_client_ip(request, proxy_trusted_ips=trusted_proxies)
    return client_ip or remote_addr


def get_request_metadata(request: HttpRequest) -> dict[str, str]:
    """Collect the ip / user agent / referer triple stored on subscribers and tickets"""
    return {
        'ip_address': get_safe_client_ip(request),
        'user_agent': request.META.get('HTTP_USER_AGENT', '')[:500],
        'referer': request.META.get('HTTP_REFERER', '')[:500],
    }
