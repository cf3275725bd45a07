# ===============================================================================
# PYTEST CONFIGURATION FOR THE FIREWOOD STOREFRONT
# ===============================================================================
"""
Global test configuration.

Test Structure:
- tests/ mirrors apps/ structure for app-specific tests
- tests/api/ covers the HTTP surface (envelopes, status codes)
- Naming convention: test_{app}_{feature}.py

Run specific app tests: pytest tests/orders/
"""

import os

import django


def pytest_configure():
    """Configure Django settings for pytest"""
    os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings.test')

    # Configure Django
    django.setup()

# ===============================================================================
# PYTEST FIXTURES
# ===============================================================================

import pytest  # noqa: E402
from django.contrib.auth import get_user_model  # noqa: E402
from django.core.cache import cache  # noqa: E402
from rest_framework.test import APIClient  # noqa: E402

from apps.products.models import Category, Product, ProductImage  # noqa: E402

User = get_user_model()


@pytest.fixture(autouse=True)
def clear_cache():
    """Site settings and sessions live in the cache, start every test clean"""
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def staff_user():
    """Back-office user"""
    return User.objects.create_user(
        username='gerant',
        email='gerant@test.example',
        password='testpass123',
        is_staff=True,
    )


@pytest.fixture
def customer_user():
    """Logged-in shopper without back-office rights"""
    return User.objects.create_user(
        username='client',
        email='client@test.example',
        password='testpass123',
    )


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def admin_client(staff_user):
    """API client authenticated as staff"""
    client = APIClient()
    client.force_authenticate(user=staff_user)
    return client


@pytest.fixture
def category():
    return Category.objects.create(name='Bois de chauffage', featured=True, sort_order=1)


@pytest.fixture
def make_product(category):
    """Factory for catalog products with sensible defaults"""

    def _make_product(name='Chêne sec 33 cm', **overrides):
        values = {
            'name': name,
            'short_description': 'Bûches de chêne séchées',
            'category': category,
            'essence': 'chêne',
            'price_cents': 8990,
            'unit': 'stère',
            'stock': 40,
        }
        values.update(overrides)
        product = Product.objects.create(**values)
        ProductImage.objects.create(
            product=product, url=f'/images/products/{product.slug}.jpg', alt=product.name, is_primary=True
        )
        return product

    return _make_product


@pytest.fixture
def product(make_product):
    return make_product()
