"""
Tests for site settings: shipping zones, caching and admin updates
"""

import pytest
from django.core.cache import cache
from django.core.exceptions import ValidationError
from django.test import TestCase

from apps.settings.models import SiteSettings
from apps.settings.services import SiteSettingsService


class ShippingCalculationTest(TestCase):
    """Zone-based shipping costs"""

    def setUp(self):
        cache.clear()
        self.site = SiteSettingsService.get_active_settings()

    def test_known_region_uses_its_cost(self):
        self.assertEqual(self.site.calculate_shipping_cents('France', 'Île-de-France', 10000), 1500)
        self.assertEqual(self.site.calculate_shipping_cents('france', 'corse', 10000), 3500)

    def test_free_at_threshold(self):
        self.assertEqual(self.site.calculate_shipping_cents('France', 'Corse', 50000), 0)
        self.assertEqual(self.site.calculate_shipping_cents('France', 'Corse', 49999), 3500)

    def test_unknown_region_falls_back_to_first_region(self):
        self.assertEqual(self.site.calculate_shipping_cents('Belgique', 'Anvers', 0), 2500)
        self.assertEqual(self.site.calculate_shipping_cents('Suisse', None, 0), 3500)

    def test_unknown_country_pays_standard_rate(self):
        self.assertEqual(self.site.calculate_shipping_cents('Allemagne', 'Bavière', 0), 1500)

    def test_service_shortcut(self):
        self.assertEqual(SiteSettingsService.calculate_shipping_cents('Luxembourg', '', 100), 3000)


class SiteSettingsModelTest(TestCase):
    def test_clean_rejects_bad_zone_tables(self):
        invalid_tables = [
            'France',
            [{'regions': []}],
            [{'country': 'France', 'regions': 'Bretagne'}],
            [{'country': 'France', 'regions': [{'cost': 10}]}],
            [{'country': 'France', 'regions': [{'name': 'Bretagne', 'cost': 'gratuit'}]}],
            [{'country': 'France', 'regions': [{'name': 'Bretagne', 'cost': -5}]}],
        ]
        for zones in invalid_tables:
            site = SiteSettings(shipping_zones=zones)
            with self.assertRaises(ValidationError):
                site.clean()

    def test_sender_email_and_address(self):
        site = SiteSettings(
            email_from_name='Mon bois',
            email_from_address='vente@test.example',
            address_street='1 rue du Bois',
            address_postal_code='21000',
            address_city='Dijon',
        )
        self.assertEqual(site.sender_email, 'Mon bois <vente@test.example>')
        self.assertEqual(site.full_address, '1 rue du Bois, 21000 Dijon, France')

        site.email_from_address = ''
        self.assertEqual(site.sender_email, 'Mon bois <boutique@test.example>')


@pytest.mark.django_db
def test_active_settings_are_created_and_cached():
    assert SiteSettings.objects.count() == 0

    site = SiteSettingsService.get_active_settings()

    assert site.is_active
    assert SiteSettings.objects.count() == 1
    assert cache.get(SiteSettingsService.CACHE_KEY) is not None
    assert SiteSettingsService.get_active_settings().pk == site.pk


@pytest.mark.django_db
def test_save_invalidates_cache():
    site = SiteSettingsService.get_active_settings()
    site.site_name = 'Bois du Morvan'
    site.save()

    assert cache.get(SiteSettingsService.CACHE_KEY) is None
    assert SiteSettingsService.get_active_settings().site_name == 'Bois du Morvan'


@pytest.mark.django_db
def test_update_settings_skips_protected_fields():
    site = SiteSettingsService.get_active_settings()

    result = SiteSettingsService.update_settings({
        'site_name': 'Bois du Jura',
        'free_shipping_threshold_cents': 30000,
        'is_active': False,
    })

    assert result.is_ok()
    updated = result.unwrap()
    assert updated.pk == site.pk
    assert updated.is_active
    assert updated.site_name == 'Bois du Jura'
    assert SiteSettingsService.get_active_settings().free_shipping_threshold_cents == 30000


@pytest.mark.django_db
def test_update_settings_rejects_invalid_zones():
    SiteSettingsService.get_active_settings()

    result = SiteSettingsService.update_settings({'shipping_zones': [{'country': 'France'}]})

    assert result.is_err()
    assert result.error.code == 'validation_error'
    assert 'shipping_zones' in result.error.details


@pytest.mark.django_db
def test_replace_settings_deactivates_previous_row():
    first = SiteSettingsService.get_active_settings()

    result = SiteSettingsService.replace_settings({'site_name': 'Nouvelle boutique', 'id': first.pk})

    assert result.is_ok()
    new = result.unwrap()
    assert new.pk != first.pk
    first.refresh_from_db()
    assert not first.is_active
    assert SiteSettings.objects.filter(is_active=True).count() == 1
    assert SiteSettingsService.get_active_settings().site_name == 'Nouvelle boutique'
