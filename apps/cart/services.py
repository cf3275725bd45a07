"""
Session cart for the firewood storefront
The session only stores {product_id: quantity}; names, prices and stock are
always read back from the catalog so a stale cart never shows stale prices.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from django.conf import settings

from apps.common.types import Err, Ok, Result, ServiceError
from apps.common.utils import cents_to_decimal, format_euros
from apps.products.models import Product

logger = logging.getLogger(__name__)

CART_SESSION_KEY = 'cart'


@dataclass
class CartLine:
    product: Product
    quantity: int

    @property
    def line_total_cents(self) -> int:
        return self.product.price_cents * self.quantity

    @property
    def exceeds_stock(self) -> bool:
        return self.quantity > self.product.stock


@dataclass
class CartTotals:
    subtotal_cents: int
    shipping_cents: int
    tax_cents: int
    total_cents: int


@dataclass
class CartValidation:
    is_valid: bool
    errors: list[str]


class SessionCart:
    """🛒 Cart bound to a Django session"""

    def __init__(self, session: Any) -> None:
        self.session = session
        raw = session.get(CART_SESSION_KEY) or {}
        self._quantities: dict[str, int] = {str(key): int(value) for key, value in raw.items()}

    def _save(self) -> None:
        self.session[CART_SESSION_KEY] = dict(self._quantities)
        self.session.modified = True

    # ===============================================================================
    # MUTATIONS
    # ===============================================================================

    def add(self, product: Product, quantity: int = 1) -> Result[CartLine, ServiceError]:
        """Add a product, merging with an existing line"""
        if not product.is_active:
            return Err(ServiceError('product_not_found', "Produit introuvable"))
        if quantity < 1:
            return Err(ServiceError('validation_error', "La quantité doit être au moins 1"))

        key = str(product.pk)
        self._quantities[key] = self._quantities.get(key, 0) + quantity
        self._save()
        logger.debug(f"🛒 [Cart] Added {quantity} x {product.slug}")
        return Ok(CartLine(product=product, quantity=self._quantities[key]))

    def remove(self, product_id: Any) -> bool:
        key = str(product_id)
        if key not in self._quantities:
            return False
        del self._quantities[key]
        self._save()
        return True

    def update_quantity(self, product_id: Any, quantity: int) -> Result[CartLine | None, ServiceError]:
        """
        Set a line quantity. Zero or less removes the line, anything above
        the available stock is clamped to it.
        """
        key = str(product_id)
        if key not in self._quantities:
            return Err(ServiceError('not_found', "Article absent du panier"))

        if quantity <= 0:
            self.remove(key)
            return Ok(None)

        product = Product.objects.filter(pk=key).first()
        if product is None:
            self.remove(key)
            return Err(ServiceError('product_not_found', "Produit introuvable"))

        self._quantities[key] = min(quantity, product.stock)
        if self._quantities[key] <= 0:
            self.remove(key)
            return Ok(None)

        self._save()
        return Ok(CartLine(product=product, quantity=self._quantities[key]))

    def clear(self) -> None:
        self._quantities = {}
        self._save()

    # ===============================================================================
    # READS AND TOTALS
    # ===============================================================================

    def lines(self) -> list[CartLine]:
        """Cart lines in insertion order; products no longer sold are dropped"""
        if not self._quantities:
            return []
        products = {
            str(product.pk): product
            for product in Product.objects.filter(pk__in=list(self._quantities), is_active=True)
            .select_related('category')
            .prefetch_related('images')
        }
        stale = [key for key in self._quantities if key not in products]
        if stale:
            for key in stale:
                del self._quantities[key]
            self._save()
            logger.info(f"🛒 [Cart] Dropped {len(stale)} unavailable product(s) from session cart")
        return [CartLine(product=products[key], quantity=qty) for key, qty in self._quantities.items()]

    def __len__(self) -> int:
        return len(self._quantities)

    @property
    def items_count(self) -> int:
        return sum(self._quantities.values())

    def totals(self, lines: list[CartLine] | None = None) -> CartTotals:
        """All amounts from a single catalog read; pass ``lines`` to reuse one"""
        if lines is None:
            lines = self.lines()
        subtotal = sum(line.line_total_cents for line in lines)
        shipping = self._shipping_for(subtotal)
        tax = int((Decimal(subtotal) * Decimal(settings.CART_TAX_RATE)).quantize(Decimal('1'), rounding=ROUND_HALF_UP))
        return CartTotals(
            subtotal_cents=subtotal,
            shipping_cents=shipping,
            tax_cents=tax,
            total_cents=subtotal + shipping + tax,
        )

    @staticmethod
    def _shipping_for(subtotal_cents: int) -> int:
        """Free above the site threshold, flat standard rate otherwise"""
        from apps.settings.services import SiteSettingsService  # noqa: PLC0415

        if not subtotal_cents:
            return 0
        threshold = SiteSettingsService.get_active_settings().free_shipping_threshold_cents
        if subtotal_cents >= threshold:
            return 0
        return int(settings.CART_STANDARD_SHIPPING_CENTS)

    @property
    def subtotal_cents(self) -> int:
        return self.totals().subtotal_cents

    @property
    def shipping_cents(self) -> int:
        return self.totals().shipping_cents

    @property
    def tax_cents(self) -> int:
        return self.totals().tax_cents

    @property
    def total_cents(self) -> int:
        return self.totals().total_cents

    def validate(self, min_order_cents: int | None = None) -> CartValidation:
        """Checks run before checkout: empty cart, minimum amount, stock"""
        if min_order_cents is None:
            min_order_cents = int(settings.CART_MIN_ORDER_CENTS)

        lines = self.lines()
        errors: list[str] = []

        if not lines:
            errors.append("Votre panier est vide")

        subtotal = sum(line.line_total_cents for line in lines)
        if subtotal < min_order_cents:
            errors.append(f"Commande minimum : {format_euros(min_order_cents).replace('.00', '')}")

        errors.extend(f"Stock insuffisant pour {line.product.name}" for line in lines if line.exceeds_stock)

        return CartValidation(is_valid=not errors, errors=errors)

    def get_order_items(self) -> list[dict[str, Any]]:
        """Items in the shape accepted by the order creation endpoint"""
        return [
            {
                'productId': str(line.product.pk),
                'productName': line.product.name,
                'productImage': line.product.primary_image.url if line.product.primary_image else '',
                'essence': line.product.essence,
                'price': line.product.price,
                'quantity': line.quantity,
                'unit': line.product.unit,
                'subtotal': cents_to_decimal(line.line_total_cents),
            }
            for line in self.lines()
        ]
