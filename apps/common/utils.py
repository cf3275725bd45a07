"""
Common utilities for the firewood storefront
Money conversion, slugs, pagination math and masking helpers.
"""

from __future__ import annotations

import math
import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, TypedDict

from django.utils.text import slugify

# ===============================================================================
# MONEY UTILITIES
# ===============================================================================


def cents_to_decimal(cents: int | None) -> Decimal | None:
    """Convert stored cents to a euro Decimal"""
    if cents is None:
        return None
    return (Decimal(cents) / 100).quantize(Decimal("0.01"))


def decimal_to_cents(amount: Decimal | float | int | str | None) -> int | None:
    """Convert a euro amount to cents, rounding half-up"""
    if amount is None or amount == "":
        return None
    try:
        value = Decimal(str(amount))
    except InvalidOperation as e:
        raise ValueError(f"Invalid amount: {amount}") from e
    return int((value * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def format_euros(cents: int) -> str:
    """Human readable amount used in notes and e-mails: 1234.50€"""
    return f"{cents_to_decimal(cents)}€"


# ===============================================================================
# SLUG UTILITIES
# ===============================================================================


def slugify_name(name: str) -> str:
    """
    Build a URL slug from a display name.

    Accents are transliterated ("Chêne" -> "chene"), every run of other
    characters becomes a single dash and edge dashes are stripped.
    """
    slug = slugify(name or "")
    slug = re.sub(r"[^a-z0-9]+", "-", slug)
    return slug.strip("-")


# ===============================================================================
# PAGINATION UTILITIES
# ===============================================================================


class PaginationStats(TypedDict):
    """Pagination block returned by list endpoints"""

    total: int
    page: int
    limit: int
    totalPages: int
    hasNextPage: bool
    hasPrevPage: bool


def _to_int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def clamp_pagination(
    page: Any, limit: Any, default_limit: int = 12, max_limit: int = 50
) -> tuple[int, int]:
    """Sanitize raw page/limit query values: page >= 1 and 1 <= limit <= max_limit"""
    page_number = max(1, _to_int(page, 1))
    page_size = _to_int(limit, default_limit)
    page_size = min(max(1, page_size), max_limit)
    return page_number, page_size


def build_pagination(page: int, limit: int, total: int) -> PaginationStats:
    """Compute the pagination block for a page of ``limit`` items out of ``total``"""
    total_pages = math.ceil(total / limit) if limit else 0
    return PaginationStats(
        total=total,
        page=page,
        limit=limit,
        totalPages=total_pages,
        hasNextPage=page < total_pages,
        hasPrevPage=page > 1,
    )


# ===============================================================================
# SECURITY UTILITIES
# ===============================================================================


def mask_sensitive_data(data: str, show_last: int = 4) -> str:
    """Mask sensitive data for logs and history notes"""
    if not data:
        return ""
    if len(data) <= show_last:
        return "*" * len(data)
    return "*" * 4 + data[-show_last:]
