"""
Input validation framework for the firewood storefront
French business formats (phone, postal code, IBAN/BIC) and security event logging.
"""

import logging
import re
from typing import Any

from django.core.exceptions import ValidationError
from django.core.validators import RegexValidator
from django.utils.translation import gettext_lazy as _

logger = logging.getLogger(__name__)

# ===============================================================================
# FRENCH BUSINESS PATTERNS
# ===============================================================================

FRENCH_PHONE_PATTERN = r'^(?:(?:\+|00)33|0)\s*[1-9](?:[\s.-]*\d{2}){4}$'
FRENCH_POSTAL_CODE_PATTERN = r'^[0-9]{5}$'
IBAN_PATTERN = r'^[A-Z]{2}[0-9]{2}[A-Z0-9]{4}[0-9]{7}([A-Z0-9]?){0,16}$'
BIC_PATTERN = r'^[A-Z]{6}[A-Z0-9]{2}([A-Z0-9]{3})?$'
SLUG_PATTERN = r'^[a-z0-9-]+$'
IMAGE_URL_PATTERN = r'^(https?://)|(/images/)'

# Input size limits (DoS prevention)
MAX_EMAIL_LENGTH = 254
MAX_NAME_LENGTH = 50
MAX_COMPANY_NAME_LENGTH = 100

# ===============================================================================
# FIELD VALIDATORS
# ===============================================================================

validate_french_phone = RegexValidator(
    regex=FRENCH_PHONE_PATTERN,
    message=_("Numéro de téléphone français invalide"),
    code='invalid_phone',
)

validate_postal_code = RegexValidator(
    regex=FRENCH_POSTAL_CODE_PATTERN,
    message=_("Code postal invalide (5 chiffres requis)"),
    code='invalid_postal_code',
)

validate_iban = RegexValidator(
    regex=IBAN_PATTERN,
    message=_("Format IBAN invalide"),
    code='invalid_iban',
)

validate_bic = RegexValidator(
    regex=BIC_PATTERN,
    message=_("Format BIC invalide"),
    code='invalid_bic',
)

validate_slug_format = RegexValidator(
    regex=SLUG_PATTERN,
    message=_("Le slug ne peut contenir que des lettres minuscules, chiffres et tirets"),
    code='invalid_slug',
)

validate_image_url = RegexValidator(
    regex=IMAGE_URL_PATTERN,
    message=_("L'image doit être une URL http(s) ou un chemin /images/"),
    code='invalid_image_url',
)


def validate_choice_list(values: Any, allowed: list[str], field_name: str) -> None:
    """Validate a JSON list field against a closed set of values"""
    if not isinstance(values, list):
        raise ValidationError({field_name: _("Must be a list")})

    invalid = [value for value in values if value not in allowed]
    if invalid:
        raise ValidationError({field_name: _("Invalid values: %(values)s") % {'values': ', '.join(map(str, invalid))}})


def normalize_bank_identifier(value: str) -> str:
    """Upper-case an IBAN/BIC and drop the spaces people type in"""
    return re.sub(r'\s+', '', value or '').upper()


# ===============================================================================
# SECURITY LOGGING
# ===============================================================================

def log_security_event(event_type: str, details: dict[str, Any], request_ip: str | None = None) -> None:
    """
    Log security events for monitoring and forensics
    """
    try:
        logger.warning(f"🚨 [Security] {event_type}: {details} from IP: {request_ip}")
    except Exception as e:
        logger.error(f"Failed to log security event: {e}")
