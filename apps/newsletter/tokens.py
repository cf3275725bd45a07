"""
Newsletter tokens
Confirmation links carry base64("<id>:<timestamp_ms>:<sha256>") and
unsubscribe links carry sha256(id + email + secret). Hashes are compared in
constant time.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import time

from django.conf import settings

from apps.common.types import Err, Ok, Result, ServiceError

MS_PER_DAY = 24 * 60 * 60 * 1000


def _secret() -> str:
    return str(settings.NEWSLETTER_SECRET)


def _now_ms() -> int:
    return int(time.time() * 1000)


def _confirmation_hash(subscriber_id: str, timestamp_ms: int) -> str:
    payload = f"{subscriber_id}{timestamp_ms}{_secret()}"
    return hashlib.sha256(payload.encode('utf-8')).hexdigest()


def make_confirmation_token(subscriber_id: object, timestamp_ms: int | None = None) -> str:
    """Token e-mailed after signup"""
    subscriber_id = str(subscriber_id)
    timestamp_ms = _now_ms() if timestamp_ms is None else timestamp_ms
    raw = f"{subscriber_id}:{timestamp_ms}:{_confirmation_hash(subscriber_id, timestamp_ms)}"
    return base64.b64encode(raw.encode('utf-8')).decode('ascii')


def verify_confirmation_token(token: str, now_ms: int | None = None) -> Result[str, ServiceError]:
    """
    Check a confirmation token and return the subscriber id it was issued for.

    Error codes: ``malformed_token``, ``token_expired``, ``invalid_token``.
    """
    try:
        decoded = base64.b64decode(token.encode('ascii'), validate=True).decode('utf-8')
        subscriber_id, timestamp, digest = decoded.split(':')
        timestamp_ms = int(timestamp)
    except (binascii.Error, UnicodeError, ValueError, AttributeError):
        return Err(ServiceError('malformed_token', "Format de token invalide"))

    now_ms = _now_ms() if now_ms is None else now_ms
    max_age_ms = int(settings.NEWSLETTER_CONFIRMATION_MAX_AGE_DAYS) * MS_PER_DAY
    if now_ms - timestamp_ms > max_age_ms:
        return Err(ServiceError('token_expired', "Token de confirmation expiré"))

    expected = _confirmation_hash(subscriber_id, timestamp_ms)
    if not hmac.compare_digest(digest.encode('utf-8'), expected.encode('utf-8')):
        return Err(ServiceError('invalid_token', "Token de confirmation invalide"))

    return Ok(subscriber_id)


def make_unsubscribe_token(subscriber_id: object, email: str) -> str:
    """Token embedded in unsubscribe links"""
    payload = f"{subscriber_id}{email}{_secret()}"
    return hashlib.sha256(payload.encode('utf-8')).hexdigest()


def verify_unsubscribe_token(subscriber_id: object, email: str, token: str) -> bool:
    expected = make_unsubscribe_token(subscriber_id, email)
    return hmac.compare_digest(str(token).encode('utf-8'), expected.encode('utf-8'))
