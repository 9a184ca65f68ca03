"""Reading the backend's bearer token.

The portal never verifies the signature (the backend does that on every
protected call); it only reads the payload to know who is logged in and which
dashboard to show.
"""

from __future__ import annotations

import logging

import jwt
from django.conf import settings

from .models import Role, User

logger = logging.getLogger(__name__)

_DECODE_OPTIONS = {
    "verify_signature": False,
    "verify_exp": True,
    "verify_aud": False,
    "verify_iat": False,
    "verify_nbf": False,
}


def decode_token(token: str | None) -> User | None:
    """Return the user described by `token`, or None if it cannot be trusted for display.

    Expired tokens, undecodable tokens and payloads without a known role all
    count as invalid.
    """
    if not token:
        return None
    try:
        payload = jwt.decode(token, options=_DECODE_OPTIONS, algorithms=["HS256", "RS256"])
    except jwt.InvalidTokenError as exc:
        logger.info("Discarding stored token: %s", exc)
        return None

    if not isinstance(payload, dict) or payload.get("role") not in Role.values:
        logger.info("Discarding stored token: unexpected payload")
        return None

    try:
        return User.from_api(payload)
    except (TypeError, ValueError):
        logger.info("Discarding stored token: bad user id")
        return None


def store_token(request, token: str) -> None:
    request.session[settings.SESSION_TOKEN_KEY] = token
    request.session.set_expiry(settings.SESSION_COOKIE_AGE)


def clear_token(request) -> None:
    request.session.pop(settings.SESSION_TOKEN_KEY, None)
