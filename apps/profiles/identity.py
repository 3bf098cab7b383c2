"""
apps/profiles/identity.py
==========================
Where a request's routing identity comes from.

  1. An authenticated user (JWT Bearer or session) → str(user.pk)
  2. Demo only: the X-Demo-UserId header, parsed by DemoIdentityMiddleware,
     or settings.DEMO_DEFAULT_IDENTITY when the header is missing or invalid
  3. Otherwise None — the router treats fresh reads as follower reads

The identity is resolved once in the view and passed explicitly to the
router and tracker.
"""

import logging
import uuid

from django.conf import settings

logger = logging.getLogger(__name__)

DEMO_IDENTITY_HEADER = "X-Demo-UserId"


class DemoIdentityMiddleware:
    """
    Demo-only: lets unauthenticated clients pick an identity with the
    X-Demo-UserId header (must be a UUID). Without a usable header the
    request gets settings.DEMO_DEFAULT_IDENTITY (unset: no identity).
    Remove from MIDDLEWARE in production so identities come from
    authentication alone.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        identity = parse_demo_identity(request.headers.get(DEMO_IDENTITY_HEADER))
        if identity is None:
            identity = parse_demo_identity(getattr(settings, "DEMO_DEFAULT_IDENTITY", None))
        request.demo_identity = identity
        return self.get_response(request)


def parse_demo_identity(raw):
    if not raw or not raw.strip():
        return None
    try:
        return str(uuid.UUID(raw.strip()))
    except ValueError:
        logger.warning("Invalid %s header value: %r", DEMO_IDENTITY_HEADER, raw)
        return None


def resolve_identity(request):
    user = getattr(request, "user", None)
    if user is not None and user.is_authenticated:
        return str(user.pk)
    return getattr(request, "demo_identity", None)
