"""
apps/profiles/views.py
=======================
  GET  /api/me/          — own profile; must reflect the caller's last save
  POST /api/me/profile/  — create/update own profile on the leader, then
                           record the last-write marker
  GET  /api/products/    — catalogue; may be slightly stale
  GET  /api/health/      — unauthenticated probe, no DB query

Each routed response carries X-Replica-Role so clients (and the tests) can
see which side served them.
"""

import logging

from django.db import transaction

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework import status

from apps.consistency.services import get_router, get_tracker
from apps.consistency.types import ReplicaRole

from .identity import resolve_identity
from .models import UserProfile, Product
from .serializers import UserProfileSerializer, ProductSerializer

logger = logging.getLogger(__name__)

ROLE_HEADER = "X-Replica-Role"

NO_IDENTITY = {"detail": "No user identity available."}


def _role_headers(role: ReplicaRole) -> dict:
    return {ROLE_HEADER: role.value}


# ── Unauthenticated endpoints ─────────────────────────────────────────────────

@api_view(["GET"])
@permission_classes([AllowAny])
def health(request):
    """
    Unauthenticated health-check for Docker / load-balancer probes.
    Returns 200 if Django is responding. No DB query.
    """
    return Response({"status": "ok"})


@api_view(["GET"])
@permission_classes([AllowAny])
def home(request):
    return Response({"status": "Read-your-writes API", "version": "1.0"})


# ── Profile ───────────────────────────────────────────────────────────────────

@api_view(["GET"])
def me(request):
    """
    Current user's profile. Read-your-writes safe: within the consistency
    window after a save this is served by the leader.
    """
    identity = resolve_identity(request)
    if identity is None:
        return Response(NO_IDENTITY, status=status.HTTP_401_UNAUTHORIZED)

    router = get_router()
    role = router.route_for_read(identity, requires_freshness=True)
    db = router.acquire(role)

    profile = UserProfile.objects.using(db.alias).filter(pk=identity).first()
    if profile is None:
        return Response(status=status.HTTP_404_NOT_FOUND, headers=_role_headers(role))

    return Response(UserProfileSerializer(profile).data, headers=_role_headers(role))


@api_view(["POST"])
def update_profile(request):
    """
    Upsert the current user's profile on the leader. The last-write marker
    is recorded only after the transaction commits.
    """
    identity = resolve_identity(request)
    if identity is None:
        return Response(NO_IDENTITY, status=status.HTTP_401_UNAUTHORIZED)

    serializer = UserProfileSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    router = get_router()
    db = router.connection_for_write()

    with transaction.atomic(using=db.alias):
        _, created = UserProfile.objects.using(db.alias).update_or_create(
            pk=identity,
            defaults=serializer.validated_data,
        )

    get_tracker().record_write(identity)
    logger.info("Profile %s for %s on %s", "created" if created else "updated", identity, db.alias)

    return Response(
        {"message": "Profile saved."},
        headers=_role_headers(ReplicaRole.LEADER),
    )


# ── Products ──────────────────────────────────────────────────────────────────

@api_view(["GET"])
def products(request):
    """Product catalogue. Staleness-tolerant, so always the follower."""
    router = get_router()
    role = router.route_for_read(resolve_identity(request), requires_freshness=False)
    db = router.acquire(role)

    qs = Product.objects.using(db.alias).order_by("name")
    return Response(ProductSerializer(qs, many=True).data, headers=_role_headers(role))
