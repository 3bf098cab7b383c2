from datetime import datetime, timedelta, timezone

import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from apps.consistency import services
from apps.profiles.models import Product, UserProfile

from .conftest import FailingStore

pytestmark = [
    pytest.mark.integration,
    pytest.mark.django_db(databases=["default", "replica"]),
]

USER = "11111111-1111-1111-1111-111111111111"
OTHER = "22222222-2222-2222-2222-222222222222"

PROFILE = {"email": "ann@example.com", "name": "Ann", "avatar_url": "https://example.com/ann.png"}


@pytest.fixture()
def api():
    return APIClient()


def _as(identity):
    return {"HTTP_X_DEMO_USERID": identity}


def _save_profile(api, identity=USER, **overrides):
    return api.post("/api/me/profile/", {**PROFILE, **overrides}, format="json", **_as(identity))


class TestReadYourWrites:
    def test_profile_is_visible_right_after_saving(self, api):
        resp = _save_profile(api)
        assert resp.status_code == 200
        assert resp.json() == {"message": "Profile saved."}
        assert resp["X-Replica-Role"] == "leader"

        resp = api.get("/api/me/", **_as(USER))
        assert resp.status_code == 200
        assert resp["X-Replica-Role"] == "leader"
        assert resp.json() == PROFILE

    def test_write_goes_to_leader_only(self, api):
        _save_profile(api)
        assert UserProfile.objects.using("default").filter(pk=USER).exists()
        assert not UserProfile.objects.using("replica").filter(pk=USER).exists()

    def test_update_overwrites_existing_profile(self, api):
        _save_profile(api)
        _save_profile(api, name="Ann B.", avatar_url="")

        resp = api.get("/api/me/", **_as(USER))
        assert resp.json()["name"] == "Ann B."
        assert resp.json()["avatar_url"] is None
        assert UserProfile.objects.using("default").count() == 1

    def test_other_identity_reads_follower(self, api):
        _save_profile(api)
        resp = api.get("/api/me/", **_as(OTHER))
        assert resp.status_code == 404
        assert resp["X-Replica-Role"] == "follower"

    def test_without_marker_read_hits_lagging_follower(self, api):
        UserProfile.objects.using("default").create(pk=USER, email="ann@example.com", name="Ann")

        resp = api.get("/api/me/", **_as(USER))
        assert resp.status_code == 404
        assert resp["X-Replica-Role"] == "follower"

    def test_after_window_reads_return_to_follower(self, api):
        _save_profile(api)
        old = datetime.now(timezone.utc) - timedelta(seconds=6)
        tracker = services.get_tracker()
        tracker.store.set(tracker.config.marker_key(USER), old.isoformat(), 600)

        resp = api.get("/api/me/", **_as(USER))
        assert resp.status_code == 404
        assert resp["X-Replica-Role"] == "follower"

    def test_follower_serves_replicated_row(self, api):
        UserProfile.objects.using("replica").create(pk=USER, email="ann@example.com", name="Ann")

        resp = api.get("/api/me/", **_as(USER))
        assert resp.status_code == 200
        assert resp["X-Replica-Role"] == "follower"
        assert resp.json()["name"] == "Ann"

    def test_cache_outage_does_not_fail_requests(self, api):
        services.get_tracker().store = FailingStore()

        resp = _save_profile(api)
        assert resp.status_code == 200
        assert UserProfile.objects.using("default").filter(pk=USER).exists()

        resp = api.get("/api/me/", **_as(USER))
        assert resp.status_code == 404
        assert resp["X-Replica-Role"] == "follower"


class TestIdentity:
    def test_read_without_identity_is_unauthorized(self, api):
        assert api.get("/api/me/").status_code == 401

    def test_write_without_identity_is_unauthorized(self, api):
        resp = api.post("/api/me/profile/", PROFILE, format="json")
        assert resp.status_code == 401
        assert not UserProfile.objects.using("default").exists()

    def test_malformed_demo_header_is_ignored(self, api):
        assert api.get("/api/me/", **_as("not-a-uuid")).status_code == 401

    def test_jwt_user_is_the_identity(self, api):
        user = get_user_model().objects.create_user(username="ann", password="s3cret-pass")
        resp = api.post("/api/token/", {"username": "ann", "password": "s3cret-pass"}, format="json")
        assert resp.status_code == 200
        api.credentials(HTTP_AUTHORIZATION=f"Bearer {resp.json()['access']}")

        assert _save_profile(api, identity=OTHER).status_code == 200
        assert UserProfile.objects.using("default").filter(pk=str(user.pk)).exists()
        assert not UserProfile.objects.using("default").filter(pk=OTHER).exists()

        resp = api.get("/api/me/")
        assert resp.status_code == 200
        assert resp["X-Replica-Role"] == "leader"


class TestValidation:
    def test_invalid_profile_is_rejected(self, api):
        resp = _save_profile(api, email="not-an-email")
        assert resp.status_code == 400
        assert "email" in resp.json()
        assert services.get_tracker().get_last_write(USER) is None

    def test_missing_name_is_rejected(self, api):
        resp = api.post("/api/me/profile/", {"email": "ann@example.com"}, format="json", **_as(USER))
        assert resp.status_code == 400


class TestProducts:
    def test_products_come_from_follower(self, api):
        Product.objects.using("replica").create(name="Widget", price="9.99")
        Product.objects.using("replica").create(name="Anvil", price="120.00")
        Product.objects.using("default").create(name="Not replicated yet", price="1.00")

        resp = api.get("/api/products/")
        assert resp.status_code == 200
        assert resp["X-Replica-Role"] == "follower"
        assert [(p["name"], p["price"]) for p in resp.json()] == [
            ("Anvil", "120.00"),
            ("Widget", "9.99"),
        ]

    def test_products_stay_on_follower_after_a_write(self, api):
        _save_profile(api)
        resp = api.get("/api/products/", **_as(USER))
        assert resp["X-Replica-Role"] == "follower"


class TestOperational:
    def test_health(self, api):
        resp = api.get("/api/health/")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}

    def test_metrics_endpoint(self, api):
        _save_profile(api)
        api.get("/api/me/", **_as(USER))
        api.get("/api/products/")

        resp = api.get("/metrics/")
        assert resp.status_code == 200
        body = resp.content.decode()
        assert 'ryw_route_decisions_total{reason="write",role="leader"} 1.00' in body
        assert 'ryw_route_decisions_total{reason="in_window",role="leader"} 1.00' in body
        assert 'ryw_route_decisions_total{reason="stale_ok",role="follower"} 1.00' in body
        assert "ryw_tracker_lookup_seconds_count 1" in body
