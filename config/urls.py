"""
config/urls.py
===============
  - /api/                — profile + product endpoints (apps.profiles)
  - /api/token/          — obtain JWT access + refresh tokens (POST)
  - /api/token/refresh/  — refresh an access token (POST)
  - /api/token/verify/   — verify a token is still valid (POST)
  - /metrics/            — Prometheus scrape endpoint for routing decisions
"""

from django.contrib import admin
from django.urls import path, include
from rest_framework_simplejwt.views import (
    TokenObtainPairView,
    TokenRefreshView,
    TokenVerifyView,
)

from apps.consistency.views import metrics

urlpatterns = [
    path("admin/", admin.site.urls),
    path("api/", include("apps.profiles.urls")),

    path("api/token/",         TokenObtainPairView.as_view(),  name="token_obtain_pair"),
    path("api/token/refresh/", TokenRefreshView.as_view(),     name="token_refresh"),
    path("api/token/verify/",  TokenVerifyView.as_view(),      name="token_verify"),

    path("metrics/", metrics, name="metrics"),
]
