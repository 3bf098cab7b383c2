"""
apps/profiles/urls.py
======================
JWT token endpoints live in config/urls.py to keep auth at the project level.
"""

from django.urls import path
from .views import home, health, me, update_profile, products

urlpatterns = [
    path("",            home,           name="home"),
    path("health/",     health,         name="health"),
    path("me/",         me,             name="me"),
    path("me/profile/", update_profile, name="update-profile"),
    path("products/",   products,       name="products"),
]
