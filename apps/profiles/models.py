"""
apps/profiles/models.py
========================
  UserProfile — one row per identity; written on the leader, read back by
                the owner right after saving (read-your-writes path)
  Product     — shared catalogue; staleness-tolerant, always read from the
                follower
"""

from django.db import models


# ── UserProfile ───────────────────────────────────────────────────────────────

class UserProfile(models.Model):
    # Same opaque key the router uses as the identity (user pk or demo UUID).
    id = models.CharField(primary_key=True, max_length=64)
    email = models.EmailField(max_length=254)
    name = models.CharField(max_length=200)
    avatar_url = models.URLField(max_length=500, null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "users"

    def __str__(self):
        return f"{self.name} <{self.email}>"


# ── Product ───────────────────────────────────────────────────────────────────

class Product(models.Model):
    id = models.AutoField(primary_key=True)
    name = models.CharField(max_length=200)
    price = models.DecimalField(max_digits=10, decimal_places=2)

    class Meta:
        db_table = "products"
        ordering = ["name"]

    def __str__(self):
        return self.name
