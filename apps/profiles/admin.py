"""
apps/profiles/admin.py
=======================
Admin for profiles and the product catalogue. Admin reads go through
config.db_router, i.e. the replica; a just-saved change may take a moment
to show up on the change list.
"""

from django.contrib import admin
from .models import UserProfile, Product


@admin.register(UserProfile)
class UserProfileAdmin(admin.ModelAdmin):
    list_display    = ("id", "name", "email", "updated_at")
    search_fields   = ("id", "name", "email")
    readonly_fields = ("created_at", "updated_at")
    ordering        = ("-updated_at",)


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display  = ("name", "price")
    search_fields = ("name",)
    list_editable = ("price",)
