from rest_framework import serializers
from .models import UserProfile, Product


class UserProfileSerializer(serializers.ModelSerializer):
    avatar_url = serializers.URLField(max_length=500, required=False, allow_null=True, allow_blank=True)

    class Meta:
        model = UserProfile
        fields = ["email", "name", "avatar_url"]

    def validate_avatar_url(self, value):
        return value or None


class ProductSerializer(serializers.ModelSerializer):
    class Meta:
        model = Product
        fields = ["id", "name", "price"]
