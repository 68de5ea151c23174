"""
Serializers for authentication models.

Related files:
    - models.py: User model
    - chat/serializers.py: embeds UserSerializer as message sender
"""

from rest_framework import serializers

from authentication.models import User


class UserSerializer(serializers.ModelSerializer):
    """
    Serializer for User model (read operations).

    Carries the display data clients render next to a message: names,
    avatar and colour. Never exposes credentials or staff flags.
    """

    full_name = serializers.CharField(source="get_full_name", read_only=True)

    class Meta:
        model = User
        fields = [
            "id",
            "email",
            "first_name",
            "last_name",
            "full_name",
            "image",
            "color",
        ]
        read_only_fields = fields
