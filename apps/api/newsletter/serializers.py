# ===============================================================================
# NEWSLETTER API SERIALIZERS 📰
# ===============================================================================

from typing import ClassVar

from rest_framework import serializers

from apps.newsletter.models import INTEREST_CHOICES, Subscriber


class SubscribeInputSerializer(serializers.Serializer):
    email = serializers.EmailField(max_length=254)
    firstName = serializers.CharField(max_length=50, required=False, allow_blank=True, default='')
    interests = serializers.ListField(
        child=serializers.ChoiceField(choices=INTEREST_CHOICES), required=False, default=list
    )
    source = serializers.CharField(max_length=50, required=False, default='unknown')


class ConfirmInputSerializer(serializers.Serializer):
    token = serializers.CharField(max_length=500)


class UnsubscribeInputSerializer(serializers.Serializer):
    # Presence of the email is checked by the service so the message matches
    email = serializers.CharField(max_length=254, required=False, allow_blank=True, default='')
    token = serializers.CharField(max_length=128, required=False, allow_blank=True, default='')
    reason = serializers.CharField(max_length=200, required=False, allow_blank=True, default='')


class SubscriberSerializer(serializers.ModelSerializer):
    is_confirmed = serializers.BooleanField(read_only=True)

    class Meta:
        model = Subscriber
        fields: ClassVar = [
            'id', 'email', 'first_name', 'interests', 'source',
            'is_active', 'is_confirmed', 'confirmed_at', 'subscribed_at', 'unsubscribed_at',
        ]
