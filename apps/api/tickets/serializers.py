# ===============================================================================
# TICKETS API SERIALIZERS 🎫
# ===============================================================================

from typing import Any, ClassVar

from django.contrib.auth import get_user_model
from rest_framework import serializers

from apps.common.validators import MAX_COMPANY_NAME_LENGTH, MAX_EMAIL_LENGTH, MAX_NAME_LENGTH, validate_french_phone
from apps.tickets.models import Ticket, TicketInternalNote, TicketResponse, TicketStatusHistory
from apps.tickets.services import ContactSubmission

URGENCY_CHOICES = ('normal', 'urgent', 'low')


# ===============================================================================
# CONTACT FORM INPUT
# ===============================================================================

class ContactInputSerializer(serializers.Serializer):
    """POST /api/contact/"""

    firstName = serializers.CharField(min_length=2, max_length=MAX_NAME_LENGTH)
    lastName = serializers.CharField(min_length=2, max_length=MAX_NAME_LENGTH)
    email = serializers.EmailField(max_length=MAX_EMAIL_LENGTH)
    phone = serializers.CharField(max_length=30, validators=[validate_french_phone])
    company = serializers.CharField(max_length=MAX_COMPANY_NAME_LENGTH, required=False, allow_blank=True, default='')
    subject = serializers.ChoiceField(choices=Ticket.SUBJECT_CHOICES)
    message = serializers.CharField(min_length=10, max_length=2000)
    preferredContact = serializers.ChoiceField(
        choices=Ticket.PREFERRED_CONTACT_CHOICES, required=False, default='email'
    )
    urgency = serializers.ChoiceField(choices=URGENCY_CHOICES, required=False, default='normal')
    acceptTerms = serializers.BooleanField()
    acceptNewsletter = serializers.BooleanField(required=False, default=False)

    def validate_acceptTerms(self, value: bool) -> bool:
        if not value:
            raise serializers.ValidationError("Vous devez accepter les conditions d'utilisation")
        return value

    def to_submission(self, metadata: dict[str, Any]) -> ContactSubmission:
        data = self.validated_data
        return ContactSubmission(
            first_name=data['firstName'],
            last_name=data['lastName'],
            email=data['email'],
            phone=data['phone'],
            company=data.get('company', ''),
            subject=data['subject'],
            message=data['message'],
            preferred_contact=data.get('preferredContact', 'email'),
            urgency=data.get('urgency', 'normal'),
            accept_newsletter=data.get('acceptNewsletter', False),
            metadata=metadata,
        )


# ===============================================================================
# BACK-OFFICE ACTION INPUT
# ===============================================================================

class TicketResponseInputSerializer(serializers.Serializer):
    message = serializers.CharField(max_length=2000)
    method = serializers.ChoiceField(choices=TicketResponse.METHOD_CHOICES, required=False, default='email')
    isInternal = serializers.BooleanField(required=False, default=False)


class TicketNoteInputSerializer(serializers.Serializer):
    note = serializers.CharField(max_length=1000)
    isPrivate = serializers.BooleanField(required=False, default=False)


class TicketAssignInputSerializer(serializers.Serializer):
    userId = serializers.PrimaryKeyRelatedField(
        queryset=get_user_model().objects.filter(is_staff=True, is_active=True),
        error_messages={'does_not_exist': "Utilisateur introuvable"},
    )
    team = serializers.ChoiceField(choices=Ticket.TEAM_CHOICES, required=False, allow_blank=True, default='')


class TicketResolveInputSerializer(serializers.Serializer):
    resolution = serializers.CharField(max_length=2000, required=False, allow_blank=True, default='')


class TicketCloseInputSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=500, required=False, allow_blank=True, default='')


# ===============================================================================
# TICKET OUTPUT
# ===============================================================================

class TicketResponseSerializer(serializers.ModelSerializer):
    responded_by = serializers.StringRelatedField()

    class Meta:
        model = TicketResponse
        fields: ClassVar = ['id', 'method', 'message', 'is_internal', 'responded_by', 'responded_at']


class TicketInternalNoteSerializer(serializers.ModelSerializer):
    author = serializers.StringRelatedField()

    class Meta:
        model = TicketInternalNote
        fields: ClassVar = ['id', 'note', 'author', 'is_private', 'created_at']


class TicketStatusHistorySerializer(serializers.ModelSerializer):
    changed_by = serializers.StringRelatedField()

    class Meta:
        model = TicketStatusHistory
        fields: ClassVar = ['old_status', 'new_status', 'changed_by', 'note', 'changed_at']


class TicketListSerializer(serializers.ModelSerializer):
    """Slim ticket info for the back-office list"""

    customer_full_name = serializers.CharField(read_only=True)
    assigned_to = serializers.StringRelatedField()
    is_overdue = serializers.BooleanField(read_only=True)

    class Meta:
        model = Ticket
        fields: ClassVar = [
            'id', 'ticket_number', 'status', 'priority', 'subject', 'customer_full_name',
            'customer_email', 'customer_company', 'tags', 'assigned_to', 'assigned_team',
            'is_overdue', 'created_at', 'updated_at',
        ]


class TicketDetailSerializer(TicketListSerializer):
    """Full ticket with responses, notes, history and timing figures"""

    responses = TicketResponseSerializer(many=True, read_only=True)
    internal_notes = TicketInternalNoteSerializer(many=True, read_only=True)
    status_history = TicketStatusHistorySerializer(many=True, read_only=True)
    first_response_time = serializers.JSONField(read_only=True)
    resolution_time = serializers.JSONField(read_only=True)

    class Meta(TicketListSerializer.Meta):
        fields: ClassVar = [
            *TicketListSerializer.Meta.fields,
            'customer_first_name', 'customer_last_name', 'customer_phone',
            'message', 'preferred_contact', 'source',
            'first_response_at', 'resolved_at', 'closed_at',
            'first_response_time', 'resolution_time',
            'satisfaction_rating', 'satisfaction_feedback',
            'related_order', 'related_quote', 'is_vip', 'is_spam',
            'requires_follow_up', 'follow_up_date',
            'ip_address', 'user_agent', 'referer',
            'responses', 'internal_notes', 'status_history',
        ]
