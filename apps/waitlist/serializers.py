from rest_framework import serializers
from .models import WaitlistEntry
from .services import ACCEPT, DECLINE


class WaitlistEntrySerializer(serializers.ModelSerializer):
    """Admin serializer for waitlist entries."""

    retreat_name = serializers.CharField(source='retreat.display_name', read_only=True)
    room_name = serializers.CharField(source='room.name', read_only=True, default=None)

    class Meta:
        model = WaitlistEntry
        fields = [
            'id',
            'retreat',
            'retreat_name',
            'room',
            'room_name',
            'first_name',
            'last_name',
            'email',
            'phone',
            'guests_count',
            'notes',
            'status',
            'position',
            'notified_at',
            'notification_expires_at',
            'responded_at',
            'created_at',
            'updated_at',
        ]
        read_only_fields = [
            'id', 'retreat', 'retreat_name', 'room_name', 'email', 'notified_at',
            'notification_expires_at', 'responded_at', 'created_at', 'updated_at',
        ]


class WaitlistJoinSerializer(serializers.Serializer):
    retreatId = serializers.UUIDField()
    roomId = serializers.UUIDField(required=False, allow_null=True)
    firstName = serializers.CharField(max_length=100)
    lastName = serializers.CharField(max_length=100)
    email = serializers.EmailField(max_length=255)
    phone = serializers.CharField(max_length=50, required=False, allow_blank=True, default='')
    guestsCount = serializers.IntegerField(min_value=1, max_value=10, required=False, default=1)
    notes = serializers.CharField(max_length=1000, required=False, allow_blank=True, default='')


class WaitlistRespondSerializer(serializers.Serializer):
    token = serializers.CharField(max_length=64)
    action = serializers.ChoiceField(choices=[ACCEPT, DECLINE])
