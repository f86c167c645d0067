from rest_framework import serializers

from .models import Role, User


class TeamMemberSerializer(serializers.ModelSerializer):
    """A back-office account as shown to the team."""

    is_admin = serializers.BooleanField(read_only=True)
    name = serializers.CharField(source='get_display_name', read_only=True)

    class Meta:
        model = User
        fields = [
            'id',
            'email',
            'display_name',
            'name',
            'role',
            'is_admin',
            'is_active',
            'created_at',
            'last_login',
        ]
        read_only_fields = fields


class LoginSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, style={'input_type': 'password'})


class TeamMemberUpdateSerializer(serializers.Serializer):
    role = serializers.ChoiceField(choices=Role.choices, required=False)
    is_active = serializers.BooleanField(required=False)

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError("Send role and/or is_active")
        return attrs
