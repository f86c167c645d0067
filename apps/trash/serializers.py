from rest_framework import serializers
from .services import TRASHABLE_MODELS


class TrashItemSerializer(serializers.Serializer):
    id = serializers.CharField()
    type = serializers.CharField()
    title = serializers.CharField()
    slug = serializers.CharField()
    deleted_at = serializers.DateTimeField()
    deleted_by = serializers.CharField(allow_null=True)
    days_remaining = serializers.IntegerField()


class TrashActionSerializer(serializers.Serializer):
    type = serializers.ChoiceField(choices=list(TRASHABLE_MODELS))
    id = serializers.UUIDField()
