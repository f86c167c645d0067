from rest_framework import serializers
from .models import Retreat, RetreatRoom, RetreatGalleryImage


class RetreatRoomSerializer(serializers.ModelSerializer):
    """Room type with price, inventory and early-bird settings."""

    class Meta:
        model = RetreatRoom
        fields = [
            'id',
            'retreat',
            'name',
            'description',
            'image_url',
            'price',
            'deposit_price',
            'capacity',
            'available',
            'is_sold_out',
            'sort_order',
            'early_bird_enabled',
            'early_bird_price',
            'early_bird_deadline',
            'created_at',
            'updated_at',
        ]
        read_only_fields = ['id', 'retreat', 'is_sold_out', 'created_at', 'updated_at']
        extra_kwargs = {'available': {'required': False}}

    def validate(self, attrs):
        capacity = attrs.get('capacity', getattr(self.instance, 'capacity', 2))
        available = attrs.get('available')
        if available is not None and available > capacity:
            raise serializers.ValidationError({'available': 'Cannot exceed room capacity'})

        price = attrs.get('price', getattr(self.instance, 'price', None))
        early_bird_price = attrs.get('early_bird_price', getattr(self.instance, 'early_bird_price', None))
        if early_bird_price is not None and price is not None and early_bird_price >= price:
            raise serializers.ValidationError({
                'early_bird_price': 'Early bird price must be lower than the regular price'
            })
        return attrs

    def create(self, validated_data):
        validated_data.setdefault('available', validated_data.get('capacity', 2))
        validated_data['is_sold_out'] = validated_data['available'] <= 0
        return super().create(validated_data)

    def update(self, instance, validated_data):
        if 'available' in validated_data:
            validated_data['is_sold_out'] = validated_data['available'] <= 0
        return super().update(instance, validated_data)


class RetreatGalleryImageSerializer(serializers.ModelSerializer):
    class Meta:
        model = RetreatGalleryImage
        fields = ['id', 'image_url', 'caption', 'sort_order', 'created_at']
        read_only_fields = ['id', 'created_at']


class RetreatListSerializer(serializers.ModelSerializer):
    """Compact serializer for retreat cards."""

    starting_price = serializers.SerializerMethodField()

    class Meta:
        model = Retreat
        fields = [
            'id',
            'slug',
            'destination',
            'title',
            'location',
            'tagline',
            'level',
            'retreat_type',
            'price',
            'starting_price',
            'start_date',
            'end_date',
            'availability_status',
            'image_url',
            'is_published',
            'is_featured',
        ]

    def get_starting_price(self, obj):
        prices = [room.price for room in obj.rooms.all()]
        if prices:
            return str(min(prices))
        return str(obj.price) if obj.price is not None else None


class RetreatSerializer(serializers.ModelSerializer):
    """Full retreat page including rooms and gallery."""

    rooms = RetreatRoomSerializer(many=True, read_only=True)
    gallery = RetreatGalleryImageSerializer(many=True, read_only=True)

    class Meta:
        model = Retreat
        fields = [
            'id',
            'slug',
            'destination',
            'title',
            'location',
            'tagline',
            'description',
            'level',
            'retreat_type',
            'duration',
            'participants',
            'food',
            'gear',
            'price',
            'start_date',
            'end_date',
            'availability_status',
            'highlights',
            'included',
            'not_included',
            'about_sections',
            'important_info',
            'image_url',
            'latitude',
            'longitude',
            'meta_title',
            'meta_description',
            'is_published',
            'is_featured',
            'rooms',
            'gallery',
            'created_at',
            'updated_at',
        ]
        read_only_fields = ['id', 'rooms', 'gallery', 'created_at', 'updated_at']

    def validate(self, attrs):
        start = attrs.get('start_date', getattr(self.instance, 'start_date', None))
        end = attrs.get('end_date', getattr(self.instance, 'end_date', None))
        if start and end and end <= start:
            raise serializers.ValidationError({'end_date': 'End date must be after start date'})
        return attrs


class GalleryReorderSerializer(serializers.Serializer):
    image_ids = serializers.ListField(child=serializers.UUIDField(), allow_empty=False)
