from django.db.models import Q
from django.shortcuts import get_object_or_404
from rest_framework import viewsets, status, mixins
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.pagination import PageNumberPagination
from drf_spectacular.utils import extend_schema

from apps.accounts.permissions import IsSiteAdmin
from .models import Retreat, RetreatRoom, RetreatGalleryImage
from .serializers import (
    RetreatSerializer,
    RetreatListSerializer,
    RetreatRoomSerializer,
    RetreatGalleryImageSerializer,
    GalleryReorderSerializer,
)
from .services import (
    get_public_retreat,
    duplicate_retreat,
    reorder_gallery,
    get_room_occupancy,
    sync_availability_status,
    RetreatNotFoundError,
)


class RetreatPagination(PageNumberPagination):
    """Custom pagination for retreats."""
    page_size = 20
    page_size_query_param = 'page_size'
    max_page_size = 100


class PublicRetreatViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Published retreats for the public site.

    list: Published, non-deleted retreats (filters: featured, level, type, upcoming)
    retrieve: Single retreat by slug or id
    """

    serializer_class = RetreatSerializer
    permission_classes = [AllowAny]
    pagination_class = RetreatPagination
    lookup_value_regex = '[^/]+'

    def get_queryset(self):
        queryset = (
            Retreat.objects.alive()
            .filter(is_published=True)
            .prefetch_related('rooms', 'gallery')
        )
        params = self.request.query_params
        if params.get('featured') in ('1', 'true'):
            queryset = queryset.filter(is_featured=True)
        if params.get('level'):
            queryset = queryset.filter(level=params['level'])
        if params.get('type'):
            queryset = queryset.filter(retreat_type=params['type'])
        if params.get('destination'):
            queryset = queryset.filter(destination__icontains=params['destination'])
        return queryset

    def get_serializer_class(self):
        if self.action == 'list':
            return RetreatListSerializer
        return RetreatSerializer

    def retrieve(self, request, *args, **kwargs):
        try:
            retreat = get_public_retreat(identifier=kwargs.get('pk'))
        except RetreatNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        return Response(RetreatSerializer(retreat).data)


class AdminRetreatViewSet(viewsets.ModelViewSet):
    """
    Retreat management for admins.

    destroy moves the retreat to the trash; it is purged after the retention period.
    """

    serializer_class = RetreatSerializer
    permission_classes = [IsSiteAdmin]
    pagination_class = RetreatPagination

    def get_queryset(self):
        queryset = Retreat.objects.alive().prefetch_related('rooms', 'gallery')
        published = self.request.query_params.get('published')
        if published in ('true', 'false'):
            queryset = queryset.filter(is_published=published == 'true')
        search = self.request.query_params.get('search')
        if search:
            queryset = queryset.filter(Q(destination__icontains=search) | Q(title__icontains=search))
        return queryset

    def get_serializer_class(self):
        if self.action == 'list':
            return RetreatListSerializer
        return RetreatSerializer

    def destroy(self, request, *args, **kwargs):
        """Soft delete a retreat."""
        retreat = self.get_object()
        retreat.soft_delete(request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(request=None, responses={201: RetreatSerializer})
    @action(detail=True, methods=['post'])
    def duplicate(self, request, pk=None):
        """Copy the retreat, its rooms and gallery as an unpublished draft."""
        copy = duplicate_retreat(retreat=self.get_object())
        return Response(RetreatSerializer(copy).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=['get'], url_path='room-occupancy')
    def room_occupancy(self, request, pk=None):
        """Guests per room, unassigned bookings and the waitlist."""
        try:
            data = get_room_occupancy(retreat_id=pk)
        except RetreatNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        return Response(data)


class RetreatRoomViewSet(viewsets.ModelViewSet):
    """Rooms nested under /admin/retreats/<retreat_pk>/rooms/."""

    serializer_class = RetreatRoomSerializer
    permission_classes = [IsSiteAdmin]
    pagination_class = None

    def get_retreat(self):
        return get_object_or_404(Retreat.objects.alive(), pk=self.kwargs['retreat_pk'])

    def get_queryset(self):
        return RetreatRoom.objects.filter(retreat_id=self.kwargs['retreat_pk'])

    def perform_create(self, serializer):
        room = serializer.save(retreat=self.get_retreat())
        sync_availability_status(room.retreat)

    def perform_update(self, serializer):
        room = serializer.save()
        sync_availability_status(room.retreat)

    def perform_destroy(self, instance):
        retreat = instance.retreat
        instance.delete()
        sync_availability_status(retreat)


class RetreatGalleryViewSet(mixins.ListModelMixin,
                            mixins.CreateModelMixin,
                            mixins.DestroyModelMixin,
                            viewsets.GenericViewSet):
    """Gallery images nested under a retreat."""

    serializer_class = RetreatGalleryImageSerializer
    permission_classes = [IsSiteAdmin]
    pagination_class = None

    def get_queryset(self):
        return RetreatGalleryImage.objects.filter(retreat_id=self.kwargs['retreat_pk'])

    def perform_create(self, serializer):
        retreat = get_object_or_404(Retreat.objects.alive(), pk=self.kwargs['retreat_pk'])
        serializer.save(retreat=retreat)

    @extend_schema(request=GalleryReorderSerializer, responses={200: RetreatGalleryImageSerializer(many=True)})
    @action(detail=False, methods=['post'])
    def reorder(self, request, retreat_pk=None):
        serializer = GalleryReorderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        retreat = get_object_or_404(Retreat.objects.alive(), pk=retreat_pk)
        reorder_gallery(retreat=retreat, image_ids=serializer.validated_data['image_ids'])
        return Response(RetreatGalleryImageSerializer(retreat.gallery.all(), many=True).data)
