from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView
from drf_spectacular.utils import extend_schema, OpenApiParameter

from apps.accounts.permissions import IsSiteAdmin
from .serializers import TrashItemSerializer, TrashActionSerializer
from .services import (
    list_trash,
    restore_item,
    delete_permanently,
    UnknownItemTypeError,
    TrashItemNotFoundError,
    ItemInUseError,
)


class TrashView(APIView):
    """
    Trashed retreats and blog posts.

    GET: list (``?type=retreat|blog_post``)
    POST: restore ``{type, id}``
    DELETE: delete ``{type, id}`` permanently
    """

    permission_classes = [IsSiteAdmin]

    @extend_schema(
        parameters=[OpenApiParameter('type', str, enum=['retreat', 'blog_post'])],
        responses={200: TrashItemSerializer(many=True)},
    )
    def get(self, request):
        try:
            items = list_trash(item_type=request.query_params.get('type') or None)
        except UnknownItemTypeError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
        return Response({'items': TrashItemSerializer(items, many=True).data, 'total': len(items)})

    @extend_schema(request=TrashActionSerializer)
    def post(self, request):
        serializer = TrashActionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            restore_item(item_type=serializer.validated_data['type'], item_id=serializer.validated_data['id'])
        except TrashItemNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        return Response({'success': True, 'message': 'Item restored'})

    @extend_schema(request=TrashActionSerializer)
    def delete(self, request):
        serializer = TrashActionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            delete_permanently(item_type=serializer.validated_data['type'], item_id=serializer.validated_data['id'])
        except TrashItemNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        except ItemInUseError as e:
            return Response({'error': str(e)}, status=status.HTTP_409_CONFLICT)
        return Response(status=status.HTTP_204_NO_CONTENT)
