from django.db.models import Count, Q
from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.pagination import PageNumberPagination
from drf_spectacular.utils import extend_schema

from apps.accounts.permissions import IsSiteAdmin
from .models import BlogCategory, BlogPost
from .serializers import (
    BlogCategorySerializer,
    BlogPostSerializer,
    BlogPostPublicSerializer,
    BlogPostListSerializer,
)
from .services import published_posts, view_post, duplicate_post, BlogPostNotFoundError


class BlogPagination(PageNumberPagination):
    """Custom pagination for blog posts."""
    page_size = 12
    page_size_query_param = 'page_size'
    max_page_size = 100


class PublicBlogPostViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Published blog posts.

    list: Filters category (slug), tag, language, featured
    retrieve: Post by slug; counts a view
    """

    permission_classes = [AllowAny]
    pagination_class = BlogPagination
    lookup_field = 'slug'

    def get_queryset(self):
        queryset = published_posts()
        params = self.request.query_params

        if params.get('category'):
            queryset = queryset.filter(category__slug=params['category'])
        if params.get('tag'):
            queryset = queryset.filter(tags__icontains=f'"{params["tag"]}"')
        if params.get('featured') in ('1', 'true'):
            queryset = queryset.filter(is_featured=True)
        language = params.get('language')
        if language:
            queryset = queryset.filter(Q(primary_language=language) | Q(translations__has_key=language))
        return queryset

    def get_serializer_class(self):
        if self.action == 'list':
            return BlogPostListSerializer
        return BlogPostPublicSerializer

    def get_serializer_context(self):
        context = super().get_serializer_context()
        context['language'] = self.request.query_params.get('language')
        return context

    def retrieve(self, request, *args, **kwargs):
        try:
            post = view_post(slug=kwargs['slug'])
        except BlogPostNotFoundError as e:
            return Response({'error': str(e)}, status=status.HTTP_404_NOT_FOUND)
        return Response(BlogPostPublicSerializer(post, context=self.get_serializer_context()).data)


class PublicBlogCategoryViewSet(viewsets.ReadOnlyModelViewSet):
    serializer_class = BlogCategorySerializer
    permission_classes = [AllowAny]
    pagination_class = None
    lookup_field = 'slug'

    def get_queryset(self):
        published = Q(posts__status=BlogPost.Status.PUBLISHED, posts__deleted_at__isnull=True)
        return BlogCategory.objects.annotate(post_count=Count('posts', filter=published))


class AdminBlogPostViewSet(viewsets.ModelViewSet):
    """
    Blog post management for admins.

    destroy moves the post to the trash.
    """

    serializer_class = BlogPostSerializer
    permission_classes = [IsSiteAdmin]
    pagination_class = BlogPagination

    def get_queryset(self):
        queryset = BlogPost.objects.alive().select_related('category')
        params = self.request.query_params
        if params.get('status'):
            queryset = queryset.filter(status=params['status'])
        if params.get('category'):
            queryset = queryset.filter(category_id=params['category'])
        if params.get('search'):
            queryset = queryset.filter(Q(title__icontains=params['search']) | Q(excerpt__icontains=params['search']))
        return queryset

    def perform_create(self, serializer):
        user = self.request.user
        serializer.save(author=user, author_name=serializer.validated_data.get('author_name') or user.get_display_name())

    def destroy(self, request, *args, **kwargs):
        """Soft delete a post."""
        post = self.get_object()
        post.soft_delete(request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(request=None, responses={201: BlogPostSerializer})
    @action(detail=True, methods=['post'])
    def duplicate(self, request, pk=None):
        """Copy the post as a draft."""
        copy = duplicate_post(post=self.get_object(), user=request.user)
        return Response(BlogPostSerializer(copy).data, status=status.HTTP_201_CREATED)


class AdminBlogCategoryViewSet(viewsets.ModelViewSet):
    serializer_class = BlogCategorySerializer
    permission_classes = [IsSiteAdmin]
    pagination_class = None

    def get_queryset(self):
        return BlogCategory.objects.annotate(post_count=Count('posts', filter=Q(posts__deleted_at__isnull=True)))
