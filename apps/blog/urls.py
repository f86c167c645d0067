from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import (
    PublicBlogPostViewSet,
    PublicBlogCategoryViewSet,
    AdminBlogPostViewSet,
    AdminBlogCategoryViewSet,
)

app_name = 'blog'

router = DefaultRouter()
router.register(r'blog/posts', PublicBlogPostViewSet, basename='post')
router.register(r'blog/categories', PublicBlogCategoryViewSet, basename='category')
router.register(r'admin/blog/posts', AdminBlogPostViewSet, basename='admin-post')
router.register(r'admin/blog/categories', AdminBlogCategoryViewSet, basename='admin-category')

urlpatterns = [
    path('', include(router.urls)),
]
