from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import (
    PublicRetreatViewSet,
    AdminRetreatViewSet,
    RetreatRoomViewSet,
    RetreatGalleryViewSet,
)

app_name = 'retreats'

public_router = DefaultRouter()
public_router.register(r'retreats', PublicRetreatViewSet, basename='retreat')

admin_router = DefaultRouter()
admin_router.register(r'retreats', AdminRetreatViewSet, basename='admin-retreat')
admin_router.register(r'retreats/(?P<retreat_pk>[^/.]+)/rooms', RetreatRoomViewSet, basename='admin-room')
admin_router.register(r'retreats/(?P<retreat_pk>[^/.]+)/gallery', RetreatGalleryViewSet, basename='admin-gallery')

urlpatterns = [
    path('admin/', include(admin_router.urls)),
    path('', include(public_router.urls)),
]
