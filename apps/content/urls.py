from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import (
    PublicSettingsView,
    AdminSettingsView,
    PolicyListView,
    AdminPolicySectionViewSet,
    ContactView,
    FeedbackView,
    AdminFeedbackViewSet,
    UploadView,
)

app_name = 'content'

router = DefaultRouter()
router.register(r'admin/policies', AdminPolicySectionViewSet, basename='admin-policy')
router.register(r'admin/feedback', AdminFeedbackViewSet, basename='admin-feedback')

urlpatterns = [
    path('settings/', PublicSettingsView.as_view(), name='settings'),
    path('admin/settings/', AdminSettingsView.as_view(), name='admin-settings'),
    path('policies/', PolicyListView.as_view(), name='policies'),
    path('contact/', ContactView.as_view(), name='contact'),
    path('feedback/', FeedbackView.as_view(), name='feedback'),
    path('admin/upload/', UploadView.as_view(), name='upload'),
    path('', include(router.urls)),
]
