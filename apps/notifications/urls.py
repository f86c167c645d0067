from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import EmailTemplateViewSet, EmailLogViewSet, ResendWebhookView

app_name = 'notifications'

router = DefaultRouter()
router.register(r'admin/email-templates', EmailTemplateViewSet, basename='template')
router.register(r'admin/email-logs', EmailLogViewSet, basename='log')

urlpatterns = [
    path('webhooks/resend/', ResendWebhookView.as_view(), name='resend-webhook'),
    path('', include(router.urls)),
]
