from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import (
    SubscribeView,
    ConfirmView,
    UnsubscribeView,
    QuizView,
    SubscriberViewSet,
    CampaignViewSet,
    NewsletterStatsView,
)

app_name = 'newsletter'

router = DefaultRouter()
router.register(r'admin/newsletter/subscribers', SubscriberViewSet, basename='subscriber')
router.register(r'admin/newsletter/campaigns', CampaignViewSet, basename='campaign')

urlpatterns = [
    path('newsletter/subscribe/', SubscribeView.as_view(), name='subscribe'),
    path('newsletter/confirm/', ConfirmView.as_view(), name='confirm'),
    path('newsletter/unsubscribe/', UnsubscribeView.as_view(), name='unsubscribe'),
    path('newsletter/quiz/', QuizView.as_view(), name='quiz'),
    path('admin/newsletter/stats/', NewsletterStatsView.as_view(), name='stats'),
    path('', include(router.urls)),
]
