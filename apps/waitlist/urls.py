from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import WaitlistView, WaitlistRespondView, WaitlistAdminViewSet

app_name = 'waitlist'

router = DefaultRouter()
router.register(r'admin/waitlist', WaitlistAdminViewSet, basename='entry')

urlpatterns = [
    path('waitlist/', WaitlistView.as_view(), name='join'),
    path('waitlist/respond/', WaitlistRespondView.as_view(), name='respond'),
    path('', include(router.urls)),
]
