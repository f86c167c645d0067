from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import AdminBookingViewSet, MyBookingView

app_name = 'bookings'

router = DefaultRouter()
router.register(r'admin/bookings', AdminBookingViewSet, basename='booking')

urlpatterns = [
    path('my-booking/', MyBookingView.as_view(), name='my-booking'),
    path('', include(router.urls)),
]
