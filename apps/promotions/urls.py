from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import PromoCodeViewSet, ValidatePromoView

app_name = 'promotions'

router = DefaultRouter()
router.register(r'admin/promo-codes', PromoCodeViewSet, basename='promo-code')

urlpatterns = [
    path('promo-codes/validate/', ValidatePromoView.as_view(), name='validate'),
    path('', include(router.urls)),
]
