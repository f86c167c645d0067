from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import (
    CheckoutView,
    StripeWebhookView,
    EarlyPaymentView,
    CustomerPortalView,
    VatValidateView,
    VatReportView,
    RefundView,
    AdminPaymentScheduleViewSet,
)

app_name = 'payments'

router = DefaultRouter()
router.register(r'admin/payment-schedules', AdminPaymentScheduleViewSet, basename='schedule')

urlpatterns = [
    path('checkout/', CheckoutView.as_view(), name='checkout'),
    path('stripe/webhook/', StripeWebhookView.as_view(), name='stripe-webhook'),
    path('stripe/customer-portal/', CustomerPortalView.as_view(), name='customer-portal'),
    path('payments/<uuid:schedule_id>/checkout/', EarlyPaymentView.as_view(), name='early-payment'),
    path('vat/validate/', VatValidateView.as_view(), name='vat-validate'),
    path('admin/reports/vat/', VatReportView.as_view(), name='vat-report'),
    path('admin/refunds/', RefundView.as_view(), name='refunds'),
    path('', include(router.urls)),
]
