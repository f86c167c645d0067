"""Services for payments business logic."""

from .exceptions import (
    PaymentServiceError,
    CheckoutError,
    CheckoutNotFoundError,
    PaymentGatewayError,
    ScheduleNotPayableError,
    RefundError,
    InvalidVatIdError,
    WebhookVerificationError,
)
from .schedule import (
    PaymentPlan,
    ScheduleItem,
    calculate_payment_schedule,
    get_deadline_status,
    should_send_reminder,
    round_currency,
    subtract_months,
)
from .vat import (
    VAT_RATES,
    EU_COUNTRIES,
    VatCalculation,
    VatIdCheck,
    calculate_vat,
    is_eu_country,
    is_reverse_charge,
    check_vat_id_format,
    validate_vat_id,
)
from .gateway import construct_webhook_event
from .status import refresh_payment_state, apply_refund_state
from .checkout import CheckoutResult, create_checkout
from .stripe_events import dispatch_event
from .charging import ChargeOutcome, charge_schedule
from .payment_actions import (
    create_early_payment_session,
    create_payment_link,
    retry_payment,
    create_customer_portal_url,
)
from .refunds import refund_payment, cancel_schedule
from .reports import build_vat_report, vat_report_csv
from .jobs import process_payments, send_reminders, auto_cancel_overdue_bookings

__all__ = [
    # Exceptions
    'PaymentServiceError',
    'CheckoutError',
    'CheckoutNotFoundError',
    'PaymentGatewayError',
    'ScheduleNotPayableError',
    'RefundError',
    'InvalidVatIdError',
    'WebhookVerificationError',
    # Schedule math
    'PaymentPlan',
    'ScheduleItem',
    'calculate_payment_schedule',
    'get_deadline_status',
    'should_send_reminder',
    'round_currency',
    'subtract_months',
    # VAT
    'VAT_RATES',
    'EU_COUNTRIES',
    'VatCalculation',
    'VatIdCheck',
    'calculate_vat',
    'is_eu_country',
    'is_reverse_charge',
    'check_vat_id_format',
    'validate_vat_id',
    # Stripe
    'construct_webhook_event',
    'dispatch_event',
    'refresh_payment_state',
    'apply_refund_state',
    # Checkout & actions
    'CheckoutResult',
    'create_checkout',
    'ChargeOutcome',
    'charge_schedule',
    'create_early_payment_session',
    'create_payment_link',
    'retry_payment',
    'create_customer_portal_url',
    'refund_payment',
    'cancel_schedule',
    # Reports & jobs
    'build_vat_report',
    'vat_report_csv',
    'process_payments',
    'send_reminders',
    'auto_cancel_overdue_bookings',
]
