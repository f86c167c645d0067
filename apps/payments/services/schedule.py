"""
Payment plan math.

Standard bookings (two months or more before the retreat) pay in three
installments: 10 % now, 50 % two months before and the rest one month
before. Late bookings pay 50 % now and the rest one month before. Full
payment is a single installment.

All amounts are ``Decimal`` rounded half-up to cents. The last installment
always takes the remainder so a plan sums exactly to its total.
"""

import calendar
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional

from apps.retreats.services import months_between
from ..models import PaymentSchedule

LATE_BOOKING_MONTHS = 2

PAYMENT_TYPE_DEPOSIT = 'deposit'
PAYMENT_TYPE_FULL = 'full'

CENT = Decimal('0.01')


def round_currency(value) -> Decimal:
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def subtract_months(day: date, months: int) -> date:
    """Same day of month ``months`` earlier, clamped to the month's last day."""
    month_index = day.year * 12 + (day.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


@dataclass
class ScheduleItem:
    payment_number: int
    amount: Decimal
    due_date: date
    description: str
    payment_type: str
    percentage: int

    def as_dict(self) -> dict:
        return {
            'number': self.payment_number,
            'amount': str(self.amount),
            'dueDate': self.due_date.isoformat(),
            'description': self.description,
            'type': self.payment_type,
            'percentage': self.percentage,
        }


@dataclass
class PaymentPlan:
    is_late_booking: bool
    is_early_bird: bool
    total_amount: Decimal
    early_bird_discount: Decimal
    items: List[ScheduleItem] = field(default_factory=list)

    @property
    def first(self) -> ScheduleItem:
        return self.items[0]

    def as_dict(self) -> dict:
        return {
            'isLateBooking': self.is_late_booking,
            'isEarlyBird': self.is_early_bird,
            'totalAmount': str(self.total_amount),
            'earlyBirdDiscount': str(self.early_bird_discount),
            'payments': [item.as_dict() for item in self.items],
        }


def calculate_payment_schedule(
    *,
    total,
    booking_date: date,
    retreat_start: date,
    payment_type: str = PAYMENT_TYPE_DEPOSIT,
    early_bird_percent=0,
) -> PaymentPlan:
    """
    Split ``total`` into installments.

    ``early_bird_percent`` reduces the total for non-late bookings only.
    Checkout passes an already discounted total with no percentage, so a
    discount is never applied twice.
    """
    total = round_currency(total)
    is_late = months_between(booking_date, retreat_start) < LATE_BOOKING_MONTHS

    early_bird_discount = Decimal('0.00')
    if early_bird_percent and not is_late:
        early_bird_discount = round_currency(total * Decimal(early_bird_percent) / 100)
        total = round_currency(total - early_bird_discount)
    is_early_bird = early_bird_discount > 0

    if payment_type == PAYMENT_TYPE_FULL:
        return PaymentPlan(
            is_late_booking=False,
            is_early_bird=is_early_bird,
            total_amount=total,
            early_bird_discount=early_bird_discount,
            items=[ScheduleItem(1, total, booking_date, 'Full payment (100%)', PaymentSchedule.PaymentType.FULL, 100)],
        )

    final_due = subtract_months(retreat_start, 1)
    if is_late:
        first = round_currency(total * Decimal('0.5'))
        items = [
            ScheduleItem(1, first, booking_date, 'First payment (50%)', PaymentSchedule.PaymentType.LATE_FIRST, 50),
            ScheduleItem(2, total - first, final_due, 'Final payment (50%)', PaymentSchedule.PaymentType.LATE_SECOND, 50),
        ]
    else:
        deposit = round_currency(total * Decimal('0.10'))
        second = round_currency(total * Decimal('0.50'))
        items = [
            ScheduleItem(1, deposit, booking_date, 'Deposit (10%)', PaymentSchedule.PaymentType.DEPOSIT, 10),
            ScheduleItem(
                2, second, subtract_months(retreat_start, 2), 'Second payment (50%)',
                PaymentSchedule.PaymentType.SECOND, 50,
            ),
            ScheduleItem(
                3, total - deposit - second, final_due, 'Final payment (40%)',
                PaymentSchedule.PaymentType.BALANCE, 40,
            ),
        ]

    return PaymentPlan(
        is_late_booking=is_late,
        is_early_bird=is_early_bird,
        total_amount=total,
        early_bird_discount=early_bird_discount,
        items=items,
    )


def get_deadline_status(due_date: date, today: Optional[date] = None) -> str:
    """Bucket an installment by how close its due date is."""
    today = today or date.today()
    days = (due_date - today).days
    if days < 0:
        return 'overdue'
    if days == 0:
        return 'due_today'
    if days == 1:
        return 'due_1_day'
    if days <= 3:
        return 'due_3_days'
    if days <= 7:
        return 'due_1_week'
    if days <= 14:
        return 'due_2_weeks'
    return 'upcoming'


REMINDER_OFFSETS = {14: '14_days', 7: '7_days', 3: '3_days', 1: '1_day', 0: 'today'}


def should_send_reminder(due_date: date, last_reminder_sent: Optional[date] = None, today: Optional[date] = None) -> Optional[str]:
    """
    Which reminder, if any, is due today for an installment.

    At most one reminder per day; overdue installments get one every day.
    """
    today = today or date.today()
    if last_reminder_sent is not None and last_reminder_sent == today:
        return None
    days = (due_date - today).days
    if days < 0:
        return 'overdue'
    return REMINDER_OFFSETS.get(days)


