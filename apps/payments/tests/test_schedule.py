"""Tests for installment plans, deadline buckets and reminder timing."""

from datetime import date
from decimal import Decimal

import pytest

from apps.payments.models import PaymentSchedule
from apps.payments.services import (
    calculate_payment_schedule,
    get_deadline_status,
    should_send_reminder,
    round_currency,
    subtract_months,
)


class TestSubtractMonths:

    def test_same_day(self):
        assert subtract_months(date(2026, 6, 15), 2) == date(2026, 4, 15)

    def test_across_year(self):
        assert subtract_months(date(2026, 1, 15), 2) == date(2025, 11, 15)

    def test_clamps_to_month_end(self):
        assert subtract_months(date(2026, 3, 31), 1) == date(2026, 2, 28)


class TestPaymentPlan:

    def test_standard_three_installments(self):
        plan = calculate_payment_schedule(
            total=Decimal('1000'), booking_date=date(2026, 1, 10), retreat_start=date(2026, 6, 15),
        )

        assert plan.is_late_booking is False
        assert [item.amount for item in plan.items] == [Decimal('100.00'), Decimal('500.00'), Decimal('400.00')]
        assert [item.due_date for item in plan.items] == [
            date(2026, 1, 10), date(2026, 4, 15), date(2026, 5, 15),
        ]
        assert [item.payment_type for item in plan.items] == [
            PaymentSchedule.PaymentType.DEPOSIT,
            PaymentSchedule.PaymentType.SECOND,
            PaymentSchedule.PaymentType.BALANCE,
        ]

    def test_late_booking_two_installments(self):
        plan = calculate_payment_schedule(
            total=Decimal('1000'), booking_date=date(2026, 5, 1), retreat_start=date(2026, 6, 15),
        )

        assert plan.is_late_booking is True
        assert [item.amount for item in plan.items] == [Decimal('500.00'), Decimal('500.00')]
        assert plan.items[1].due_date == date(2026, 5, 15)

    def test_last_installment_takes_remainder(self):
        plan = calculate_payment_schedule(
            total=Decimal('999.99'), booking_date=date(2026, 1, 10), retreat_start=date(2026, 6, 15),
        )

        assert sum(item.amount for item in plan.items) == Decimal('999.99')
        assert plan.items[-1].amount == Decimal('399.99')

    def test_full_payment(self):
        plan = calculate_payment_schedule(
            total=Decimal('1200'), booking_date=date(2026, 1, 10),
            retreat_start=date(2026, 6, 15), payment_type='full',
        )

        assert len(plan.items) == 1
        assert plan.first.amount == Decimal('1200.00')
        assert plan.first.payment_type == PaymentSchedule.PaymentType.FULL

    def test_early_bird_percent_only_for_standard_bookings(self):
        standard = calculate_payment_schedule(
            total=Decimal('1000'), booking_date=date(2026, 1, 10),
            retreat_start=date(2026, 6, 15), early_bird_percent=10,
        )
        late = calculate_payment_schedule(
            total=Decimal('1000'), booking_date=date(2026, 5, 1),
            retreat_start=date(2026, 6, 15), early_bird_percent=10,
        )

        assert standard.total_amount == Decimal('900.00')
        assert standard.is_early_bird is True
        assert late.total_amount == Decimal('1000.00')
        assert late.is_early_bird is False

    def test_as_dict(self):
        plan = calculate_payment_schedule(
            total=Decimal('1000'), booking_date=date(2026, 1, 10), retreat_start=date(2026, 6, 15),
        )
        data = plan.as_dict()

        assert data['isLateBooking'] is False
        assert data['payments'][0] == {
            'number': 1,
            'amount': '100.00',
            'dueDate': '2026-01-10',
            'description': 'Deposit (10%)',
            'type': 'deposit',
            'percentage': 10,
        }

    def test_round_currency_half_up(self):
        assert round_currency(Decimal('0.005')) == Decimal('0.01')


class TestDeadlines:

    @pytest.mark.parametrize('days,expected', [
        (-1, 'overdue'),
        (0, 'due_today'),
        (1, 'due_1_day'),
        (3, 'due_3_days'),
        (7, 'due_1_week'),
        (14, 'due_2_weeks'),
        (30, 'upcoming'),
    ])
    def test_deadline_status(self, days, expected):
        today = date(2026, 3, 1)
        assert get_deadline_status(date.fromordinal(today.toordinal() + days), today) == expected

    @pytest.mark.parametrize('days,expected', [
        (14, '14_days'),
        (7, '7_days'),
        (3, '3_days'),
        (1, '1_day'),
        (0, 'today'),
        (-2, 'overdue'),
        (5, None),
    ])
    def test_reminder_offsets(self, days, expected):
        today = date(2026, 3, 1)
        due = date.fromordinal(today.toordinal() + days)
        assert should_send_reminder(due, today=today) == expected

    def test_one_reminder_per_day(self):
        today = date(2026, 3, 1)
        assert should_send_reminder(date(2026, 2, 20), last_reminder_sent=today, today=today) is None
