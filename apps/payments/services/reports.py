"""VAT report over confirmed and completed bookings."""

import csv
import io
from datetime import date
from decimal import Decimal
from typing import Optional

from apps.bookings.models import Booking

COUNTRY_NAMES = {
    'AT': 'Austria', 'BE': 'Belgium', 'BG': 'Bulgaria', 'HR': 'Croatia', 'CY': 'Cyprus',
    'CZ': 'Czech Republic', 'DK': 'Denmark', 'EE': 'Estonia', 'FI': 'Finland', 'FR': 'France',
    'DE': 'Germany', 'GR': 'Greece', 'HU': 'Hungary', 'IE': 'Ireland', 'IT': 'Italy',
    'LV': 'Latvia', 'LT': 'Lithuania', 'LU': 'Luxembourg', 'MT': 'Malta', 'NL': 'Netherlands',
    'PL': 'Poland', 'PT': 'Portugal', 'RO': 'Romania', 'SK': 'Slovakia', 'SI': 'Slovenia',
    'ES': 'Spain', 'SE': 'Sweden', 'GB': 'United Kingdom', 'CH': 'Switzerland', 'NO': 'Norway',
    'US': 'United States',
}

CSV_HEADERS = [
    'Booking Number', 'Date', 'Customer Name', 'Email', 'Country', 'Customer Type',
    'Company Name', 'VAT ID', 'VAT ID Valid', 'Subtotal (EUR)', 'VAT Rate (%)',
    'VAT Amount (EUR)', 'Total (EUR)', 'Reverse Charge', 'Payment Status',
]


def _row(booking: Booking) -> dict:
    is_reverse_charge = (
        booking.customer_type == Booking.CustomerType.BUSINESS
        and booking.vat_id_valid
        and booking.vat_rate == 0
    )
    return {
        'booking_number': booking.booking_number,
        'booking_date': booking.created_at.date().isoformat(),
        'customer_name': booking.full_name,
        'customer_email': booking.email,
        'country': booking.country,
        'country_name': COUNTRY_NAMES.get(booking.country, booking.country),
        'customer_type': booking.customer_type,
        'company_name': booking.company_name,
        'vat_id': booking.vat_id,
        'vat_id_valid': booking.vat_id_valid,
        'subtotal': booking.subtotal,
        'vat_rate': booking.vat_rate,
        'vat_amount': booking.vat_amount,
        'total_amount': booking.total_amount,
        'is_reverse_charge': is_reverse_charge,
        'payment_status': booking.payment_status,
    }


def build_vat_report(*, date_from: Optional[date] = None, date_to: Optional[date] = None) -> dict:
    """Transactions plus per-country and overall totals, largest sales first."""
    bookings = Booking.objects.filter(
        status__in=[Booking.Status.CONFIRMED, Booking.Status.COMPLETED],
    ).order_by('-created_at')
    if date_from:
        bookings = bookings.filter(created_at__date__gte=date_from)
    if date_to:
        bookings = bookings.filter(created_at__date__lte=date_to)

    rows = [_row(b) for b in bookings]

    by_country = {}
    for row in rows:
        summary = by_country.setdefault(row['country'], {
            'country': row['country'],
            'country_name': row['country_name'],
            'total_sales': Decimal('0'),
            'total_vat': Decimal('0'),
            'booking_count': 0,
            'private_customers': 0,
            'business_customers': 0,
            'reverse_charge_count': 0,
        })
        summary['total_sales'] += row['subtotal']
        summary['total_vat'] += row['vat_amount']
        summary['booking_count'] += 1
        if row['customer_type'] == Booking.CustomerType.BUSINESS:
            summary['business_customers'] += 1
        else:
            summary['private_customers'] += 1
        if row['is_reverse_charge']:
            summary['reverse_charge_count'] += 1

    totals = {
        'total_sales': sum((r['subtotal'] for r in rows), Decimal('0')),
        'total_vat': sum((r['vat_amount'] for r in rows), Decimal('0')),
        'total_revenue': sum((r['total_amount'] for r in rows), Decimal('0')),
        'total_bookings': len(rows),
        'private_customers': sum(1 for r in rows if r['customer_type'] != Booking.CustomerType.BUSINESS),
        'business_customers': sum(1 for r in rows if r['customer_type'] == Booking.CustomerType.BUSINESS),
        'reverse_charge_transactions': sum(1 for r in rows if r['is_reverse_charge']),
    }

    return {
        'period': {
            'from': date_from.isoformat() if date_from else 'all time',
            'to': date_to.isoformat() if date_to else 'now',
        },
        'totals': totals,
        'summaryByCountry': sorted(by_country.values(), key=lambda s: s['total_sales'], reverse=True),
        'transactions': rows,
    }


def vat_report_csv(report: dict) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(CSV_HEADERS)
    for row in report['transactions']:
        writer.writerow([
            row['booking_number'],
            row['booking_date'],
            row['customer_name'],
            row['customer_email'],
            row['country_name'],
            row['customer_type'],
            row['company_name'],
            row['vat_id'],
            'Yes' if row['vat_id_valid'] else 'No',
            f"{row['subtotal']:.2f}",
            f"{row['vat_rate'] * 100:.1f}",
            f"{row['vat_amount']:.2f}",
            f"{row['total_amount']:.2f}",
            'Yes' if row['is_reverse_charge'] else 'No',
            row['payment_status'],
        ])
    return buffer.getvalue()
