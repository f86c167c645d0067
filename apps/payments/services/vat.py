"""
VAT calculation and EU VAT ID validation.

VAT ID checks run a local format check first and then ask the EU VIES
SOAP service. When VIES cannot be reached the format check alone decides.
"""

import logging
import re
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

import httpx
from django.conf import settings
from django.utils import timezone

from .exceptions import InvalidVatIdError
from .schedule import round_currency

logger = logging.getLogger(__name__)

VAT_RATES = {
    'DE': Decimal('0.19'),
    'FR': Decimal('0.20'),
    'ES': Decimal('0.21'),
    'IT': Decimal('0.22'),
    'PT': Decimal('0.23'),
    'NL': Decimal('0.21'),
    'BE': Decimal('0.21'),
    'AT': Decimal('0.20'),
    'IE': Decimal('0.23'),
    'PL': Decimal('0.23'),
}

EU_COUNTRIES = (
    'AT', 'BE', 'BG', 'HR', 'CY', 'CZ', 'DK', 'EE', 'FI', 'FR', 'DE', 'GR', 'HU', 'IE',
    'IT', 'LV', 'LT', 'LU', 'MT', 'NL', 'PL', 'PT', 'RO', 'SK', 'SI', 'ES', 'SE',
)

VAT_ID_PATTERNS = {
    'AT': r'^ATU\d{8}$',
    'BE': r'^BE[01]\d{9}$',
    'BG': r'^BG\d{9,10}$',
    'HR': r'^HR\d{11}$',
    'CY': r'^CY\d{8}[A-Z]$',
    'CZ': r'^CZ\d{8,10}$',
    'DK': r'^DK\d{8}$',
    'EE': r'^EE\d{9}$',
    'FI': r'^FI\d{8}$',
    'FR': r'^FR[A-HJ-NP-Z0-9]{2}\d{9}$',
    'DE': r'^DE\d{9}$',
    'GR': r'^EL\d{9}$',
    'HU': r'^HU\d{8}$',
    'IE': r'^IE\d{7}[A-W][A-IW]?$|^IE\d[A-Z+*]\d{5}[A-W]$',
    'IT': r'^IT\d{11}$',
    'LV': r'^LV\d{11}$',
    'LT': r'^LT(\d{9}|\d{12})$',
    'LU': r'^LU\d{8}$',
    'MT': r'^MT\d{8}$',
    'NL': r'^NL\d{9}B\d{2}$',
    'PL': r'^PL\d{10}$',
    'PT': r'^PT\d{9}$',
    'RO': r'^RO\d{2,10}$',
    'SK': r'^SK\d{10}$',
    'SI': r'^SI\d{8}$',
    'ES': r'^ES[A-Z0-9]\d{7}[A-Z0-9]$',
    'SE': r'^SE\d{12}$',
}

VIES_ENVELOPE = (
    '<soapenv:Envelope xmlns:soapenv="http://schemas.xmlsoap.org/soap/envelope/" '
    'xmlns:urn="urn:ec.europa.eu:taxud:vies:services:checkVat:types">'
    '<soapenv:Header/><soapenv:Body><urn:checkVat>'
    '<urn:countryCode>{country}</urn:countryCode><urn:vatNumber>{number}</urn:vatNumber>'
    '</urn:checkVat></soapenv:Body></soapenv:Envelope>'
)


@dataclass
class VatCalculation:
    rate: Decimal
    amount: Decimal
    total: Decimal
    is_reverse_charge: bool


@dataclass
class VatIdCheck:
    vat_id: str
    country: str
    company_name: Optional[str] = None
    company_address: Optional[str] = None
    vies_checked: bool = True

    def as_dict(self) -> dict:
        return {
            'valid': True,
            'vatId': self.vat_id,
            'country': self.country,
            'companyName': self.company_name,
            'companyAddress': self.company_address,
            'validatedAt': timezone.now().isoformat(),
        }


def is_eu_country(country: Optional[str]) -> bool:
    return (country or '').upper() in EU_COUNTRIES


def get_vat_rate(country: Optional[str]) -> Decimal:
    return VAT_RATES.get((country or '').upper(), Decimal('0'))


def is_reverse_charge(*, country: Optional[str], customer_type: str, vat_id_valid: bool) -> bool:
    """B2B customers with a valid VAT ID in another EU country pay no VAT."""
    country = (country or '').upper()
    return (
        customer_type == 'business'
        and bool(vat_id_valid)
        and is_eu_country(country)
        and country != settings.COMPANY_COUNTRY
    )


def calculate_vat(amount, country: Optional[str], customer_type: str = 'private', vat_id_valid: bool = False) -> VatCalculation:
    """VAT on top of a net ``amount``."""
    amount = Decimal(amount)
    if is_reverse_charge(country=country, customer_type=customer_type, vat_id_valid=vat_id_valid):
        return VatCalculation(Decimal('0'), Decimal('0.00'), round_currency(amount), True)

    rate = get_vat_rate(country)
    vat_amount = round_currency(amount * rate)
    return VatCalculation(rate, vat_amount, round_currency(amount + vat_amount), False)


def vat_prefix(country: str) -> str:
    return 'EL' if country == 'GR' else country


def check_vat_id_format(vat_id: str, country: str) -> str:
    """
    Normalize a VAT ID and check it against the country's format.

    Returns:
        The normalized VAT ID

    Raises:
        InvalidVatIdError: With a customer-facing message
    """
    country = (country or '').upper()
    normalized = re.sub(r'\s', '', vat_id or '').upper()

    if not is_eu_country(country):
        raise InvalidVatIdError("VAT ID validation is only available for EU countries")

    prefix = vat_prefix(country)
    if not normalized.startswith(prefix):
        raise InvalidVatIdError(f"VAT ID should start with {prefix}")

    pattern = VAT_ID_PATTERNS.get(country)
    if pattern and not re.match(pattern, normalized):
        raise InvalidVatIdError(f"Invalid VAT ID format for {country}")

    return normalized


def _xml_value(xml: str, tag: str) -> Optional[str]:
    match = re.search(rf'<(?:\w+:)?{tag}>([^<]*)</(?:\w+:)?{tag}>', xml, re.IGNORECASE)
    return match.group(1).strip() if match else None


def query_vies(normalized_vat_id: str, country: str) -> Optional[dict]:
    """
    Ask VIES about a VAT ID.

    Returns:
        ``{'valid', 'name', 'address'}`` or None when VIES is unavailable
    """
    prefix = vat_prefix(country)
    number = normalized_vat_id[len(prefix):]
    body = VIES_ENVELOPE.format(country=prefix, number=number)

    try:
        response = httpx.post(
            settings.VIES_URL,
            content=body,
            headers={'Content-Type': 'text/xml;charset=UTF-8', 'SOAPAction': ''},
            timeout=settings.VIES_TIMEOUT_SECONDS,
        )
        response.raise_for_status()
    except httpx.HTTPError as e:
        logger.warning("VIES unavailable for %s: %s", normalized_vat_id, e)
        return None

    xml = response.text
    valid = (_xml_value(xml, 'valid') or '').lower() == 'true'
    name = _xml_value(xml, 'name')
    address = _xml_value(xml, 'address')
    return {
        'valid': valid,
        'name': name if name and name != '---' else None,
        'address': address if address and address != '---' else None,
    }


def validate_vat_id(*, vat_id: str, country: str) -> VatIdCheck:
    """
    Full VAT ID check: format first, then VIES.

    Raises:
        InvalidVatIdError: If the format is wrong or VIES rejects the number
    """
    country = (country or '').upper()
    normalized = check_vat_id_format(vat_id, country)

    result = query_vies(normalized, country)
    if result is None:
        return VatIdCheck(vat_id=normalized, country=country, vies_checked=False)

    if not result['valid']:
        raise InvalidVatIdError(
            "VAT ID not found in EU VIES database. Please check the number and try again."
        )

    logger.info("VAT ID %s confirmed by VIES", normalized)
    return VatIdCheck(
        vat_id=normalized,
        country=country,
        company_name=result['name'],
        company_address=result['address'],
    )
