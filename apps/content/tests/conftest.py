import pytest

from apps.content.models import PolicySection


@pytest.fixture
def policy_sections(db):
    """English terms with a German translation of the first section only."""
    return [
        PolicySection.objects.create(
            section_key='booking', language='en', title='Booking', content=['Book online.'], sort_order=0,
        ),
        PolicySection.objects.create(
            section_key='cancellation', language='en', title='Cancellation', content=['30 days.'], sort_order=1,
        ),
        PolicySection.objects.create(
            section_key='booking', language='de', title='Buchung', content=['Online buchen.'], sort_order=0,
        ),
        PolicySection.objects.create(
            section_key='legacy', language='en', title='Old terms', sort_order=2, is_active=False,
        ),
    ]
