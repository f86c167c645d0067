"""Policy page sections with English fallback."""

from ..models import PolicySection


def get_policy_sections(*, language: str = 'en') -> list:
    """
    Active sections in ``language``; sections missing a translation fall
    back to their English version.
    """
    sections = {s.section_key: s for s in PolicySection.objects.filter(language='en', is_active=True)}
    if language != 'en':
        for section in PolicySection.objects.filter(language=language, is_active=True):
            sections[section.section_key] = section
    return sorted(sections.values(), key=lambda s: (s.sort_order, s.section_key))
