"""
Engine settings, overridable through settings.PDC_SETTINGS.
"""
from django.conf import settings

DEFAULTS = {
    'DUE_WINDOW_DAYS': 7,
    'MAX_BULK': 24,
    'BOUNCE_WINDOW_DAYS': 7,
    'DASHBOARD_LIST_LIMIT': 10,
    'LOCK_TIMEOUT_MS': 5000,
    'HOLDER_FALLBACK_NAME': 'Company Name Not Configured',
    'NOTIFICATION_FROM_EMAIL': None,
}


def pdc_setting(name):
    overrides = getattr(settings, 'PDC_SETTINGS', {})
    if name in overrides:
        return overrides[name]
    return DEFAULTS[name]
