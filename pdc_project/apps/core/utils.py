"""
Utility functions for the PDC engine.
"""
from django.conf import settings
from django.db import transaction
from django.utils import timezone


def _highest_suffix(model_class, number_field, year_prefix):
    """Largest integer suffix already issued under `year_prefix`."""
    highest = 0
    numbers = model_class.objects.filter(
        **{f'{number_field}__startswith': year_prefix}
    ).values_list(number_field, flat=True)
    for number in numbers.iterator():
        suffix = number[len(year_prefix):]
        if suffix.isdigit():
            highest = max(highest, int(suffix))
    return highest


def generate_number(document_type, model_class, number_field='number'):
    """
    Generate a sequential number for documents.
    Format: PREFIX-YEAR-NUMBER (e.g., PDC-2026-0001)

    Numbers come from the locked NumberSeries row for the document type
    and year, so concurrent writers never draw the same value. A new
    year's row starts after the highest number already stored.

    Args:
        document_type: Key from NUMBER_SERIES settings (e.g., 'PDC')
        model_class: The model class holding issued numbers
        number_field: The field name that stores the number

    Returns:
        str: Generated number
    """
    from apps.settings_app.models import NumberSeries

    config = settings.NUMBER_SERIES.get(document_type, {})
    prefix = config.get('prefix', document_type)
    padding = config.get('padding', 4)

    year = timezone.localdate().year
    year_prefix = f"{prefix}-{year}-"

    with transaction.atomic():
        series = NumberSeries.objects.select_for_update().filter(
            document_type=document_type, year=year
        ).first()
        if series is None:
            series, _ = NumberSeries.objects.get_or_create(
                document_type=document_type,
                year=year,
                defaults={'next_number': _highest_suffix(model_class, number_field, year_prefix) + 1},
            )
            series = NumberSeries.objects.select_for_update().get(pk=series.pk)
        sequence = series.take_next()

    return f"{year_prefix}{str(sequence).zfill(padding)}"


def get_client_ip(request):
    """Get the client IP address from request."""
    if not request:
        return None
    x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
    if x_forwarded_for:
        return x_forwarded_for.split(',')[0].strip()
    return request.META.get('REMOTE_ADDR')


class RoleChecker:
    """
    Utility class to check user roles.
    The gateway authenticates the caller; roles come from UserRole rows.
    """

    @staticmethod
    def get_role_codes(user):
        """
        Return the set of active role codes for a user.

        Returns:
            set: Role codes, e.g. {'PROPERTY_MANAGER'}
        """
        if not user or not user.is_authenticated:
            return set()

        from apps.settings_app.models import UserRole

        return set(
            UserRole.objects.filter(
                user=user,
                is_active=True,
                role__is_active=True
            ).values_list('role__code', flat=True)
        )

    @staticmethod
    def has_any_role(user, role_codes):
        """
        Check if user holds at least one of the given roles.
        Superusers always pass.
        """
        if not user or not user.is_authenticated:
            return False

        if user.is_superuser:
            return True

        return bool(RoleChecker.get_role_codes(user) & set(role_codes))

    @staticmethod
    def users_with_role(role_code):
        """Active users holding a role, used to address notifications."""
        from django.contrib.auth import get_user_model

        return get_user_model().objects.filter(
            is_active=True,
            user_roles__is_active=True,
            user_roles__role__code=role_code,
            user_roles__role__is_active=True,
        ).distinct()
