"""
Input validation for PDC operations.

The services bind these forms to plain Python values (from the JSON API,
Celery tasks or tests) and turn form errors into ValidationException.
"""
from django import forms
from django.core.exceptions import ValidationError
from django.core.validators import MaxValueValidator, MinValueValidator
from django.utils import timezone

from .models import MAX_AMOUNT, MIN_AMOUNT, PDCCheque, cheque_number_validator


def not_in_future(value):
    if value and value > timezone.localdate():
        raise ValidationError('Date cannot be in the future.')


class PDCChequeForm(forms.Form):
    """One cheque of a single or bulk create."""
    cheque_number = forms.CharField(max_length=50, validators=[cheque_number_validator])
    bank_name = forms.CharField(max_length=100)
    amount = forms.DecimalField(
        max_digits=12, decimal_places=2,
        validators=[MinValueValidator(MIN_AMOUNT), MaxValueValidator(MAX_AMOUNT)]
    )
    cheque_date = forms.DateField()
    invoice_id = forms.IntegerField(required=False, min_value=1)
    notes = forms.CharField(required=False)

    def clean_cheque_date(self):
        value = self.cleaned_data['cheque_date']
        if value < timezone.localdate():
            raise ValidationError('Cheque date must be today or a future date.')
        return value


def repeated_values(values):
    """Values occurring more than once, in order of first repetition."""
    seen = set()
    repeated = []
    for value in values:
        if value in seen and value not in repeated:
            repeated.append(value)
        seen.add(value)
    return repeated


class DepositForm(forms.Form):
    deposit_date = forms.DateField(validators=[not_in_future])
    bank_account_id = forms.IntegerField(min_value=1)


class ClearForm(forms.Form):
    cleared_date = forms.DateField(validators=[not_in_future])


class BounceForm(forms.Form):
    bounced_date = forms.DateField(validators=[not_in_future])
    bounce_reason = forms.CharField(max_length=255)


class ReplaceForm(forms.Form):
    new_cheque_number = forms.CharField(max_length=50, validators=[cheque_number_validator])
    bank_name = forms.CharField(max_length=100)
    amount = forms.DecimalField(
        max_digits=12, decimal_places=2,
        validators=[MinValueValidator(MIN_AMOUNT), MaxValueValidator(MAX_AMOUNT)]
    )
    cheque_date = forms.DateField()
    notes = forms.CharField(required=False)

    def clean_cheque_date(self):
        value = self.cleaned_data['cheque_date']
        if value < timezone.localdate():
            raise ValidationError('Replacement cheque date must be today or a future date.')
        return value


class WithdrawForm(forms.Form):
    withdrawal_date = forms.DateField(validators=[not_in_future])
    reason = forms.CharField(max_length=255)
    new_payment_method = forms.ChoiceField(choices=PDCCheque.REPLACEMENT_METHOD_CHOICES, required=False)


class TransactionDetailsForm(forms.Form):
    """Substitute payment recorded against a withdrawn cheque."""
    amount = forms.DecimalField(
        max_digits=12, decimal_places=2,
        validators=[MinValueValidator(MIN_AMOUNT), MaxValueValidator(MAX_AMOUNT)]
    )
    transaction_id = forms.CharField(max_length=100)
    bank_account_id = forms.IntegerField(min_value=1)


class WithdrawalFilterForm(forms.Form):
    reason = forms.CharField(required=False, max_length=255)
    date_from = forms.DateField(required=False)
    date_to = forms.DateField(required=False)

    def clean(self):
        cleaned_data = super().clean()
        date_from = cleaned_data.get('date_from')
        date_to = cleaned_data.get('date_to')
        if date_from and date_to and date_from > date_to:
            raise ValidationError('date_from must be on or before date_to.')
        return cleaned_data
