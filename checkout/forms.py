"""
Checkout step forms.

Field presence and the email format gate the wizard's step transitions;
messages are shown to the shopper as the step's error list.
"""

import re

from django import forms
from django.core.exceptions import ValidationError

EMAIL_RE = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')


class ContactForm(forms.Form):
    """Step 1: who is ordering."""

    customer_name = forms.CharField(
        max_length=200,
        error_messages={'required': 'Full name is required.'},
    )
    customer_email = forms.CharField(
        max_length=254,
        error_messages={'required': 'Email is required.'},
    )
    customer_phone = forms.CharField(
        max_length=20,
        error_messages={'required': 'Phone number is required.'},
    )

    def clean_customer_email(self):
        email = self.cleaned_data['customer_email'].strip()
        if not EMAIL_RE.match(email):
            raise ValidationError('Enter a valid email address.')
        return email


class AddressForm(forms.Form):
    """Step 2: where to ship."""

    address = forms.CharField(error_messages={'required': 'Address is required.'})
    city = forms.CharField(
        max_length=100,
        error_messages={'required': 'City is required.'},
    )
    district = forms.CharField(
        max_length=100,
        error_messages={'required': 'District is required.'},
    )
    postal_code = forms.CharField(max_length=10, required=False)
    notes = forms.CharField(required=False)


class PaymentCreateForm(ContactForm, AddressForm):
    """Body of POST /api/payment/create."""

    coupon_code = forms.CharField(max_length=40, required=False)


def error_list(form):
    """Flat list of a form's messages, in field order."""
    return [str(message) for errors in form.errors.values() for message in errors]
