"""
==============================================================================
ACCOUNTS APP - FORMS
==============================================================================
Forms validating the JSON payloads of the account endpoints.

Forms:
    - RegistrationForm: New customer registration
    - LoginForm: Email/password login
    - ProfileForm: Edit name and phone
    - AddressForm: Create/edit a saved address
    - PasswordResetConfirmForm: Set a new password from a reset link

Author: Storefront Development Team
==============================================================================
"""

from django import forms
from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError

from .models import CustomUser, Address


class RegistrationForm(forms.Form):
    """
    Customer self-registration.

    Admin accounts are never created here; use the Django admin or
    `createsuperuser`.
    """

    email = forms.EmailField()
    password = forms.CharField(min_length=8)
    first_name = forms.CharField(max_length=150, required=False)
    last_name = forms.CharField(max_length=150, required=False)
    phone = forms.CharField(max_length=20, required=False)

    def clean_email(self):
        """Validate that email is unique (case-insensitive)."""
        email = self.cleaned_data['email'].strip().lower()
        if CustomUser.objects.filter(email__iexact=email).exists():
            raise ValidationError('This email address is already registered.')
        return email

    def clean(self):
        cleaned_data = super().clean()
        password = cleaned_data.get('password')
        if password:
            user = CustomUser(
                email=cleaned_data.get('email', ''),
                first_name=cleaned_data.get('first_name', ''),
                last_name=cleaned_data.get('last_name', ''),
            )
            try:
                validate_password(password, user)
            except ValidationError as exc:
                self.add_error('password', exc)
        return cleaned_data

    def save(self):
        """Create the customer account."""
        data = self.cleaned_data
        return CustomUser.objects.create_user(
            username=data['email'],
            email=data['email'],
            password=data['password'],
            first_name=data.get('first_name', ''),
            last_name=data.get('last_name', ''),
            phone=data.get('phone', ''),
            role='customer',
        )


class LoginForm(forms.Form):
    email = forms.EmailField()
    password = forms.CharField()

    def clean_email(self):
        return self.cleaned_data['email'].strip().lower()


class ProfileForm(forms.ModelForm):
    """Name and phone; email changes are not self-service."""

    class Meta:
        model = CustomUser
        fields = ['first_name', 'last_name', 'phone']


class AddressForm(forms.ModelForm):

    class Meta:
        model = Address
        fields = [
            'title', 'full_name', 'phone', 'address',
            'city', 'district', 'postal_code', 'is_default',
        ]


class PasswordResetConfirmForm(forms.Form):
    uid = forms.CharField()
    token = forms.CharField()
    password = forms.CharField(min_length=8)
