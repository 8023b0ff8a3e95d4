"""
==============================================================================
ACCOUNTS APP - MODELS
==============================================================================
This module defines the custom User model and saved addresses.

Key Models:
    - CustomUser: Django user with a role (Customer or Admin), email login
    - Address: Saved shipping addresses used to pre-fill checkout

Why Custom User Model?
    Shoppers log in with their email address and the back-office needs a
    role to separate admin accounts from customer accounts. Both are easier
    with a custom model than with profile lookups on every request.

Author: Storefront Development Team
==============================================================================
"""

from django.db import models
from django.contrib.auth.models import AbstractUser


class CustomUser(AbstractUser):
    """
    Custom User model extending Django's AbstractUser.

    Roles:
    - Customer: Shoppers who place orders and manage their addresses
    - Admin: Back-office users who manage catalog, orders and coupons

    Attributes:
        email (str): Unique login identifier
        phone (str): Contact phone number
        role (str): customer or admin
    """

    ROLE_CHOICES = [
        ('customer', 'Customer'),
        ('admin', 'Administrator'),
    ]

    email = models.EmailField(
        unique=True,
        help_text="Login email address"
    )

    phone = models.CharField(
        max_length=20,
        blank=True,
        help_text="Contact phone number (e.g., +90 555 123 45 67)"
    )

    role = models.CharField(
        max_length=20,
        choices=ROLE_CHOICES,
        default='customer',
        help_text="Admins can access the back-office API"
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = ['username']

    class Meta:
        verbose_name = 'User'
        verbose_name_plural = 'Users'
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.email} ({self.get_role_display()})"

    def is_customer(self):
        """Check if user is a shopper."""
        return self.role == 'customer'

    def is_admin_user(self):
        """Check if user may use the back-office (admin role or superuser)."""
        return self.role == 'admin' or self.is_superuser

    def full_name(self):
        return f"{self.first_name} {self.last_name}".strip()


class Address(models.Model):
    """
    Saved shipping address of a customer.

    A logged-in customer's default address pre-fills the checkout address
    step. Only one address per user can be the default.
    """

    user = models.ForeignKey(
        CustomUser,
        on_delete=models.CASCADE,
        related_name='addresses',
    )

    title = models.CharField(
        max_length=50,
        help_text="Label shown in the address book (e.g., Home, Office)"
    )

    full_name = models.CharField(max_length=200)
    phone = models.CharField(max_length=20)
    address = models.TextField(help_text="Street, building and flat")
    city = models.CharField(max_length=100)
    district = models.CharField(max_length=100)
    postal_code = models.CharField(max_length=10, blank=True)

    is_default = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = 'Address'
        verbose_name_plural = 'Addresses'
        ordering = ['-is_default', '-created_at']

    def __str__(self):
        return f"{self.title} - {self.district}/{self.city}"

    def save(self, *args, **kwargs):
        """Keep a single default address per user."""
        super().save(*args, **kwargs)
        if self.is_default:
            Address.objects.filter(user=self.user, is_default=True).exclude(
                pk=self.pk
            ).update(is_default=False)

    def as_checkout_data(self):
        """Shape used to pre-fill the checkout address step."""
        return {
            'address': self.address,
            'city': self.city,
            'district': self.district,
            'postal_code': self.postal_code,
        }
