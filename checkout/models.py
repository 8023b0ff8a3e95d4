"""
==============================================================================
CHECKOUT APP - MODELS
==============================================================================
Payment sessions opened with the PayTR iframe.

A PaymentSession freezes everything needed to create the order (contact,
address, cart lines and amounts) at the moment the token is requested.
The order itself is only created when PayTR reports a successful payment
on the callback.

Author: Storefront Development Team
==============================================================================
"""

import secrets
import time
from decimal import Decimal

from django.conf import settings
from django.db import models

from core.models import Coupon, Order


def generate_merchant_oid():
    """
    Alphanumeric merchant order id, e.g. SP1767225600123A4F9C2.

    PayTR only accepts letters and digits.
    """
    return f"SP{int(time.time() * 1000)}{secrets.token_hex(3).upper()}"


class PaymentSession(models.Model):
    """
    One payment attempt for a checkout.

    Status Flow:
        PENDING -> COMPLETED (order created)
        PENDING -> FAILED (customer may start a new session)
    """

    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('completed', 'Completed'),
        ('failed', 'Failed'),
    ]

    TERMINAL_STATUSES = ('completed', 'failed')

    merchant_oid = models.CharField(
        max_length=64,
        unique=True,
        default=generate_merchant_oid,
        editable=False,
    )

    token = models.CharField(max_length=255, blank=True)

    session_key = models.CharField(
        max_length=40,
        db_index=True,
        help_text="Browser session whose cart is cleared on success"
    )

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='payment_sessions',
    )

    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default='pending')

    # Snapshot of the checkout form
    customer_name = models.CharField(max_length=200)
    customer_email = models.EmailField()
    customer_phone = models.CharField(max_length=20)
    address = models.TextField()
    city = models.CharField(max_length=100)
    district = models.CharField(max_length=100)
    postal_code = models.CharField(max_length=10, blank=True)
    notes = models.TextField(blank=True)

    cart = models.JSONField(
        default=list,
        help_text="Cart lines at token time: [{product_id, variant_id, product_name, "
                  "variant_details, price, quantity}]"
    )

    subtotal = models.DecimalField(max_digits=12, decimal_places=2)
    discount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    shipping = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    total = models.DecimalField(max_digits=12, decimal_places=2)

    coupon = models.ForeignKey(
        Coupon,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='payment_sessions',
    )

    order = models.OneToOneField(
        Order,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='payment_session',
    )

    failure_reason = models.CharField(max_length=255, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = 'Payment Session'
        verbose_name_plural = 'Payment Sessions'
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.merchant_oid} ({self.status}) - {self.total} TL"

    def is_terminal(self):
        return self.status in self.TERMINAL_STATUSES

    def amount_in_kurus(self):
        """PayTR amounts are integers in kuruş (1/100 TL)."""
        return int((self.total * 100).to_integral_value())

    def contact_data(self):
        return {
            'customer_name': self.customer_name,
            'customer_email': self.customer_email,
            'customer_phone': self.customer_phone,
        }

    def address_data(self):
        return {
            'address': self.address,
            'city': self.city,
            'district': self.district,
            'postal_code': self.postal_code,
        }

    def totals(self):
        return {
            'subtotal': self.subtotal,
            'discount': self.discount,
            'shipping': self.shipping,
            'total': self.total,
        }
