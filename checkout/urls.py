"""
==============================================================================
CHECKOUT APP - URL CONFIGURATION
==============================================================================
Mounted under /api/ by the root URL configuration.

URL Patterns:
    - checkout/...      : Wizard state and step transitions
    - payment/create    : Open a PayTR payment session
    - payment/callback  : PayTR server notification
    - payment/status/<merchant_oid> : Poll a payment

Author: Storefront Development Team
==============================================================================
"""

from django.urls import path
from . import views

app_name = 'checkout'

urlpatterns = [
    # Wizard
    path('checkout', views.checkout_state, name='state'),
    path('checkout/contact', views.checkout_contact, name='contact'),
    path('checkout/address', views.checkout_address, name='address'),
    path('checkout/step', views.checkout_step, name='step'),
    path('checkout/coupon', views.checkout_coupon, name='coupon'),
    path('checkout/dismiss-error', views.checkout_dismiss_error, name='dismiss_error'),
    path('checkout/status', views.checkout_status, name='status'),

    # PayTR
    path('payment/create', views.payment_create, name='payment_create'),
    path('payment/callback', views.payment_callback, name='payment_callback'),
    path('payment/status/<str:merchant_oid>', views.payment_status_view,
         name='payment_status'),
]
