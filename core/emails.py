"""
==============================================================================
CORE APP - TRANSACTIONAL EMAIL
==============================================================================
Plain-text emails sent through Django's mail framework.

    - Order confirmation (customer)
    - New order notification (shop)
    - Shipping notification (customer)
    - Welcome (new account)
    - Password reset link

A failed delivery is logged and reported as False; it never breaks the
request that triggered it.

Author: Storefront Development Team
==============================================================================
"""

import logging
from smtplib import SMTPException

from django.conf import settings
from django.core.mail import send_mail

from .models import SiteSetting

logger = logging.getLogger('storefront.email')


def _shop_name():
    return SiteSetting.as_dict().get('shop_name', 'Storefront')


def _send(subject, body, recipients):
    try:
        send_mail(subject, body, settings.DEFAULT_FROM_EMAIL, recipients)
    except (SMTPException, OSError) as exc:
        logger.error('Email "%s" to %s failed: %s', subject, recipients, exc)
        return False
    logger.info('Email "%s" sent to %s', subject, recipients)
    return True


def _order_lines(order):
    lines = []
    for item in order.items.all():
        details = f" ({item.variant_details})" if item.variant_details else ''
        lines.append(f"  {item.quantity} x {item.product_name}{details}  {item.subtotal} TL")
    return '\n'.join(lines)


def _order_summary(order):
    summary = [
        _order_lines(order),
        '',
        f"Subtotal:  {order.subtotal} TL",
    ]
    if order.discount_amount:
        summary.append(f"Discount:  -{order.discount_amount} TL ({order.coupon_code})")
    shipping = 'Free' if not order.shipping_cost else f"{order.shipping_cost} TL"
    summary.append(f"Shipping:  {shipping}")
    summary.append(f"Total:     {order.total} TL")
    return '\n'.join(summary)


def send_order_confirmation(order):
    body = (
        f"Hello {order.customer_name},\n\n"
        f"Thank you for your order. Your order number is {order.order_number}.\n\n"
        f"{_order_summary(order)}\n\n"
        f"Shipping to:\n  {order.address}\n  {order.district} / {order.city} "
        f"{order.postal_code}\n\n"
        f"You can follow your order at {settings.SITE_URL}/orders/{order.order_number}\n"
    )
    return _send(f"{_shop_name()} - Order {order.order_number} received", body,
                 [order.customer_email])


def send_admin_order_notification(order):
    body = (
        f"New order {order.order_number}\n\n"
        f"Customer: {order.customer_name} <{order.customer_email}> {order.customer_phone}\n"
        f"Payment:  {order.payment_method} ({order.payment_status})\n\n"
        f"{_order_summary(order)}\n"
    )
    recipient = SiteSetting.as_dict().get(
        'admin_notification_email', settings.ADMIN_NOTIFICATION_EMAIL
    )
    return _send(f"New order {order.order_number} - {order.total} TL", body, [recipient])


def send_shipping_notification(order):
    tracking = order.tracking_number
    if order.shipping_carrier:
        tracking = f"{order.shipping_carrier} {tracking}"
    body = (
        f"Hello {order.customer_name},\n\n"
        f"Your order {order.order_number} has been shipped.\n"
        f"Tracking number: {tracking}\n"
    )
    if order.tracking_url:
        body += f"Track your package: {order.tracking_url}\n"
    return _send(f"{_shop_name()} - Order {order.order_number} shipped", body,
                 [order.customer_email])


def send_welcome(user):
    body = (
        f"Hello {user.first_name or user.email},\n\n"
        f"Welcome to {_shop_name()}! Your account is ready.\n"
    )
    return _send(f"Welcome to {_shop_name()}", body, [user.email])


def send_password_reset(user, reset_url):
    body = (
        f"Hello {user.first_name or user.email},\n\n"
        f"Use the link below to choose a new password. It expires in one hour.\n\n"
        f"{reset_url}\n\n"
        f"If you did not ask for this, you can ignore this email.\n"
    )
    return _send(f"{_shop_name()} - Password reset", body, [user.email])
