"""
==============================================================================
CHECKOUT APP - SERVICES
==============================================================================
Payment session lifecycle.

    initiate_payment()  cart + form -> PaymentSession + PayTR token
    handle_callback()   PayTR result -> order (success) or failed session
    payment_status()    status projection used by the poller endpoints

Amounts are always recomputed from the cart on the server; the client
only sends contact/address data and a coupon code.

Author: Storefront Development Team
==============================================================================
"""

import logging

from django.db import transaction

from core import emails
from core.services import (
    get_cart_items, cart_subtotal, snapshot_cart, validate_coupon, remove_paid_lines, place_order
)
from . import paytr
from .exceptions import CheckoutError, InvalidCallback, PaymentGatewayError
from .models import PaymentSession
from .pricing import calculate_totals

logger = logging.getLogger('storefront.checkout')


def client_ip(request):
    """Shopper IP as PayTR wants it (first X-Forwarded-For hop if proxied)."""
    forwarded = request.META.get('HTTP_X_FORWARDED_FOR')
    if forwarded:
        return forwarded.split(',')[0].strip()
    return request.META.get('REMOTE_ADDR', '')


def coupon_snapshot(coupon):
    """Session-safe coupon data for the wizard's coupon slot."""
    return {
        'id': coupon.pk,
        'code': coupon.code,
        'discount_type': coupon.discount_type,
        'discount_value': str(coupon.discount_value),
        'is_influencer_code': coupon.is_influencer_code,
        'influencer_instagram': coupon.influencer_instagram,
    }


def initiate_payment(request, data):
    """
    Open a payment session for the current cart.

    Args:
        request: The shopper's request (session, user, IP)
        data: cleaned contact + address fields and optional coupon_code

    Returns:
        PaymentSession: with its PayTR token

    Raises:
        CheckoutError: Empty cart or invalid coupon
        PaymentGatewayError: PayTR refused or is unreachable
    """
    session_key = request.session.session_key
    items = list(get_cart_items(session_key))
    if not items:
        raise CheckoutError('Your cart is empty.')

    subtotal = cart_subtotal(items)

    coupon = None
    if data.get('coupon_code'):
        coupon, error = validate_coupon(data['coupon_code'], subtotal)
        if coupon is None:
            raise CheckoutError(error)

    totals = calculate_totals(subtotal, coupon)
    user = request.user if request.user.is_authenticated else None

    payment_session = PaymentSession.objects.create(
        session_key=session_key,
        user=user,
        customer_name=data['customer_name'],
        customer_email=data['customer_email'],
        customer_phone=data['customer_phone'],
        address=data['address'],
        city=data['city'],
        district=data['district'],
        postal_code=data.get('postal_code') or '',
        notes=data.get('notes') or '',
        cart=snapshot_cart(items),
        subtotal=totals['subtotal'],
        discount=totals['discount'],
        shipping=totals['shipping'],
        total=totals['total'],
        coupon=coupon,
    )

    try:
        token = paytr.get_token(payment_session, client_ip(request))
    except PaymentGatewayError as exc:
        payment_session.status = 'failed'
        payment_session.failure_reason = str(exc)[:255]
        payment_session.save(update_fields=['status', 'failure_reason', 'updated_at'])
        raise

    payment_session.token = token
    payment_session.save(update_fields=['token', 'updated_at'])
    logger.info('Payment session %s opened: %s TL (coupon=%s)',
                payment_session.merchant_oid, payment_session.total,
                coupon.code if coupon else '-')
    return payment_session


def handle_callback(data):
    """
    Apply a PayTR callback.

    Repeated callbacks for a session that already finished change nothing.

    Returns:
        PaymentSession or None when the merchant_oid is unknown

    Raises:
        InvalidCallback: Hash mismatch
    """
    if not paytr.verify_callback(data):
        logger.warning('PayTR callback with bad hash for %s', data.get('merchant_oid'))
        raise InvalidCallback('Invalid callback hash.')

    merchant_oid = data.get('merchant_oid', '')
    status = data.get('status')

    with transaction.atomic():
        payment_session = (
            PaymentSession.objects
            .select_for_update()
            .filter(merchant_oid=merchant_oid)
            .first()
        )
        if payment_session is None:
            logger.warning('PayTR callback for unknown session %s', merchant_oid)
            return None

        if payment_session.is_terminal():
            logger.info('Duplicate PayTR callback for %s (%s)',
                        merchant_oid, payment_session.status)
            return payment_session

        if status == 'success':
            if data.get('total_amount') != str(payment_session.amount_in_kurus()):
                # Installment fees can raise the charged amount
                logger.warning('PayTR charged %s kuruş for %s (expected %s)',
                               data.get('total_amount'), merchant_oid,
                               payment_session.amount_in_kurus())

            order = place_order(
                contact=payment_session.contact_data(),
                address=payment_session.address_data(),
                lines=payment_session.cart,
                totals=payment_session.totals(),
                coupon=payment_session.coupon,
                user=payment_session.user,
                merchant_oid=merchant_oid,
                payment_method='credit_card',
                payment_status='paid',
                notes=payment_session.notes,
            )
            payment_session.status = 'completed'
            payment_session.order = order
            payment_session.save(update_fields=['status', 'order', 'updated_at'])
        else:
            reason = data.get('failed_reason_msg') or data.get('failed_reason_code') or 'failed'
            payment_session.status = 'failed'
            payment_session.failure_reason = reason[:255]
            payment_session.save(update_fields=['status', 'failure_reason', 'updated_at'])
            logger.info('Payment %s failed: %s', merchant_oid, reason)
            return payment_session

    remove_paid_lines(payment_session.session_key, payment_session.cart)
    emails.send_order_confirmation(order)
    emails.send_admin_order_notification(order)
    logger.info('Payment %s completed -> order %s', merchant_oid, order.order_number)
    return payment_session


def payment_status(merchant_oid):
    """
    Returns:
        dict: {'status': ..., 'orderNumber': ...}

    Raises:
        PaymentSession.DoesNotExist
    """
    payment_session = PaymentSession.objects.select_related('order').get(
        merchant_oid=merchant_oid
    )
    data = {'status': payment_session.status}
    if payment_session.order is not None:
        data['orderNumber'] = payment_session.order.order_number
    return data
