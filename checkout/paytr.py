"""
==============================================================================
CHECKOUT APP - PAYTR CLIENT
==============================================================================
iFrame API of the PayTR payment gateway.

    1. get_token(): ask PayTR for an iframe token for one payment session
    2. The shopper pays inside https://www.paytr.com/odeme/guvenli/<token>
    3. PayTR posts the result to our callback; verify_callback() checks its
       hash before anything is trusted

Both hashes are HMAC-SHA256 with the merchant key, base64 encoded.
Amounts are integers in kuruş.

Author: Storefront Development Team
==============================================================================
"""

import base64
import hashlib
import hmac
import json
import logging

import httpx
from django.conf import settings

from .exceptions import PaymentGatewayError

logger = logging.getLogger('storefront.paytr')


def _hmac_b64(message):
    digest = hmac.new(
        settings.PAYTR_MERCHANT_KEY.encode(),
        message.encode(),
        hashlib.sha256,
    ).digest()
    return base64.b64encode(digest).decode()


def encode_basket(lines):
    """
    Base64 JSON basket: [[name, unit price, quantity], ...].

    Prices are sent as TL strings with two decimals.
    """
    basket = [
        [line['product_name'], f"{float(line['price']):.2f}", int(line['quantity'])]
        for line in lines
    ]
    return base64.b64encode(json.dumps(basket).encode()).decode()


def build_token_hash(user_ip, merchant_oid, email, payment_amount, user_basket,
                     no_installment, max_installment, currency, test_mode):
    hash_str = (
        f"{settings.PAYTR_MERCHANT_ID}{user_ip}{merchant_oid}{email}{payment_amount}"
        f"{user_basket}{no_installment}{max_installment}{currency}{test_mode}"
        f"{settings.PAYTR_MERCHANT_SALT}"
    )
    return _hmac_b64(hash_str)


def build_callback_hash(merchant_oid, status, total_amount):
    return _hmac_b64(f"{merchant_oid}{settings.PAYTR_MERCHANT_SALT}{status}{total_amount}")


def verify_callback(data):
    """
    Check the hash PayTR sends with a callback.

    Args:
        data: callback POST data (merchant_oid, status, total_amount, hash)
    """
    expected = build_callback_hash(
        data.get('merchant_oid', ''),
        data.get('status', ''),
        data.get('total_amount', ''),
    )
    return hmac.compare_digest(expected, data.get('hash', ''))


def iframe_url(token):
    return f"{settings.PAYTR_IFRAME_URL}{token}"


def get_token(payment_session, user_ip):
    """
    Request an iframe token for `payment_session`.

    Returns:
        str: PayTR iframe token

    Raises:
        PaymentGatewayError: Connection problems or status != success
    """
    no_installment = '1'
    max_installment = '0'
    currency = settings.CURRENCY
    test_mode = '1' if settings.PAYTR_TEST_MODE else '0'
    payment_amount = str(payment_session.amount_in_kurus())
    user_basket = encode_basket(payment_session.cart)

    paytr_token = build_token_hash(
        user_ip, payment_session.merchant_oid, payment_session.customer_email,
        payment_amount, user_basket, no_installment, max_installment, currency,
        test_mode,
    )

    address = (
        f"{payment_session.address} {payment_session.district}/{payment_session.city}"
    )
    post_data = {
        'merchant_id': settings.PAYTR_MERCHANT_ID,
        'user_ip': user_ip,
        'merchant_oid': payment_session.merchant_oid,
        'email': payment_session.customer_email,
        'payment_amount': payment_amount,
        'paytr_token': paytr_token,
        'user_basket': user_basket,
        'debug_on': '1' if settings.DEBUG else '0',
        'no_installment': no_installment,
        'max_installment': max_installment,
        'user_name': payment_session.customer_name,
        'user_address': address,
        'user_phone': payment_session.customer_phone,
        'merchant_ok_url': f"{settings.SITE_URL}/payment/success?oid={payment_session.merchant_oid}",
        'merchant_fail_url': f"{settings.SITE_URL}/checkout?payment=failed",
        'timeout_limit': str(settings.PAYTR_TIMEOUT_LIMIT),
        'currency': currency,
        'test_mode': test_mode,
        'lang': 'tr',
    }

    try:
        response = httpx.post(
            settings.PAYTR_TOKEN_URL,
            data=post_data,
            timeout=settings.PAYTR_REQUEST_TIMEOUT,
        )
        response.raise_for_status()
        result = response.json()
    except (httpx.HTTPError, ValueError) as exc:
        logger.error('PayTR token request for %s failed: %s',
                     payment_session.merchant_oid, exc)
        raise PaymentGatewayError('Payment service could not be reached.') from exc

    if result.get('status') != 'success' or not result.get('token'):
        reason = result.get('reason') or 'Payment could not be started.'
        logger.warning('PayTR refused token for %s: %s', payment_session.merchant_oid, reason)
        raise PaymentGatewayError(reason)

    logger.info('PayTR token issued for %s (%s kuruş)',
                payment_session.merchant_oid, payment_amount)
    return result['token']
