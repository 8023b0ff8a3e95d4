"""
==============================================================================
CHECKOUT APP - VIEWS
==============================================================================
JSON endpoints of the checkout wizard and the PayTR payment flow.

Views:
    - checkout_state: wizard state, cart summary and totals (GET / DELETE)
    - checkout_contact / checkout_address / checkout_step: step transitions
    - checkout_coupon: apply (POST) or remove (DELETE) the coupon
    - checkout_dismiss_error / checkout_status
    - payment_create / payment_callback / payment_status_view

Author: Storefront Development Team
==============================================================================
"""

import logging

from django.http import HttpResponse, JsonResponse
from django.views.decorators.csrf import csrf_exempt

from storefront.api import ApiError, api_view, parse_json, form_errors
from core.models import Coupon
from core.serializers import cart_item_data
from core.services import (
    ensure_session_key, get_cart_items, cart_subtotal, validate_coupon
)
from . import paytr
from .exceptions import CheckoutError, InvalidCallback, PaymentGatewayError
from .forms import PaymentCreateForm
from .models import PaymentSession
from .pricing import calculate_totals
from .services import coupon_snapshot, initiate_payment, handle_callback, payment_status
from .wizard import CheckoutWizard

logger = logging.getLogger('storefront.checkout')


# =============================================================================
# HELPERS
# =============================================================================

def _prefill(wizard, user):
    """Pre-fill empty steps from the logged-in customer's account."""
    if not user.is_authenticated:
        return
    if not wizard.contact:
        wizard.contact = {
            'customer_name': user.full_name(),
            'customer_email': user.email,
            'customer_phone': user.phone,
        }
    if not wizard.address:
        default = user.addresses.filter(is_default=True).first()
        if default is not None:
            wizard.address = dict(default.as_checkout_data(), notes='')


def _applied_coupon(wizard):
    if not wizard.coupon:
        return None
    return Coupon.objects.filter(pk=wizard.coupon['id']).first()


def _state_response(request, wizard, status=200, **extra):
    """Save the wizard and answer its state with the cart totals."""
    wizard.save(request.session)

    items = list(get_cart_items(request.session.session_key))
    totals = calculate_totals(cart_subtotal(items), _applied_coupon(wizard))

    data = {
        'step': wizard.step,
        'orderComplete': wizard.order_complete,
        'orderNumber': wizard.order_number or None,
        'contact': wizard.contact,
        'address': wizard.address,
        'coupon': wizard.coupon,
        'merchantOid': wizard.merchant_oid or None,
        'paytrToken': wizard.paytr_token or None,
        'iframeUrl': paytr.iframe_url(wizard.paytr_token) if wizard.paytr_token else None,
        'errors': wizard.errors,
        'bannerError': wizard.banner_error or None,
        'items': [cart_item_data(i) for i in items],
        'totals': totals,
    }
    data.update(extra)
    return JsonResponse(data, status=status)


def _load(request):
    ensure_session_key(request)
    return CheckoutWizard.load(request.session)


# =============================================================================
# CHECKOUT WIZARD
# =============================================================================

@api_view(['GET', 'DELETE'])
def checkout_state(request):
    """GET: current wizard state. DELETE: start over."""
    if request.method == 'DELETE':
        ensure_session_key(request)
        CheckoutWizard.clear(request.session)
    wizard = _load(request)
    _prefill(wizard, request.user)
    return _state_response(request, wizard)


@api_view(['POST'])
def checkout_contact(request):
    wizard = _load(request)
    advanced = wizard.submit_contact(parse_json(request))
    return _state_response(request, wizard, status=200 if advanced else 400,
                           advanced=advanced)


@api_view(['POST'])
def checkout_address(request):
    """
    Validate the address and open the payment session.

    The wizard reaches the payment step only if PayTR issued a token.
    """
    wizard = _load(request)

    def initiate(payload):
        payment_session = initiate_payment(request, payload)
        return {'token': payment_session.token, 'merchant_oid': payment_session.merchant_oid}

    advanced = wizard.submit_address(parse_json(request), initiate)
    return _state_response(request, wizard, status=200 if advanced else 400,
                           advanced=advanced)


@api_view(['POST'])
def checkout_step(request):
    """Go back to a step the shopper already reached."""
    wizard = _load(request)
    try:
        step = int(parse_json(request).get('step'))
    except (TypeError, ValueError):
        raise ApiError('step must be 1, 2 or 3')

    if not wizard.go_to_step(step):
        raise ApiError('That step is not available yet.')
    return _state_response(request, wizard)


@api_view(['POST', 'DELETE'])
def checkout_coupon(request):
    wizard = _load(request)

    if request.method == 'DELETE':
        removed, error = wizard.remove_coupon()
        if not removed:
            raise ApiError(error)
        return _state_response(request, wizard)

    subtotal = cart_subtotal(get_cart_items(request.session.session_key))

    def validate(code):
        coupon, error = validate_coupon(code, subtotal)
        return (coupon_snapshot(coupon) if coupon else None), error

    applied, error = wizard.apply_coupon(parse_json(request).get('code'), validate)
    if not applied:
        wizard.save(request.session)
        raise ApiError(error)
    return _state_response(request, wizard)


@api_view(['POST'])
def checkout_dismiss_error(request):
    wizard = _load(request)
    wizard.dismiss_error()
    return _state_response(request, wizard)


@api_view(['GET'])
def checkout_status(request):
    """
    Reconcile the wizard with its payment session.

    On the first `completed` status the wizard is marked complete; later
    calls change nothing. The paid lines already left the cart with the
    payment callback.
    """
    wizard = _load(request)

    if wizard.merchant_oid and not wizard.order_complete:
        try:
            result = payment_status(wizard.merchant_oid)
        except PaymentSession.DoesNotExist:
            result = {'status': 'failed'}

        if wizard.apply_payment_status(result['status']):
            wizard.order_number = result.get('orderNumber', '')
            logger.info('Checkout %s complete (order %s)',
                        wizard.merchant_oid, wizard.order_number)

    return _state_response(request, wizard)


# =============================================================================
# PAYMENT
# =============================================================================

@api_view(['POST'])
def payment_create(request):
    """
    Open a PayTR payment for the session cart.

    Body: contact + address fields and an optional couponCode.
    """
    ensure_session_key(request)
    form = PaymentCreateForm(parse_json(request))
    if not form.is_valid():
        raise ApiError('Validation failed', errors=form_errors(form))

    try:
        payment_session = initiate_payment(request, form.cleaned_data)
    except PaymentGatewayError as exc:
        raise ApiError(str(exc), status=502)
    except CheckoutError as exc:
        raise ApiError(str(exc))

    return JsonResponse({
        'token': payment_session.token,
        'merchantOid': payment_session.merchant_oid,
        'iframeUrl': paytr.iframe_url(payment_session.token),
        'total': payment_session.total,
    }, status=201)


@csrf_exempt
@api_view(['POST'])
def payment_callback(request):
    """
    Server-to-server notification from PayTR.

    PayTR retries until it reads a plain "OK".
    """
    try:
        handle_callback(request.POST)
    except InvalidCallback:
        return HttpResponse('PAYTR notification failed: bad hash', status=400,
                            content_type='text/plain')
    return HttpResponse('OK', content_type='text/plain')


@api_view(['GET'])
def payment_status_view(request, merchant_oid):
    try:
        data = payment_status(merchant_oid)
    except PaymentSession.DoesNotExist:
        raise ApiError('Payment not found', status=404)
    return JsonResponse(data)
