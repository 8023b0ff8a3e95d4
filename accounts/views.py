"""
==============================================================================
ACCOUNTS APP - VIEWS
==============================================================================
JSON endpoints for customer accounts and back-office users.

Views:
    - register / user_login / user_logout / me / profile
    - forgot_password / verify_reset_token / reset_password
    - addresses / address_detail: saved shipping addresses
    - my_orders / my_order_detail: the customer's order history
    - admin_login / admin_me / admin_users / admin_user_detail

Authentication is session based; email is the login identifier.

Author: Storefront Development Team
==============================================================================
"""

import logging

from django.conf import settings
from django.contrib.auth import login, logout, authenticate
from django.contrib.auth.password_validation import validate_password
from django.contrib.auth.tokens import default_token_generator
from django.db.models import Count, Sum
from django.http import JsonResponse
from django.shortcuts import get_object_or_404
from django.utils.encoding import force_bytes, force_str
from django.utils.http import urlsafe_base64_encode, urlsafe_base64_decode
from django.views.decorators.csrf import ensure_csrf_cookie

from storefront.api import (
    ApiError, api_view, customer_required, admin_required, parse_json, form_errors
)
from core import emails
from core.forms import merge_instance_data
from core.models import Order
from core.serializers import order_data
from .forms import (
    RegistrationForm, LoginForm, ProfileForm, AddressForm, PasswordResetConfirmForm
)
from .models import CustomUser, Address

logger = logging.getLogger('storefront.accounts')


# =============================================================================
# SERIALIZATION HELPERS
# =============================================================================

def user_data(user):
    return {
        'id': user.pk,
        'email': user.email,
        'firstName': user.first_name,
        'lastName': user.last_name,
        'phone': user.phone,
        'role': user.role,
        'isAdmin': user.is_admin_user(),
        'createdAt': user.created_at,
    }


def address_data(address):
    return {
        'id': address.pk,
        'title': address.title,
        'fullName': address.full_name,
        'phone': address.phone,
        'address': address.address,
        'city': address.city,
        'district': address.district,
        'postalCode': address.postal_code,
        'isDefault': address.is_default,
    }


def _validated(form):
    if not form.is_valid():
        raise ApiError('Validation failed', errors=form_errors(form))
    return form


def _user_from_uid(uid):
    try:
        pk = force_str(urlsafe_base64_decode(uid))
        return CustomUser.objects.get(pk=pk)
    except (TypeError, ValueError, OverflowError, CustomUser.DoesNotExist):
        return None


# =============================================================================
# AUTHENTICATION
# =============================================================================

@ensure_csrf_cookie
@api_view(['GET'])
def csrf(request):
    """Sets the csrftoken cookie for the storefront client."""
    return JsonResponse({'success': True})


@api_view(['POST'])
def register(request):
    """
    Register a new customer and log them in.

    A welcome email is sent; delivery failures do not fail registration.
    """
    form = _validated(RegistrationForm(parse_json(request)))
    user = form.save()
    login(request, user, backend='django.contrib.auth.backends.ModelBackend')
    emails.send_welcome(user)
    logger.info('New customer registered: %s', user.email)
    return JsonResponse({'user': user_data(user)}, status=201)


@api_view(['POST'])
def user_login(request):
    form = _validated(LoginForm(parse_json(request)))

    user = authenticate(
        request,
        username=form.cleaned_data['email'],
        password=form.cleaned_data['password'],
    )
    if user is None:
        logger.info('Failed login for %s', form.cleaned_data['email'])
        raise ApiError('Invalid email or password.', status=401)

    login(request, user)
    return JsonResponse({'user': user_data(user)})


@api_view(['POST'])
def user_logout(request):
    logout(request)
    return JsonResponse({'success': True})


@api_view(['GET'])
@customer_required
def me(request):
    return JsonResponse({'user': user_data(request.user)})


@api_view(['PATCH', 'PUT'])
@customer_required
def profile(request):
    """Update name and phone."""
    user = request.user
    data = merge_instance_data(user, ProfileForm, parse_json(request))
    form = _validated(ProfileForm(data, instance=user))
    user = form.save()
    return JsonResponse({'user': user_data(user)})


# =============================================================================
# PASSWORD RESET
# =============================================================================

@api_view(['POST'])
def forgot_password(request):
    """
    Email a password reset link.

    The answer is the same whether or not the account exists.
    """
    email = (parse_json(request).get('email') or '').strip().lower()
    user = CustomUser.objects.filter(email__iexact=email, is_active=True).first() if email else None

    if user is not None:
        uid = urlsafe_base64_encode(force_bytes(user.pk))
        token = default_token_generator.make_token(user)
        reset_url = f"{settings.SITE_URL}/reset-password/{uid}/{token}"
        emails.send_password_reset(user, reset_url)
        logger.info('Password reset requested for %s', user.email)

    return JsonResponse({
        'success': True,
        'message': 'If an account exists for this email, a reset link has been sent.',
    })


@api_view(['GET'])
def verify_reset_token(request, uid, token):
    user = _user_from_uid(uid)
    valid = user is not None and default_token_generator.check_token(user, token)
    return JsonResponse({'valid': valid})


@api_view(['POST'])
def reset_password(request):
    form = _validated(PasswordResetConfirmForm(parse_json(request)))

    user = _user_from_uid(form.cleaned_data['uid'])
    if user is None or not default_token_generator.check_token(user, form.cleaned_data['token']):
        raise ApiError('This reset link is invalid or has expired.')

    password = form.cleaned_data['password']
    validate_password(password, user)

    user.set_password(password)
    user.save(update_fields=['password'])
    logger.info('Password reset completed for %s', user.email)
    return JsonResponse({'success': True})


# =============================================================================
# ADDRESS BOOK
# =============================================================================

@api_view(['GET', 'POST'])
@customer_required
def addresses(request):
    if request.method == 'POST':
        form = _validated(AddressForm(parse_json(request)))
        address = form.save(commit=False)
        address.user = request.user
        if not request.user.addresses.exists():
            address.is_default = True
        address.save()
        return JsonResponse(address_data(address), status=201)

    return JsonResponse([address_data(a) for a in request.user.addresses.all()], safe=False)


@api_view(['PATCH', 'PUT', 'DELETE'])
@customer_required
def address_detail(request, address_id):
    address = get_object_or_404(Address, pk=address_id, user=request.user)

    if request.method == 'DELETE':
        address.delete()
        return JsonResponse({'success': True})

    data = merge_instance_data(address, AddressForm, parse_json(request))
    form = _validated(AddressForm(data, instance=address))
    address = form.save()
    return JsonResponse(address_data(address))


# =============================================================================
# ORDER HISTORY
# =============================================================================

@api_view(['GET'])
@customer_required
def my_orders(request):
    orders = Order.objects.filter(user=request.user)
    return JsonResponse([order_data(o) for o in orders], safe=False)


@api_view(['GET'])
@customer_required
def my_order_detail(request, order_id):
    order = get_object_or_404(Order, pk=order_id, user=request.user)
    return JsonResponse(order_data(order, with_items=True))


# =============================================================================
# BACK-OFFICE USERS
# =============================================================================

@api_view(['POST'])
def admin_login(request):
    """Log in to the back-office; customer accounts are refused."""
    form = _validated(LoginForm(parse_json(request)))

    user = authenticate(
        request,
        username=form.cleaned_data['email'],
        password=form.cleaned_data['password'],
    )
    if user is None:
        raise ApiError('Invalid email or password.', status=401)
    if not user.is_admin_user():
        logger.warning('Back-office login refused for customer %s', user.email)
        raise ApiError('Admin access required', status=403)

    login(request, user)
    logger.info('Admin %s logged in', user.email)
    return JsonResponse({'user': user_data(user)})


@api_view(['GET'])
@admin_required
def admin_me(request):
    return JsonResponse({'user': user_data(request.user)})


@api_view(['GET'])
@admin_required
def admin_users(request):
    """All users with their order count and total spent."""
    users = CustomUser.objects.annotate(
        order_count=Count('orders'),
        total_spent=Sum('orders__total'),
    )

    role = request.GET.get('role')
    if role:
        users = users.filter(role=role)

    data = []
    for user in users:
        row = user_data(user)
        row['orderCount'] = user.order_count
        row['totalSpent'] = user.total_spent or 0
        data.append(row)
    return JsonResponse(data, safe=False)


@api_view(['GET', 'DELETE'])
@admin_required
def admin_user_detail(request, user_id):
    user = get_object_or_404(CustomUser, pk=user_id)

    if request.method == 'DELETE':
        if user.pk == request.user.pk:
            raise ApiError('You cannot delete your own account.')
        email = user.email
        user.delete()
        logger.info('User %s deleted by %s', email, request.user.email)
        return JsonResponse({'success': True})

    data = user_data(user)
    data['addresses'] = [address_data(a) for a in user.addresses.all()]
    data['orders'] = [order_data(o) for o in user.orders.all()]
    return JsonResponse(data)
