"""
==============================================================================
CORE APP - SERVICES
==============================================================================
Business operations shared by the views, the checkout app and the admin.

    - Cart: session cart lines, merging and subtotal
    - Coupons: lookup/validation and influencer usage reporting
    - Orders: placing an order from a checkout snapshot, status changes,
      cancellation (stock restore) and tracking assignment
    - Inventory: stock adjustments with an audit trail

Author: Storefront Development Team
==============================================================================
"""

import logging
from decimal import Decimal

from django.db import transaction
from django.db.models import F, Sum, Count
from django.utils import timezone

from .models import (
    CartItem, Coupon, Order, OrderItem, Product, ProductVariant, StockAdjustment, quantize
)
from . import cache as catalog_cache

logger = logging.getLogger('storefront.core')


class InvalidStatusTransition(Exception):
    """Raised when an order cannot move to the requested status."""

    def __init__(self, order, status):
        self.order = order
        self.status = status
        super().__init__(
            f'Order {order.order_number} cannot move from '
            f'{order.status} to {status}.'
        )


# =============================================================================
# CART
# =============================================================================

def ensure_session_key(request):
    """Return the session key, creating a session for first-time visitors."""
    if not request.session.session_key:
        request.session.save()
    return request.session.session_key


def get_cart_items(session_key):
    if not session_key:
        return CartItem.objects.none()
    return (
        CartItem.objects
        .filter(session_key=session_key)
        .select_related('product', 'variant')
    )


def cart_subtotal(items):
    return quantize(sum((item.line_total for item in items), Decimal('0.00')))


def add_to_cart(session_key, product, variant=None, quantity=1):
    """
    Add a product (variant) to the cart.

    The same product/variant added twice is merged into one line.
    """
    item = CartItem.objects.filter(
        session_key=session_key, product=product, variant=variant
    ).first()

    if item:
        item.quantity += quantity
        item.save(update_fields=['quantity'])
    else:
        item = CartItem.objects.create(
            session_key=session_key,
            product=product,
            variant=variant,
            quantity=quantity,
        )
    return item


def clear_cart(session_key):
    deleted, _ = CartItem.objects.filter(session_key=session_key).delete()
    return deleted


def remove_paid_lines(session_key, lines):
    """
    Take the paid quantities of a cart snapshot out of the session cart.

    Lines added after the snapshot was taken stay in the cart.
    """
    for line in lines:
        item = CartItem.objects.filter(
            session_key=session_key,
            product_id=line['product_id'],
            variant_id=line.get('variant_id'),
        ).first()
        if item is None:
            continue
        if item.quantity <= line['quantity']:
            item.delete()
        else:
            item.quantity -= line['quantity']
            item.save(update_fields=['quantity'])


def snapshot_cart(items):
    """Freeze cart lines into plain data for a payment session."""
    lines = []
    for item in items:
        lines.append({
            'product_id': item.product_id,
            'variant_id': item.variant_id,
            'product_name': item.product.name,
            'variant_details': item.variant.details() if item.variant_id else '',
            'price': str(item.unit_price),
            'quantity': item.quantity,
        })
    return lines


# =============================================================================
# COUPONS
# =============================================================================

def find_coupon(code):
    code = (code or '').strip()
    if not code:
        return None
    return Coupon.objects.filter(code__iexact=code).first()


def validate_coupon(code, order_total):
    """
    Validate a coupon code against an order total.

    Returns:
        tuple: (coupon or None, error message or None)
    """
    coupon = find_coupon(code)
    if coupon is None:
        return None, 'Invalid coupon code.'

    is_valid, message = coupon.check_valid_for(order_total)
    if not is_valid:
        return None, message

    return coupon, None


def coupon_usage(coupon):
    """
    Orders, revenue and commission attributed to a coupon.

    Cancelled and unpaid orders do not count.
    """
    orders = Order.objects.filter(coupon=coupon, payment_status='paid').exclude(
        status='cancelled'
    )
    totals = orders.aggregate(count=Count('id'), revenue=Sum('total'),
                              discount=Sum('discount_amount'))
    revenue = totals['revenue'] or Decimal('0.00')
    return {
        'couponId': coupon.pk,
        'code': coupon.code,
        'influencerInstagram': coupon.influencer_instagram or None,
        'orderCount': totals['count'],
        'revenue': quantize(revenue),
        'totalDiscount': quantize(totals['discount'] or Decimal('0.00')),
        'commission': quantize(revenue * coupon.commission_rate / 100),
    }


# =============================================================================
# INVENTORY
# =============================================================================

def adjust_stock(variant, new_stock, reason='', author=None):
    """
    Set a variant's stock and record the change.

    Must be called with `variant` locked (select_for_update) when the
    change depends on the current value.
    """
    previous = variant.stock
    new_stock = max(0, int(new_stock))
    variant.stock = new_stock
    variant.save(update_fields=['stock'])

    adjustment = StockAdjustment.objects.create(
        variant=variant,
        previous_stock=previous,
        new_stock=new_stock,
        change=new_stock - previous,
        reason=reason,
        author=author,
    )
    return adjustment


def bulk_update_stock(updates, author=None):
    """
    Apply [{variant_id, stock, reason}] stock updates atomically.

    Unknown variant ids abort the whole batch.
    """
    adjustments = []
    slugs = set()
    with transaction.atomic():
        for update in updates:
            variant = (
                ProductVariant.objects
                .select_for_update()
                .select_related('product')
                .get(pk=update['variant_id'])
            )
            adjustments.append(
                adjust_stock(variant, update['stock'],
                             update.get('reason') or 'Manual update', author)
            )
            slugs.add(variant.product.slug)

    for slug in slugs:
        catalog_cache.invalidate_product(slug)
    logger.info('Bulk stock update: %d variants by %s', len(adjustments),
                getattr(author, 'email', None))
    return adjustments


def low_stock_variants(threshold):
    return (
        ProductVariant.objects
        .filter(is_active=True, stock__lte=threshold)
        .select_related('product')
        .order_by('stock', 'product__name')
    )


# =============================================================================
# ORDERS
# =============================================================================

def place_order(*, contact, address, lines, totals, coupon=None, user=None,
                merchant_oid='', payment_method='credit_card',
                payment_status='paid', notes=''):
    """
    Create an order from a checkout snapshot.

    Args:
        contact: {customer_name, customer_email, customer_phone}
        address: {address, city, district, postal_code}
        lines: snapshot_cart() output
        totals: {subtotal, discount, shipping, total}

    Stock is decremented per variant (never below zero) and the coupon's
    used_count is incremented, all in one transaction.
    """
    with transaction.atomic():
        order = Order.objects.create(
            user=user,
            customer_name=contact['customer_name'],
            customer_email=contact['customer_email'],
            customer_phone=contact['customer_phone'],
            address=address['address'],
            city=address['city'],
            district=address['district'],
            postal_code=address.get('postal_code', ''),
            subtotal=totals['subtotal'],
            discount_amount=totals['discount'],
            shipping_cost=totals['shipping'],
            total=totals['total'],
            coupon=coupon,
            coupon_code=coupon.code if coupon else '',
            payment_method=payment_method,
            payment_status=payment_status,
            merchant_oid=merchant_oid,
            notes=notes,
        )

        for line in lines:
            # the product may have been deleted since the cart was snapshotted
            product = Product.objects.filter(pk=line.get('product_id')).first()
            variant = None
            if line.get('variant_id'):
                variant = (
                    ProductVariant.objects
                    .select_for_update()
                    .filter(pk=line['variant_id'])
                    .first()
                )

            OrderItem.objects.create(
                order=order,
                product=product,
                variant=variant,
                product_name=line['product_name'],
                variant_details=line.get('variant_details', ''),
                price=Decimal(line['price']),
                quantity=line['quantity'],
            )

            if variant is not None:
                if variant.stock < line['quantity']:
                    logger.warning(
                        'Variant %s oversold on %s (stock %d, ordered %d)',
                        variant.pk, order.order_number, variant.stock, line['quantity']
                    )
                adjust_stock(variant, variant.stock - line['quantity'],
                             f'Order {order.order_number}')

        if coupon is not None:
            Coupon.objects.filter(pk=coupon.pk).update(used_count=F('used_count') + 1)

    catalog_cache.invalidate_products()
    logger.info('Order %s placed (%s TL, coupon=%s)', order.order_number,
                order.total, order.coupon_code or '-')
    return order


def restore_stock(order, author=None):
    """Put the quantities of a cancelled order back on the shelf."""
    for item in order.items.select_related('variant'):
        if item.variant_id is None:
            continue
        variant = ProductVariant.objects.select_for_update().get(pk=item.variant_id)
        adjust_stock(variant, variant.stock + item.quantity,
                     f'Order {order.order_number} cancelled', author)


def change_order_status(order, status, author=None):
    """
    Move an order to `status` following Order.STATUS_TRANSITIONS.

    Cancelling restores stock; shipping/delivery are time-stamped.
    """
    if status == order.status:
        return order
    if not order.can_transition_to(status):
        raise InvalidStatusTransition(order, status)

    with transaction.atomic():
        if status == 'cancelled':
            restore_stock(order, author)
            if order.payment_status == 'paid':
                order.payment_status = 'refunded'
        elif status == 'shipped':
            order.shipped_at = timezone.now()
        elif status == 'delivered':
            order.delivered_at = timezone.now()

        previous = order.status
        order.status = status
        order.save()

    catalog_cache.invalidate_products()
    logger.info('Order %s: %s -> %s by %s', order.order_number, previous, status,
                getattr(author, 'email', None))
    return order


def set_tracking(order, tracking_number, tracking_url='', shipping_carrier='', author=None):
    """
    Assign tracking details; a processing order becomes shipped.

    Returns:
        bool: True when the order was moved to shipped by this call
    """
    order.tracking_number = tracking_number
    order.tracking_url = tracking_url or ''
    order.shipping_carrier = shipping_carrier or ''
    order.save(update_fields=['tracking_number', 'tracking_url',
                              'shipping_carrier', 'updated_at'])

    if order.status == 'processing':
        change_order_status(order, 'shipped', author)
        return True
    return False


def admin_stats():
    """Headline numbers for the dashboard."""
    from accounts.models import CustomUser

    paid = Order.objects.filter(payment_status='paid').exclude(status='cancelled')
    return {
        'totalProducts': Product.objects.count(),
        'activeProducts': Product.objects.filter(is_active=True).count(),
        'totalOrders': Order.objects.count(),
        'pendingOrders': Order.objects.filter(status='pending').count(),
        'totalUsers': CustomUser.objects.filter(role='customer').count(),
        'revenue': quantize(paid.aggregate(total=Sum('total'))['total'] or Decimal('0.00')),
    }
