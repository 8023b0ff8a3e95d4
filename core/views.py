"""
==============================================================================
CORE APP - VIEWS
==============================================================================
JSON endpoints for the storefront catalog and the back-office.

Views:
    - Catalog: categories, products, variants (public, cached)
    - Cart: session cart lines
    - Coupons: public validation, admin CRUD and influencer usage
    - Orders: admin list, detail, status, tracking, cancel, notes
    - Inventory: stock list, low stock, bulk update, adjustment history
    - Dealers / Quotes: public applications, admin management
    - Settings, image upload, AI descriptions, dashboard stats

Admin writes invalidate the matching catalog cache entries.

Author: Storefront Development Team
==============================================================================
"""

import logging

from django.conf import settings
from django.db.models import Q
from django.http import JsonResponse
from django.shortcuts import get_object_or_404

from storefront.api import (
    ApiError, api_view, admin_required, parse_json, form_errors, snake_keys
)
from checkout.pricing import calculate_discount
from . import cache as catalog_cache
from . import emails, serializers
from .ai_service import (
    AIServiceError, AIServiceNotConfigured, generate_product_description, STYLE_PROMPTS
)
from .images import InvalidImage, save_upload, delete_upload
from .models import (
    Category, Product, ProductVariant, CartItem, Coupon, Order, OrderNote,
    StockAdjustment, Dealer, Quote, SiteSetting
)
from .forms import (
    CategoryForm, ProductForm, ProductVariantForm, CouponForm, CouponValidateForm,
    CartAddForm, CartUpdateForm, OrderStatusForm, TrackingForm, OrderNoteForm,
    StockUpdateForm, DealerForm, DealerApplicationForm, QuoteForm, QuoteRequestForm,
    merge_instance_data, create_data,
)
from .services import (
    InvalidStatusTransition, ensure_session_key, get_cart_items, cart_subtotal,
    add_to_cart, clear_cart, validate_coupon, coupon_usage, bulk_update_stock,
    low_stock_variants, change_order_status, set_tracking, admin_stats,
)

logger = logging.getLogger('storefront.core')


# =============================================================================
# HELPERS
# =============================================================================

def _validated(form):
    """Return the form if valid, otherwise raise a 400 with its errors."""
    if not form.is_valid():
        raise ApiError('Validation failed', errors=form_errors(form))
    return form


def _bind(form_class, payload, instance=None):
    """Bind a ModelForm for create (POST) or partial update (PUT/PATCH)."""
    if instance is not None:
        return form_class(merge_instance_data(instance, form_class, payload), instance=instance)
    return form_class(create_data(form_class, payload))


def _flag(request, name):
    return request.GET.get(name, '').lower() in ('1', 'true', 'yes')


# =============================================================================
# PUBLIC CATALOG
# =============================================================================

@api_view(['GET'])
def category_list(request):
    """Active categories in display order."""
    data = catalog_cache.get_or_set(
        catalog_cache.CATEGORIES,
        lambda: [
            serializers.category_data(c)
            for c in Category.objects.filter(is_active=True)
        ],
    )
    return JsonResponse(data, safe=False)


@api_view(['GET'])
def category_detail(request, slug):
    category = get_object_or_404(Category, slug=slug, is_active=True)
    return JsonResponse(serializers.category_data(category))


def _product_queryset(category='', featured=False, new=False, search=''):
    products = Product.objects.filter(is_active=True).select_related('category')

    if category:
        products = products.filter(category__slug=category)
    if featured:
        products = products.filter(is_featured=True)
    if new:
        products = products.filter(is_new=True)
    if search:
        products = products.filter(
            Q(name__icontains=search) |
            Q(sku__icontains=search) |
            Q(description__icontains=search)
        )
    return products


@api_view(['GET'])
def product_list(request):
    """
    Active products, optionally filtered.

    Query params: category (slug), featured, new, search
    """
    category = request.GET.get('category', '')
    featured = _flag(request, 'featured')
    new = _flag(request, 'new')
    search = request.GET.get('search', '').strip()

    key = catalog_cache.product_list_key(category, featured, new, search)
    data = catalog_cache.get_or_set(
        key,
        lambda: [
            serializers.product_data(p)
            for p in _product_queryset(category, featured, new, search)
        ],
    )
    return JsonResponse(data, safe=False)


@api_view(['GET'])
def product_detail(request, slug):
    def build():
        product = (
            Product.objects
            .filter(slug=slug, is_active=True)
            .select_related('category')
            .prefetch_related('variants')
            .first()
        )
        return serializers.product_data(product, with_variants=True) if product else None

    data = catalog_cache.get_or_set(catalog_cache.product_key(slug), build)
    if data is None:
        raise ApiError('Product not found', status=404)
    return JsonResponse(data)


@api_view(['GET'])
def product_variants(request, product_id):
    product = get_object_or_404(Product, pk=product_id, is_active=True)
    variants = product.variants.filter(is_active=True)
    return JsonResponse([serializers.variant_data(v) for v in variants], safe=False)


# =============================================================================
# CART
# =============================================================================

def _cart_response(session_key, status=200):
    items = list(get_cart_items(session_key))
    return JsonResponse({
        'items': [serializers.cart_item_data(i) for i in items],
        'subtotal': cart_subtotal(items),
        'itemCount': sum(i.quantity for i in items),
    }, status=status)


@api_view(['GET', 'POST', 'DELETE'])
def cart(request):
    """
    GET: cart contents, POST: add a line, DELETE: empty the cart.
    """
    session_key = ensure_session_key(request)

    if request.method == 'POST':
        form = _validated(CartAddForm(parse_json(request)))
        add_to_cart(
            session_key,
            form.cleaned_data['product'],
            form.cleaned_data['variant'],
            form.cleaned_data['quantity'],
        )
        return _cart_response(session_key, status=201)

    if request.method == 'DELETE':
        clear_cart(session_key)

    return _cart_response(session_key)


@api_view(['PATCH', 'DELETE'])
def cart_item(request, item_id):
    session_key = ensure_session_key(request)
    item = get_object_or_404(CartItem, pk=item_id, session_key=session_key)

    if request.method == 'DELETE':
        item.delete()
    else:
        form = _validated(CartUpdateForm(parse_json(request)))
        item.quantity = form.cleaned_data['quantity']
        item.save(update_fields=['quantity'])

    return _cart_response(session_key)


# =============================================================================
# COUPON VALIDATION
# =============================================================================

@api_view(['POST'])
def coupon_validate(request):
    """
    Check a coupon code against an order total.

    Always answers 200: {valid: true, coupon, discount} or
    {valid: false, error}.
    """
    form = _validated(CouponValidateForm(parse_json(request)))
    order_total = form.cleaned_data['order_total']

    coupon, error = validate_coupon(form.cleaned_data['code'], order_total)
    if coupon is None:
        return JsonResponse({'valid': False, 'error': error})

    return JsonResponse({
        'valid': True,
        'coupon': serializers.coupon_data(coupon),
        'discount': calculate_discount(coupon, order_total),
    })


# =============================================================================
# PUBLIC DEALER / QUOTE FORMS
# =============================================================================

@api_view(['POST'])
def dealer_apply(request):
    form = _validated(DealerApplicationForm(parse_json(request)))
    dealer = form.save()
    logger.info('Dealer application from %s (%s)', dealer.company_name, dealer.email)
    return JsonResponse(serializers.dealer_data(dealer), status=201)


@api_view(['POST'])
def quote_request(request):
    form = _validated(QuoteRequestForm(parse_json(request)))
    quote = form.save(commit=False)
    quote.dealer = Dealer.objects.filter(
        email__iexact=quote.email, status='approved'
    ).first()
    quote.save()
    logger.info('Quote request #%s from %s', quote.pk, quote.email)
    return JsonResponse(serializers.quote_data(quote), status=201)


# =============================================================================
# ADMIN: CATEGORIES
# =============================================================================

@api_view(['GET', 'POST'])
@admin_required
def admin_categories(request):
    if request.method == 'POST':
        form = _validated(_bind(CategoryForm, parse_json(request)))
        category = form.save()
        catalog_cache.invalidate_categories()
        return JsonResponse(serializers.category_data(category), status=201)

    categories = Category.objects.all()
    return JsonResponse([serializers.category_data(c) for c in categories], safe=False)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@admin_required
def admin_category_detail(request, category_id):
    category = get_object_or_404(Category, pk=category_id)

    if request.method == 'DELETE':
        category.delete()
        catalog_cache.invalidate_categories()
        return JsonResponse({'success': True})

    if request.method in ('PUT', 'PATCH'):
        form = _validated(_bind(CategoryForm, parse_json(request), instance=category))
        category = form.save()
        catalog_cache.invalidate_categories()

    return JsonResponse(serializers.category_data(category))


# =============================================================================
# ADMIN: PRODUCTS & VARIANTS
# =============================================================================

def _product_payload(request):
    payload = parse_json(request)
    if 'category_id' in payload:
        payload['category'] = payload.pop('category_id')
    return payload


@api_view(['GET', 'POST'])
@admin_required
def admin_products(request):
    if request.method == 'POST':
        form = _validated(_bind(ProductForm, _product_payload(request)))
        product = form.save()
        catalog_cache.invalidate_products()
        logger.info('Product %s created by %s', product.slug, request.user.email)
        return JsonResponse(serializers.product_data(product, with_variants=True),
                            status=201)

    products = Product.objects.select_related('category').prefetch_related('variants')
    search = request.GET.get('search', '').strip()
    if search:
        products = products.filter(Q(name__icontains=search) | Q(sku__icontains=search))
    return JsonResponse(
        [serializers.product_data(p, with_variants=True) for p in products], safe=False
    )


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@admin_required
def admin_product_detail(request, product_id):
    product = get_object_or_404(Product, pk=product_id)
    old_slug = product.slug

    if request.method == 'DELETE':
        images = list(product.images)
        product.delete()
        for url in images:
            delete_upload(url)
        catalog_cache.invalidate_product(old_slug)
        logger.info('Product %s deleted by %s', old_slug, request.user.email)
        return JsonResponse({'success': True})

    if request.method in ('PUT', 'PATCH'):
        form = _validated(_bind(ProductForm, _product_payload(request), instance=product))
        product = form.save()
        catalog_cache.invalidate_product(old_slug)
        if product.slug != old_slug:
            catalog_cache.invalidate_product(product.slug)

    return JsonResponse(serializers.product_data(product, with_variants=True))


@api_view(['GET', 'POST'])
@admin_required
def admin_product_variants(request, product_id):
    product = get_object_or_404(Product, pk=product_id)

    if request.method == 'POST':
        form = _validated(_bind(ProductVariantForm, parse_json(request)))
        variant = form.save(commit=False)
        variant.product = product
        variant.save()
        catalog_cache.invalidate_product(product.slug)
        return JsonResponse(serializers.variant_data(variant), status=201)

    return JsonResponse(
        [serializers.variant_data(v) for v in product.variants.all()], safe=False
    )


@api_view(['PUT', 'PATCH', 'DELETE'])
@admin_required
def admin_variant_detail(request, variant_id):
    variant = get_object_or_404(ProductVariant.objects.select_related('product'),
                                pk=variant_id)
    slug = variant.product.slug

    if request.method == 'DELETE':
        variant.delete()
        catalog_cache.invalidate_product(slug)
        return JsonResponse({'success': True})

    form = _validated(_bind(ProductVariantForm, parse_json(request), instance=variant))
    variant = form.save()
    catalog_cache.invalidate_product(slug)
    return JsonResponse(serializers.variant_data(variant))


@api_view(['POST'])
@admin_required
def generate_description(request, product_id):
    """
    Generate an HTML description for a product with the AI service.

    Body: {style}. The description is returned, not saved; the admin
    reviews it in the product form.
    """
    product = get_object_or_404(Product, pk=product_id)
    style = parse_json(request).get('style', 'professional')
    if style not in STYLE_PROMPTS:
        raise ApiError(f'Unknown style. Choose one of: {", ".join(STYLE_PROMPTS)}')

    image_url = product.cover_image()
    if image_url and image_url.startswith('/'):
        image_url = request.build_absolute_uri(image_url)

    try:
        description = generate_product_description(product.name, image_url, style)
    except AIServiceNotConfigured as exc:
        raise ApiError(str(exc), status=503)
    except AIServiceError as exc:
        raise ApiError(str(exc), status=502)

    return JsonResponse({'description': description, 'style': style})


@api_view(['POST'])
@admin_required
def upload_image(request, upload_type):
    """Store an uploaded image as WEBP and return its URL."""
    if upload_type not in settings.UPLOAD_TYPES:
        raise ApiError('Unknown upload type', status=400)

    upload = request.FILES.get('image') or request.FILES.get('file')
    if upload is None:
        raise ApiError('No image uploaded')

    try:
        url = save_upload(upload, upload_type)
    except InvalidImage as exc:
        raise ApiError(str(exc))

    return JsonResponse({'url': url}, status=201)


# =============================================================================
# ADMIN: COUPONS
# =============================================================================

@api_view(['GET', 'POST'])
@admin_required
def admin_coupons(request):
    if request.method == 'POST':
        form = _validated(_bind(CouponForm, parse_json(request)))
        coupon = form.save()
        logger.info('Coupon %s created by %s', coupon.code, request.user.email)
        return JsonResponse(serializers.coupon_admin_data(coupon), status=201)

    coupons = Coupon.objects.all()
    return JsonResponse([serializers.coupon_admin_data(c) for c in coupons], safe=False)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@admin_required
def admin_coupon_detail(request, coupon_id):
    coupon = get_object_or_404(Coupon, pk=coupon_id)

    if request.method == 'DELETE':
        coupon.delete()
        return JsonResponse({'success': True})

    if request.method in ('PUT', 'PATCH'):
        form = _validated(_bind(CouponForm, parse_json(request), instance=coupon))
        coupon = form.save()

    return JsonResponse(serializers.coupon_admin_data(coupon))


@api_view(['GET'])
@admin_required
def admin_coupon_usage(request, coupon_id):
    coupon = get_object_or_404(Coupon, pk=coupon_id)
    return JsonResponse(coupon_usage(coupon))


# =============================================================================
# ADMIN: ORDERS
# =============================================================================

@api_view(['GET'])
@admin_required
def admin_orders(request):
    """
    All orders, newest first.

    Query params: status, search (order number, customer name or email)
    """
    orders = Order.objects.all()

    status = request.GET.get('status')
    if status:
        orders = orders.filter(status=status)

    search = request.GET.get('search', '').strip()
    if search:
        orders = orders.filter(
            Q(order_number__icontains=search) |
            Q(customer_name__icontains=search) |
            Q(customer_email__icontains=search)
        )

    return JsonResponse([serializers.order_data(o) for o in orders], safe=False)


def _order_detail_data(order):
    data = serializers.order_data(order, with_items=True)
    data['orderNotes'] = [
        serializers.order_note_data(n) for n in order.order_notes.select_related('author')
    ]
    data['allowedStatuses'] = Order.STATUS_TRANSITIONS.get(order.status, [])
    return data


@api_view(['GET'])
@admin_required
def admin_order_detail(request, order_id):
    order = get_object_or_404(Order, pk=order_id)
    return JsonResponse(_order_detail_data(order))


@api_view(['PATCH'])
@admin_required
def admin_order_status(request, order_id):
    """Move an order along its allowed status transitions."""
    order = get_object_or_404(Order, pk=order_id)
    form = _validated(OrderStatusForm(parse_json(request)))

    try:
        change_order_status(order, form.cleaned_data['status'], request.user)
    except InvalidStatusTransition as exc:
        raise ApiError(str(exc))

    return JsonResponse(_order_detail_data(order))


@api_view(['PUT'])
@admin_required
def admin_order_tracking(request, order_id):
    """
    Assign tracking details.

    A processing order becomes shipped. The customer gets the shipping
    email unless notifyCustomer is false.
    """
    order = get_object_or_404(Order, pk=order_id)
    if order.status in ('cancelled', 'delivered'):
        raise ApiError(f'Order {order.order_number} is {order.status}.')

    payload = parse_json(request)
    payload.setdefault('notify_customer', True)
    form = _validated(TrackingForm(payload))

    set_tracking(
        order,
        form.cleaned_data['tracking_number'],
        form.cleaned_data['tracking_url'],
        form.cleaned_data['shipping_carrier'],
        request.user,
    )

    email_sent = False
    if form.cleaned_data['notify_customer']:
        email_sent = emails.send_shipping_notification(order)

    data = _order_detail_data(order)
    data['emailSent'] = email_sent
    return JsonResponse(data)


@api_view(['POST'])
@admin_required
def admin_order_cancel(request, order_id):
    order = get_object_or_404(Order, pk=order_id)

    try:
        change_order_status(order, 'cancelled', request.user)
    except InvalidStatusTransition as exc:
        raise ApiError(str(exc))

    return JsonResponse(_order_detail_data(order))


@api_view(['GET', 'POST'])
@admin_required
def admin_order_notes(request, order_id):
    order = get_object_or_404(Order, pk=order_id)

    if request.method == 'POST':
        payload = parse_json(request)
        payload.setdefault('is_internal', True)
        form = _validated(OrderNoteForm(payload))
        note = OrderNote.objects.create(
            order=order,
            author=request.user,
            content=form.cleaned_data['content'],
            is_internal=form.cleaned_data['is_internal'],
        )
        return JsonResponse(serializers.order_note_data(note), status=201)

    notes = order.order_notes.select_related('author')
    return JsonResponse([serializers.order_note_data(n) for n in notes], safe=False)


# =============================================================================
# ADMIN: INVENTORY
# =============================================================================

@api_view(['GET'])
@admin_required
def admin_inventory(request):
    variants = ProductVariant.objects.select_related('product').order_by(
        'product__name', 'size', 'color'
    )
    return JsonResponse([serializers.inventory_row_data(v) for v in variants], safe=False)


@api_view(['GET'])
@admin_required
def admin_low_stock(request):
    try:
        threshold = int(request.GET.get('threshold', settings.LOW_STOCK_THRESHOLD))
    except ValueError:
        raise ApiError('threshold must be a number')

    variants = low_stock_variants(threshold)
    return JsonResponse({
        'threshold': threshold,
        'items': [serializers.inventory_row_data(v) for v in variants],
    })


@api_view(['POST'])
@admin_required
def admin_inventory_bulk_update(request):
    """
    Body: {updates: [{variantId, stock, reason}]}

    Either every update is applied or none is.
    """
    updates = parse_json(request).get('updates')
    if not isinstance(updates, list) or not updates:
        raise ApiError('updates must be a non-empty list')

    cleaned = []
    for index, entry in enumerate(updates):
        if not isinstance(entry, dict):
            raise ApiError(f'updates[{index}] must be an object')
        form = StockUpdateForm(snake_keys(entry))
        if not form.is_valid():
            raise ApiError(f'updates[{index}] is invalid', errors=form_errors(form))
        cleaned.append(form.cleaned_data)

    try:
        adjustments = bulk_update_stock(cleaned, author=request.user)
    except ProductVariant.DoesNotExist:
        raise ApiError('Variant not found', status=404)

    return JsonResponse({
        'updated': len(adjustments),
        'adjustments': [serializers.stock_adjustment_data(a) for a in adjustments],
    })


@api_view(['GET'])
@admin_required
def admin_stock_adjustments(request):
    adjustments = StockAdjustment.objects.select_related('author')

    variant_id = request.GET.get('variantId')
    if variant_id:
        adjustments = adjustments.filter(variant_id=variant_id)

    return JsonResponse(
        [serializers.stock_adjustment_data(a) for a in adjustments[:200]], safe=False
    )


# =============================================================================
# ADMIN: DEALERS & QUOTES
# =============================================================================

@api_view(['GET', 'POST'])
@admin_required
def admin_dealers(request):
    if request.method == 'POST':
        form = _validated(_bind(DealerForm, parse_json(request)))
        dealer = form.save()
        return JsonResponse(serializers.dealer_data(dealer), status=201)

    dealers = Dealer.objects.all()
    status = request.GET.get('status')
    if status:
        dealers = dealers.filter(status=status)
    return JsonResponse([serializers.dealer_data(d) for d in dealers], safe=False)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@admin_required
def admin_dealer_detail(request, dealer_id):
    dealer = get_object_or_404(Dealer, pk=dealer_id)

    if request.method == 'DELETE':
        dealer.delete()
        return JsonResponse({'success': True})

    if request.method in ('PUT', 'PATCH'):
        form = _validated(_bind(DealerForm, parse_json(request), instance=dealer))
        dealer = form.save()

    return JsonResponse(serializers.dealer_data(dealer))


@api_view(['GET', 'POST'])
@admin_required
def admin_quotes(request):
    if request.method == 'POST':
        form = _validated(_bind(QuoteForm, parse_json(request)))
        quote = form.save()
        return JsonResponse(serializers.quote_data(quote), status=201)

    quotes = Quote.objects.all()
    status = request.GET.get('status')
    if status:
        quotes = quotes.filter(status=status)
    return JsonResponse([serializers.quote_data(q) for q in quotes], safe=False)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@admin_required
def admin_quote_detail(request, quote_id):
    quote = get_object_or_404(Quote, pk=quote_id)

    if request.method == 'DELETE':
        quote.delete()
        return JsonResponse({'success': True})

    if request.method in ('PUT', 'PATCH'):
        payload = parse_json(request)
        if 'dealer_id' in payload:
            payload['dealer'] = payload.pop('dealer_id')
        form = _validated(_bind(QuoteForm, payload, instance=quote))
        quote = form.save()

    return JsonResponse(serializers.quote_data(quote))


# =============================================================================
# ADMIN: SETTINGS & STATS
# =============================================================================

@api_view(['GET', 'POST'])
@admin_required
def admin_settings(request):
    """
    GET: all settings as a map. POST: upsert the posted keys.

    Keys are stored snake_case (shopName -> shop_name).
    """
    if request.method == 'POST':
        payload = parse_json(request)
        for key, value in payload.items():
            SiteSetting.objects.update_or_create(
                key=key, defaults={'value': '' if value is None else str(value)}
            )
        logger.info('Settings %s updated by %s', sorted(payload), request.user.email)

    return JsonResponse(SiteSetting.as_dict())


@api_view(['GET'])
@admin_required
def admin_dashboard_stats(request):
    data = catalog_cache.get_or_set(catalog_cache.ADMIN_STATS, admin_stats, timeout=60)
    return JsonResponse(data)
