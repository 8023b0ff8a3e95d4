"""
==============================================================================
CORE APP - MODELS
==============================================================================
This module defines the core business models of the storefront.

Key Models:
    - Category / Product / ProductVariant: The catalog
    - CartItem: Session-scoped shopping cart lines
    - Order / OrderItem / OrderNote: Placed orders and back-office notes
    - Coupon: Discount codes, including influencer attribution codes
    - StockAdjustment: Audit trail of inventory changes
    - Dealer / Quote: Wholesale dealer applications and quote requests
    - SiteSetting: Key/value store for back-office settings

The Order Flow:
    1. Shopper fills a session cart with product variants
    2. Checkout creates a PaymentSession and a PayTR iframe token
    3. PayTR notifies the callback; the Order is created from the snapshot
    4. Admin moves the order through processing -> shipped -> delivered

Author: Storefront Development Team
==============================================================================
"""

import re
from datetime import date
from decimal import Decimal, ROUND_HALF_UP

from django.conf import settings
from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models
from django.utils import timezone
from django.utils.text import slugify


TWO_PLACES = Decimal('0.01')


def quantize(amount):
    """Round a Decimal to kuruş precision."""
    return Decimal(amount).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def unique_slug(model, value, instance_pk=None):
    """Slugify `value` and append -2, -3... until unused for `model`."""
    base = slugify(value, allow_unicode=False) or 'item'
    slug = base
    counter = 2
    qs = model.objects.all()
    if instance_pk:
        qs = qs.exclude(pk=instance_pk)
    while qs.filter(slug=slug).exists():
        slug = f"{base}-{counter}"
        counter += 1
    return slug


class Category(models.Model):
    """
    Product category for organizing the catalog.

    Attributes:
        name (str): Category name
        slug (str): URL identifier
        image (str): Banner image URL
        display_order (int): Sort key on the storefront
    """

    name = models.CharField(max_length=100)

    slug = models.SlugField(
        max_length=120,
        unique=True,
        blank=True,
        help_text="Generated from the name when left empty"
    )

    image = models.CharField(max_length=500, blank=True)

    display_order = models.IntegerField(default=0)

    is_active = models.BooleanField(
        default=True,
        help_text="Inactive categories won't show in product listings"
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = 'Category'
        verbose_name_plural = 'Categories'
        ordering = ['display_order', 'name']

    def __str__(self):
        return self.name

    def save(self, *args, **kwargs):
        if not self.slug:
            self.slug = unique_slug(Category, self.name, self.pk)
        super().save(*args, **kwargs)


class Product(models.Model):
    """
    A catalog product. Sellable units are its variants (size/color).

    Attributes:
        base_price (Decimal): Price shown when no variant is selected
        images (list): Image URLs, first one is the cover
        discount_badge (str): Marketing badge such as "%20"
    """

    name = models.CharField(max_length=200)

    slug = models.SlugField(max_length=220, unique=True, blank=True)

    sku = models.CharField(max_length=50, blank=True)

    category = models.ForeignKey(
        Category,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='products',
    )

    description = models.TextField(
        blank=True,
        help_text="HTML description (may be AI generated)"
    )

    base_price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.00'))],
    )

    images = models.JSONField(default=list, blank=True)

    discount_badge = models.CharField(max_length=20, blank=True)

    is_active = models.BooleanField(default=True)
    is_featured = models.BooleanField(default=False)
    is_new = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = 'Product'
        verbose_name_plural = 'Products'
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.name} ({self.base_price} TL)"

    def save(self, *args, **kwargs):
        if not self.slug:
            self.slug = unique_slug(Product, self.name, self.pk)
        super().save(*args, **kwargs)

    def cover_image(self):
        return self.images[0] if self.images else None

    def original_price(self):
        """
        Pre-discount price derived from a "%NN" badge.

        Returns None when there is no usable badge (missing, malformed, or
        a percentage outside 1..99).
        """
        if not self.discount_badge:
            return None
        match = re.search(r'%(\d+)', self.discount_badge)
        if not match:
            return None
        percent = int(match.group(1))
        if percent <= 0 or percent >= 100:
            return None
        return quantize(self.base_price / (1 - Decimal(percent) / 100))

    def total_stock(self):
        return sum(v.stock for v in self.variants.filter(is_active=True))


class ProductVariant(models.Model):
    """A sellable size/color combination with its own price and stock."""

    product = models.ForeignKey(
        Product,
        on_delete=models.CASCADE,
        related_name='variants',
    )

    sku = models.CharField(max_length=60, unique=True, null=True, blank=True)
    size = models.CharField(max_length=20, blank=True)
    color = models.CharField(max_length=50, blank=True)
    color_hex = models.CharField(max_length=7, blank=True)

    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.00'))],
    )

    stock = models.IntegerField(
        default=0,
        validators=[MinValueValidator(0)],
    )

    is_active = models.BooleanField(default=True)

    class Meta:
        verbose_name = 'Product Variant'
        verbose_name_plural = 'Product Variants'
        ordering = ['product', 'size', 'color']

    def __str__(self):
        return f"{self.product.name} {self.details()}".strip()

    def details(self):
        """Human readable "M Black" style description."""
        return f"{self.size} {self.color}".strip()

    def is_in_stock(self):
        return self.stock > 0


class CartItem(models.Model):
    """
    One line of a session cart.

    Carts are keyed by the Django session so guests can shop without an
    account. The line price is read live from the variant (or the product
    base price) and snapshotted only when an order is created.
    """

    session_key = models.CharField(max_length=40, db_index=True)

    product = models.ForeignKey(
        Product,
        on_delete=models.CASCADE,
        related_name='cart_items',
    )

    variant = models.ForeignKey(
        ProductVariant,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='cart_items',
    )

    quantity = models.IntegerField(
        default=1,
        validators=[MinValueValidator(1)],
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = 'Cart Item'
        verbose_name_plural = 'Cart Items'
        ordering = ['created_at']

    def __str__(self):
        return f"{self.product.name} x {self.quantity}"

    @property
    def unit_price(self):
        if self.variant_id:
            return self.variant.price
        return self.product.base_price

    @property
    def line_total(self):
        return quantize(self.unit_price * self.quantity)


class Coupon(models.Model):
    """
    Discount code applied to an order subtotal before shipping.

    Influencer codes carry an Instagram handle and a commission rate so
    the back-office can report revenue and commission per influencer;
    mechanically they behave exactly like regular coupons.
    """

    DISCOUNT_TYPES = [
        ('percentage', 'Percentage'),
        ('fixed', 'Fixed amount'),
    ]

    code = models.CharField(
        max_length=40,
        unique=True,
        help_text="Stored upper-case; matched case-insensitively"
    )

    discount_type = models.CharField(
        max_length=10,
        choices=DISCOUNT_TYPES,
        default='percentage',
    )

    discount_value = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.01'))],
        help_text="Percent (1-100) or TL amount depending on the type"
    )

    is_influencer_code = models.BooleanField(default=False)

    influencer_instagram = models.CharField(
        max_length=100,
        blank=True,
        help_text="Instagram handle credited for orders using this code"
    )

    commission_rate = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal('0')), MaxValueValidator(Decimal('100'))],
        help_text="Influencer commission, percent of order revenue"
    )

    min_order_amount = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal('0.00'),
    )

    max_uses = models.IntegerField(
        null=True,
        blank=True,
        validators=[MinValueValidator(1)],
        help_text="Leave empty for unlimited use"
    )

    used_count = models.IntegerField(default=0)

    starts_at = models.DateTimeField(null=True, blank=True)
    expires_at = models.DateTimeField(null=True, blank=True)

    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = 'Coupon'
        verbose_name_plural = 'Coupons'
        ordering = ['-created_at']

    def __str__(self):
        if self.discount_type == 'percentage':
            return f"{self.code} (%{self.discount_value})"
        return f"{self.code} ({self.discount_value} TL)"

    def save(self, *args, **kwargs):
        self.code = self.code.strip().upper()
        super().save(*args, **kwargs)

    def check_valid_for(self, order_total, now=None):
        """
        Check whether this coupon can be applied to `order_total`.

        Returns:
            tuple: (is_valid: bool, message: str)
        """
        now = now or timezone.now()

        if not self.is_active:
            return False, 'This coupon is no longer active.'

        if self.starts_at and now < self.starts_at:
            return False, 'This coupon is not active yet.'

        if self.expires_at and now > self.expires_at:
            return False, 'This coupon has expired.'

        if self.max_uses is not None and self.used_count >= self.max_uses:
            return False, 'This coupon has reached its usage limit.'

        if Decimal(order_total) < self.min_order_amount:
            return False, (
                f'This coupon requires a minimum order of '
                f'{self.min_order_amount:.2f} TL.'
            )

        return True, 'Coupon applied.'


class Order(models.Model):
    """
    A paid (or cash-on-delivery) customer order.

    Order Flow:
        1. PENDING: Created, waiting for the shop to start preparing
        2. PROCESSING: Being packed
        3. SHIPPED: Handed to the carrier, tracking number assigned
        4. DELIVERED: Received by the customer
        5. CANCELLED: Cancelled by the shop, stock restored

    Amounts are snapshotted at creation; later price or coupon changes do
    not affect existing orders.
    """

    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('processing', 'Processing'),
        ('shipped', 'Shipped'),
        ('delivered', 'Delivered'),
        ('cancelled', 'Cancelled'),
    ]

    PAYMENT_STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('paid', 'Paid'),
        ('failed', 'Failed'),
        ('refunded', 'Refunded'),
    ]

    # Allowed status moves for the back-office
    STATUS_TRANSITIONS = {
        'pending': ['processing', 'cancelled'],
        'processing': ['shipped', 'cancelled'],
        'shipped': ['delivered'],
        'delivered': [],
        'cancelled': [],
    }

    order_number = models.CharField(
        max_length=20,
        unique=True,
        editable=False,
        help_text="System-generated unique order number"
    )

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='orders',
        help_text="Empty for guest checkouts"
    )

    # Contact details
    customer_name = models.CharField(max_length=200)
    customer_email = models.EmailField()
    customer_phone = models.CharField(max_length=20)

    # Shipping address
    address = models.TextField()
    city = models.CharField(max_length=100)
    district = models.CharField(max_length=100)
    postal_code = models.CharField(max_length=10, blank=True)

    # Financial details
    subtotal = models.DecimalField(max_digits=12, decimal_places=2)
    discount_amount = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal('0.00')
    )
    shipping_cost = models.DecimalField(
        max_digits=10, decimal_places=2, default=Decimal('0.00')
    )
    total = models.DecimalField(max_digits=12, decimal_places=2)

    coupon = models.ForeignKey(
        Coupon,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='orders',
    )
    coupon_code = models.CharField(max_length=40, blank=True)

    # Status tracking
    status = models.CharField(
        max_length=15,
        choices=STATUS_CHOICES,
        default='pending',
    )

    payment_method = models.CharField(max_length=50, default='credit_card')

    payment_status = models.CharField(
        max_length=10,
        choices=PAYMENT_STATUS_CHOICES,
        default='pending',
    )

    merchant_oid = models.CharField(
        max_length=64,
        blank=True,
        help_text="PayTR merchant order id that paid for this order"
    )

    # Shipment
    tracking_number = models.CharField(max_length=100, blank=True)
    tracking_url = models.URLField(max_length=500, blank=True)
    shipping_carrier = models.CharField(max_length=100, blank=True)
    shipped_at = models.DateTimeField(null=True, blank=True)
    delivered_at = models.DateTimeField(null=True, blank=True)

    notes = models.TextField(
        blank=True,
        help_text="Customer's order notes"
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = 'Order'
        verbose_name_plural = 'Orders'
        ordering = ['-created_at']

    def __str__(self):
        return f"Order {self.order_number} - {self.total} TL"

    def save(self, *args, **kwargs):
        """
        Custom save to auto-generate the order number.

        Order number format: ORD-YYYYMMDD-XXXX (e.g., ORD-20260108-0001)
        """
        if not self.order_number:
            today = date.today()
            prefix = f"ORD-{today.strftime('%Y%m%d')}-"

            last_order = Order.objects.filter(
                order_number__startswith=prefix
            ).order_by('-order_number').first()

            if last_order:
                last_seq = int(last_order.order_number.split('-')[-1])
                new_seq = last_seq + 1
            else:
                new_seq = 1

            self.order_number = f"{prefix}{new_seq:04d}"

        super().save(*args, **kwargs)

    def can_transition_to(self, status):
        return status in self.STATUS_TRANSITIONS.get(self.status, [])

    def shipping_address(self):
        return {
            'address': self.address,
            'city': self.city,
            'district': self.district,
            'postal_code': self.postal_code,
        }


class OrderItem(models.Model):
    """
    Individual product line within an order.

    Product name, variant details and unit price are stored on the line
    so the order stays readable if the product is edited or deleted.
    """

    order = models.ForeignKey(
        Order,
        on_delete=models.CASCADE,
        related_name='items',
    )

    product = models.ForeignKey(
        Product,
        on_delete=models.SET_NULL,
        null=True,
        related_name='order_items',
    )

    variant = models.ForeignKey(
        ProductVariant,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='order_items',
    )

    product_name = models.CharField(max_length=200)
    variant_details = models.CharField(max_length=100, blank=True)

    price = models.DecimalField(max_digits=10, decimal_places=2)

    quantity = models.IntegerField(validators=[MinValueValidator(1)])

    subtotal = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal('0.00'),
    )

    class Meta:
        verbose_name = 'Order Item'
        verbose_name_plural = 'Order Items'

    def __str__(self):
        return f"{self.product_name} x {self.quantity}"

    def save(self, *args, **kwargs):
        """Calculate line subtotal before saving."""
        self.subtotal = quantize(self.price * self.quantity)

        if self.product_id is not None and not self.product_name:
            product = Product.objects.filter(pk=self.product_id).first()
            if product is not None:
                self.product_name = product.name

        super().save(*args, **kwargs)


class OrderNote(models.Model):
    """Free-text note on an order, written from the back-office."""

    order = models.ForeignKey(
        Order,
        on_delete=models.CASCADE,
        related_name='order_notes',
    )

    author = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        related_name='order_notes',
    )

    content = models.TextField()

    is_internal = models.BooleanField(
        default=True,
        help_text="Internal notes are never shown to the customer"
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f"Note on {self.order.order_number}"


class StockAdjustment(models.Model):
    """Audit trail entry for a manual or order-driven stock change."""

    variant = models.ForeignKey(
        ProductVariant,
        on_delete=models.CASCADE,
        related_name='stock_adjustments',
    )

    previous_stock = models.IntegerField()
    new_stock = models.IntegerField()
    change = models.IntegerField()

    reason = models.CharField(max_length=255, blank=True)

    author = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='stock_adjustments',
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        arrow = "↑" if self.change >= 0 else "↓"
        return f"{arrow} {self.variant} {self.previous_stock} -> {self.new_stock}"


class Dealer(models.Model):
    """A wholesale dealer (reseller) application or approved dealer."""

    STATUS_CHOICES = [
        ('pending', 'Pending Review'),
        ('approved', 'Approved'),
        ('rejected', 'Rejected'),
    ]

    company_name = models.CharField(max_length=200)
    contact_name = models.CharField(max_length=200)
    email = models.EmailField()
    phone = models.CharField(max_length=20)
    city = models.CharField(max_length=100, blank=True)
    tax_number = models.CharField(max_length=20, blank=True)

    discount_rate = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal('0')), MaxValueValidator(Decimal('100'))],
        help_text="Dealer price discount, percent"
    )

    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default='pending')

    notes = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return self.company_name


class Quote(models.Model):
    """A bulk price quote requested by a dealer or a company."""

    STATUS_CHOICES = [
        ('new', 'New'),
        ('quoted', 'Quoted'),
        ('accepted', 'Accepted'),
        ('rejected', 'Rejected'),
    ]

    dealer = models.ForeignKey(
        Dealer,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='quotes',
    )

    company_name = models.CharField(max_length=200, blank=True)
    contact_name = models.CharField(max_length=200)
    email = models.EmailField()
    phone = models.CharField(max_length=20, blank=True)
    message = models.TextField(blank=True)

    items = models.JSONField(
        default=list,
        blank=True,
        help_text="Requested lines: [{product, quantity, note}]"
    )

    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default='new')

    quoted_total = models.DecimalField(
        max_digits=12, decimal_places=2, null=True, blank=True
    )

    admin_notes = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f"Quote #{self.pk} - {self.company_name or self.contact_name}"


class SiteSetting(models.Model):
    """Key/value setting edited from the back-office settings tab."""

    key = models.CharField(max_length=100, unique=True)
    value = models.TextField(blank=True)

    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['key']

    def __str__(self):
        return self.key

    @classmethod
    def as_dict(cls):
        return dict(cls.objects.values_list('key', 'value'))
