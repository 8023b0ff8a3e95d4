"""
==============================================================================
CORE APP - ADMIN CONFIGURATION
==============================================================================
Register storefront models with the Django Admin interface.

Models registered:
    - Category, Product (with variants inline)
    - Order (with items and notes inline)
    - Coupon, StockAdjustment
    - Dealer, Quote, SiteSetting

Status changes made through the admin actions go through the same
service as the JSON back-office, so stock is restored on cancel.

Author: Storefront Development Team
==============================================================================
"""

from django.contrib import admin

from .models import (
    Category, Product, ProductVariant, Order, OrderItem, OrderNote,
    Coupon, StockAdjustment, Dealer, Quote, SiteSetting
)
from .services import InvalidStatusTransition, change_order_status


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    """Admin configuration for Category model."""

    list_display = ('name', 'slug', 'display_order', 'is_active')
    list_filter = ('is_active',)
    search_fields = ('name',)
    prepopulated_fields = {'slug': ('name',)}
    ordering = ('display_order', 'name')


class ProductVariantInline(admin.TabularInline):
    """Variants (size/colour/stock) edited on the product page."""
    model = ProductVariant
    extra = 1


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    """Admin configuration for Product model."""

    list_display = ('name', 'sku', 'category', 'base_price', 'discount_badge',
                    'is_active', 'is_featured', 'is_new')
    list_filter = ('category', 'is_active', 'is_featured', 'is_new')
    search_fields = ('name', 'sku', 'description')
    prepopulated_fields = {'slug': ('name',)}
    ordering = ('name',)

    inlines = [ProductVariantInline]

    fieldsets = (
        ('Basic Information', {
            'fields': ('name', 'slug', 'sku', 'category', 'description', 'images')
        }),
        ('Pricing', {
            'fields': ('base_price', 'discount_badge')
        }),
        ('Visibility', {
            'fields': ('is_active', 'is_featured', 'is_new')
        }),
    )


class OrderItemInline(admin.TabularInline):
    """Order lines are a snapshot and stay read-only."""
    model = OrderItem
    extra = 0
    readonly_fields = ('product', 'variant', 'product_name', 'variant_details',
                       'price', 'quantity', 'subtotal')
    can_delete = False


class OrderNoteInline(admin.TabularInline):
    model = OrderNote
    extra = 0
    readonly_fields = ('author', 'created_at')


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    """Admin configuration for Order model."""

    list_display = ('order_number', 'customer_name', 'total', 'status',
                    'payment_status', 'coupon_code', 'created_at')
    list_filter = ('status', 'payment_status', 'created_at')
    search_fields = ('order_number', 'customer_name', 'customer_email', 'merchant_oid')
    ordering = ('-created_at',)
    readonly_fields = ('order_number', 'merchant_oid', 'subtotal', 'discount_amount',
                       'shipping_cost', 'total', 'coupon_code', 'shipped_at',
                       'delivered_at', 'created_at', 'updated_at')

    inlines = [OrderItemInline, OrderNoteInline]

    fieldsets = (
        ('Order Information', {
            'fields': ('order_number', 'user', 'status', 'payment_method',
                       'payment_status', 'merchant_oid')
        }),
        ('Customer', {
            'fields': ('customer_name', 'customer_email', 'customer_phone')
        }),
        ('Shipping Address', {
            'fields': ('address', 'city', 'district', 'postal_code')
        }),
        ('Financial Details', {
            'fields': ('subtotal', 'discount_amount', 'shipping_cost', 'total',
                       'coupon_code')
        }),
        ('Shipment', {
            'fields': ('shipping_carrier', 'tracking_number', 'tracking_url',
                       'shipped_at', 'delivered_at')
        }),
        ('Notes', {
            'fields': ('notes',),
            'classes': ('collapse',)
        }),
    )

    actions = ['mark_processing', 'mark_delivered', 'cancel_orders']

    def _move(self, request, queryset, status):
        moved = 0
        for order in queryset:
            try:
                change_order_status(order, status, request.user)
                moved += 1
            except InvalidStatusTransition:
                continue
        self.message_user(request, f'{moved} orders moved to {status}.')

    @admin.action(description='Mark as processing')
    def mark_processing(self, request, queryset):
        self._move(request, queryset, 'processing')

    @admin.action(description='Mark as delivered')
    def mark_delivered(self, request, queryset):
        self._move(request, queryset, 'delivered')

    @admin.action(description='Cancel (restore stock)')
    def cancel_orders(self, request, queryset):
        self._move(request, queryset, 'cancelled')


@admin.register(Coupon)
class CouponAdmin(admin.ModelAdmin):
    """Admin configuration for Coupon model."""

    list_display = ('code', 'discount_type', 'discount_value', 'is_influencer_code',
                    'influencer_instagram', 'used_count', 'max_uses', 'expires_at',
                    'is_active')
    list_filter = ('discount_type', 'is_influencer_code', 'is_active')
    search_fields = ('code', 'influencer_instagram')
    readonly_fields = ('used_count',)


@admin.register(StockAdjustment)
class StockAdjustmentAdmin(admin.ModelAdmin):
    list_display = ('variant', 'previous_stock', 'new_stock', 'change', 'reason',
                    'author', 'created_at')
    search_fields = ('variant__sku', 'variant__product__name', 'reason')
    ordering = ('-created_at',)
    readonly_fields = ('created_at',)


@admin.register(Dealer)
class DealerAdmin(admin.ModelAdmin):
    list_display = ('company_name', 'contact_name', 'email', 'city', 'discount_rate',
                    'status', 'created_at')
    list_filter = ('status', 'city')
    search_fields = ('company_name', 'contact_name', 'email', 'tax_number')


@admin.register(Quote)
class QuoteAdmin(admin.ModelAdmin):
    list_display = ('id', 'company_name', 'contact_name', 'email', 'status',
                    'quoted_total', 'created_at')
    list_filter = ('status',)
    search_fields = ('company_name', 'contact_name', 'email')


@admin.register(SiteSetting)
class SiteSettingAdmin(admin.ModelAdmin):
    list_display = ('key', 'value', 'updated_at')
    search_fields = ('key',)
