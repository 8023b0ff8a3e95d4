"""
==============================================================================
CORE APP - URL CONFIGURATION
==============================================================================
URL patterns for the catalog, cart and back-office endpoints.

Mounted under /api/ by the root URL configuration.

URL Patterns:
    - Catalog: categories, products, variants
    - Cart: session cart
    - Coupons / Dealers / Quotes: public forms
    - Admin: catalog CRUD, orders, inventory, coupons, dealers, quotes,
      settings, stats, uploads, AI descriptions

Author: Storefront Development Team
==============================================================================
"""

from django.urls import path
from . import views

# App namespace for URL reversing (e.g., 'core:product_list')
app_name = 'core'

urlpatterns = [
    # ==========================================================================
    # PUBLIC CATALOG
    # ==========================================================================
    path('categories', views.category_list, name='category_list'),
    path('categories/<slug:slug>', views.category_detail, name='category_detail'),
    path('products', views.product_list, name='product_list'),
    path('products/<int:product_id>/variants', views.product_variants,
         name='product_variants'),
    path('products/<slug:slug>', views.product_detail, name='product_detail'),

    # ==========================================================================
    # CART & COUPONS
    # ==========================================================================
    path('cart', views.cart, name='cart'),
    path('cart/<int:item_id>', views.cart_item, name='cart_item'),
    path('coupons/validate', views.coupon_validate, name='coupon_validate'),

    # ==========================================================================
    # DEALERS & QUOTES
    # ==========================================================================
    path('dealers/apply', views.dealer_apply, name='dealer_apply'),
    path('quotes', views.quote_request, name='quote_request'),

    # ==========================================================================
    # ADMIN: CATALOG
    # ==========================================================================
    path('admin/categories', views.admin_categories, name='admin_categories'),
    path('admin/categories/<int:category_id>', views.admin_category_detail,
         name='admin_category_detail'),
    path('admin/products', views.admin_products, name='admin_products'),
    path('admin/products/<int:product_id>', views.admin_product_detail,
         name='admin_product_detail'),
    path('admin/products/<int:product_id>/variants', views.admin_product_variants,
         name='admin_product_variants'),
    path('admin/products/<int:product_id>/generate-description',
         views.generate_description, name='generate_description'),
    path('admin/variants/<int:variant_id>', views.admin_variant_detail,
         name='admin_variant_detail'),
    path('admin/upload/<str:upload_type>', views.upload_image, name='upload_image'),

    # ==========================================================================
    # ADMIN: COUPONS
    # ==========================================================================
    path('admin/coupons', views.admin_coupons, name='admin_coupons'),
    path('admin/coupons/<int:coupon_id>', views.admin_coupon_detail,
         name='admin_coupon_detail'),
    path('admin/coupons/<int:coupon_id>/usage', views.admin_coupon_usage,
         name='admin_coupon_usage'),

    # ==========================================================================
    # ADMIN: ORDERS
    # ==========================================================================
    path('admin/orders', views.admin_orders, name='admin_orders'),
    path('admin/orders/<int:order_id>', views.admin_order_detail,
         name='admin_order_detail'),
    path('admin/orders/<int:order_id>/status', views.admin_order_status,
         name='admin_order_status'),
    path('admin/orders/<int:order_id>/tracking', views.admin_order_tracking,
         name='admin_order_tracking'),
    path('admin/orders/<int:order_id>/cancel', views.admin_order_cancel,
         name='admin_order_cancel'),
    path('admin/orders/<int:order_id>/notes', views.admin_order_notes,
         name='admin_order_notes'),

    # ==========================================================================
    # ADMIN: INVENTORY
    # ==========================================================================
    path('admin/inventory', views.admin_inventory, name='admin_inventory'),
    path('admin/inventory/low-stock', views.admin_low_stock, name='admin_low_stock'),
    path('admin/inventory/bulk-update', views.admin_inventory_bulk_update,
         name='admin_inventory_bulk_update'),
    path('admin/inventory/adjustments', views.admin_stock_adjustments,
         name='admin_stock_adjustments'),

    # ==========================================================================
    # ADMIN: DEALERS, QUOTES, SETTINGS, STATS
    # ==========================================================================
    path('admin/dealers', views.admin_dealers, name='admin_dealers'),
    path('admin/dealers/<int:dealer_id>', views.admin_dealer_detail,
         name='admin_dealer_detail'),
    path('admin/quotes', views.admin_quotes, name='admin_quotes'),
    path('admin/quotes/<int:quote_id>', views.admin_quote_detail,
         name='admin_quote_detail'),
    path('admin/settings', views.admin_settings, name='admin_settings'),
    path('admin/stats', views.admin_dashboard_stats, name='admin_stats'),
]
