"""
==============================================================================
STOREFRONT - ROOT URL CONFIGURATION
==============================================================================
Main URL configuration for the Storefront project.

This file routes requests to the appropriate app URL configurations:
    - /admin/                 : Django admin interface
    - /api/auth/, /api/orders/my, /api/admin/users : Accounts
    - /api/...                : Catalog, cart, coupons, back-office
    - /api/checkout/, /api/payment/ : Checkout wizard and PayTR
    - /api/admin/analytics/   : Sales analytics
    - /reports/               : PDF invoices

Author: Storefront Development Team
==============================================================================
"""

from django.contrib import admin
from django.urls import path, include
from django.conf import settings
from django.conf.urls.static import static


# =============================================================================
# URL PATTERNS
# =============================================================================
urlpatterns = [
    # Django Admin Interface
    # Access at: http://localhost:8000/admin/
    path('admin/', admin.site.urls),

    # ==========================================================================
    # APP URL INCLUDES
    # ==========================================================================

    # Analytics first: its prefix lives inside /api/admin/
    # Example URLs: /api/admin/analytics/sales?days=30
    path('api/admin/analytics/', include('analytics.urls')),

    # Accounts App - Authentication, addresses, order history, admin users
    # Example URLs: /api/auth/login, /api/orders/my
    path('api/', include('accounts.urls')),

    # Checkout App - Wizard, PayTR payment sessions
    # Example URLs: /api/checkout/contact, /api/payment/status/SP...
    path('api/', include('checkout.urls')),

    # Core App - Catalog, cart, coupons, orders, inventory
    # Example URLs: /api/products, /api/admin/orders/1/status
    path('api/', include('core.urls')),

    # Reports App - PDF generation
    # Example URLs: /reports/invoice/1/
    path('reports/', include('reports.urls')),
]

# =============================================================================
# MEDIA FILES IN DEVELOPMENT
# =============================================================================
# Uploaded images are served by the web server in production

if settings.DEBUG:
    urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)


# =============================================================================
# CUSTOMIZE ADMIN INTERFACE
# =============================================================================
admin.site.site_header = "Storefront Admin"
admin.site.site_title = "Storefront Admin Portal"
admin.site.index_title = "Welcome to Storefront Administration"
