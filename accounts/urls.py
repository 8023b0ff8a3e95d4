"""
==============================================================================
ACCOUNTS APP - URL CONFIGURATION
==============================================================================
URL patterns for authentication, the address book and order history.

Mounted under /api/ by the root URL configuration.

URL Patterns:
    - auth/...          : Register, login, logout, profile, password reset
    - auth/addresses    : Saved shipping addresses
    - orders/my         : The customer's orders
    - admin/login, me, users : Back-office accounts

Author: Storefront Development Team
==============================================================================
"""

from django.urls import path
from . import views

# App namespace for URL reversing (e.g., 'accounts:login')
app_name = 'accounts'

urlpatterns = [
    # Authentication
    path('auth/csrf', views.csrf, name='csrf'),
    path('auth/register', views.register, name='register'),
    path('auth/login', views.user_login, name='login'),
    path('auth/logout', views.user_logout, name='logout'),
    path('auth/me', views.me, name='me'),
    path('auth/profile', views.profile, name='profile'),

    # Password reset
    path('auth/forgot-password', views.forgot_password, name='forgot_password'),
    path('auth/verify-reset-token/<str:uid>/<str:token>', views.verify_reset_token,
         name='verify_reset_token'),
    path('auth/reset-password', views.reset_password, name='reset_password'),

    # Address book
    path('auth/addresses', views.addresses, name='addresses'),
    path('auth/addresses/<int:address_id>', views.address_detail, name='address_detail'),

    # Order history
    path('orders/my', views.my_orders, name='my_orders'),
    path('orders/my/<int:order_id>', views.my_order_detail, name='my_order_detail'),

    # Back-office users
    path('admin/login', views.admin_login, name='admin_login'),
    path('admin/me', views.admin_me, name='admin_me'),
    path('admin/users', views.admin_users, name='admin_users'),
    path('admin/users/<int:user_id>', views.admin_user_detail, name='admin_user_detail'),
]
