"""
==============================================================================
REPORTS APP - URL CONFIGURATION
==============================================================================
URL patterns for PDF documents.

Author: Storefront Development Team
==============================================================================
"""

from django.urls import path
from . import views

app_name = 'reports'

urlpatterns = [
    # Invoice
    path('invoice/<int:order_id>/', views.generate_invoice, name='invoice'),
]
