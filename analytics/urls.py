"""
==============================================================================
ANALYTICS APP - URL CONFIGURATION
==============================================================================
Mounted under /api/admin/analytics/ by the root URL configuration.

Author: Storefront Development Team
==============================================================================
"""

from django.urls import path
from . import views

# App namespace for URL reversing (e.g., 'analytics:sales')
app_name = 'analytics'

urlpatterns = [
    path('sales', views.sales, name='sales'),
    path('best-sellers', views.best_sellers_view, name='best_sellers'),
    path('comparison', views.comparison, name='comparison'),
    path('influencers', views.influencers, name='influencers'),
]
