"""
==============================================================================
ANALYTICS APP - VIEWS
==============================================================================
JSON endpoints for the back-office analytics tab.

Endpoints:
    - sales: Daily orders and revenue (Chart.js line chart)
    - best_sellers: Top products
    - comparison: This period vs the previous one
    - influencers: Influencer coupon performance

Author: Storefront Development Team
==============================================================================
"""

from django.http import JsonResponse

from storefront.api import ApiError, api_view, admin_required
from .reports import daily_sales, best_sellers, period_comparison, influencer_performance


def _int_param(request, name, default, maximum):
    try:
        value = int(request.GET.get(name, default))
    except ValueError:
        raise ApiError(f'{name} must be a number')
    if value < 1 or value > maximum:
        raise ApiError(f'{name} must be between 1 and {maximum}')
    return value


@api_view(['GET'])
@admin_required
def sales(request):
    """
    Daily sales for the last ?days=N days (default 30).
    """
    days = _int_param(request, 'days', 30, 365)
    rows = daily_sales(days)

    return JsonResponse({
        'days': days,
        'data': rows,
        'totalOrders': sum(r['orders'] for r in rows),
        'totalRevenue': round(sum(r['revenue'] for r in rows), 2),
        'labels': [r['date'] for r in rows],
        'datasets': [{
            'label': 'Daily Revenue',
            'data': [r['revenue'] for r in rows],
            'borderColor': '#1a237e',
            'backgroundColor': 'rgba(26, 35, 126, 0.1)',
            'fill': True,
        }],
    })


@api_view(['GET'])
@admin_required
def best_sellers_view(request):
    limit = _int_param(request, 'limit', 10, 100)
    return JsonResponse(best_sellers(limit), safe=False)


@api_view(['GET'])
@admin_required
def comparison(request):
    days = _int_param(request, 'days', 30, 365)
    return JsonResponse(period_comparison(days))


@api_view(['GET'])
@admin_required
def influencers(request):
    return JsonResponse(influencer_performance(), safe=False)
