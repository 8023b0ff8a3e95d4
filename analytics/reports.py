"""
==============================================================================
ANALYTICS APP - SALES AGGREGATIONS
==============================================================================
Dashboard numbers computed with pandas DataFrames built from order
querysets.

Functions:
    1. daily_sales: Orders and revenue per day, zero-filled
    2. best_sellers: Top products by quantity sold
    3. period_comparison: Current vs previous period
    4. influencer_performance: Orders, revenue and commission per
       influencer coupon

Only paid orders that were not cancelled count as sales.

Author: Storefront Development Team
==============================================================================
"""

from datetime import timedelta

import pandas as pd
from django.utils import timezone

from core.models import Coupon, Order, OrderItem


# =============================================================================
# DATA PREPARATION FUNCTIONS
# =============================================================================

def sales_orders():
    """Orders that count as sales."""
    return Order.objects.filter(payment_status='paid').exclude(status='cancelled')


def orders_frame(start=None, end=None):
    """
    One row per sale: id, date (local), total, discount, coupon_id.

    Args:
        start, end: Inclusive local dates bounding the frame
    """
    orders = sales_orders()
    if start is not None:
        orders = orders.filter(created_at__date__gte=start)
    if end is not None:
        orders = orders.filter(created_at__date__lte=end)

    rows = [
        {
            'id': o['id'],
            'date': timezone.localtime(o['created_at']).date(),
            'total': float(o['total']),
            'discount': float(o['discount_amount']),
            'coupon_id': o['coupon_id'],
        }
        for o in orders.values('id', 'created_at', 'total', 'discount_amount', 'coupon_id')
    ]
    return pd.DataFrame(rows, columns=['id', 'date', 'total', 'discount', 'coupon_id'])


def _money(value):
    return round(float(value), 2)


def _percent_change(current, previous):
    if previous == 0:
        return 0.0 if current == 0 else 100.0
    return round((current - previous) / previous * 100, 1)


# =============================================================================
# DASHBOARD AGGREGATIONS
# =============================================================================

def daily_sales(days=30, today=None):
    """
    Orders and revenue for each of the last `days` days (today included).

    Days without sales are present with zeros.

    Returns:
        list: [{date, orders, revenue}] oldest first
    """
    today = today or timezone.localdate()
    start = today - timedelta(days=days - 1)

    df = orders_frame(start, today)
    per_day = df.groupby('date')['total'].agg(['count', 'sum'])

    calendar = [start + timedelta(days=i) for i in range(days)]
    per_day = per_day.reindex(calendar, fill_value=0)

    return [
        {
            'date': day.isoformat(),
            'orders': int(row['count']),
            'revenue': _money(row['sum']),
        }
        for day, row in per_day.iterrows()
    ]


def best_sellers(limit=10):
    """
    Products ranked by quantity sold, then revenue.

    Lines of deleted products are grouped by their stored name.
    """
    items = OrderItem.objects.filter(order__in=sales_orders()).values(
        'product_id', 'product_name', 'quantity', 'subtotal'
    )
    df = pd.DataFrame(
        [
            {
                'product_id': i['product_id'],
                'product_name': i['product_name'],
                'quantity': i['quantity'],
                'revenue': float(i['subtotal']),
            }
            for i in items
        ],
        columns=['product_id', 'product_name', 'quantity', 'revenue'],
    )
    if df.empty:
        return []

    ranked = (
        df.groupby('product_name', as_index=False)
        .agg(product_id=('product_id', 'first'),
             quantity=('quantity', 'sum'),
             revenue=('revenue', 'sum'))
        .sort_values(['quantity', 'revenue'], ascending=False)
        .head(limit)
    )

    return [
        {
            'productId': None if pd.isna(row.product_id) else int(row.product_id),
            'productName': row.product_name,
            'quantity': int(row.quantity),
            'revenue': _money(row.revenue),
        }
        for row in ranked.itertuples(index=False)
    ]


def _period_summary(df):
    orders = int(len(df))
    revenue = float(df['total'].sum()) if orders else 0.0
    return {
        'orders': orders,
        'revenue': _money(revenue),
        'averageOrderValue': _money(revenue / orders) if orders else 0.0,
    }


def period_comparison(days=30, today=None):
    """
    The last `days` days against the `days` days before them.

    Returns:
        dict: current, previous and percent change per metric
    """
    today = today or timezone.localdate()
    current_start = today - timedelta(days=days - 1)
    previous_end = current_start - timedelta(days=1)
    previous_start = previous_end - timedelta(days=days - 1)

    df = orders_frame(previous_start, today)
    current = _period_summary(df[df['date'] >= current_start])
    previous = _period_summary(df[df['date'] <= previous_end])

    return {
        'days': days,
        'current': dict(current, start=current_start.isoformat(), end=today.isoformat()),
        'previous': dict(previous, start=previous_start.isoformat(),
                         end=previous_end.isoformat()),
        'change': {
            key: _percent_change(current[key], previous[key])
            for key in ('orders', 'revenue', 'averageOrderValue')
        },
    }


def influencer_performance():
    """
    Per influencer coupon: orders, revenue, discount given, commission.

    Coupons without sales are listed with zeros.
    """
    coupons = pd.DataFrame(
        [
            {
                'coupon_id': c.pk,
                'code': c.code,
                'influencer_instagram': c.influencer_instagram,
                'commission_rate': float(c.commission_rate),
                'used_count': c.used_count,
            }
            for c in Coupon.objects.filter(is_influencer_code=True)
        ],
        columns=['coupon_id', 'code', 'influencer_instagram', 'commission_rate', 'used_count'],
    )
    if coupons.empty:
        return []

    orders = orders_frame()
    orders = orders[orders['coupon_id'].isin(coupons['coupon_id'])]

    df = coupons.copy()
    if orders.empty:
        df['orders'] = 0
        df['revenue'] = 0.0
        df['discount'] = 0.0
    else:
        per_coupon = orders.groupby('coupon_id').agg(
            orders=('id', 'count'), revenue=('total', 'sum'), discount=('discount', 'sum')
        )
        for column in ('orders', 'revenue', 'discount'):
            df[column] = df['coupon_id'].map(per_coupon[column]).fillna(0)

    df['commission'] = df['revenue'] * df['commission_rate'] / 100
    df = df.sort_values('revenue', ascending=False)

    return [
        {
            'couponId': int(row.coupon_id),
            'code': row.code,
            'influencerInstagram': row.influencer_instagram or None,
            'commissionRate': row.commission_rate,
            'usedCount': int(row.used_count),
            'orders': int(row.orders),
            'revenue': _money(row.revenue),
            'totalDiscount': _money(row.discount),
            'commission': _money(row.commission),
        }
        for row in df.itertuples(index=False)
    ]
