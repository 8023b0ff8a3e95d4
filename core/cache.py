"""
Catalog cache keys and invalidation.

Public catalog listings are cached per resource in Django's cache; every
admin write to a resource calls the matching invalidate_* helper.
"""

import logging

from django.conf import settings
from django.core.cache import cache

logger = logging.getLogger('storefront.cache')

CATEGORIES = 'catalog:categories'
PRODUCTS_PREFIX = 'catalog:products:'
PRODUCT_PREFIX = 'catalog:product:'
ADMIN_STATS = 'admin:stats'

# Keys of cached product list queries, so they can be dropped together
_PRODUCT_LIST_INDEX = 'catalog:products:index'


def product_list_key(category='', featured='', new='', search=''):
    return f"{PRODUCTS_PREFIX}{category}|{featured}|{new}|{search}"


def product_key(slug):
    return f"{PRODUCT_PREFIX}{slug}"


def get_or_set(key, builder, timeout=None):
    """Return the cached value for `key`, building and storing it on a miss."""
    value = cache.get(key)
    if value is None:
        value = builder()
        cache.set(key, value, timeout or settings.CATALOG_CACHE_TTL)
        if key.startswith(PRODUCTS_PREFIX):
            index = cache.get(_PRODUCT_LIST_INDEX) or []
            if key not in index:
                index.append(key)
                cache.set(_PRODUCT_LIST_INDEX, index, None)
    return value


def invalidate_categories():
    cache.delete(CATEGORIES)
    # Product payloads embed the category
    invalidate_products()


def invalidate_products(slug=None):
    index = cache.get(_PRODUCT_LIST_INDEX) or []
    cache.delete_many(index + [_PRODUCT_LIST_INDEX, ADMIN_STATS])
    if slug:
        cache.delete(product_key(slug))
    logger.debug('Product cache invalidated (%d list keys)', len(index))


def invalidate_product(slug):
    invalidate_products(slug)
