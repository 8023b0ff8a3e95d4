"""
Shared pytest fixtures: users, logged-in clients, a small catalog and
PayTR credentials.
"""

import json
from decimal import Decimal

import pytest
from django.core.cache import cache

from accounts.models import CustomUser
from core.models import Category, Product, ProductVariant, Coupon, Order


PASSWORD = 'Correct-Horse-42'


@pytest.fixture(autouse=True)
def storefront_settings(settings, tmp_path):
    settings.PAYTR_MERCHANT_ID = '123456'
    settings.PAYTR_MERCHANT_KEY = 'test-merchant-key'
    settings.PAYTR_MERCHANT_SALT = 'test-merchant-salt'
    settings.PAYTR_TEST_MODE = True
    settings.SITE_URL = 'https://shop.test'
    settings.MEDIA_ROOT = tmp_path / 'media'
    settings.FREE_SHIPPING_THRESHOLD = Decimal('2500.00')
    settings.SHIPPING_COST = Decimal('200.00')
    settings.OPENAI_API_KEY = ''
    settings.EMAIL_BACKEND = 'django.core.mail.backends.locmem.EmailBackend'
    cache.clear()
    yield settings
    cache.clear()


@pytest.fixture
def customer(db):
    return CustomUser.objects.create_user(
        username='ayse',
        email='ayse@example.com',
        password=PASSWORD,
        first_name='Ayse',
        last_name='Yilmaz',
        phone='05551234567',
    )


@pytest.fixture
def admin_user(db):
    return CustomUser.objects.create_user(
        username='boss',
        email='boss@example.com',
        password=PASSWORD,
        role='admin',
    )


@pytest.fixture
def customer_client(client, customer):
    client.force_login(customer)
    return client


@pytest.fixture
def admin_client(client, admin_user):
    client.force_login(admin_user)
    return client


@pytest.fixture
def category(db):
    return Category.objects.create(name='Dresses')


@pytest.fixture
def product(category):
    return Product.objects.create(
        name='Linen Dress',
        sku='DRS-01',
        category=category,
        base_price=Decimal('1000.00'),
    )


@pytest.fixture
def variant(product):
    return ProductVariant.objects.create(
        product=product, sku='DRS-01-M', size='M', color='Black',
        price=Decimal('1000.00'), stock=10,
    )


@pytest.fixture
def percent_coupon(db):
    return Coupon.objects.create(
        code='SAVE10', discount_type='percentage', discount_value=Decimal('10'),
    )


@pytest.fixture
def fixed_coupon(db):
    return Coupon.objects.create(
        code='MINUS50', discount_type='fixed', discount_value=Decimal('50'),
    )


@pytest.fixture
def make_order(db):
    """Factory for paid orders, bypassing checkout."""
    def make(user=None, total='1200.00', **extra):
        data = dict(
            user=user,
            customer_name='Ayse Yilmaz',
            customer_email='ayse@example.com',
            customer_phone='05551234567',
            address='Moda Cad. 1',
            city='Istanbul',
            district='Kadikoy',
            subtotal=Decimal(total),
            total=Decimal(total),
            payment_status='paid',
        )
        data.update(extra)
        return Order.objects.create(**data)
    return make


@pytest.fixture
def post_json():
    """POST/PUT/PATCH a JSON body with the test client."""
    def send(client, url, data=None, method='post'):
        return getattr(client, method)(
            url, data=json.dumps(data or {}), content_type='application/json'
        )
    return send


@pytest.fixture
def contact_data():
    return {
        'customerName': 'Ayse Yilmaz',
        'customerEmail': 'ayse@example.com',
        'customerPhone': '05551234567',
    }


@pytest.fixture
def address_data():
    return {
        'address': 'Moda Cad. 1 D:3',
        'city': 'Istanbul',
        'district': 'Kadikoy',
        'postalCode': '34710',
    }
