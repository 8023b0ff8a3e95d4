from decimal import Decimal

import pytest

from core.models import OrderItem, SiteSetting
from reports.views import build_invoice_pdf, can_view_invoice

pytestmark = pytest.mark.django_db


@pytest.fixture
def order(make_order, customer, product):
    order = make_order(user=customer, total='2200.00', subtotal=Decimal('2000.00'),
                       shipping_cost=Decimal('200.00'))
    OrderItem.objects.create(order=order, product=product, product_name=product.name,
                             variant_details='M / Black', price=Decimal('1000.00'), quantity=2)
    return order


def test_owner_downloads_pdf(customer_client, order):
    response = customer_client.get(f'/reports/invoice/{order.pk}/')

    assert response.status_code == 200
    assert response['Content-Type'] == 'application/pdf'
    assert response['Content-Disposition'] == (
        f'attachment; filename="Invoice_{order.order_number}.pdf"'
    )
    assert response.content.startswith(b'%PDF')


def test_admin_can_download(admin_client, order):
    assert admin_client.get(f'/reports/invoice/{order.pk}/').status_code == 200


def test_other_customer_is_refused(client, order, django_user_model):
    other = django_user_model.objects.create_user(username='mehmet', email='mehmet@example.com',
                                                  password='Correct-Horse-42')
    client.force_login(other)
    assert client.get(f'/reports/invoice/{order.pk}/').status_code == 403


def test_anonymous_is_refused(client, order):
    assert client.get(f'/reports/invoice/{order.pk}/').status_code == 401


def test_missing_order(admin_client):
    assert admin_client.get('/reports/invoice/999/').status_code == 404


def test_guest_order_is_admin_only(make_order, customer, admin_user):
    guest_order = make_order()
    assert not can_view_invoice(customer, guest_order)
    assert can_view_invoice(admin_user, guest_order)


def test_markup_in_names_does_not_break_the_pdf(make_order):
    SiteSetting.objects.create(key='shop_name', value='Moda & <Co>')
    order = make_order(customer_name='Ayse <b>', coupon_code='SAVE10',
                       discount_amount=Decimal('100.00'))
    OrderItem.objects.create(order=order, product_name='Tee & Top', price=Decimal('5'), quantity=1)
    assert build_invoice_pdf(order).startswith(b'%PDF')
