from decimal import Decimal

import pytest

from core.models import Coupon, Order, OrderItem, ProductVariant, StockAdjustment, SiteSetting
from core.services import place_order

pytestmark = pytest.mark.django_db


@pytest.fixture
def order(variant, customer):
    return place_order(
        contact={'customer_name': 'Ayse Yilmaz', 'customer_email': 'ayse@example.com',
                 'customer_phone': '0555'},
        address={'address': 'Moda Cad. 1', 'city': 'Istanbul', 'district': 'Kadikoy'},
        lines=[{'product_id': variant.product_id, 'variant_id': variant.pk,
                'product_name': 'Linen Dress', 'variant_details': 'M Black',
                'price': '1000.00', 'quantity': 3}],
        totals={'subtotal': Decimal('3000.00'), 'discount': Decimal('0.00'),
                'shipping': Decimal('0.00'), 'total': Decimal('3000.00')},
        user=customer,
    )


class TestAccess:
    @pytest.mark.parametrize('url', [
        '/api/admin/orders', '/api/admin/products', '/api/admin/coupons',
        '/api/admin/inventory', '/api/admin/stats', '/api/admin/settings',
    ])
    def test_anonymous_gets_401(self, client, url):
        assert client.get(url).status_code == 401

    def test_customer_gets_403(self, customer_client):
        response = customer_client.get('/api/admin/orders')
        assert response.status_code == 403
        assert response.json()['error'] == 'Admin access required'


class TestOrders:
    def test_list_and_search(self, admin_client, order):
        assert len(admin_client.get('/api/admin/orders').json()) == 1
        assert admin_client.get('/api/admin/orders?status=shipped').json() == []
        assert len(admin_client.get('/api/admin/orders?search=ayse').json()) == 1

    def test_detail(self, admin_client, order):
        body = admin_client.get(f'/api/admin/orders/{order.pk}').json()
        assert body['orderNumber'] == order.order_number
        assert body['items'][0]['variantDetails'] == 'M Black'
        assert body['allowedStatuses'] == ['processing', 'cancelled']

    def test_status_transitions(self, admin_client, order, post_json):
        url = f'/api/admin/orders/{order.pk}/status'
        assert post_json(admin_client, url, {'status': 'processing'},
                         method='patch').json()['status'] == 'processing'

        response = post_json(admin_client, url, {'status': 'delivered'}, method='patch')
        assert response.status_code == 400
        assert 'cannot move from processing to delivered' in response.json()['error']

        response = post_json(admin_client, url, {'status': 'lost'}, method='patch')
        assert response.status_code == 400

    def test_cancel_restores_stock(self, admin_client, order, variant):
        variant.refresh_from_db()
        assert variant.stock == 7

        body = admin_client.post(f'/api/admin/orders/{order.pk}/cancel').json()
        assert body['status'] == 'cancelled'
        assert body['paymentStatus'] == 'refunded'

        variant.refresh_from_db()
        assert variant.stock == 10

        # cancelling again is a no-op
        assert admin_client.post(f'/api/admin/orders/{order.pk}/cancel').status_code == 200
        variant.refresh_from_db()
        assert variant.stock == 10

    def test_delivered_order_cannot_be_cancelled(self, admin_client, make_order):
        order = make_order(status='delivered')
        response = admin_client.post(f'/api/admin/orders/{order.pk}/cancel')
        assert response.status_code == 400

    def test_tracking_ships_and_emails(self, admin_client, order, post_json, mailoutbox):
        order.status = 'processing'
        order.save()

        body = post_json(admin_client, f'/api/admin/orders/{order.pk}/tracking', {
            'trackingNumber': 'YK123456', 'shippingCarrier': 'Yurtici Kargo',
            'trackingUrl': 'https://kargo.example.com/YK123456',
        }, method='put').json()

        assert body['status'] == 'shipped'
        assert body['trackingNumber'] == 'YK123456'
        assert body['emailSent'] is True
        assert len(mailoutbox) == 1
        assert 'YK123456' in mailoutbox[0].body
        assert mailoutbox[0].to == ['ayse@example.com']

    def test_tracking_without_email(self, admin_client, order, post_json, mailoutbox):
        body = post_json(admin_client, f'/api/admin/orders/{order.pk}/tracking', {
            'trackingNumber': 'YK1', 'notifyCustomer': False,
        }, method='put').json()
        assert body['status'] == 'pending'
        assert body['emailSent'] is False
        assert mailoutbox == []

    def test_notes(self, admin_client, order, post_json):
        url = f'/api/admin/orders/{order.pk}/notes'
        response = post_json(admin_client, url, {'content': 'Gift wrap'})
        assert response.status_code == 201
        assert response.json()['isInternal'] is True
        assert response.json()['author'] == 'boss@example.com'
        assert [n['content'] for n in admin_client.get(url).json()] == ['Gift wrap']


class TestCoupons:
    def test_create_and_update(self, admin_client, post_json):
        response = post_json(admin_client, '/api/admin/coupons', {
            'code': 'summer20', 'discountType': 'percentage', 'discountValue': '20',
        })
        assert response.status_code == 201
        body = response.json()
        assert body['code'] == 'SUMMER20'
        assert body['isActive'] is True

        body = post_json(admin_client, f'/api/admin/coupons/{body["id"]}',
                         {'isActive': False}, method='patch').json()
        assert body['isActive'] is False
        assert Decimal(body['discountValue']) == Decimal('20')

    def test_duplicate_code(self, admin_client, post_json, percent_coupon):
        response = post_json(admin_client, '/api/admin/coupons', {
            'code': 'save10', 'discountType': 'fixed', 'discountValue': '5',
        })
        assert response.status_code == 400
        assert 'code' in response.json()['errors']

    def test_percentage_over_100(self, admin_client, post_json):
        response = post_json(admin_client, '/api/admin/coupons', {
            'code': 'TOO', 'discountType': 'percentage', 'discountValue': '150',
        })
        assert response.status_code == 400

    def test_influencer_needs_handle(self, admin_client, post_json):
        response = post_json(admin_client, '/api/admin/coupons', {
            'code': 'INF', 'discountType': 'percentage', 'discountValue': '10',
            'isInfluencerCode': True,
        })
        assert 'influencer_instagram' in response.json()['errors']

    def test_usage(self, admin_client, make_order):
        coupon = Coupon.objects.create(code='AYSE15', discount_type='percentage',
                                       discount_value=Decimal('15'), is_influencer_code=True,
                                       influencer_instagram='ayse.style',
                                       commission_rate=Decimal('10'))
        make_order(total='1000.00', coupon=coupon, discount_amount=Decimal('150'))
        make_order(total='500.00', coupon=coupon, status='cancelled')

        body = admin_client.get(f'/api/admin/coupons/{coupon.pk}/usage').json()
        assert body['orderCount'] == 1
        assert body['revenue'] == '1000.00'
        assert body['commission'] == '100.00'

    def test_public_validation(self, client, post_json, percent_coupon):
        body = post_json(client, '/api/coupons/validate',
                         {'code': 'save10', 'orderTotal': '400'}).json()
        assert body['valid'] is True
        assert body['discount'] == '40.00'

        body = post_json(client, '/api/coupons/validate',
                         {'code': 'nope', 'orderTotal': '400'}).json()
        assert body == {'valid': False, 'error': 'Invalid coupon code.'}

    def test_validation_rules(self, percent_coupon):
        from django.utils import timezone
        from datetime import timedelta

        percent_coupon.min_order_amount = Decimal('500')
        assert not percent_coupon.check_valid_for(Decimal('499.99'))[0]
        assert percent_coupon.check_valid_for(Decimal('500'))[0]

        percent_coupon.max_uses = 1
        percent_coupon.used_count = 1
        assert percent_coupon.check_valid_for(Decimal('900')) == (
            False, 'This coupon has reached its usage limit.'
        )

        percent_coupon.max_uses = None
        percent_coupon.expires_at = timezone.now() - timedelta(days=1)
        assert percent_coupon.check_valid_for(Decimal('900')) == (False, 'This coupon has expired.')


class TestCatalogAdmin:
    def test_category_crud(self, admin_client, post_json):
        body = post_json(admin_client, '/api/admin/categories', {'name': 'Yeni Sezon'}).json()
        assert body['slug'] == 'yeni-sezon'
        assert body['isActive'] is True

        url = f'/api/admin/categories/{body["id"]}'
        assert post_json(admin_client, url, {'displayOrder': 3},
                         method='patch').json()['displayOrder'] == 3
        assert admin_client.delete(url).json() == {'success': True}

    def test_variant_crud(self, admin_client, product, post_json):
        response = post_json(admin_client, f'/api/admin/products/{product.pk}/variants', {
            'sku': 'drs-01-l', 'size': 'L', 'price': '1100.00', 'stock': 4,
        })
        assert response.status_code == 201
        variant = response.json()
        assert variant['sku'] == 'DRS-01-L'

        response = post_json(admin_client, f'/api/admin/products/{product.pk}/variants', {
            'sku': 'DRS-01-L', 'size': 'XL', 'price': '1100.00',
        })
        assert response.status_code == 400

        url = f'/api/admin/variants/{variant["id"]}'
        assert post_json(admin_client, url, {'stock': 9}, method='patch').json()['stock'] == 9
        assert admin_client.delete(url).status_code == 200
        assert not ProductVariant.objects.filter(pk=variant['id']).exists()

    def test_product_delete_keeps_order_history(self, admin_client, order, product):
        assert admin_client.delete(f'/api/admin/products/{product.pk}').status_code == 200
        item = OrderItem.objects.get(order=order)
        assert item.product is None
        assert item.product_name == 'Linen Dress'


class TestInventory:
    def test_low_stock(self, admin_client, variant):
        assert admin_client.get('/api/admin/inventory/low-stock').json()['items'] == []
        body = admin_client.get('/api/admin/inventory/low-stock?threshold=10').json()
        assert [i['sku'] for i in body['items']] == ['DRS-01-M']

    def test_bulk_update(self, admin_client, variant, product, post_json):
        other = ProductVariant.objects.create(product=product, size='S', price=Decimal('1000'),
                                              stock=1)
        body = post_json(admin_client, '/api/admin/inventory/bulk-update', {'updates': [
            {'variantId': variant.pk, 'stock': 25, 'reason': 'Restock'},
            {'variantId': other.pk, 'stock': 0},
        ]}).json()

        assert body['updated'] == 2
        variant.refresh_from_db()
        assert variant.stock == 25
        adjustment = StockAdjustment.objects.get(variant=variant)
        assert (adjustment.previous_stock, adjustment.change) == (10, 15)

        history = admin_client.get(f'/api/admin/inventory/adjustments?variantId={variant.pk}').json()
        assert history[0]['reason'] == 'Restock'

    def test_bulk_update_is_atomic(self, admin_client, variant, post_json):
        response = post_json(admin_client, '/api/admin/inventory/bulk-update', {'updates': [
            {'variantId': variant.pk, 'stock': 3},
            {'variantId': 999999, 'stock': 3},
        ]})
        assert response.status_code == 404
        variant.refresh_from_db()
        assert variant.stock == 10

    def test_bulk_update_validation(self, admin_client, variant, post_json):
        response = post_json(admin_client, '/api/admin/inventory/bulk-update', {'updates': [
            {'variantId': variant.pk, 'stock': -1},
        ]})
        assert response.status_code == 400
        assert post_json(admin_client, '/api/admin/inventory/bulk-update',
                         {'updates': []}).status_code == 400

    def test_oversell_clamps_at_zero(self, variant):
        place_order(
            contact={'customer_name': 'A', 'customer_email': 'a@b.co', 'customer_phone': '1'},
            address={'address': 'X', 'city': 'Y', 'district': 'Z'},
            lines=[{'product_id': variant.product_id, 'variant_id': variant.pk,
                    'product_name': 'Linen Dress', 'price': '1000.00', 'quantity': 12}],
            totals={'subtotal': Decimal('12000'), 'discount': Decimal('0'),
                    'shipping': Decimal('0'), 'total': Decimal('12000')},
        )
        variant.refresh_from_db()
        assert variant.stock == 0


class TestBackOffice:
    def test_settings(self, admin_client, post_json):
        body = post_json(admin_client, '/api/admin/settings',
                         {'shopName': 'Moda Butik', 'freeShippingNote': None}).json()
        assert body == {'free_shipping_note': '', 'shop_name': 'Moda Butik'}
        assert SiteSetting.objects.get(key='shop_name').value == 'Moda Butik'

    def test_dashboard_stats(self, admin_client, order, customer):
        body = admin_client.get('/api/admin/stats').json()
        assert body['totalOrders'] == 1
        assert body['pendingOrders'] == 1
        assert body['totalUsers'] == 1
        assert body['revenue'] == '3000.00'

    def test_dealer_approval(self, admin_client, post_json):
        from core.models import Dealer
        dealer = Dealer.objects.create(company_name='Moda', contact_name='A',
                                       email='shop@example.com', phone='1')
        body = post_json(admin_client, f'/api/admin/dealers/{dealer.pk}',
                         {'status': 'approved', 'discountRate': '12.5'}, method='patch').json()
        assert body['status'] == 'approved'
        assert Decimal(body['discountRate']) == Decimal('12.5')
        assert len(admin_client.get('/api/admin/dealers?status=approved').json()) == 1

    def test_quote_answer(self, admin_client, post_json):
        from core.models import Quote
        quote = Quote.objects.create(contact_name='A', email='a@example.com')
        body = post_json(admin_client, f'/api/admin/quotes/{quote.pk}',
                         {'status': 'quoted', 'quotedTotal': '15000'}, method='patch').json()
        assert body['status'] == 'quoted'
        assert Decimal(body['quotedTotal']) == Decimal('15000')


def test_order_numbers_are_sequential(make_order):
    first = make_order()
    second = make_order()
    assert first.order_number.startswith('ORD-')
    assert int(second.order_number[-4:]) == int(first.order_number[-4:]) + 1


def test_order_item_subtotal(order):
    assert order.items.get().subtotal == Decimal('3000.00')
    assert Order.objects.get(pk=order.pk).total == Decimal('3000.00')
