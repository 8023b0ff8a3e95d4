from decimal import Decimal
from io import StringIO
from unittest import mock

import httpx
import pytest
from django.core.management import call_command
from django.core.management.base import CommandError

from checkout.exceptions import StatusFetchError
from checkout.management.commands.await_payment import remote_fetcher
from checkout.models import PaymentSession


@pytest.fixture
def payment_session(db):
    return PaymentSession.objects.create(
        session_key='abc', customer_name='Ayse', customer_email='ayse@example.com',
        customer_phone='0555', address='Moda', city='Istanbul', district='Kadikoy',
        subtotal=Decimal('100.00'), total=Decimal('300.00'),
    )


def test_completed_payment(payment_session):
    payment_session.status = 'completed'
    payment_session.save()
    out = StringIO()

    call_command('await_payment', payment_session.merchant_oid, stdout=out)

    assert 'Payment completed after 1 checks' in out.getvalue()


def test_failed_payment(payment_session):
    payment_session.status = 'failed'
    payment_session.save()

    with pytest.raises(CommandError, match='failed'):
        call_command('await_payment', payment_session.merchant_oid, stdout=StringIO())


def test_gives_up_while_pending(payment_session):
    with pytest.raises(CommandError, match='still pending after 2 checks'):
        call_command('await_payment', payment_session.merchant_oid, '--interval', '0',
                     '--max-attempts', '2', stdout=StringIO())


def test_unknown_payment(db):
    with pytest.raises(CommandError, match='Unknown payment'):
        call_command('await_payment', 'SPNOPE', stdout=StringIO())


class TestRemoteFetcher:
    def response(self, status_code, **kwargs):
        return httpx.Response(status_code, request=httpx.Request('GET', 'https://shop.test'),
                              **kwargs)

    def test_reads_status(self):
        with mock.patch('httpx.get', return_value=self.response(200, json={'status': 'pending'})) as get:
            assert remote_fetcher('https://shop.test/')('SP1') == {'status': 'pending'}
        assert get.call_args[0][0] == 'https://shop.test/api/payment/status/SP1'

    def test_server_error_is_retryable(self):
        with mock.patch('httpx.get', return_value=self.response(503)):
            with pytest.raises(StatusFetchError):
                remote_fetcher('https://shop.test')('SP1')

    def test_connection_error_is_retryable(self):
        with mock.patch('httpx.get', side_effect=httpx.ConnectError('refused')):
            with pytest.raises(StatusFetchError):
                remote_fetcher('https://shop.test')('SP1')

    def test_not_found_stops(self):
        with mock.patch('httpx.get', return_value=self.response(404)):
            with pytest.raises(CommandError):
                remote_fetcher('https://shop.test')('SP1')
