"""
==============================================================================
AWAIT PAYMENT - Django Management Command
==============================================================================
Wait for a PayTR payment to settle.

Polls the payment status every few seconds until it is completed or
failed, or until the attempt/time budget runs out.

Usage:
    python manage.py await_payment SP1767225600123A4F9C2
    python manage.py await_payment SP... --base-url https://shop.example.com
    python manage.py await_payment SP... --interval 2 --max-attempts 30

Without --base-url the local database is read.

Author: Storefront Development Team
==============================================================================
"""

import httpx
from django.conf import settings
from django.core.management.base import BaseCommand, CommandError

from checkout.exceptions import StatusFetchError
from checkout.models import PaymentSession
from checkout.poller import PaymentStatusPoller
from checkout.services import payment_status


def local_fetcher(merchant_oid):
    try:
        return payment_status(merchant_oid)
    except PaymentSession.DoesNotExist:
        raise CommandError(f'Unknown payment {merchant_oid}')


def remote_fetcher(base_url, timeout=10.0):
    """Status fetcher reading GET <base_url>/api/payment/status/<oid>."""
    base_url = base_url.rstrip('/')

    def fetch(merchant_oid):
        try:
            response = httpx.get(f"{base_url}/api/payment/status/{merchant_oid}",
                                 timeout=timeout)
        except httpx.HTTPError as exc:
            raise StatusFetchError(str(exc)) from exc

        if response.status_code == 404:
            raise CommandError(f'Unknown payment {merchant_oid}')
        if response.status_code != 200:
            raise StatusFetchError(f'HTTP {response.status_code}')
        try:
            return response.json()
        except ValueError as exc:
            raise StatusFetchError('Invalid JSON in status response') from exc

    return fetch


class Command(BaseCommand):
    help = 'Poll a payment until it is completed or failed'

    def add_arguments(self, parser):
        parser.add_argument('merchant_oid', help='Merchant order id of the payment')
        parser.add_argument(
            '--base-url',
            help='Poll a running deployment over HTTP instead of the local database'
        )
        parser.add_argument(
            '--interval',
            type=float,
            default=settings.PAYMENT_POLL_INTERVAL,
            help='Seconds between status checks'
        )
        parser.add_argument(
            '--max-attempts',
            type=int,
            default=settings.PAYMENT_POLL_MAX_ATTEMPTS,
            help='Give up after this many checks'
        )
        parser.add_argument(
            '--timeout',
            type=float,
            default=settings.PAYMENT_POLL_TIMEOUT,
            help='Give up after this many seconds'
        )

    def handle(self, *args, **options):
        merchant_oid = options['merchant_oid']

        if options['base_url']:
            fetch = remote_fetcher(options['base_url'])
        else:
            fetch = local_fetcher

        poller = PaymentStatusPoller(
            fetch,
            interval=options['interval'],
            max_attempts=options['max_attempts'],
            timeout=options['timeout'],
        )

        self.stdout.write(f'Waiting for payment {merchant_oid}...')
        try:
            result = poller.poll(merchant_oid)
        except KeyboardInterrupt:
            poller.cancel()
            raise CommandError('Interrupted')

        if result.status == 'completed':
            self.stdout.write(self.style.SUCCESS(
                f'✓ Payment completed after {result.attempts} checks '
                f'(order {result.order_number or "-"})'
            ))
        elif result.status == 'failed':
            raise CommandError(f'Payment {merchant_oid} failed')
        else:
            raise CommandError(
                f'Payment {merchant_oid} still {result.status} after '
                f'{result.attempts} checks'
            )
