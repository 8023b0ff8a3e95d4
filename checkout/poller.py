"""
Payment status polling.

Polls a status source at a fixed interval until the payment is terminal,
the attempt budget or the deadline runs out, or the poll is cancelled.
Polls never overlap: the next fetch starts only after the previous one
returned.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Optional

from .exceptions import StatusFetchError

logger = logging.getLogger('storefront.checkout.poller')

TERMINAL_STATUSES = ('completed', 'failed')


@dataclass
class PollResult:
    status: str
    order_number: Optional[str] = None
    attempts: int = 0
    timed_out: bool = False
    cancelled: bool = False

    @property
    def is_terminal(self):
        return self.status in TERMINAL_STATUSES


class PaymentStatusPoller:
    """
    Sequential, bounded poll of one payment's status.

    Args:
        fetch_status: callable(merchant_oid) -> {'status', 'orderNumber'?};
            may raise StatusFetchError, which is logged and retried
        interval: Seconds between polls
        max_attempts: Give up after this many fetches (None: unbounded)
        timeout: Give up after this many seconds (None: unbounded)
        sleep: callable(seconds); defaults to a wait that cancel() interrupts
        clock: Monotonic clock
    """

    def __init__(self, fetch_status, interval=3.0, max_attempts=None, timeout=None,
                 sleep=None, clock=time.monotonic):
        self.fetch_status = fetch_status
        self.interval = interval
        self.max_attempts = max_attempts
        self.timeout = timeout
        self.clock = clock
        self._cancelled = threading.Event()
        self._sleep = sleep or self._cancelled.wait

    def cancel(self):
        self._cancelled.set()

    @property
    def cancelled(self):
        return self._cancelled.is_set()

    def poll(self, merchant_oid):
        started = self.clock()
        attempts = 0
        status = 'pending'
        order_number = None

        while True:
            if self.cancelled:
                logger.info('Polling %s cancelled after %d attempts', merchant_oid, attempts)
                return PollResult(status, order_number, attempts, cancelled=True)

            attempts += 1
            try:
                data = self.fetch_status(merchant_oid)
            except StatusFetchError as exc:
                logger.warning('Status check %d for %s failed: %s', attempts, merchant_oid, exc)
            else:
                status = data.get('status', 'pending')
                order_number = data.get('orderNumber') or order_number
                logger.debug('Status check %d for %s: %s', attempts, merchant_oid, status)

            if status in TERMINAL_STATUSES:
                return PollResult(status, order_number, attempts)

            if self.max_attempts is not None and attempts >= self.max_attempts:
                logger.info('Gave up on %s after %d attempts', merchant_oid, attempts)
                return PollResult(status, order_number, attempts, timed_out=True)

            if self.timeout is not None and self.clock() - started + self.interval > self.timeout:
                logger.info('Gave up on %s after %.0fs', merchant_oid, self.clock() - started)
                return PollResult(status, order_number, attempts, timed_out=True)

            self._sleep(self.interval)
