from unittest import mock

from checkout.exceptions import StatusFetchError
from checkout.poller import PaymentStatusPoller, PollResult
from checkout.wizard import CheckoutWizard, PAYMENT


class FakeClock:
    """Clock advanced by the fake sleep."""

    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


def scripted(*responses):
    """fetch_status returning (or raising) each response in turn."""
    return mock.Mock(side_effect=list(responses))


def make_poller(fetch, clock, **kwargs):
    kwargs.setdefault('interval', 3.0)
    return PaymentStatusPoller(fetch, sleep=clock.sleep, clock=clock, **kwargs)


def test_polls_until_completed():
    clock = FakeClock()
    fetch = scripted({'status': 'pending'}, {'status': 'pending'},
                     {'status': 'completed', 'orderNumber': 'ORD-20260101-0001'})

    result = make_poller(fetch, clock).poll('SP1')

    assert result == PollResult('completed', 'ORD-20260101-0001', attempts=3)
    assert result.is_terminal
    assert fetch.call_count == 3
    assert clock.sleeps == [3.0, 3.0]


def test_completion_reaches_wizard_once():
    clock = FakeClock()
    fetch = scripted({'status': 'pending'}, {'status': 'pending'}, {'status': 'completed'})
    wizard = CheckoutWizard(step=PAYMENT, merchant_oid='SP1', paytr_token='tok')

    result = make_poller(fetch, clock).poll('SP1')

    assert wizard.apply_payment_status(result.status) is True
    assert wizard.order_complete
    assert wizard.apply_payment_status(result.status) is False


def test_failed_is_terminal():
    clock = FakeClock()
    result = make_poller(scripted({'status': 'failed'}), clock).poll('SP1')
    assert result.status == 'failed'
    assert result.attempts == 1
    assert clock.sleeps == []


def test_max_attempts():
    clock = FakeClock()
    fetch = mock.Mock(return_value={'status': 'pending'})

    result = make_poller(fetch, clock, max_attempts=4).poll('SP1')

    assert result.timed_out
    assert result.status == 'pending'
    assert result.attempts == 4
    assert len(clock.sleeps) == 3


def test_timeout():
    clock = FakeClock()
    fetch = mock.Mock(return_value={'status': 'pending'})

    result = make_poller(fetch, clock, timeout=10).poll('SP1')

    # fetches at t=0, 3, 6, 9; another wait would end past 10s
    assert result.timed_out
    assert result.attempts == 4
    assert clock.now == 9.0


def test_fetch_errors_are_retried():
    clock = FakeClock()
    fetch = scripted(StatusFetchError('HTTP 502'), {'status': 'pending'}, {'status': 'completed'})

    result = make_poller(fetch, clock).poll('SP1')

    assert result.status == 'completed'
    assert result.attempts == 3


def test_cancel_before_poll():
    clock = FakeClock()
    fetch = mock.Mock()
    poller = make_poller(fetch, clock)
    poller.cancel()

    result = poller.poll('SP1')

    assert result.cancelled
    assert result.attempts == 0
    fetch.assert_not_called()


def test_cancel_while_waiting():
    clock = FakeClock()
    fetch = mock.Mock(return_value={'status': 'pending'})
    poller = make_poller(fetch, clock)

    def sleep_then_cancel(seconds):
        clock.sleep(seconds)
        poller.cancel()

    poller._sleep = sleep_then_cancel
    result = poller.poll('SP1')

    assert result.cancelled
    assert result.attempts == 1
    assert poller.cancelled


def test_default_sleep_returns_immediately_when_cancelled():
    fetch = mock.Mock(return_value={'status': 'pending'})
    poller = PaymentStatusPoller(fetch, interval=60, max_attempts=2)
    poller.cancel()
    assert poller.poll('SP1').cancelled
