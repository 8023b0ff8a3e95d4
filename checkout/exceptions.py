class CheckoutError(Exception):
    """A checkout step cannot go ahead (empty cart, bad coupon, ...)."""


class PaymentGatewayError(CheckoutError):
    """PayTR refused the token request or could not be reached."""


class InvalidCallback(CheckoutError):
    """A payment callback failed hash verification."""


class StatusFetchError(Exception):
    """A payment status check failed; the poller retries."""
