"""
==============================================================================
CHECKOUT APP - STEP CONTROLLER
==============================================================================
The three-step checkout wizard, kept in the shopper's session.

    Step 1 (contact) -> Step 2 (address) -> Step 3 (payment) -> complete

    - 1 -> 2 needs a valid contact form
    - 2 -> 3 needs valid contact and address forms AND a payment session;
      the payment is initiated exactly once per successful submit
    - Going back to an earlier (or the current) step is always allowed,
      jumping forward is not
    - The order is complete only when the payment status is `completed`;
      `failed` sends the shopper back to step 2 with a banner error

One coupon at most; a second one needs the first removed. The coupon is
frozen while a payment session is live at step 3.

Author: Storefront Development Team
==============================================================================
"""

import logging

from .exceptions import CheckoutError
from .forms import ContactForm, AddressForm, error_list

logger = logging.getLogger('storefront.checkout')

CONTACT, ADDRESS, PAYMENT = 1, 2, 3

CONTACT_FIELDS = ('customer_name', 'customer_email', 'customer_phone')
ADDRESS_FIELDS = ('address', 'city', 'district', 'postal_code', 'notes')

PAYMENT_FAILED_MESSAGE = 'Payment failed. Please check your card details and try again.'
PAYMENT_LOCKED_MESSAGE = 'Go back to the address step to change the coupon.'


class CheckoutWizard:
    """
    Checkout state for one shopper.

    Attributes:
        step (int): 1 contact, 2 address, 3 payment
        order_complete (bool): Payment completed, order created
        contact / address (dict): Last submitted form data
        coupon (dict|None): Applied coupon snapshot (id, code, type, value)
        merchant_oid / paytr_token (str): Live payment session, if any
        errors (dict): Per-step error lists ('contact', 'address')
        banner_error (str): Dismissable error shown above the steps
    """

    SESSION_KEY = 'checkout_wizard'

    def __init__(self, step=CONTACT, order_complete=False, contact=None, address=None,
                 coupon=None, merchant_oid='', paytr_token='', order_number='',
                 errors=None, banner_error=''):
        self.step = step
        self.order_complete = order_complete
        self.contact = contact or {}
        self.address = address or {}
        self.coupon = coupon
        self.merchant_oid = merchant_oid
        self.paytr_token = paytr_token
        self.order_number = order_number
        self.errors = errors or {'contact': [], 'address': []}
        self.banner_error = banner_error

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def to_dict(self):
        return {
            'step': self.step,
            'order_complete': self.order_complete,
            'contact': self.contact,
            'address': self.address,
            'coupon': self.coupon,
            'merchant_oid': self.merchant_oid,
            'paytr_token': self.paytr_token,
            'order_number': self.order_number,
            'errors': self.errors,
            'banner_error': self.banner_error,
        }

    @classmethod
    def from_dict(cls, data):
        return cls(**data) if data else cls()

    @classmethod
    def load(cls, session):
        return cls.from_dict(session.get(cls.SESSION_KEY))

    def save(self, session):
        session[self.SESSION_KEY] = self.to_dict()

    @classmethod
    def clear(cls, session):
        session.pop(cls.SESSION_KEY, None)

    # -------------------------------------------------------------------------
    # Step transitions
    # -------------------------------------------------------------------------

    def _validate_contact(self, data):
        form = ContactForm(data)
        if form.is_valid():
            self.contact = {f: form.cleaned_data[f] for f in CONTACT_FIELDS}
            self.errors['contact'] = []
            return True
        self.contact = {f: data.get(f, '') for f in CONTACT_FIELDS}
        self.errors['contact'] = error_list(form)
        return False

    def _validate_address(self, data):
        form = AddressForm(data)
        if form.is_valid():
            self.address = {f: form.cleaned_data[f] for f in ADDRESS_FIELDS}
            self.errors['address'] = []
            return True
        self.address = {f: data.get(f, '') for f in ADDRESS_FIELDS}
        self.errors['address'] = error_list(form)
        return False

    def submit_contact(self, data):
        """
        Step 1 -> 2.

        Returns:
            bool: True when the wizard advanced
        """
        if self.order_complete:
            return False
        if not self._validate_contact(data):
            return False
        self.step = max(self.step, ADDRESS)
        return True

    def submit_address(self, data, initiate):
        """
        Step 2 -> 3.

        Args:
            data: Address form data
            initiate: callable(payload) -> {'token', 'merchant_oid'}; called
                once when both steps validate. CheckoutError from it keeps
                the wizard at step 2 with a banner error.

        Returns:
            bool: True when the wizard advanced to payment
        """
        if self.order_complete or self.step < ADDRESS:
            return False

        if not self._validate_contact(self.contact):
            self.step = CONTACT
            return False
        if not self._validate_address(data):
            return False

        payload = dict(self.contact)
        payload.update(self.address)
        payload['coupon_code'] = self.coupon['code'] if self.coupon else ''

        try:
            session = initiate(payload)
        except CheckoutError as exc:
            self.banner_error = str(exc)
            self.paytr_token = ''
            self.merchant_oid = ''
            self.step = ADDRESS
            logger.info('Payment initiation failed at checkout: %s', exc)
            return False

        self.paytr_token = session['token']
        self.merchant_oid = session['merchant_oid']
        self.banner_error = ''
        self.step = PAYMENT
        return True

    def go_to_step(self, step):
        """Jump back to an earlier step; forward jumps are refused."""
        if self.order_complete or step < CONTACT or step > self.step:
            return False
        self.step = step
        return True

    def apply_payment_status(self, status):
        """
        Fold a payment status into the wizard.

        Returns:
            bool: True only on the transition into order_complete, so the
            caller clears the cart exactly once
        """
        if self.order_complete:
            return False

        if status == 'completed':
            self.order_complete = True
            self.banner_error = ''
            return True

        if status == 'failed':
            self.banner_error = PAYMENT_FAILED_MESSAGE
            self.paytr_token = ''
            self.merchant_oid = ''
            self.step = ADDRESS

        return False

    def dismiss_error(self):
        self.banner_error = ''

    # -------------------------------------------------------------------------
    # Coupon slot
    # -------------------------------------------------------------------------

    def payment_locked(self):
        """The total is fixed once a payment session is live at step 3."""
        return self.order_complete or (self.step == PAYMENT and bool(self.merchant_oid))

    def apply_coupon(self, code, validate):
        """
        Put a coupon in the single coupon slot.

        Args:
            validate: callable(code) -> (coupon snapshot or None, error or None)

        Returns:
            tuple: (success, error message)
        """
        if self.payment_locked():
            return False, PAYMENT_LOCKED_MESSAGE
        if self.coupon:
            return False, 'Remove the current coupon first.'
        if not (code or '').strip():
            return False, 'Enter a coupon code.'

        coupon, error = validate(code.strip())
        if coupon is None:
            return False, error or 'Invalid coupon code'

        self.coupon = coupon
        return True, None

    def remove_coupon(self):
        """
        Returns:
            tuple: (success, error message)
        """
        if self.payment_locked():
            return False, PAYMENT_LOCKED_MESSAGE
        self.coupon = None
        return True, None
