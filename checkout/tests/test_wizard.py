from unittest import mock

import pytest

from checkout.exceptions import PaymentGatewayError, CheckoutError
from checkout.wizard import (
    CheckoutWizard, CONTACT, ADDRESS, PAYMENT, PAYMENT_FAILED_MESSAGE, PAYMENT_LOCKED_MESSAGE,
)


CONTACT_DATA = {
    'customer_name': 'Ayse Yilmaz',
    'customer_email': 'ayse@example.com',
    'customer_phone': '05551234567',
}
ADDRESS_DATA = {
    'address': 'Moda Cad. 1',
    'city': 'Istanbul',
    'district': 'Kadikoy',
    'postal_code': '',
    'notes': '',
}


def initiator(token='tok-1', merchant_oid='SP1'):
    return mock.Mock(return_value={'token': token, 'merchant_oid': merchant_oid})


@pytest.fixture
def at_address():
    wizard = CheckoutWizard()
    assert wizard.submit_contact(CONTACT_DATA)
    return wizard


@pytest.fixture
def at_payment(at_address):
    assert at_address.submit_address(ADDRESS_DATA, initiator())
    return at_address


class TestContactStep:
    def test_valid_contact_advances(self):
        wizard = CheckoutWizard()
        assert wizard.submit_contact(CONTACT_DATA)
        assert wizard.step == ADDRESS
        assert wizard.errors['contact'] == []

    @pytest.mark.parametrize('email', ['a@b', 'no-at.com', 'a b@c.com', '@b.com', 'a@.'])
    def test_bad_email_blocks(self, email):
        wizard = CheckoutWizard()
        assert not wizard.submit_contact(dict(CONTACT_DATA, customer_email=email))
        assert wizard.step == CONTACT
        assert 'Enter a valid email address.' in wizard.errors['contact']

    @pytest.mark.parametrize('email', ['a@b.c', 'first.last@mail.example.com'])
    def test_minimal_email_accepted(self, email):
        wizard = CheckoutWizard()
        assert wizard.submit_contact(dict(CONTACT_DATA, customer_email=email))

    def test_missing_fields_listed(self):
        wizard = CheckoutWizard()
        assert not wizard.submit_contact({'customer_email': 'ayse@example.com'})
        assert 'Full name is required.' in wizard.errors['contact']
        assert 'Phone number is required.' in wizard.errors['contact']

    def test_submitted_values_kept_on_error(self):
        wizard = CheckoutWizard()
        wizard.submit_contact(dict(CONTACT_DATA, customer_email='broken'))
        assert wizard.contact['customer_name'] == 'Ayse Yilmaz'


class TestAddressStep:
    def test_initiates_payment_exactly_once(self, at_address):
        initiate = initiator()
        assert at_address.submit_address(ADDRESS_DATA, initiate)

        initiate.assert_called_once()
        payload = initiate.call_args[0][0]
        assert payload['customer_email'] == 'ayse@example.com'
        assert payload['city'] == 'Istanbul'
        assert payload['coupon_code'] == ''
        assert at_address.step == PAYMENT
        assert at_address.paytr_token == 'tok-1'
        assert at_address.merchant_oid == 'SP1'

    def test_invalid_address_does_not_initiate(self, at_address):
        initiate = initiator()
        assert not at_address.submit_address(dict(ADDRESS_DATA, city=''), initiate)
        initiate.assert_not_called()
        assert at_address.step == ADDRESS
        assert 'City is required.' in at_address.errors['address']

    def test_gateway_failure_sets_banner(self, at_address):
        initiate = mock.Mock(side_effect=PaymentGatewayError('Payment service could not be reached.'))
        assert not at_address.submit_address(ADDRESS_DATA, initiate)
        assert at_address.step == ADDRESS
        assert at_address.banner_error == 'Payment service could not be reached.'
        assert at_address.paytr_token == ''

    def test_checkout_error_sets_banner(self, at_address):
        initiate = mock.Mock(side_effect=CheckoutError('Your cart is empty.'))
        assert not at_address.submit_address(ADDRESS_DATA, initiate)
        assert at_address.banner_error == 'Your cart is empty.'

    def test_not_reachable_from_contact_step(self):
        initiate = initiator()
        wizard = CheckoutWizard()
        assert not wizard.submit_address(ADDRESS_DATA, initiate)
        initiate.assert_not_called()
        assert wizard.step == CONTACT

    def test_coupon_code_is_forwarded(self, at_address):
        at_address.coupon = {'id': 1, 'code': 'SAVE10'}
        initiate = initiator()
        at_address.submit_address(ADDRESS_DATA, initiate)
        assert initiate.call_args[0][0]['coupon_code'] == 'SAVE10'


class TestNavigation:
    def test_back_is_allowed(self, at_payment):
        assert at_payment.go_to_step(CONTACT)
        assert at_payment.step == CONTACT

    def test_current_step_is_allowed(self, at_address):
        assert at_address.go_to_step(ADDRESS)

    def test_forward_jump_refused(self, at_address):
        assert not at_address.go_to_step(PAYMENT)
        assert at_address.step == ADDRESS

    def test_out_of_range_refused(self, at_address):
        assert not at_address.go_to_step(0)

    def test_complete_wizard_is_frozen(self, at_payment):
        at_payment.apply_payment_status('completed')
        assert not at_payment.go_to_step(CONTACT)
        assert not at_payment.submit_contact(CONTACT_DATA)


class TestPaymentStatus:
    def test_completed_once(self, at_payment):
        assert at_payment.apply_payment_status('completed')
        assert at_payment.order_complete
        assert not at_payment.apply_payment_status('completed')

    def test_pending_changes_nothing(self, at_payment):
        assert not at_payment.apply_payment_status('pending')
        assert at_payment.step == PAYMENT
        assert not at_payment.order_complete

    def test_failed_returns_to_address(self, at_payment):
        assert not at_payment.apply_payment_status('failed')
        assert at_payment.step == ADDRESS
        assert at_payment.banner_error == PAYMENT_FAILED_MESSAGE
        assert at_payment.merchant_oid == ''

    def test_dismiss_error(self, at_payment):
        at_payment.apply_payment_status('failed')
        at_payment.dismiss_error()
        assert at_payment.banner_error == ''


class TestCouponSlot:
    def test_apply(self):
        wizard = CheckoutWizard()
        validate = mock.Mock(return_value=({'id': 1, 'code': 'SAVE10'}, None))
        assert wizard.apply_coupon(' save10 ', validate) == (True, None)
        validate.assert_called_once_with('save10')
        assert wizard.coupon['code'] == 'SAVE10'

    def test_second_coupon_needs_removal(self):
        wizard = CheckoutWizard(coupon={'id': 1, 'code': 'SAVE10'})
        validate = mock.Mock()
        assert wizard.apply_coupon('OTHER', validate) == (False, 'Remove the current coupon first.')
        validate.assert_not_called()

        wizard.remove_coupon()
        validate.return_value = ({'id': 2, 'code': 'OTHER'}, None)
        assert wizard.apply_coupon('OTHER', validate)[0]

    def test_blank_code(self):
        assert CheckoutWizard().apply_coupon('  ', mock.Mock()) == (False, 'Enter a coupon code.')

    def test_invalid_code_message(self):
        wizard = CheckoutWizard()
        assert wizard.apply_coupon('NOPE', lambda code: (None, 'This coupon has expired.')) == (
            False, 'This coupon has expired.'
        )
        assert wizard.apply_coupon('NOPE', lambda code: (None, None)) == (
            False, 'Invalid coupon code'
        )
        assert wizard.coupon is None

    def test_frozen_while_payment_is_live(self, at_payment):
        at_payment.coupon = {'id': 1, 'code': 'SAVE10'}
        validate = mock.Mock()

        assert at_payment.apply_coupon('OTHER', validate) == (False, PAYMENT_LOCKED_MESSAGE)
        assert at_payment.remove_coupon() == (False, PAYMENT_LOCKED_MESSAGE)
        assert at_payment.coupon['code'] == 'SAVE10'
        validate.assert_not_called()

    def test_going_back_unfreezes_and_reinitiates(self, at_payment):
        assert at_payment.go_to_step(ADDRESS)
        validate = mock.Mock(return_value=({'id': 1, 'code': 'SAVE10'}, None))
        assert at_payment.apply_coupon('SAVE10', validate) == (True, None)

        initiate = initiator(token='tok-2', merchant_oid='SP2')
        assert at_payment.submit_address(ADDRESS_DATA, initiate)
        assert initiate.call_args[0][0]['coupon_code'] == 'SAVE10'
        assert at_payment.merchant_oid == 'SP2'

    def test_frozen_after_completion(self, at_payment):
        at_payment.apply_payment_status('completed')
        assert at_payment.apply_coupon('SAVE10', mock.Mock())[0] is False


def test_session_round_trip(at_payment):
    session = {}
    at_payment.save(session)
    restored = CheckoutWizard.load(session)
    assert restored.to_dict() == at_payment.to_dict()

    CheckoutWizard.clear(session)
    assert CheckoutWizard.load(session).step == CONTACT
