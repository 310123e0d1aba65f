from datetime import datetime, timezone

import pytest

from storefront.modules.orders.payments import (
    CardDetails,
    CardPaymentGateway,
    PaymentDeclined,
    luhn_valid,
    utcnow,
)

NOW = datetime(2026, 6, 15)


def card(**overrides):
    data = {"holder": "Ada Lovelace", "number": "4242 4242 4242 4242", "exp_month": 12, "exp_year": 2027, "cvc": "123"}
    data.update(overrides)
    return CardDetails.from_dict(data)


@pytest.fixture()
def gateway():
    return CardPaymentGateway(clock=lambda: NOW)


def test_luhn():
    assert luhn_valid("4242424242424242")
    assert luhn_valid("378282246310005")
    assert not luhn_valid("4242424242424241")


@pytest.mark.parametrize(
    "number, brand",
    [("4242424242424242", "VISA"), ("5555555555554444", "MASTERCARD"), ("2223003122003222", "MASTERCARD"), ("378282246310005", "AMEX"), ("6011111111111117", "CARD")],
)
def test_brand_detection(number, brand):
    assert card(number=number).brand == brand


def test_charge_returns_receipt_without_full_number(gateway):
    receipt = gateway.charge(2350, card())
    assert receipt.amount_cents == 2350
    assert receipt.brand == "VISA"
    assert receipt.last4 == "4242"
    assert receipt.reference.startswith("pay_")


@pytest.mark.parametrize(
    "overrides, field",
    [
        ({"holder": ""}, "holder"),
        ({"number": "4242"}, "number"),
        ({"number": "4242424242424241"}, "number"),
        ({"exp_month": 13}, "exp"),
        ({"exp_month": 5, "exp_year": 2026}, "exp"),
        ({"cvc": "12"}, "cvc"),
    ],
)
def test_declines(gateway, overrides, field):
    with pytest.raises(PaymentDeclined) as excinfo:
        gateway.charge(100, card(**overrides))
    assert excinfo.value.field == field


def test_card_expiring_this_month_is_accepted(gateway):
    assert gateway.charge(100, card(exp_month=6, exp_year=2026)).last4 == "4242"


def test_non_numeric_expiry_is_declined():
    with pytest.raises(PaymentDeclined):
        card(exp_month="soon")


def test_zero_amount_is_declined(gateway):
    with pytest.raises(PaymentDeclined):
        gateway.charge(0, card())


def test_default_clock_is_utc():
    now = utcnow()
    assert now.tzinfo is timezone.utc

    gateway = CardPaymentGateway()
    last_year = now.year - 1
    with pytest.raises(PaymentDeclined) as exc:
        gateway.validate(card(exp_month=12, exp_year=last_year))
    assert exc.value.field == "exp"
    gateway.validate(card(exp_month=12, exp_year=now.year + 1))
