from dataclasses import FrozenInstanceError, replace
from decimal import Decimal

import pytest

from pharmacy.errors import ValidationError
from pharmacy.services.cart import Cart
from pharmacy.services.checkout import (
    CreateOrderRequest,
    build_order_request,
    parse_checkout_form,
)
from tests.helpers import checkout_form_payload, make_product


def _cart():
    cart = Cart()
    cart.add_item(make_product(), 2)
    cart.add_item(
        make_product(id="rx-1", sku="RX-1", name="Losartan 50mg", generic_name=None, requires_prescription=True),
        1,
    )
    return cart


def test_parse_checkout_form():
    form = parse_checkout_form(checkout_form_payload(payment_method="GCash"))
    assert form.customer_name == "Juan Dela Cruz"
    assert form.payment_method == "gcash"
    assert form.shipping_address.city == "Makati"
    assert form.shipping_address.address_line2 == "Unit 4B"
    assert form.notes == "Leave at the lobby"


def test_optional_fields_blank_become_none():
    payload = checkout_form_payload(notes="   ")
    payload["shipping_address"]["address_line2"] = ""
    form = parse_checkout_form(payload)
    assert form.notes is None
    assert form.shipping_address.address_line2 is None


@pytest.mark.parametrize(
    "field, value, message",
    [
        ("customer_name", " ", "Please enter your full name"),
        ("customer_email", "juan.example.com", "Please enter a valid email address"),
        ("customer_phone", "", "Please enter your phone number"),
        ("payment_method", "bitcoin", "Unsupported payment method: bitcoin"),
    ],
)
def test_form_field_validation(field, value, message):
    with pytest.raises(ValidationError) as exc:
        parse_checkout_form(checkout_form_payload(**{field: value}))
    assert str(exc.value) == message
    assert exc.value.field == field


@pytest.mark.parametrize("field", ["address_line1", "city", "province", "postal_code"])
def test_address_field_validation(field):
    payload = checkout_form_payload()
    payload["shipping_address"][field] = ""
    with pytest.raises(ValidationError) as exc:
        parse_checkout_form(payload)
    assert exc.value.field == field


def test_build_order_request_snapshots_cart():
    cart = _cart()
    form = parse_checkout_form(checkout_form_payload())
    request = build_order_request(cart, form, user_id="u-1", idempotency_key="k-1")

    assert len(request.items) == 2
    first, second = request.items
    assert first.product_name == "Cetirizine 10mg"
    assert first.product_sku == "SKU-1"
    assert first.product_generic_name == "Cetirizine"
    assert first.quantity == 2
    assert first.unit_price == Decimal("90.00")
    assert first.discount_amount == Decimal("20.00")
    assert first.total_price == Decimal("180.00")
    assert second.product_generic_name is None
    assert second.requires_prescription is True

    assert request.subtotal == cart.subtotal
    assert request.tax_amount == cart.tax_amount
    assert request.delivery_fee == cart.delivery_fee
    assert request.total == cart.total
    assert request.discount_amount == 0
    assert request.has_prescription_items is True
    assert request.user_id == "u-1"
    assert request.idempotency_key == "k-1"


def test_snapshot_is_independent_of_later_cart_changes():
    cart = _cart()
    request = build_order_request(cart, parse_checkout_form(checkout_form_payload()))
    cart.add_item(replace(make_product(), name="Renamed", discount_percentage=50), 5)
    cart.remove_item("rx-1")

    assert len(request.items) == 2
    assert request.items[0].product_name == "Cetirizine 10mg"
    assert request.items[0].quantity == 2
    with pytest.raises(FrozenInstanceError):
        request.items[0].quantity = 9


def test_empty_cart_is_refused():
    form = parse_checkout_form(checkout_form_payload())
    with pytest.raises(ValidationError) as exc:
        build_order_request(Cart(), form)
    assert exc.value.field == "items"


def _wire_payload(**overrides):
    payload = checkout_form_payload()
    payload.update(
        {
            "items": [
                {
                    "product_id": "p-1",
                    "product_name": "Cetirizine 10mg",
                    "product_sku": "SKU-1",
                    "quantity": 2,
                    "unit_price": 90,
                    "discount_amount": 20,
                    "total_price": 180,
                    "requires_prescription": False,
                }
            ],
            "subtotal": 180,
            "tax_amount": 21.6,
            "delivery_fee": 50,
            "total": 251.6,
            "has_prescription_items": False,
        }
    )
    payload.update(overrides)
    return payload


def test_request_from_wire_payload():
    request = CreateOrderRequest.from_payload(_wire_payload(), idempotency_key="abc")
    assert request.subtotal == Decimal("180")
    assert request.tax_amount == Decimal("21.6")
    assert request.total == Decimal("251.6")
    assert request.items[0].total_price == Decimal("180")
    assert request.idempotency_key == "abc"
    assert request.form.customer_email == "juan@example.com"


@pytest.mark.parametrize(
    "overrides, field",
    [
        ({"items": []}, "items"),
        ({"subtotal": None}, "subtotal"),
        ({"total": "lots"}, "total"),
    ],
)
def test_request_from_wire_payload_rejects_bad_input(overrides, field):
    with pytest.raises(ValidationError) as exc:
        CreateOrderRequest.from_payload(_wire_payload(**overrides))
    assert exc.value.field == field


def test_request_from_wire_payload_rejects_non_object():
    with pytest.raises(ValidationError):
        CreateOrderRequest.from_payload(None)


def _with_line(**line_overrides):
    payload = _wire_payload()
    payload["items"] = [dict(payload["items"][0], **line_overrides)]
    return payload


@pytest.mark.parametrize("value", [-500, "-0.01", "Infinity", "NaN", "-Infinity", "10.005"])
def test_wire_amounts_must_be_non_negative_cents(value):
    with pytest.raises(ValidationError) as exc:
        CreateOrderRequest.from_payload(_wire_payload(total=value))
    assert exc.value.field == "total"

    with pytest.raises(ValidationError) as exc:
        CreateOrderRequest.from_payload(_with_line(total_price=value))
    assert exc.value.field == "total_price"


def test_wire_amounts_accept_whole_and_cent_values():
    request = CreateOrderRequest.from_payload(_wire_payload(delivery_fee="50.00", tax_amount="21.60"))
    assert request.delivery_fee == Decimal("50.00")
    assert request.tax_amount == Decimal("21.60")


def test_wire_discount_must_be_zero():
    assert CreateOrderRequest.from_payload(_wire_payload(discount_amount=0)).discount_amount == 0
    with pytest.raises(ValidationError) as exc:
        CreateOrderRequest.from_payload(_wire_payload(discount_amount=600))
    assert exc.value.field == "discount_amount"


def test_prescription_line_flags_wire_order():
    payload = _with_line(requires_prescription=True)
    payload["has_prescription_items"] = False
    request = CreateOrderRequest.from_payload(payload)
    assert request.has_prescription_items is True
    assert request.items[0].requires_prescription is True


def test_wire_order_without_rx_lines_keeps_client_flag():
    assert CreateOrderRequest.from_payload(_wire_payload()).has_prescription_items is False
    assert CreateOrderRequest.from_payload(_wire_payload(has_prescription_items=True)).has_prescription_items is True
