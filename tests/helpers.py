"""Builders shared by the test modules."""

from dataclasses import replace
from decimal import Decimal

from pharmacy.utils.dto import ProductInfo


def make_product(**overrides) -> ProductInfo:
    base = ProductInfo(
        id="p-1",
        sku="SKU-1",
        name="Cetirizine 10mg",
        base_price=Decimal("100"),
        discount_percentage=10,
        stock_quantity=50,
        max_order_quantity=None,
        requires_prescription=False,
        generic_name="Cetirizine",
    )
    return replace(base, **overrides)


def checkout_form_payload(**overrides):
    payload = {
        "customer_name": "Juan Dela Cruz",
        "customer_email": "juan@example.com",
        "customer_phone": "09171234567",
        "shipping_address": {
            "address_line1": "123 Rizal St.",
            "address_line2": "Unit 4B",
            "city": "Makati",
            "province": "Metro Manila",
            "postal_code": "1200",
        },
        "payment_method": "cod",
        "notes": "Leave at the lobby",
    }
    payload.update(overrides)
    return payload
