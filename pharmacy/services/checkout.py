"""Checkout form handling and cart-to-order snapshots."""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional, Tuple

from ..errors import ValidationError
from ..utils.dto import money
from ..utils.validators import ensure_positive_int, require_email, require_text
from .pricing import round_money


PAYMENT_METHODS = ("cod", "gcash", "credit_card", "debit_card")


@dataclass(frozen=True)
class ShippingAddress:
    address_line1: str
    city: str
    province: str
    postal_code: str
    address_line2: Optional[str] = None


@dataclass(frozen=True)
class CheckoutForm:
    customer_name: str
    customer_email: str
    customer_phone: str
    shipping_address: ShippingAddress
    payment_method: str = "cod"
    notes: Optional[str] = None


@dataclass(frozen=True)
class OrderLineSnapshot:
    """Plain-value copy of one cart line, detached from the catalog."""

    product_id: Optional[str]
    product_name: str
    product_sku: str
    quantity: int
    unit_price: Decimal
    discount_amount: Decimal
    total_price: Decimal
    product_generic_name: Optional[str] = None
    requires_prescription: bool = False

    def to_dict(self) -> Dict:
        return {
            "product_id": self.product_id,
            "product_name": self.product_name,
            "product_sku": self.product_sku,
            "product_generic_name": self.product_generic_name,
            "quantity": self.quantity,
            "unit_price": money(self.unit_price),
            "discount_amount": money(self.discount_amount),
            "total_price": money(self.total_price),
            "requires_prescription": self.requires_prescription,
        }


@dataclass(frozen=True)
class CreateOrderRequest:
    form: CheckoutForm
    items: Tuple[OrderLineSnapshot, ...]
    subtotal: Decimal
    tax_amount: Decimal
    delivery_fee: Decimal
    total: Decimal
    has_prescription_items: bool
    discount_amount: Decimal = Decimal("0")
    user_id: Optional[str] = None
    idempotency_key: Optional[str] = None

    @classmethod
    def from_payload(
        cls,
        payload: Dict,
        *,
        user_id: Optional[str] = None,
        idempotency_key: Optional[str] = None,
    ) -> "CreateOrderRequest":
        """Parse the checkout wire shape: form fields plus client cart totals."""
        if not isinstance(payload, dict):
            raise ValidationError("request body must be an object")
        form = parse_checkout_form(payload)
        raw_items = payload.get("items") or []
        if not isinstance(raw_items, list) or not raw_items:
            raise ValidationError("Cart is empty. Please add items before checking out.", field="items")
        items = tuple(_parse_line(raw) for raw in raw_items)
        if _amount(payload, "discount_amount", default=0) != 0:
            raise ValidationError("discount_amount must be 0", field="discount_amount")
        # a prescription line always flags the order, whatever the client claims
        has_rx = any(it.requires_prescription for it in items) or bool(payload.get("has_prescription_items", False))
        return cls(
            form=form,
            items=items,
            subtotal=_amount(payload, "subtotal"),
            tax_amount=_amount(payload, "tax_amount"),
            delivery_fee=_amount(payload, "delivery_fee"),
            total=_amount(payload, "total"),
            has_prescription_items=has_rx,
            user_id=user_id,
            idempotency_key=idempotency_key or payload.get("idempotency_key") or None,
        )


def _amount(data: Dict, key: str, default=None) -> Decimal:
    value = data.get(key, default)
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{key} is required", field=key)
    try:
        amount = Decimal(str(value))
    except InvalidOperation:
        raise ValidationError(f"{key} must be a number", field=key) from None
    if not amount.is_finite() or amount < 0:
        raise ValidationError(f"{key} must be a non-negative amount", field=key)
    if amount != round_money(amount):
        raise ValidationError(f"{key} must not have more than 2 decimal places", field=key)
    return amount


def _parse_line(raw: Any) -> OrderLineSnapshot:
    if not isinstance(raw, dict):
        raise ValidationError("each item must be an object", field="items")
    generic = raw.get("product_generic_name")
    return OrderLineSnapshot(
        product_id=str(raw["product_id"]) if raw.get("product_id") else None,
        product_name=require_text(raw.get("product_name"), "product_name", "product_name is required"),
        product_sku=require_text(raw.get("product_sku"), "product_sku", "product_sku is required"),
        product_generic_name=str(generic) if generic else None,
        quantity=ensure_positive_int(raw.get("quantity"), "quantity"),
        unit_price=_amount(raw, "unit_price"),
        discount_amount=_amount(raw, "discount_amount", default=0),
        total_price=_amount(raw, "total_price"),
        requires_prescription=bool(raw.get("requires_prescription", False)),
    )


def parse_checkout_form(payload: Dict) -> CheckoutForm:
    """Validate customer, address and payment fields; first failure wins."""
    address = payload.get("shipping_address") or {}
    if not isinstance(address, dict):
        raise ValidationError("shipping_address must be an object", field="shipping_address")

    name = require_text(payload.get("customer_name"), "customer_name", "Please enter your full name")
    email = require_email(payload.get("customer_email"))
    phone = require_text(payload.get("customer_phone"), "customer_phone", "Please enter your phone number")
    line1 = require_text(address.get("address_line1"), "address_line1", "Please enter your street address")
    city = require_text(address.get("city"), "city", "Please enter your city")
    province = require_text(address.get("province"), "province", "Please enter your province")
    postal = require_text(address.get("postal_code"), "postal_code", "Please enter your postal code")

    method = str(payload.get("payment_method") or "cod").strip().lower()
    if method not in PAYMENT_METHODS:
        raise ValidationError(f"Unsupported payment method: {method}", field="payment_method")

    line2 = str(address.get("address_line2") or "").strip() or None
    notes = str(payload.get("notes") or "").strip() or None
    return CheckoutForm(
        customer_name=name,
        customer_email=email,
        customer_phone=phone,
        shipping_address=ShippingAddress(
            address_line1=line1,
            address_line2=line2,
            city=city,
            province=province,
            postal_code=postal,
        ),
        payment_method=method,
        notes=notes,
    )


def snapshot_lines(cart) -> List[OrderLineSnapshot]:
    return [
        OrderLineSnapshot(
            product_id=it.product_id,
            product_name=it.product.name,
            product_sku=it.product.sku,
            product_generic_name=it.product.generic_name or None,
            quantity=it.quantity,
            unit_price=round_money(it.unit_price),
            discount_amount=round_money(it.discount_amount),
            total_price=round_money(it.total_price),
            requires_prescription=it.product.requires_prescription,
        )
        for it in cart.items
    ]


def build_order_request(
    cart,
    form: CheckoutForm,
    *,
    user_id: Optional[str] = None,
    idempotency_key: Optional[str] = None,
) -> CreateOrderRequest:
    """Freeze a cart and checkout form into an order creation request."""
    if cart.is_empty():
        raise ValidationError("Cart is empty. Please add items before checking out.", field="items")
    totals = cart.totals
    return CreateOrderRequest(
        form=form,
        items=tuple(snapshot_lines(cart)),
        subtotal=totals.subtotal,
        tax_amount=totals.tax_amount,
        delivery_fee=totals.delivery_fee,
        total=totals.total,
        discount_amount=totals.discount_amount,
        has_prescription_items=totals.has_prescription_items,
        user_id=user_id,
        idempotency_key=idempotency_key,
    )
