import secrets
import string
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional

from ..errors import TotalsMismatch, ValidationError


class OrderStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


class PaymentStatus(str, Enum):
    UNPAID = "unpaid"
    PAID = "paid"
    REFUNDED = "refunded"


_BASE36 = string.digits + string.ascii_uppercase


def generate_order_number(today: Optional[date] = None) -> str:
    """Format: ORD-YYYYMMDD-XXXX (e.g. ORD-20250101-A1B2)."""
    day = today or date.today()
    suffix = "".join(secrets.choice(_BASE36) for _ in range(4))
    return f"ORD-{day:%Y%m%d}-{suffix}"


def validate_order_totals(request) -> Decimal:
    """Re-derive subtotal and total from the line snapshots.

    Raises `TotalsMismatch` when either supplied figure disagrees with the
    items. Returns the verified total.
    """
    if not request.items:
        raise ValidationError("Cart is empty. Please add items before checking out.", field="items")
    if request.discount_amount != 0:
        # no coupons: an order-level discount can only come from tampering
        raise ValidationError("discount_amount must be 0", field="discount_amount")
    expected_subtotal = sum((it.total_price for it in request.items), Decimal("0"))
    if expected_subtotal != request.subtotal:
        raise TotalsMismatch("subtotal", expected_subtotal, request.subtotal)
    expected_total = expected_subtotal + request.tax_amount + request.delivery_fee - request.discount_amount
    if expected_total != request.total:
        raise TotalsMismatch("total", expected_total, request.total)
    return expected_total
