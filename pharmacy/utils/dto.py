from dataclasses import asdict, dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Optional


def money(value: Any) -> float:
    return float(value or 0)


@dataclass(frozen=True)
class ProductInfo:
    """Read-only view of a catalog product as the cart sees it."""

    id: str
    sku: str
    name: str
    base_price: Decimal
    discount_percentage: int = 0
    stock_quantity: int = 0
    max_order_quantity: Optional[int] = None
    requires_prescription: bool = False
    generic_name: Optional[str] = None
    is_active: bool = True

    @classmethod
    def from_row(cls, row: Any) -> "ProductInfo":
        return cls(
            id=row.id,
            sku=row.sku,
            name=row.name,
            base_price=Decimal(str(row.base_price or 0)),
            discount_percentage=int(row.discount_percentage or 0),
            stock_quantity=int(row.stock_quantity or 0),
            max_order_quantity=row.max_order_quantity,
            requires_prescription=bool(row.requires_prescription),
            generic_name=row.generic_name,
            is_active=bool(row.is_active),
        )

    @classmethod
    def from_dict(cls, data: Dict) -> "ProductInfo":
        max_qty = data.get("max_order_quantity")
        return cls(
            id=str(data["id"]),
            sku=str(data["sku"]),
            name=str(data["name"]),
            base_price=Decimal(str(data["base_price"])),
            discount_percentage=int(data.get("discount_percentage") or 0),
            stock_quantity=int(data.get("stock_quantity") or 0),
            max_order_quantity=int(max_qty) if max_qty else None,
            requires_prescription=bool(data.get("requires_prescription", False)),
            generic_name=data.get("generic_name"),
            is_active=bool(data.get("is_active", True)),
        )

    def to_dict(self) -> Dict:
        data = asdict(self)
        data["base_price"] = money(self.base_price)
        return data


@dataclass
class ApiResponse:
    """Structured success/failure result handed back across the core boundary."""

    success: bool
    data: Optional[Any] = None
    error: Optional[str] = None
    message: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(cls, data: Any = None, message: Optional[str] = None) -> "ApiResponse":
        return cls(success=True, data=data, message=message)

    @classmethod
    def fail(cls, error: str, **details) -> "ApiResponse":
        return cls(success=False, error=error, details=details)

    def to_dict(self) -> Dict:
        out: Dict[str, Any] = {"success": self.success}
        if self.data is not None:
            out["data"] = self.data
        if self.error:
            out["error"] = self.error
        if self.message:
            out["message"] = self.message
        return out


def to_product_dto(row: Any) -> Dict:
    return {
        "id": getattr(row, "id", None),
        "sku": getattr(row, "sku", None),
        "name": getattr(row, "name", None),
        "slug": getattr(row, "slug", None),
        "generic_name": getattr(row, "generic_name", None),
        "description": getattr(row, "description", None),
        "base_price": money(getattr(row, "base_price", 0)),
        "discount_percentage": int(getattr(row, "discount_percentage", 0) or 0),
        "stock_quantity": getattr(row, "stock_quantity", 0) or 0,
        "max_order_quantity": getattr(row, "max_order_quantity", None),
        "requires_prescription": bool(getattr(row, "requires_prescription", False)),
        "is_active": bool(getattr(row, "is_active", True)),
    }


def to_order_item_dto(row: Any) -> Dict:
    return {
        "id": row.id,
        "order_id": row.order_id,
        "product_id": row.product_id,
        "product_name": row.product_name,
        "product_sku": row.product_sku,
        "product_generic_name": row.product_generic_name,
        "quantity": row.quantity,
        "unit_price": money(row.unit_price),
        "discount_amount": money(row.discount_amount),
        "total_price": money(row.total_price),
    }


def to_order_dto(row: Any, items: Optional[List[Any]] = None) -> Dict:
    dto = {
        "id": row.id,
        "order_number": row.order_number,
        "user_id": row.user_id,
        "customer_name": row.customer_name,
        "customer_email": row.customer_email,
        "customer_phone": row.customer_phone,
        "delivery_address_line1": row.delivery_address_line1,
        "delivery_address_line2": row.delivery_address_line2,
        "delivery_city": row.delivery_city,
        "delivery_province": row.delivery_province,
        "delivery_postal_code": row.delivery_postal_code,
        "subtotal": money(row.subtotal),
        "discount_amount": money(row.discount_amount),
        "tax_amount": money(row.tax_amount),
        "delivery_fee": money(row.delivery_fee),
        "total": money(row.total),
        "status": row.status,
        "payment_method": row.payment_method,
        "payment_status": row.payment_status,
        "has_prescription_items": bool(row.has_prescription_items),
        "requires_prescription_verification": bool(row.requires_prescription_verification),
        "notes": row.notes,
        "created_at": row.created_at.isoformat() if row.created_at else None,
    }
    if items is not None:
        dto["items"] = [to_order_item_dto(it) for it in items]
    return dto
