import logging
import time
from dataclasses import dataclass, replace
from decimal import Decimal, InvalidOperation
from typing import Dict, List, Optional

from ..errors import CorruptLocalState, ValidationError
from ..utils.dto import ProductInfo, money
from .pricing import (
    calculate_delivery_fee,
    calculate_price_info,
    calculate_tax,
    round_money,
)


logger = logging.getLogger(__name__)

DEFAULT_CART_ID = "cart-default"


@dataclass(frozen=True)
class CartLineItem:
    id: str
    product_id: str
    product: ProductInfo
    quantity: int
    unit_price: Decimal
    discount_amount: Decimal
    total_price: Decimal

    @classmethod
    def priced(cls, *, item_id: str, product: ProductInfo, quantity: int) -> "CartLineItem":
        info = calculate_price_info(product)
        return cls(
            id=item_id,
            product_id=product.id,
            product=product,
            quantity=quantity,
            unit_price=round_money(info.final_price),
            discount_amount=round_money(info.savings * quantity),
            total_price=round_money(info.final_price * quantity),
        )

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "product": self.product.to_dict(),
            "quantity": self.quantity,
            "unit_price": money(self.unit_price),
            "discount_amount": money(self.discount_amount),
            "total_price": money(self.total_price),
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "CartLineItem":
        product = ProductInfo.from_dict(data["product"])
        quantity = int(data["quantity"])
        if quantity <= 0:
            raise ValueError("stored line item has non-positive quantity")
        return cls(
            id=str(data["id"]),
            product_id=product.id,
            product=product,
            quantity=quantity,
            unit_price=round_money(data["unit_price"]),
            discount_amount=round_money(data["discount_amount"]),
            total_price=round_money(data["total_price"]),
        )


@dataclass(frozen=True)
class CartTotals:
    subtotal: Decimal
    discount_amount: Decimal
    tax_amount: Decimal
    delivery_fee: Decimal
    total: Decimal
    item_count: int
    has_prescription_items: bool


def calculate_totals(items: List[CartLineItem]) -> CartTotals:
    """Derive cart-level totals from the line items alone."""
    subtotal = round_money(sum((it.total_price for it in items), Decimal("0")))
    tax_amount = calculate_tax(subtotal)
    delivery_fee = calculate_delivery_fee(subtotal, bool(items))
    return CartTotals(
        subtotal=subtotal,
        discount_amount=Decimal("0"),  # reserved for coupons
        tax_amount=tax_amount,
        delivery_fee=delivery_fee,
        total=round_money(subtotal + tax_amount + delivery_fee),
        item_count=sum(it.quantity for it in items),
        has_prescription_items=any(it.product.requires_prescription for it in items),
    )


class Cart:
    """Shopping cart aggregate.

    Every mutation recomputes the totals from the line items and writes the
    whole cart to the attached store, if any.
    """

    def __init__(self, store=None, cart_id: str = DEFAULT_CART_ID) -> None:
        self.id = cart_id
        self._store = store
        self._items: List[CartLineItem] = []
        self._totals = calculate_totals(self._items)

    @classmethod
    def load(cls, store) -> "Cart":
        cart = cls(store=store)
        try:
            data = store.load()
            if data is not None:
                cart._restore(data)
        except CorruptLocalState as exc:
            logger.warning("Failed to parse stored cart, starting empty: %s", exc)
            store.discard()
            cart = cls(store=store)
        return cart

    def _restore(self, data: Dict) -> None:
        try:
            items = [CartLineItem.from_dict(raw) for raw in data.get("items") or []]
            cart_id = str(data.get("id") or DEFAULT_CART_ID)
        except (AttributeError, KeyError, TypeError, ValueError, InvalidOperation) as exc:
            raise CorruptLocalState(str(exc)) from exc
        seen = set()
        for it in items:
            if it.product_id in seen:
                raise CorruptLocalState(f"duplicate line for product {it.product_id}")
            seen.add(it.product_id)
        self.id = cart_id
        self._items = items
        self._totals = calculate_totals(items)

    # -- queries -----------------------------------------------------------

    @property
    def items(self) -> List[CartLineItem]:
        return list(self._items)

    @property
    def totals(self) -> CartTotals:
        return self._totals

    @property
    def subtotal(self) -> Decimal:
        return self._totals.subtotal

    @property
    def discount_amount(self) -> Decimal:
        return self._totals.discount_amount

    @property
    def tax_amount(self) -> Decimal:
        return self._totals.tax_amount

    @property
    def delivery_fee(self) -> Decimal:
        return self._totals.delivery_fee

    @property
    def total(self) -> Decimal:
        return self._totals.total

    @property
    def item_count(self) -> int:
        return self._totals.item_count

    @property
    def has_prescription_items(self) -> bool:
        return self._totals.has_prescription_items

    def is_empty(self) -> bool:
        return not self._items

    def find_item(self, product_id: str) -> Optional[CartLineItem]:
        for it in self._items:
            if it.product_id == product_id:
                return it
        return None

    def get_item_quantity(self, product_id: str) -> int:
        it = self.find_item(product_id)
        return it.quantity if it else 0

    def is_in_cart(self, product_id: str) -> bool:
        return self.find_item(product_id) is not None

    def remaining_quantity(self, product: ProductInfo) -> int:
        """How many more units of `product` may still be added."""
        in_cart = self.get_item_quantity(product.id)
        stock = int(product.stock_quantity or 0)
        limit = product.max_order_quantity or stock
        return max(0, min(stock - in_cart, limit - in_cart))

    # -- mutations ---------------------------------------------------------

    def add_item(self, product: ProductInfo, quantity: int) -> None:
        qnty = int(quantity)
        if qnty <= 0:
            raise ValidationError("quantity must be > 0", field="quantity")
        existing = self.find_item(product.id)
        if existing:
            # the captured copy and unit price stay; only the line amounts follow the live discount
            info = calculate_price_info(product)
            new_qty = existing.quantity + qnty
            updated = replace(
                existing,
                quantity=new_qty,
                discount_amount=round_money(info.savings * new_qty),
                total_price=round_money(info.final_price * new_qty),
            )
            self._items = [updated if it.product_id == product.id else it for it in self._items]
        else:
            item_id = f"cart-item-{int(time.time() * 1000)}-{product.id}"
            self._items = self._items + [CartLineItem.priced(item_id=item_id, product=product, quantity=qnty)]
        self._changed()

    def update_quantity(self, product_id: str, quantity: int) -> None:
        qnty = int(quantity)
        if qnty <= 0:
            self.remove_item(product_id)
            return
        existing = self.find_item(product_id)
        if existing is None:
            return
        updated = CartLineItem.priced(item_id=existing.id, product=existing.product, quantity=qnty)
        self._items = [updated if it.product_id == product_id else it for it in self._items]
        self._changed()

    def remove_item(self, product_id: str) -> None:
        self._items = [it for it in self._items if it.product_id != product_id]
        self._changed()

    def clear(self) -> None:
        self.id = DEFAULT_CART_ID
        self._items = []
        self._changed()

    def _changed(self) -> None:
        self._totals = calculate_totals(self._items)
        if self._store is not None:
            self._store.save(self.to_storage())

    # -- serialization -----------------------------------------------------

    def to_storage(self) -> Dict:
        """Persisted shape: lines only. Totals are rebuilt on load."""
        return {"id": self.id, "items": [it.to_dict() for it in self._items]}

    def to_dict(self) -> Dict:
        t = self._totals
        return {
            "id": self.id,
            "items": [it.to_dict() for it in self._items],
            "subtotal": money(t.subtotal),
            "discount_amount": money(t.discount_amount),
            "tax_amount": money(t.tax_amount),
            "delivery_fee": money(t.delivery_fee),
            "total": money(t.total),
            "has_prescription_items": t.has_prescription_items,
            "item_count": t.item_count,
        }
