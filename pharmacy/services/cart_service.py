from typing import Optional

from ..errors import ValidationError
from ..utils.dto import ApiResponse, ProductInfo
from ..utils.validators import ensure_int, ensure_positive_int
from .cart import Cart
from .catalog_service import CatalogService
from .logging import log_event


class CartService:
    """Cart operations with stock checks, persisted through a `CartStore`."""

    def __init__(self, catalog: CatalogService):
        self._catalog = catalog

    @staticmethod
    def _check_limit(product: ProductInfo, quantity: int) -> None:
        if product.max_order_quantity and quantity > product.max_order_quantity:
            raise ValidationError(
                f"You can only order up to {product.max_order_quantity} units of this product.",
                field="quantity",
            )
        if quantity > int(product.stock_quantity or 0):
            raise ValidationError("Not enough stock", field="quantity")

    def get_cart(self, store) -> ApiResponse:
        return ApiResponse.ok(Cart.load(store).to_dict())

    def add_item(self, store, *, product_id: str, quantity: int = 1) -> ApiResponse:
        try:
            if not product_id:
                raise ValidationError("product_id required", field="product_id")
            qnty = ensure_positive_int(quantity, "quantity")
            product = self._catalog.get_product(product_id)
            if product is None:
                return ApiResponse.fail("product not found or inactive", status=404)
            if int(product.stock_quantity or 0) <= 0:
                raise ValidationError("Out of stock", field="quantity")
            cart = Cart.load(store)
            self._check_limit(product, cart.get_item_quantity(product_id) + qnty)
            cart.add_item(product, qnty)
        except ValidationError as exc:
            return ApiResponse.fail(str(exc), field=exc.field)
        log_event("info", "cart.item_added", product_id=product_id, quantity=qnty, item_count=cart.item_count)
        return ApiResponse.ok(cart.to_dict(), message=f"{product.name} added to cart")

    def update_item(self, store, *, product_id: str, quantity: int) -> ApiResponse:
        try:
            qnty = ensure_int(quantity, "quantity")
            cart = Cart.load(store)
            line = cart.find_item(product_id)
            if line is None:
                return ApiResponse.fail("item not found", status=404)
            if qnty > 0:
                # prefer live stock figures, fall back to the captured copy
                product: Optional[ProductInfo] = self._catalog.get_product(product_id) or line.product
                self._check_limit(product, qnty)
            cart.update_quantity(product_id, qnty)
        except ValidationError as exc:
            return ApiResponse.fail(str(exc), field=exc.field)
        log_event("info", "cart.item_updated", product_id=product_id, quantity=qnty, item_count=cart.item_count)
        return ApiResponse.ok(cart.to_dict())

    def remove_item(self, store, *, product_id: str) -> ApiResponse:
        cart = Cart.load(store)
        cart.remove_item(product_id)
        log_event("info", "cart.item_removed", product_id=product_id, item_count=cart.item_count)
        return ApiResponse.ok(cart.to_dict())

    def clear(self, store) -> ApiResponse:
        cart = Cart.load(store)
        cart.clear()
        log_event("info", "cart.cleared")
        return ApiResponse.ok(cart.to_dict())

