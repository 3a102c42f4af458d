import logging
from decimal import Decimal
from typing import Callable, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from ..errors import PersistenceFailure, TotalsMismatch, ValidationError
from ..utils.dto import ApiResponse
from ..utils.pagination import page_window
from .checkout import CreateOrderRequest, build_order_request, parse_checkout_form
from .logging import log_event
from .order_store import OrderNumberConflict, OrderStore
from .order_totals import OrderStatus, PaymentStatus, generate_order_number, validate_order_totals


logger = logging.getLogger(__name__)

ORDER_NUMBER_ATTEMPTS = 5
GENERIC_FAILURE = "Failed to create order. Please try again."
LOOKUP_FAILURE = "Failed to load orders. Please try again."
ITEMS_FAILURE = "Failed to create order items. Please try again."


class OrderService:
    """Order creation and retrieval on top of an `OrderStore`."""

    def __init__(
        self,
        store: Optional[OrderStore] = None,
        *,
        number_factory: Callable[[], str] = generate_order_number,
        max_attempts: int = ORDER_NUMBER_ATTEMPTS,
    ):
        self._store = store or OrderStore()
        self._number_factory = number_factory
        self._max_attempts = max(1, int(max_attempts))

    @staticmethod
    def _header_fields(request: CreateOrderRequest, order_number: str) -> Dict:
        form = request.form
        addr = form.shipping_address
        return {
            "order_number": order_number,
            "user_id": request.user_id,
            "idempotency_key": request.idempotency_key,
            "customer_name": form.customer_name,
            "customer_email": form.customer_email,
            "customer_phone": form.customer_phone,
            "delivery_address_line1": addr.address_line1,
            "delivery_address_line2": addr.address_line2,
            "delivery_city": addr.city,
            "delivery_province": addr.province,
            "delivery_postal_code": addr.postal_code,
            "subtotal": request.subtotal,
            "discount_amount": Decimal("0"),
            "tax_amount": request.tax_amount,
            "delivery_fee": request.delivery_fee,
            "total": request.total,
            "status": OrderStatus.PENDING.value,
            "payment_method": form.payment_method,
            "payment_status": PaymentStatus.UNPAID.value,
            "has_prescription_items": request.has_prescription_items,
            "requires_prescription_verification": request.has_prescription_items,
            "notes": form.notes,
        }

    @staticmethod
    def _item_rows(request: CreateOrderRequest) -> List[Dict]:
        # product_id stays null: the snapshot fields carry everything and the
        # catalog row may change or disappear later
        return [
            {
                "product_id": None,
                "product_name": it.product_name,
                "product_sku": it.product_sku,
                "product_generic_name": it.product_generic_name,
                "quantity": it.quantity,
                "unit_price": it.unit_price,
                "discount_amount": it.discount_amount,
                "total_price": it.total_price,
            }
            for it in request.items
        ]

    def _insert_header(self, request: CreateOrderRequest) -> Dict:
        last_conflict = None
        for attempt in range(1, self._max_attempts + 1):
            number = self._number_factory()
            try:
                return self._store.insert_header(self._header_fields(request, number))
            except OrderNumberConflict as exc:
                last_conflict = exc
                log_event("warning", "order.number_conflict", order_number=number, attempt=attempt)
            except SQLAlchemyError as exc:
                raise PersistenceFailure("header", exc) from exc
        raise PersistenceFailure("header", last_conflict)

    def _existing(self, request: CreateOrderRequest) -> Optional[Dict]:
        if not request.idempotency_key:
            return None
        return self._lookup(self._store.get_by_idempotency_key, request.idempotency_key)

    def create_order(self, request: CreateOrderRequest) -> ApiResponse:
        """Validate, then write header and items; undo the header if items fail."""
        try:
            existing = self._existing(request)
        except PersistenceFailure:
            return ApiResponse.fail(GENERIC_FAILURE, reason="persistence")
        if existing:
            return ApiResponse.ok(
                {"order_id": existing["id"], "order_number": existing["order_number"]},
                message="Order already placed",
            )

        try:
            validate_order_totals(request)
        except ValidationError as exc:
            return ApiResponse.fail(str(exc), field=exc.field)
        except TotalsMismatch as exc:
            log_event(
                "error",
                "order.totals_mismatch",
                field=exc.field,
                expected=str(exc.expected),
                supplied=str(exc.supplied),
                items=len(request.items),
            )
            return ApiResponse.fail(GENERIC_FAILURE, reason="totals_mismatch")

        try:
            header = self._insert_header(request)
        except PersistenceFailure as exc:
            # a concurrent submission with the same key may have won the race
            try:
                existing = self._existing(request)
            except PersistenceFailure:
                existing = None
            if existing:
                return ApiResponse.ok(
                    {"order_id": existing["id"], "order_number": existing["order_number"]},
                    message="Order already placed",
                )
            logger.error("Order creation error: %s", exc)
            log_event("error", "order.create_failed", stage=exc.stage, error=str(exc.cause))
            return ApiResponse.fail(GENERIC_FAILURE, reason="persistence")

        try:
            self._store.insert_items(header["id"], self._item_rows(request))
        except SQLAlchemyError as exc:
            logger.error("Order items creation error: %s", exc)
            self._rollback(header["id"])
            log_event("error", "order.create_failed", stage="items", order_id=header["id"], error=str(exc))
            return ApiResponse.fail(ITEMS_FAILURE, reason="persistence")

        log_event(
            "info",
            "order.created",
            order_id=header["id"],
            order_number=header["order_number"],
            items=len(request.items),
            total=float(request.total),
            has_prescription_items=request.has_prescription_items,
        )
        return ApiResponse.ok(
            {"order_id": header["id"], "order_number": header["order_number"]},
            message="Order placed successfully!",
        )

    def checkout(
        self,
        cart,
        payload: Dict,
        *,
        user_id: Optional[str] = None,
        idempotency_key: Optional[str] = None,
    ) -> ApiResponse:
        """Turn the session cart plus checkout form into an order; empty the cart on success."""
        try:
            form = parse_checkout_form(payload or {})
            request = build_order_request(cart, form, user_id=user_id, idempotency_key=idempotency_key)
        except ValidationError as exc:
            return ApiResponse.fail(str(exc), field=exc.field)
        result = self.create_order(request)
        if result.success:
            cart.clear()
        return result

    def _rollback(self, order_id: str) -> None:
        try:
            self._store.delete_header(order_id)
        except SQLAlchemyError as exc:
            # header is orphaned; leave a trail for manual cleanup
            logger.error("Rollback of order %s failed: %s", order_id, exc)
            log_event("error", "order.rollback_failed", order_id=order_id, error=str(exc))
            return
        log_event("warning", "order.rolled_back", order_id=order_id)

    def _lookup(self, fetch, *args, **kwargs):
        try:
            return fetch(*args, **kwargs)
        except SQLAlchemyError as exc:
            logger.error("Order lookup error: %s", exc)
            log_event("error", "order.lookup_failed", lookup=fetch.__name__, error=str(exc))
            raise PersistenceFailure("lookup", exc) from exc

    def get_order(self, order_id: str, *, user_id: Optional[str] = None) -> ApiResponse:
        """Fetch one order with its items; a signed-in caller only sees their own."""
        try:
            order = self._lookup(self._store.get_by_id, order_id) if order_id else None
        except PersistenceFailure:
            return ApiResponse.fail(LOOKUP_FAILURE, reason="persistence")
        if not order or (user_id and order["user_id"] != user_id):
            return ApiResponse.fail("Order not found", status=404)
        return ApiResponse.ok(order)

    def get_order_by_number(self, order_number: str) -> ApiResponse:
        try:
            order = self._lookup(self._store.get_by_number, order_number) if order_number else None
        except PersistenceFailure:
            return ApiResponse.fail(LOOKUP_FAILURE, reason="persistence")
        if not order:
            return ApiResponse.fail("Order not found", status=404)
        return ApiResponse.ok(order)

    def list_user_orders(self, user_id: Optional[str], *, page: int = 1, page_size: int = 20) -> ApiResponse:
        if not user_id:
            return ApiResponse.fail("Authentication required", status=401)
        p, ps, offset = page_window(page, page_size)
        try:
            orders, total = self._lookup(self._store.list_by_user, user_id, offset=offset, limit=ps)
        except PersistenceFailure:
            return ApiResponse.fail(LOOKUP_FAILURE, reason="persistence")
        return ApiResponse.ok({"items": orders, "page": p, "page_size": ps, "total": total})
