"""JSON API for the storefront: catalog, cart, checkout and orders."""

from __future__ import annotations

from typing import Any, Dict

from flask import Blueprint, current_app, jsonify, request, session

from pharmacy.errors import ValidationError
from pharmacy.services.cart import Cart
from pharmacy.services.cart_store import CartStore
from pharmacy.services.checkout import CreateOrderRequest
from pharmacy.utils.dto import ApiResponse


api_bp = Blueprint("pharmacy_api", __name__, url_prefix="/api")


def _components() -> Dict[str, Any]:
    return current_app.extensions["pharmacy_components"]


def _config():
    return current_app.config["PHARMACY_CONFIG"]


def _cart_store() -> CartStore:
    return CartStore(session, key=_config().cart_storage_key)


def _current_user_id():
    return session.get("user_id")


def _respond(result: ApiResponse, *, created: bool = False):
    if result.success:
        return jsonify(result.to_dict()), 201 if created else 200
    status = result.details.get("status")
    if status is None:
        status = 500 if result.details.get("reason") else 400
    return jsonify(result.to_dict()), status


@api_bp.get("/products")
def list_products():
    catalog = _components()["catalog"]
    rx = request.args.get("requires_prescription")
    data = catalog.list_products(
        query=request.args.get("q") or None,
        requires_prescription=None if rx is None else rx.lower() in ("1", "true", "yes"),
        in_stock_only=request.args.get("in_stock_only", "").lower() in ("1", "true", "yes"),
        page=request.args.get("page", 1, type=int),
        page_size=request.args.get("page_size", 20, type=int),
    )
    return jsonify(data)


@api_bp.get("/products/<product_id>")
def get_product(product_id: str):
    product = _components()["catalog"].get_product(product_id)
    if product is None:
        return jsonify({"success": False, "error": "Product not found"}), 404
    return jsonify({"success": True, "data": product.to_dict()})


@api_bp.get("/cart")
def get_cart():
    return _respond(_components()["cart_service"].get_cart(_cart_store()))


@api_bp.post("/cart/items")
def add_cart_item():
    payload = request.get_json(silent=True) or {}
    result = _components()["cart_service"].add_item(
        _cart_store(),
        product_id=str(payload.get("product_id", "")).strip(),
        quantity=payload.get("quantity", 1),
    )
    return _respond(result)


@api_bp.patch("/cart/items/<product_id>")
def update_cart_item(product_id: str):
    payload = request.get_json(silent=True) or {}
    result = _components()["cart_service"].update_item(
        _cart_store(),
        product_id=product_id,
        quantity=payload.get("quantity"),
    )
    return _respond(result)


@api_bp.delete("/cart/items/<product_id>")
def remove_cart_item(product_id: str):
    return _respond(_components()["cart_service"].remove_item(_cart_store(), product_id=product_id))


@api_bp.delete("/cart")
def clear_cart():
    return _respond(_components()["cart_service"].clear(_cart_store()))


@api_bp.post("/checkout")
def checkout():
    payload = request.get_json(silent=True) or {}
    cart = Cart.load(_cart_store())
    result = _components()["order_service"].checkout(
        cart,
        payload,
        user_id=_current_user_id(),
        idempotency_key=request.headers.get("Idempotency-Key") or None,
    )
    return _respond(result, created=True)


@api_bp.post("/orders")
def create_order():
    payload = request.get_json(silent=True)
    try:
        order_request = CreateOrderRequest.from_payload(
            payload,
            user_id=_current_user_id(),
            idempotency_key=request.headers.get("Idempotency-Key") or None,
        )
    except ValidationError as exc:
        return _respond(ApiResponse.fail(str(exc), field=exc.field))
    return _respond(_components()["order_service"].create_order(order_request), created=True)


@api_bp.get("/orders")
def list_orders():
    result = _components()["order_service"].list_user_orders(
        _current_user_id(),
        page=request.args.get("page", 1, type=int),
        page_size=request.args.get("page_size", 20, type=int),
    )
    return _respond(result)


@api_bp.get("/orders/<order_id>")
def get_order(order_id: str):
    return _respond(_components()["order_service"].get_order(order_id, user_id=_current_user_id()))


@api_bp.get("/orders/number/<order_number>")
def get_order_by_number(order_number: str):
    return _respond(_components()["order_service"].get_order_by_number(order_number))
