from decimal import Decimal

import pytest

from pharmacy.models.product import Product
from pharmacy.services.cart import Cart
from pharmacy.services.cart_service import CartService
from pharmacy.services.cart_store import CartStore


@pytest.fixture
def service(catalog):
    return CartService(catalog)


@pytest.fixture
def store():
    return CartStore({})


def test_add_item_prices_from_catalog(service, store):
    result = service.add_item(store, product_id="p-paracetamol", quantity=2)
    assert result.success
    data = result.data
    assert data["item_count"] == 2
    assert data["items"][0]["unit_price"] == 425.0
    assert data["items"][0]["total_price"] == 850.0
    assert data["subtotal"] == 850.0
    assert data["tax_amount"] == 102.0
    assert data["delivery_fee"] == 50.0
    assert data["total"] == 1002.0


def test_add_unknown_product_fails(service, store):
    result = service.add_item(store, product_id="p-missing", quantity=1)
    assert not result.success
    assert result.details["status"] == 404


def test_add_out_of_stock_product_fails(service, store):
    result = service.add_item(store, product_id="p-vitc", quantity=1)
    assert not result.success
    assert result.error == "Out of stock"
    assert Cart.load(store).is_empty()


def test_add_beyond_max_order_quantity_fails(service, store):
    assert service.add_item(store, product_id="p-paracetamol", quantity=4).success
    result = service.add_item(store, product_id="p-paracetamol", quantity=2)
    assert not result.success
    assert result.error == "You can only order up to 5 units of this product."
    assert Cart.load(store).get_item_quantity("p-paracetamol") == 4


def test_add_beyond_stock_fails(service, store):
    result = service.add_item(store, product_id="p-amoxicillin", quantity=4)
    assert not result.success
    assert result.error == "Not enough stock"
    assert result.details["field"] == "quantity"


@pytest.mark.parametrize("qty", [0, -1, "abc"])
def test_add_rejects_bad_quantity(service, store, qty):
    result = service.add_item(store, product_id="p-paracetamol", quantity=qty)
    assert not result.success
    assert result.details["field"] == "quantity"


def test_add_requires_product_id(service, store):
    result = service.add_item(store, product_id="", quantity=1)
    assert not result.success
    assert result.details["field"] == "product_id"


def test_update_item_checks_limits(service, store):
    service.add_item(store, product_id="p-amoxicillin", quantity=1)
    assert service.update_item(store, product_id="p-amoxicillin", quantity=3).success
    result = service.update_item(store, product_id="p-amoxicillin", quantity=4)
    assert not result.success
    assert Cart.load(store).get_item_quantity("p-amoxicillin") == 3


def test_update_to_zero_removes(service, store):
    service.add_item(store, product_id="p-amoxicillin", quantity=2)
    result = service.update_item(store, product_id="p-amoxicillin", quantity=0)
    assert result.success
    assert result.data["items"] == []


def test_update_missing_line_is_not_found(service, store):
    result = service.update_item(store, product_id="p-amoxicillin", quantity=1)
    assert not result.success
    assert result.details["status"] == 404


def test_update_uses_captured_product_when_catalog_row_is_gone(service, store, session_factory):
    service.add_item(store, product_id="p-amoxicillin", quantity=1)
    with session_factory() as session:
        session.query(Product).filter(Product.id == "p-amoxicillin").update({"is_active": False})
    result = service.update_item(store, product_id="p-amoxicillin", quantity=2)
    assert result.success
    assert result.data["items"][0]["total_price"] == 500.0


def test_remove_and_clear(service, store):
    service.add_item(store, product_id="p-amoxicillin", quantity=1)
    service.add_item(store, product_id="p-paracetamol", quantity=1)
    assert service.remove_item(store, product_id="p-amoxicillin").data["item_count"] == 1
    assert service.remove_item(store, product_id="p-amoxicillin").success
    cleared = service.clear(store)
    assert cleared.success
    assert cleared.data["total"] == 0.0
    assert Cart.load(store).is_empty()


def test_cart_lines_survive_catalog_price_change(service, store, session_factory):
    service.add_item(store, product_id="p-paracetamol", quantity=1)
    with session_factory() as session:
        session.query(Product).filter(Product.id == "p-paracetamol").update({"base_price": Decimal("900.00")})
    cart = service.get_cart(store).data
    assert cart["items"][0]["total_price"] == 425.0
