"""Shared fixtures: in-memory database, seeded catalog, Flask client."""

from decimal import Decimal

import pytest

from app import create_app
from pharmacy.config import AppConfig
from pharmacy.db.session import init_db, make_session_factory
from pharmacy.models.product import Product
from pharmacy.services.catalog_service import CatalogService
from pharmacy.services.order_service import OrderService
from pharmacy.services.order_store import OrderStore


SEED_PRODUCTS = [
    dict(
        id="p-paracetamol",
        sku="PARA-500",
        name="Paracetamol 500mg",
        generic_name="Paracetamol",
        base_price=Decimal("500.00"),
        discount_percentage=15,
        stock_quantity=20,
        max_order_quantity=5,
        requires_prescription=False,
    ),
    dict(
        id="p-amoxicillin",
        sku="AMOX-250",
        name="Amoxicillin 250mg",
        generic_name="Amoxicillin",
        base_price=Decimal("250.00"),
        discount_percentage=0,
        stock_quantity=3,
        max_order_quantity=None,
        requires_prescription=True,
    ),
    dict(
        id="p-vitc",
        sku="VITC-1000",
        name="Vitamin C 1000mg",
        generic_name="Ascorbic Acid",
        base_price=Decimal("100.00"),
        discount_percentage=10,
        stock_quantity=0,
        max_order_quantity=None,
        requires_prescription=False,
    ),
]


@pytest.fixture
def session_factory():
    factory = make_session_factory("sqlite:///:memory:")
    init_db(factory)
    with factory() as session:
        for row in SEED_PRODUCTS:
            session.add(Product(**row))
    yield factory
    factory.engine.dispose()


@pytest.fixture
def catalog(session_factory):
    return CatalogService(session_factory)


@pytest.fixture
def order_store(session_factory):
    return OrderStore(session_factory)


@pytest.fixture
def order_service(order_store):
    return OrderService(order_store)


@pytest.fixture
def app_config():
    return AppConfig(
        database_url="sqlite:///:memory:",
        secret_key="test-secret",
        log_level="WARNING",
        cart_storage_key="pharma-line-cart",
        order_number_attempts=5,
    )


@pytest.fixture
def app(app_config, session_factory):
    flask_app = create_app(app_config, session_factory=session_factory)
    flask_app.config["TESTING"] = True
    return flask_app


@pytest.fixture
def client(app):
    return app.test_client()
