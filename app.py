"""Flask application for the pharmacy storefront API."""

from __future__ import annotations

import logging
from typing import Optional

from flask import Flask

from pharmacy.config import AppConfig, load_env
from pharmacy.db.session import init_db, make_session_factory
from pharmacy.services import logging as event_log
from pharmacy.services.cart_service import CartService
from pharmacy.services.catalog_service import CatalogService
from pharmacy.services.order_service import OrderService
from pharmacy.services.order_store import OrderStore
from routes import api


def create_app(config: Optional[AppConfig] = None, session_factory=None) -> Flask:
    config = config or load_env()
    logging.basicConfig(level=config.log_level)
    event_log.configure(config.log_level)

    session_factory = session_factory or make_session_factory(config.database_url)
    init_db(session_factory)

    app = Flask(__name__)
    app.config["SECRET_KEY"] = config.secret_key
    app.config["PHARMACY_CONFIG"] = config

    catalog = CatalogService(session_factory)
    components = {
        "catalog": catalog,
        "cart_service": CartService(catalog),
        "order_service": OrderService(
            OrderStore(session_factory),
            max_attempts=config.order_number_attempts,
        ),
        "session_factory": session_factory,
    }
    app.extensions["pharmacy_components"] = components

    app.register_blueprint(api.api_bp)

    return app


def main() -> None:
    app = create_app()
    app.run(host="0.0.0.0", port=5000, debug=False)


if __name__ == "__main__":
    main()
