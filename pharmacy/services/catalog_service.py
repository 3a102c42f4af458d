from typing import Dict, Optional
from sqlalchemy import or_
from ..db.session import get_session
from ..models.product import Product
from ..utils.dto import ProductInfo, to_product_dto
from ..utils.pagination import page_window


class CatalogService:
    """Read-only product lookups for the storefront.

    Responsibilities:
    - List/search active products with pagination
    - Resolve a single product into the `ProductInfo` the cart prices from

    Results are read straight from the database so stock counts are live.
    """

    def __init__(self, session_factory=get_session):
        self._session_factory = session_factory

    def list_products(
        self,
        *,
        query: Optional[str] = None,
        requires_prescription: Optional[bool] = None,
        in_stock_only: bool = False,
        page: int = 1,
        page_size: int = 20,
    ) -> Dict:
        """Return dict: { items: [ProductDTO], page, page_size, total }"""
        p, ps, offset = page_window(page, page_size)
        with self._session_factory() as session:
            q = session.query(Product).filter(Product.is_active.is_(True))
            if query:
                like = f"%{query}%"
                q = q.filter(
                    or_(
                        Product.name.ilike(like),
                        Product.generic_name.ilike(like),
                        Product.sku.ilike(like),
                    )
                )
            if requires_prescription is not None:
                q = q.filter(Product.requires_prescription.is_(requires_prescription))
            if in_stock_only:
                q = q.filter(Product.stock_quantity > 0)
            total = q.count()
            rows = (
                q.order_by(Product.sort_order.desc(), Product.name.asc())
                .offset(offset)
                .limit(ps)
                .all()
            )
            items = [to_product_dto(r) for r in rows]
            return {"items": items, "page": p, "page_size": ps, "total": total}

    def get_product(self, product_id: str) -> Optional[ProductInfo]:
        """Return the active product with `product_id`, or None."""
        if not product_id:
            return None
        with self._session_factory() as session:
            r = (
                session.query(Product)
                .filter(Product.id == product_id, Product.is_active.is_(True))
                .first()
            )
            return ProductInfo.from_row(r) if r else None
