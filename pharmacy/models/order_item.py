from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String, func
from .base import Base


class OrderItem(Base):
    __tablename__ = "order_item"

    id = Column(String(36), primary_key=True)
    order_id = Column(String(36), ForeignKey("order.id", ondelete="CASCADE"), nullable=False, index=True)
    # no FK to product: the snapshot must outlive the catalog row
    product_id = Column(String(36), nullable=True)
    product_name = Column(String(255), nullable=False)
    product_sku = Column(String(128), nullable=False)
    product_generic_name = Column(String(255), nullable=True)
    line_number = Column(Integer, nullable=False, default=0)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False)
    discount_amount = Column(Numeric(12, 2), nullable=False)
    total_price = Column(Numeric(12, 2), nullable=False)
    created_at = Column(DateTime, nullable=False, server_default=func.now())
