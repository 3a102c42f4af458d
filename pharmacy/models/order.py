from sqlalchemy import Boolean, Column, DateTime, Numeric, String, Text, func
from .base import Base


class Order(Base):
    __tablename__ = "order"

    id = Column(String(36), primary_key=True)
    order_number = Column(String(32), nullable=False, unique=True)
    user_id = Column(String(128), nullable=True, index=True)
    idempotency_key = Column(String(128), nullable=True, unique=True)

    customer_name = Column(String(255), nullable=False)
    customer_email = Column(String(255), nullable=False)
    customer_phone = Column(String(64), nullable=False)

    delivery_address_line1 = Column(String(255), nullable=False)
    delivery_address_line2 = Column(String(255), nullable=True)
    delivery_city = Column(String(128), nullable=False)
    delivery_province = Column(String(128), nullable=False)
    delivery_postal_code = Column(String(16), nullable=False)

    subtotal = Column(Numeric(12, 2), nullable=False)
    discount_amount = Column(Numeric(12, 2), nullable=False, default=0)
    tax_amount = Column(Numeric(12, 2), nullable=False)
    delivery_fee = Column(Numeric(12, 2), nullable=False)
    total = Column(Numeric(12, 2), nullable=False)

    status = Column(String(32), nullable=False)
    payment_method = Column(String(32), nullable=True)
    payment_status = Column(String(32), nullable=False)

    has_prescription_items = Column(Boolean, nullable=False, default=False)
    requires_prescription_verification = Column(Boolean, nullable=False, default=False)

    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now())
