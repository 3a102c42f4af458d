from typing import Dict, List, Optional, Tuple
from uuid import uuid4

from sqlalchemy.exc import IntegrityError

from ..db.session import get_session
from ..models.order import Order
from ..models.order_item import OrderItem
from ..utils.dto import to_order_dto


class OrderNumberConflict(Exception):
    """Raised when the generated order number is already taken."""


class OrderStore:
    """SQLAlchemy-backed order persistence.

    Each write runs in its own transaction, so a header can be visible
    before its items are written.
    """

    def __init__(self, session_factory=get_session):
        self._session_factory = session_factory

    def insert_header(self, fields: Dict) -> Dict:
        oid = str(uuid4())
        try:
            with self._session_factory() as session:
                session.add(Order(id=oid, **fields))
                session.flush()
        except IntegrityError as exc:
            if "order_number" in str(exc.orig):
                raise OrderNumberConflict(fields.get("order_number")) from exc
            raise
        return {"id": oid, "order_number": fields.get("order_number")}

    def insert_items(self, order_id: str, items: List[Dict]) -> None:
        with self._session_factory() as session:
            for pos, it in enumerate(items, start=1):
                session.add(OrderItem(id=str(uuid4()), order_id=order_id, line_number=pos, **it))
            session.flush()

    def delete_header(self, order_id: str) -> None:
        with self._session_factory() as session:
            session.query(OrderItem).filter(OrderItem.order_id == order_id).delete()
            session.query(Order).filter(Order.id == order_id).delete()

    def _fetch(self, *criteria) -> Optional[Dict]:
        with self._session_factory() as session:
            o = session.query(Order).filter(*criteria).first()
            if not o:
                return None
            items = (
                session.query(OrderItem)
                .filter(OrderItem.order_id == o.id)
                .order_by(OrderItem.line_number.asc())
                .all()
            )
            return to_order_dto(o, items)

    def get_by_id(self, order_id: str) -> Optional[Dict]:
        return self._fetch(Order.id == order_id)

    def get_by_number(self, order_number: str) -> Optional[Dict]:
        return self._fetch(Order.order_number == order_number)

    def get_by_idempotency_key(self, key: str) -> Optional[Dict]:
        return self._fetch(Order.idempotency_key == key)

    def list_by_user(self, user_id: str, *, offset: int = 0, limit: int = 20) -> Tuple[List[Dict], int]:
        with self._session_factory() as session:
            q = session.query(Order).filter(Order.user_id == user_id)
            total = q.count()
            rows = q.order_by(Order.created_at.desc()).offset(offset).limit(limit).all()
            return [to_order_dto(o) for o in rows], total
