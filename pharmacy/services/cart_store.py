import json
from typing import MutableMapping, Optional

from ..errors import CorruptLocalState


CART_STORAGE_KEY = "pharma-line-cart"


class CartStore:
    """Key-value persistence for one serialized cart.

    `backend` is any mutable mapping: the Flask `session` in the web app, a
    plain dict in tests.
    """

    def __init__(self, backend: MutableMapping, key: str = CART_STORAGE_KEY) -> None:
        self._backend = backend
        self._key = key

    @property
    def key(self) -> str:
        return self._key

    def load(self) -> Optional[dict]:
        raw = self._backend.get(self._key)
        if raw is None:
            return None
        try:
            data = json.loads(raw)
        except (TypeError, ValueError) as exc:
            raise CorruptLocalState(f"stored cart is not valid JSON: {exc}") from exc
        if not isinstance(data, dict):
            raise CorruptLocalState("stored cart is not an object")
        return data

    def save(self, data: dict) -> None:
        self._backend[self._key] = json.dumps(data, ensure_ascii=False, separators=(",", ":"))

    def discard(self) -> None:
        self._backend.pop(self._key, None)
