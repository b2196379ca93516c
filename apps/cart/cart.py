"""Pre-checkout cart.

``Cart`` holds (product id, quantity) lines and writes through a ``CartStorage``
adapter on every change. Requests use the Django session as storage; tests and
scripts use ``MemoryCartStorage``.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Protocol

from django.conf import settings


@dataclass(frozen=True)
class CartLine:
    product_id: int
    quantity: int

    def as_dict(self) -> dict:
        return {"productId": self.product_id, "quantity": self.quantity}


class CartStorage(Protocol):
    def load(self) -> List[dict]: ...
    def save(self, lines: List[dict]) -> None: ...


class MemoryCartStorage:
    def __init__(self, lines: Optional[List[dict]] = None):
        self.lines = list(lines or [])

    def load(self) -> List[dict]:
        return list(self.lines)

    def save(self, lines: List[dict]) -> None:
        self.lines = list(lines)


class SessionCartStorage:
    def __init__(self, session, key: str):
        self._session = session
        self._key = key

    def load(self) -> List[dict]:
        data = self._session.get(self._key)
        return list(data) if isinstance(data, list) else []

    def save(self, lines: List[dict]) -> None:
        self._session[self._key] = lines
        self._session.modified = True


def _parse_line(raw) -> Optional[CartLine]:
    try:
        line = CartLine(product_id=int(raw["productId"]), quantity=int(raw["quantity"]))
    except (KeyError, TypeError, ValueError):
        return None
    return line if line.quantity > 0 else None


class Cart:
    def __init__(self, storage: CartStorage):
        self._storage = storage
        self._lines: Dict[int, CartLine] = {}
        for raw in storage.load():
            line = _parse_line(raw)
            if line is not None:
                self._lines[line.product_id] = line

    def __iter__(self) -> Iterator[CartLine]:
        return iter(self._lines.values())

    def __len__(self) -> int:
        return len(self._lines)

    @property
    def lines(self) -> List[CartLine]:
        return list(self._lines.values())

    @property
    def is_empty(self) -> bool:
        return not self._lines

    def quantity_of(self, product_id: int) -> int:
        line = self._lines.get(int(product_id))
        return line.quantity if line else 0

    def add(self, product_id: int, quantity: int) -> None:
        """Set the quantity for ``product_id``; zero or less drops the line."""
        product_id = int(product_id)
        if quantity <= 0:
            self._lines.pop(product_id, None)
        else:
            self._lines[product_id] = CartLine(product_id, int(quantity))
        self._persist()

    def remove(self, product_id: int) -> None:
        self.add(product_id, 0)

    def clear(self) -> None:
        self._lines.clear()
        self._persist()

    def as_list(self) -> List[dict]:
        return [line.as_dict() for line in self._lines.values()]

    def _persist(self) -> None:
        self._storage.save(self.as_list())


def cart_for_request(request) -> Cart:
    return Cart(SessionCartStorage(request.session, settings.SHOP["CART_SESSION_KEY"]))
