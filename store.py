"""Storage collaborator interface and the in-memory implementation."""

import abc
import contextlib
from typing import Callable, Dict, Iterator, List, Optional, Tuple

from schemas import FoodProduct, HistoryEntry, Participant

class RegistryStore(abc.ABC):
    @abc.abstractmethod
    def get_participant(self, identity: str) -> Optional[Participant]: ...

    @abc.abstractmethod
    def put_participant(self, participant: Participant) -> None: ...

    @abc.abstractmethod
    def get_product(self, product_id: int) -> Optional[FoodProduct]: ...

    @abc.abstractmethod
    def put_product(self, product: FoodProduct) -> None: ...

    @abc.abstractmethod
    def list_products(self, query: Optional[str], offset: int, limit: int) -> Tuple[List[FoodProduct], int]:
        """Newest first; ``query`` matches name, origin or farmer, case-insensitively."""

    @abc.abstractmethod
    def get_counter(self) -> int: ...

    @abc.abstractmethod
    def set_counter(self, value: int) -> None: ...

    @abc.abstractmethod
    def append_history(self, product_id: int, entry: HistoryEntry) -> None: ...

    @abc.abstractmethod
    def get_history(self, product_id: int) -> List[HistoryEntry]: ...

    @abc.abstractmethod
    def append_owner(self, product_id: int, identity: str) -> None: ...

    @abc.abstractmethod
    def get_owners(self, product_id: int) -> List[str]: ...

    @abc.abstractmethod
    def transaction(self) -> contextlib.AbstractContextManager:
        """Group the writes of one operation; nothing is kept if the block raises."""

def _matches(product: FoodProduct, needle: str) -> bool:
    return any(needle in field.lower() for field in (product.name, product.origin, product.farmer))

class MemoryStore(RegistryStore):
    def __init__(self):
        self._participants: Dict[str, Participant] = {}
        self._products: Dict[int, FoodProduct] = {}
        self._history: Dict[int, List[HistoryEntry]] = {}
        self._owners: Dict[int, List[str]] = {}
        self._counter = 0
        self._undo: Optional[List[Callable[[], None]]] = None

    def _journal(self, undo: Callable[[], None]) -> None:
        if self._undo is not None:
            self._undo.append(undo)

    @contextlib.contextmanager
    def transaction(self) -> Iterator["MemoryStore"]:
        if self._undo is not None:
            yield self
            return
        self._undo = []
        try:
            yield self
        except BaseException:
            for undo in reversed(self._undo):
                undo()
            raise
        finally:
            self._undo = None

    def _put(self, table: dict, key, value) -> None:
        if key in table:
            old = table[key]
            self._journal(lambda: table.__setitem__(key, old))
        else:
            self._journal(lambda: table.pop(key, None))
        table[key] = value

    def get_participant(self, identity):
        p = self._participants.get(identity)
        return p.model_copy() if p else None

    def put_participant(self, participant):
        self._put(self._participants, participant.identity, participant.model_copy())

    def get_product(self, product_id):
        p = self._products.get(product_id)
        return p.model_copy() if p else None

    def put_product(self, product):
        self._put(self._products, product.product_id, product.model_copy())

    def list_products(self, query, offset, limit):
        rows = sorted(self._products.values(), key=lambda p: p.product_id, reverse=True)
        if query:
            needle = query.lower()
            rows = [p for p in rows if _matches(p, needle)]
        return [p.model_copy() for p in rows[offset:offset + limit]], len(rows)

    def get_counter(self):
        return self._counter

    def set_counter(self, value):
        old = self._counter
        self._journal(lambda: setattr(self, "_counter", old))
        self._counter = value

    def _append(self, table: Dict[int, list], product_id: int, item) -> None:
        seq = table.setdefault(product_id, [])
        seq.append(item)
        self._journal(seq.pop)

    def append_history(self, product_id, entry):
        self._append(self._history, product_id, entry.model_copy())

    def get_history(self, product_id):
        return [e.model_copy() for e in self._history.get(product_id, [])]

    def append_owner(self, product_id, identity):
        self._append(self._owners, product_id, identity)

    def get_owners(self, product_id):
        return list(self._owners.get(product_id, []))
