"""Per-registry state shared by the core components.

A ``RegistryContext`` replaces ambient globals: it carries the admin
identity (fixed for its lifetime), the store, the event bus, the clock and
the single write lock. Separate contexts are fully independent registries.
"""

import contextlib
import threading
from datetime import datetime
from typing import Callable, Iterator, List, Optional

from errors import NotFound
from events import Event, EventBus
from schemas import FoodProduct
from store import RegistryStore
from utils import check_identity, check_timestamp, utc_now

class RegistryContext:
    def __init__(
        self,
        admin_id: str,
        store: RegistryStore,
        bus: Optional[EventBus] = None,
        clock: Callable[[], datetime] = utc_now,
        allow_participant_overwrite: bool = True,
    ):
        self._admin_id = check_identity(admin_id, "admin identity")
        self.store = store
        self.bus = bus if bus is not None else EventBus()
        self.clock = clock
        self.allow_participant_overwrite = allow_participant_overwrite
        self.lock = threading.RLock()
        self._pending: List[Event] = []
        self._sequence = 0

    @property
    def admin_id(self) -> str:
        return self._admin_id

    def now(self, now: Optional[datetime] = None) -> datetime:
        return check_timestamp(now if now is not None else self.clock(), "now")

    def emit(self, event: Event) -> None:
        self._pending.append(event)

    @contextlib.contextmanager
    def mutation(self) -> Iterator[None]:
        """Serialize one state change; events go out only after it commits."""
        with self.lock:
            self._pending = []
            try:
                with self.store.transaction():
                    yield
                events = self._pending
                for event in events:
                    self._sequence += 1
                    event.sequence = self._sequence
            finally:
                self._pending = []
        for event in events:
            self.bus.publish(event)

    def load_product(self, product_id: int) -> FoodProduct:
        if not isinstance(product_id, int) or isinstance(product_id, bool):
            raise NotFound(f"product {product_id!r} does not exist")
        if not 1 <= product_id <= self.store.get_counter():
            raise NotFound(f"product {product_id} does not exist")
        product = self.store.get_product(product_id)
        if product is None:
            raise NotFound(f"product {product_id} does not exist")
        return product
