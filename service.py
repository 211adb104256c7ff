"""Facade over the registry core; the surface outer layers call into."""

import logging
from datetime import datetime
from typing import Callable, List, Optional, Tuple, Union

from config import Settings
from context import RegistryContext
from database import make_engine
from directory import ParticipantDirectory
from events import EventBus, Handler
from guard import ContaminationGuard
from ledger import OwnershipLedger
from registry import ProductRegistry
from schemas import FoodProduct, HistoryEntry, Participant, Role
from sql_store import SqlStore
from store import MemoryStore, RegistryStore
from utils import utc_now

logger = logging.getLogger(__name__)

class FoodTraceService:
    def __init__(
        self,
        admin_id: str,
        store: Optional[RegistryStore] = None,
        bus: Optional[EventBus] = None,
        clock: Callable[[], datetime] = utc_now,
        allow_participant_overwrite: bool = True,
    ):
        self.ctx = RegistryContext(
            admin_id,
            store if store is not None else MemoryStore(),
            bus=bus,
            clock=clock,
            allow_participant_overwrite=allow_participant_overwrite,
        )
        self.directory = ParticipantDirectory(self.ctx)
        self.access = self.directory.access
        self.ledger = OwnershipLedger(self.ctx)
        self.guard = ContaminationGuard(self.ctx, self.directory)
        self.registry = ProductRegistry(self.ctx, self.directory, self.ledger, self.guard)

    @property
    def admin_id(self) -> str:
        return self.ctx.admin_id

    def subscribe(self, handler: Handler, kind: Optional[str] = None) -> Callable[[], None]:
        return self.ctx.bus.subscribe(handler, kind)

    # ---------- state-changing operations ----------
    def register_participant(self, caller: str, identity: str, name: str, role: Union[Role, str],
                             now: Optional[datetime] = None) -> Participant:
        with self.ctx.mutation():
            return self.directory.register_participant(caller, identity, name, role, now)

    def register_product(self, caller: str, name: str, origin: str, expiry_date: datetime,
                         now: Optional[datetime] = None) -> int:
        with self.ctx.mutation():
            return self.registry.register_product(caller, name, origin, expiry_date, now)

    def transfer_product(self, caller: str, product_id: int, new_owner: str, new_location: str,
                         now: Optional[datetime] = None) -> FoodProduct:
        with self.ctx.mutation():
            return self.registry.transfer_product(caller, product_id, new_owner, new_location, now)

    def report_contamination(self, caller: str, product_id: int, now: Optional[datetime] = None) -> FoodProduct:
        with self.ctx.mutation():
            return self.guard.report_contamination(caller, product_id, now)

    # ---------- reads ----------
    def is_verified(self, identity: str) -> bool:
        with self.ctx.lock:
            return self.directory.is_verified(identity)

    def get_participant(self, identity: str) -> Participant:
        with self.ctx.lock:
            return self.directory.get_participant(identity)

    def get_product(self, product_id: int) -> FoodProduct:
        with self.ctx.lock:
            return self.registry.get_product(product_id)

    def get_product_history(self, product_id: int) -> List[str]:
        with self.ctx.lock:
            return self.registry.get_product_history(product_id)

    def get_history_entries(self, product_id: int) -> List[HistoryEntry]:
        with self.ctx.lock:
            return self.registry.get_history_entries(product_id)

    def get_ownership_history(self, product_id: int) -> List[str]:
        with self.ctx.lock:
            return self.registry.get_ownership_history(product_id)

    def is_product_safe(self, product_id: int, now: Optional[datetime] = None) -> bool:
        with self.ctx.lock:
            return self.registry.is_product_safe(product_id, now)

    def list_products(self, query: Optional[str] = None, page: int = 1,
                      page_size: int = 10) -> Tuple[List[FoodProduct], int]:
        with self.ctx.lock:
            return self.registry.list_products(query, page, page_size)

def build_store(settings: Settings) -> RegistryStore:
    if settings.store_backend == "memory":
        return MemoryStore()
    return SqlStore(make_engine(settings.database_url))

def build_service(settings: Settings, clock: Callable[[], datetime] = utc_now) -> FoodTraceService:
    logger.info("starting registry (store=%s, admin=%s)", settings.store_backend, settings.admin_id)
    return FoodTraceService(
        settings.admin_id,
        build_store(settings),
        clock=clock,
        allow_participant_overwrite=settings.allow_participant_overwrite,
    )
