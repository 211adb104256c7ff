import logging
from datetime import datetime
from typing import List, Optional, Tuple

from errors import InvalidInput, InvalidState
from events import ProductRegistered, ProductTransferred
from schemas import FoodProduct, HistoryEntry
from utils import check_identity, check_text, check_timestamp, render_history_entry

logger = logging.getLogger(__name__)

class ProductRegistry:
    """Product records, id allocation and the per-product audit trail."""

    def __init__(self, ctx, directory, ledger, guard):
        self.ctx = ctx
        self.directory = directory
        self.access = directory.access
        self.ledger = ledger
        self.guard = guard

    # ---------- mutations ----------
    def register_product(
        self,
        caller: str,
        name: str,
        origin: str,
        expiry_date: datetime,
        now: Optional[datetime] = None,
    ) -> int:
        self.access.require_verified_participant(caller)
        check_text(name, "product name")
        if origin is None:
            origin = ""
        if not isinstance(origin, str):
            raise InvalidInput("origin must be text")
        expiry_date = check_timestamp(expiry_date, "expiry date")
        now = self.ctx.now(now)
        if expiry_date <= now:
            raise InvalidInput("expiry date must be later than the registration time")

        product_id = self.ctx.store.get_counter() + 1
        product = FoodProduct(
            product_id=product_id,
            name=name,
            origin=origin,
            farmer=caller,
            harvest_date=now,
            current_location=origin,
            current_owner=caller,
            is_contaminated=False,
            expiry_date=expiry_date,
        )
        store = self.ctx.store
        store.set_counter(product_id)
        store.put_product(product)
        store.append_history(product_id, HistoryEntry(
            timestamp=now,
            actor=caller,
            kind="registered",
            party=caller,
            party_name=self.directory.display_name(caller),
            detail=origin,
        ))
        self.ledger.start(product_id, caller)
        logger.info("product %s (%s) registered by %s", product_id, name, caller)
        self.ctx.emit(ProductRegistered(
            product_id=product_id, name=name, farmer=caller, occurred_at=now,
        ))
        return product_id

    def transfer_product(
        self,
        caller: str,
        product_id: int,
        new_owner: str,
        new_location: str,
        now: Optional[datetime] = None,
    ) -> FoodProduct:
        product = self.access.require_current_owner(caller, product_id)
        check_identity(new_owner, "new owner")
        if not self.directory.is_verified(new_owner):
            raise InvalidState(f"new owner {new_owner} is not a verified participant")
        now = self.ctx.now(now)
        self.guard.check_transferable(product, now)
        if new_location is None:
            new_location = ""
        if not isinstance(new_location, str):
            raise InvalidInput("new location must be text")

        moved = product.model_copy(update={
            "current_owner": new_owner,
            "current_location": new_location,
        })
        self.ctx.store.put_product(moved)
        self.ctx.store.append_history(product_id, HistoryEntry(
            timestamp=now,
            actor=caller,
            kind="transferred",
            party=new_owner,
            party_name=self.directory.display_name(new_owner),
            detail=new_location,
        ))
        self.ledger.record_transfer(product_id, new_owner)
        logger.info("product %s transferred %s -> %s at %s", product_id, caller, new_owner, new_location)
        self.ctx.emit(ProductTransferred(
            product_id=product_id,
            previous_owner=caller,
            new_owner=new_owner,
            new_location=new_location,
            occurred_at=now,
        ))
        return moved

    # ---------- reads ----------
    def get_product(self, product_id: int) -> FoodProduct:
        return self.ctx.load_product(product_id)

    def get_history_entries(self, product_id: int) -> List[HistoryEntry]:
        self.ctx.load_product(product_id)
        return self.ctx.store.get_history(product_id)

    def get_product_history(self, product_id: int) -> List[str]:
        return [render_history_entry(e.kind, e.party_name, e.detail) for e in self.get_history_entries(product_id)]

    def get_ownership_history(self, product_id: int) -> List[str]:
        return self.ledger.owners(product_id)

    def is_product_safe(self, product_id: int, now: Optional[datetime] = None) -> bool:
        product = self.ctx.load_product(product_id)
        return self.guard.is_safe(product, self.ctx.now(now))

    def product_count(self) -> int:
        return self.ctx.store.get_counter()

    def list_products(self, query: Optional[str] = None, page: int = 1, page_size: int = 10) -> Tuple[List[FoodProduct], int]:
        if page < 1 or page_size < 1:
            raise InvalidInput("page and page_size must be positive")
        return self.ctx.store.list_products(query or None, (page - 1) * page_size, page_size)
