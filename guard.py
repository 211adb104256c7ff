import logging
from datetime import datetime
from typing import Optional

from errors import AlreadyFlagged, InvalidState
from events import ContaminationReported
from schemas import FoodProduct, HistoryEntry

logger = logging.getLogger(__name__)

class ContaminationGuard:
    """Keeps contaminated or expired units from changing hands.

    This is the only writer of ``is_contaminated``. The flag moves from
    False to True once and there is no operation that clears it.
    """

    def __init__(self, ctx, directory):
        self.ctx = ctx
        self.directory = directory
        self.access = directory.access

    @staticmethod
    def is_expired(product: FoodProduct, now: datetime) -> bool:
        return now >= product.expiry_date

    def is_safe(self, product: FoodProduct, now: datetime) -> bool:
        return not product.is_contaminated and not self.is_expired(product, now)

    def check_transferable(self, product: FoodProduct, now: datetime) -> None:
        if product.is_contaminated:
            raise InvalidState(f"product {product.product_id} is contaminated and cannot be transferred")
        if self.is_expired(product, now):
            raise InvalidState(f"product {product.product_id} expired at {product.expiry_date.isoformat()}")

    def report_contamination(self, caller: str, product_id: int, now: Optional[datetime] = None) -> FoodProduct:
        self.access.require_verified_participant(caller)
        product = self.ctx.load_product(product_id)
        if product.is_contaminated:
            raise AlreadyFlagged(f"product {product_id} is already flagged as contaminated")
        now = self.ctx.now(now)

        flagged = product.model_copy(update={"is_contaminated": True})
        self.ctx.store.put_product(flagged)
        self.ctx.store.append_history(product_id, HistoryEntry(
            timestamp=now,
            actor=caller,
            kind="contamination_reported",
            party=caller,
            party_name=self.directory.display_name(caller),
        ))
        logger.warning(
            "product %s (%s) flagged as contaminated by %s; owner %s at %s",
            product_id, product.name, caller, product.current_owner, product.current_location,
        )
        self.ctx.emit(ContaminationReported(product_id=product_id, reporter=caller, occurred_at=now))
        return flagged
