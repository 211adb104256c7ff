"""Notification events emitted after each committed mutation."""

import logging
from datetime import datetime
from typing import Callable, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, Field

from schemas import Role
from utils import utc_now

logger = logging.getLogger(__name__)

class ParticipantRegistered(BaseModel):
    kind: Literal["ParticipantRegistered"] = "ParticipantRegistered"
    identity: str
    name: str
    role: Role
    replaced: bool = False
    occurred_at: datetime = Field(default_factory=utc_now)
    sequence: int = 0

class ProductRegistered(BaseModel):
    kind: Literal["ProductRegistered"] = "ProductRegistered"
    product_id: int
    name: str
    farmer: str
    occurred_at: datetime = Field(default_factory=utc_now)
    sequence: int = 0

class ProductTransferred(BaseModel):
    kind: Literal["ProductTransferred"] = "ProductTransferred"
    product_id: int
    previous_owner: str
    new_owner: str
    new_location: str
    occurred_at: datetime = Field(default_factory=utc_now)
    sequence: int = 0

class ContaminationReported(BaseModel):
    kind: Literal["ContaminationReported"] = "ContaminationReported"
    product_id: int
    reporter: str
    occurred_at: datetime = Field(default_factory=utc_now)
    sequence: int = 0

Event = Union[ParticipantRegistered, ProductRegistered, ProductTransferred, ContaminationReported]
Handler = Callable[[Event], None]

class EventBus:
    """Synchronous in-process fan-out.

    Handlers run in subscription order. A handler that raises is logged and
    skipped; the operation that produced the event is already committed.

    Publishing happens after the registry lock is released, so when several
    threads write at once handlers may see events out of commit order.
    ``event.sequence`` is assigned at commit and is strictly increasing per
    registry; order by it when commit order matters.
    """

    def __init__(self):
        self._handlers: List[Tuple[Optional[str], Handler]] = []

    def subscribe(self, handler: Handler, kind: Optional[str] = None) -> Callable[[], None]:
        entry = (kind, handler)
        self._handlers.append(entry)

        def unsubscribe() -> None:
            if entry in self._handlers:
                self._handlers.remove(entry)

        return unsubscribe

    def publish(self, event: Event) -> None:
        for kind, handler in list(self._handlers):
            if kind is not None and kind != event.kind:
                continue
            try:
                handler(event)
            except Exception:
                logger.exception("event handler %r failed for %s", handler, event.kind)
