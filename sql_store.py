"""SQLAlchemy-backed ``RegistryStore``."""

import contextlib
import logging
from typing import Iterator, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from database import Base, make_session_factory
from models import HistoryRow, OwnerRow, ParticipantRow, ProductRow, RegistryMeta
from schemas import FoodProduct, HistoryEntry, Participant, Role
from store import RegistryStore
from utils import from_iso, to_iso

logger = logging.getLogger(__name__)

COUNTER_KEY = "product_counter"

def _escape_like(text: str) -> str:
    # match % and _ literally, like MemoryStore does
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")

def _participant(row: ParticipantRow) -> Participant:
    return Participant(
        identity=row.identity,
        name=row.name,
        role=Role(row.role),
        verified=row.verified,
        registered_at=from_iso(row.registered_at),
    )

def _product(row: ProductRow) -> FoodProduct:
    return FoodProduct(
        product_id=row.id,
        name=row.name,
        origin=row.origin,
        farmer=row.farmer,
        harvest_date=from_iso(row.harvest_date),
        current_location=row.current_location,
        current_owner=row.current_owner,
        is_contaminated=row.is_contaminated,
        expiry_date=from_iso(row.expiry_date),
    )

class SqlStore(RegistryStore):
    def __init__(self, engine, create_tables: bool = True):
        self._session_factory = make_session_factory(engine)
        self._session: Optional[Session] = None
        if create_tables:
            Base.metadata.create_all(bind=engine)
        logger.debug("sql store bound to %r", engine.url)

    @contextlib.contextmanager
    def transaction(self) -> Iterator["SqlStore"]:
        if self._session is not None:
            yield self
            return
        db = self._session_factory()
        self._session = db
        try:
            yield self
            db.commit()
        except BaseException:
            db.rollback()
            raise
        finally:
            self._session = None
            db.close()

    @contextlib.contextmanager
    def _reading(self) -> Iterator[Session]:
        if self._session is not None:
            yield self._session
            return
        db = self._session_factory()
        try:
            yield db
        finally:
            db.close()

    # ---------- participants ----------
    def get_participant(self, identity):
        with self._reading() as db:
            row = db.get(ParticipantRow, identity)
            return _participant(row) if row else None

    def put_participant(self, participant):
        with self.transaction():
            db = self._session
            row = db.get(ParticipantRow, participant.identity)
            if row is None:
                row = ParticipantRow(identity=participant.identity)
                db.add(row)
            row.name = participant.name
            row.role = participant.role.value
            row.verified = participant.verified
            row.registered_at = to_iso(participant.registered_at)
            db.flush()

    # ---------- products ----------
    def get_product(self, product_id):
        with self._reading() as db:
            row = db.get(ProductRow, product_id)
            return _product(row) if row else None

    def put_product(self, product):
        with self.transaction():
            db = self._session
            row = db.get(ProductRow, product.product_id)
            if row is None:
                row = ProductRow(id=product.product_id)
                db.add(row)
            row.name = product.name
            row.origin = product.origin
            row.farmer = product.farmer
            row.harvest_date = to_iso(product.harvest_date)
            row.current_location = product.current_location
            row.current_owner = product.current_owner
            row.is_contaminated = product.is_contaminated
            row.expiry_date = to_iso(product.expiry_date)
            db.flush()

    def list_products(self, query, offset, limit):
        base = select(ProductRow)
        if query:
            like = f"%{_escape_like(query)}%"
            base = base.where(or_(
                ProductRow.name.ilike(like, escape="\\"),
                ProductRow.origin.ilike(like, escape="\\"),
                ProductRow.farmer.ilike(like, escape="\\"),
            ))
        with self._reading() as db:
            total = db.scalar(select(func.count()).select_from(base.subquery()))
            rows = db.scalars(base.order_by(ProductRow.id.desc()).offset(offset).limit(limit)).all()
            return [_product(r) for r in rows], total or 0

    # ---------- counter ----------
    def get_counter(self):
        with self._reading() as db:
            row = db.get(RegistryMeta, COUNTER_KEY)
            return row.value if row else 0

    def set_counter(self, value):
        with self.transaction():
            db = self._session
            row = db.get(RegistryMeta, COUNTER_KEY)
            if row is None:
                db.add(RegistryMeta(key=COUNTER_KEY, value=value))
                db.flush()
            else:
                row.value = value

    # ---------- append-only sequences ----------
    def append_history(self, product_id, entry):
        with self.transaction():
            self._session.add(HistoryRow(
                product_id=product_id,
                timestamp=to_iso(entry.timestamp),
                actor=entry.actor,
                kind=entry.kind,
                party=entry.party,
                party_name=entry.party_name,
                detail=entry.detail,
            ))

    def get_history(self, product_id):
        with self._reading() as db:
            rows = db.scalars(
                select(HistoryRow).where(HistoryRow.product_id == product_id).order_by(HistoryRow.id.asc())
            ).all()
            return [HistoryEntry(
                timestamp=from_iso(r.timestamp),
                actor=r.actor,
                kind=r.kind,
                party=r.party,
                party_name=r.party_name,
                detail=r.detail,
            ) for r in rows]

    def append_owner(self, product_id, identity):
        with self.transaction():
            self._session.add(OwnerRow(product_id=product_id, identity=identity))

    def get_owners(self, product_id):
        with self._reading() as db:
            rows = db.scalars(
                select(OwnerRow).where(OwnerRow.product_id == product_id).order_by(OwnerRow.id.asc())
            ).all()
            return [r.identity for r in rows]
