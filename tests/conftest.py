import os

os.environ.setdefault("STORE_BACKEND", "memory")

from datetime import datetime, timedelta, timezone

import pytest

from database import make_engine
from service import FoodTraceService
from sql_store import SqlStore
from store import MemoryStore

T0 = datetime(2025, 8, 15, 6, 0, tzinfo=timezone.utc)

class FixedClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)

@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(T0)

@pytest.fixture(params=["memory", "sql"])
def store(request):
    if request.param == "memory":
        yield MemoryStore()
        return
    engine = make_engine("sqlite://")
    yield SqlStore(engine)
    engine.dispose()

@pytest.fixture
def service(store, clock) -> FoodTraceService:
    return FoodTraceService("admin", store, clock=clock)

@pytest.fixture
def chain(service) -> FoodTraceService:
    """Service with a farmer (A), a distributor (B) and an inspector (C)."""
    service.register_participant("admin", "farmer-a", "A", "farmer")
    service.register_participant("admin", "distributor-b", "B", "distributor")
    service.register_participant("admin", "inspector-c", "C", "other")
    return service

@pytest.fixture
def events(chain):
    seen = []
    chain.subscribe(seen.append)
    return seen
