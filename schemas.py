import enum
from datetime import datetime
from typing import List, Literal

from pydantic import BaseModel

# ---------- Domain records ----------
class Role(str, enum.Enum):
    FARMER = "farmer"
    PROCESSOR = "processor"
    DISTRIBUTOR = "distributor"
    RETAILER = "retailer"
    OTHER = "other"

HistoryKind = Literal["registered", "transferred", "contamination_reported"]

class Participant(BaseModel):
    identity: str
    name: str
    role: Role
    verified: bool = True
    registered_at: datetime

class HistoryEntry(BaseModel):
    timestamp: datetime
    actor: str
    kind: HistoryKind
    party: str
    party_name: str
    detail: str = ""

class FoodProduct(BaseModel):
    product_id: int
    name: str
    origin: str
    farmer: str
    harvest_date: datetime
    current_location: str
    current_owner: str
    is_contaminated: bool = False
    expiry_date: datetime

# ---------- API bodies ----------
class RegisterParticipant(BaseModel):
    identity: str
    name: str
    role: str

class RegisterProduct(BaseModel):
    name: str
    origin: str
    expiry_date: datetime

class TransferProduct(BaseModel):
    new_owner: str
    new_location: str

class ProductCreated(BaseModel):
    product_id: int

class ProductSafety(BaseModel):
    product_id: int
    safe: bool
    is_contaminated: bool
    expired: bool

class ProductSummary(BaseModel):
    product: FoodProduct
    safe: bool
    history: List[str]
    owners: List[str]
    label_url: str

class ProductBrief(BaseModel):
    product_id: int
    name: str
    origin: str
    current_owner: str
    is_contaminated: bool

class ProductList(BaseModel):
    items: List[ProductBrief]
    total: int
    page: int
    page_size: int

class RecallNotice(BaseModel):
    product_id: int
    product_name: str
    reporter: str
    current_owner: str
    current_location: str
    reported_at: datetime

class ErrorBody(BaseModel):
    error: str
    detail: str
