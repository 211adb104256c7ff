from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import Boolean, Integer, String, Text, ForeignKey
from database import Base

class ParticipantRow(Base):
    __tablename__ = "participants"
    identity: Mapped[str] = mapped_column(String(128), primary_key=True)
    name: Mapped[str] = mapped_column(String(255))
    role: Mapped[str] = mapped_column(String(32))
    verified: Mapped[bool] = mapped_column(Boolean, default=True)
    registered_at: Mapped[str] = mapped_column(String(40))

class ProductRow(Base):
    __tablename__ = "products"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    name: Mapped[str] = mapped_column(String(255), index=True)
    origin: Mapped[str] = mapped_column(String(255))
    farmer: Mapped[str] = mapped_column(String(128), index=True)
    harvest_date: Mapped[str] = mapped_column(String(40))
    current_location: Mapped[str] = mapped_column(String(255))
    current_owner: Mapped[str] = mapped_column(String(128), index=True)
    is_contaminated: Mapped[bool] = mapped_column(Boolean, default=False)
    expiry_date: Mapped[str] = mapped_column(String(40))
    history: Mapped[list["HistoryRow"]] = relationship(
        "HistoryRow", back_populates="product", order_by="HistoryRow.id"
    )
    owners: Mapped[list["OwnerRow"]] = relationship(
        "OwnerRow", back_populates="product", order_by="OwnerRow.id"
    )

class HistoryRow(Base):
    __tablename__ = "history_entries"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    product_id: Mapped[int] = mapped_column(Integer, ForeignKey("products.id"), index=True)
    timestamp: Mapped[str] = mapped_column(String(40))
    actor: Mapped[str] = mapped_column(String(128))
    kind: Mapped[str] = mapped_column(String(50))
    party: Mapped[str] = mapped_column(String(128))
    party_name: Mapped[str] = mapped_column(String(255))
    detail: Mapped[str] = mapped_column(Text)
    product: Mapped[ProductRow] = relationship("ProductRow", back_populates="history")

class OwnerRow(Base):
    __tablename__ = "product_owners"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    product_id: Mapped[int] = mapped_column(Integer, ForeignKey("products.id"), index=True)
    identity: Mapped[str] = mapped_column(String(128))
    product: Mapped[ProductRow] = relationship("ProductRow", back_populates="owners")

class RegistryMeta(Base):
    __tablename__ = "registry_meta"
    key: Mapped[str] = mapped_column(String(64), primary_key=True)
    value: Mapped[int] = mapped_column(Integer)
