from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy.types import TypeDecorator


class DecimalAsString(TypeDecorator):
    impl = String
    cache_ok = True

    def process_bind_param(self, value: Decimal | None, dialect: object) -> str | None:
        if value is None:
            return None
        return str(value)

    def process_result_value(self, value: str | None, dialect: object) -> Decimal | None:
        if value is None:
            return None
        return Decimal(value)


class Base(DeclarativeBase):
    pass


class CustomerOrm(Base):
    __tablename__ = "customers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    name: Mapped[str] = mapped_column(String, nullable=False)
    phone: Mapped[str] = mapped_column(String, nullable=False)
    pan: Mapped[str | None] = mapped_column(String, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    photo_path: Mapped[str | None] = mapped_column(String, nullable=True)
    aadhar_front_path: Mapped[str | None] = mapped_column(String, nullable=True)
    aadhar_back_path: Mapped[str | None] = mapped_column(String, nullable=True)

    cash_balance: Mapped[Decimal] = mapped_column(DecimalAsString, nullable=False, default=Decimal("0"))
    gold_balance: Mapped[Decimal] = mapped_column(DecimalAsString, nullable=False, default=Decimal("0"))
    silver_balance: Mapped[Decimal] = mapped_column(DecimalAsString, nullable=False, default=Decimal("0"))

    transactions: Mapped[list["CustomerTransactionOrm"]] = relationship(
        cascade="all, delete-orphan", back_populates="customer"
    )


class CustomerTransactionOrm(Base):
    __tablename__ = "customer_transactions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    customer_id: Mapped[int] = mapped_column(Integer, ForeignKey("customers.id"), nullable=False, index=True)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    category: Mapped[str] = mapped_column(String, nullable=False)
    details: Mapped[str] = mapped_column(Text, nullable=False)

    cash_change: Mapped[Decimal] = mapped_column(DecimalAsString, nullable=False)
    gold_change: Mapped[Decimal] = mapped_column(DecimalAsString, nullable=False)
    silver_change: Mapped[Decimal] = mapped_column(DecimalAsString, nullable=False)
    cash_balance_after: Mapped[Decimal] = mapped_column(DecimalAsString, nullable=False)
    gold_balance_after: Mapped[Decimal] = mapped_column(DecimalAsString, nullable=False)
    silver_balance_after: Mapped[Decimal] = mapped_column(DecimalAsString, nullable=False)

    customer: Mapped[CustomerOrm] = relationship(back_populates="transactions")


class ShopTransactionOrm(Base):
    __tablename__ = "shop_transactions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    category: Mapped[str] = mapped_column(String, nullable=False)
    details: Mapped[str] = mapped_column(Text, nullable=False)

    cash_change: Mapped[Decimal] = mapped_column(DecimalAsString, nullable=False)
    cash_balance_after: Mapped[Decimal] = mapped_column(DecimalAsString, nullable=False)


class LedgerMetaOrm(Base):
    __tablename__ = "ledger_meta"

    key: Mapped[str] = mapped_column(String, primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
