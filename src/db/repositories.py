from __future__ import annotations

import json
import logging
from datetime import datetime, timezone

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from db import models
from domain.base_types import CustomerId, TransactionId
from domain.ledger import Customer, LedgerSnapshot, ShopTransaction, Transaction
from domain.persistence import (
    META_CUSTOMER_ID_COUNTER,
    META_LIVE_RATES,
    META_TRANSACTION_ID_COUNTER,
    PersistenceError,
    hydrate_ledger,
)

logger = logging.getLogger(__name__)


class SqlLedgerStore:
    """Relational ledger store.

    Serves both as the whole-snapshot gateway (`load`/`save`) and as the
    per-entity hydrator used when a primary snapshot store comes up empty.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def load(self) -> LedgerSnapshot | None:
        try:
            if self.read_meta(META_TRANSACTION_ID_COUNTER) is None:
                return None
            return hydrate_ledger(self)
        except SQLAlchemyError as err:
            raise PersistenceError(f"Could not read ledger tables: {err}", operation="load") from err

    def save(self, snapshot: LedgerSnapshot) -> None:
        try:
            self._session.expunge_all()
            self._session.execute(delete(models.CustomerTransactionOrm))
            self._session.execute(delete(models.CustomerOrm))
            self._session.execute(delete(models.ShopTransactionOrm))

            self._session.add_all([self._customer_to_orm(customer) for customer in snapshot.customers])
            self._session.add_all([self._shop_transaction_to_orm(tx) for tx in snapshot.shop_transactions])
            self._write_meta(META_CUSTOMER_ID_COUNTER, str(snapshot.customer_id_counter))
            self._write_meta(META_TRANSACTION_ID_COUNTER, str(snapshot.transaction_id_counter))
            self._write_meta(META_LIVE_RATES, snapshot.live_rates.model_dump_json())
            self._session.commit()
        except SQLAlchemyError as err:
            self._session.rollback()
            raise PersistenceError(f"Could not write ledger tables: {err}", operation="save") from err

        logger.info(
            "Saved ledger to database: %d customers, %d shop transactions",
            len(snapshot.customers),
            len(snapshot.shop_transactions),
        )

    def list_customers(self) -> list[Customer]:
        rows = self._session.scalars(select(models.CustomerOrm).order_by(models.CustomerOrm.id)).all()
        return [
            Customer(
                id=CustomerId(row.id),
                name=row.name,
                phone=row.phone,
                pan=row.pan,
                notes=row.notes,
                photo_path=row.photo_path,
                aadhar_front_path=row.aadhar_front_path,
                aadhar_back_path=row.aadhar_back_path,
                cash_balance=row.cash_balance,
                gold_balance=row.gold_balance,
                silver_balance=row.silver_balance,
            )
            for row in rows
        ]

    def list_customer_transactions(self, customer_id: CustomerId) -> list[Transaction]:
        stmt = (
            select(models.CustomerTransactionOrm)
            .where(models.CustomerTransactionOrm.customer_id == customer_id)
            .order_by(models.CustomerTransactionOrm.timestamp.desc(), models.CustomerTransactionOrm.id.desc())
        )
        return [self._transaction_to_domain(row) for row in self._session.scalars(stmt).all()]

    def list_shop_transactions(self) -> list[ShopTransaction]:
        stmt = select(models.ShopTransactionOrm).order_by(
            models.ShopTransactionOrm.timestamp.desc(), models.ShopTransactionOrm.id.desc()
        )
        return [
            ShopTransaction(
                id=TransactionId(row.id),
                timestamp=_as_utc(row.timestamp),
                category=row.category,
                details=json.loads(row.details),
                cash_change=row.cash_change,
                cash_balance_after=row.cash_balance_after,
            )
            for row in self._session.scalars(stmt).all()
        ]

    def read_meta(self, key: str) -> str | None:
        row = self._session.get(models.LedgerMetaOrm, key)
        if row is None:
            return None
        return row.value

    def _write_meta(self, key: str, value: str) -> None:
        self._session.merge(models.LedgerMetaOrm(key=key, value=value))

    @staticmethod
    def _customer_to_orm(customer: Customer) -> models.CustomerOrm:
        orm_customer = models.CustomerOrm(
            id=customer.id,
            name=customer.name,
            phone=customer.phone,
            pan=customer.pan,
            notes=customer.notes,
            photo_path=customer.photo_path,
            aadhar_front_path=customer.aadhar_front_path,
            aadhar_back_path=customer.aadhar_back_path,
            cash_balance=customer.cash_balance,
            gold_balance=customer.gold_balance,
            silver_balance=customer.silver_balance,
        )
        orm_customer.transactions = [
            models.CustomerTransactionOrm(
                id=tx.id,
                timestamp=tx.timestamp.astimezone(timezone.utc),
                category=tx.category.value,
                details=tx.details.model_dump_json(),
                cash_change=tx.cash_change,
                gold_change=tx.gold_change,
                silver_change=tx.silver_change,
                cash_balance_after=tx.cash_balance_after,
                gold_balance_after=tx.gold_balance_after,
                silver_balance_after=tx.silver_balance_after,
            )
            for tx in customer.transactions
        ]
        return orm_customer

    @staticmethod
    def _shop_transaction_to_orm(tx: ShopTransaction) -> models.ShopTransactionOrm:
        return models.ShopTransactionOrm(
            id=tx.id,
            timestamp=tx.timestamp.astimezone(timezone.utc),
            category=tx.category.value,
            details=tx.details.model_dump_json(),
            cash_change=tx.cash_change,
            cash_balance_after=tx.cash_balance_after,
        )

    @staticmethod
    def _transaction_to_domain(row: models.CustomerTransactionOrm) -> Transaction:
        return Transaction(
            id=TransactionId(row.id),
            timestamp=_as_utc(row.timestamp),
            category=row.category,
            details=json.loads(row.details),
            cash_change=row.cash_change,
            gold_change=row.gold_change,
            silver_change=row.silver_change,
            cash_balance_after=row.cash_balance_after,
            gold_balance_after=row.gold_balance_after,
            silver_balance_after=row.silver_balance_after,
        )


def _as_utc(timestamp: datetime) -> datetime:
    if timestamp.tzinfo is None:
        return timestamp.replace(tzinfo=timezone.utc)
    return timestamp


__all__ = ["SqlLedgerStore"]
