"""Payment ledger backed by a relational database.

The ledger records the scheduled payments of real loans so that projections
can start from what is actually still owed. It defaults to SQLite for local
use, but accepts any SQLAlchemy-compatible URL (e.g. PostgreSQL/MySQL).
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional
from uuid import uuid4

from sqlalchemy import Boolean, Column, Date, DateTime, Numeric, String, create_engine, select
from sqlalchemy.orm import declarative_base, sessionmaker

from .config import DATABASE_URL
from .data_models import Installment

logger = logging.getLogger(__name__)

Base = declarative_base()


class ScheduledPaymentModel(Base):
    __tablename__ = "scheduled_payments"

    id = Column(String(64), primary_key=True)
    loan_id = Column(String(64), index=True, nullable=False)
    due_date = Column(Date, index=True, nullable=False)
    amount = Column(Numeric(14, 2), nullable=False)
    is_paid = Column(Boolean, default=False, nullable=False)
    paid_on = Column(Date, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class PaymentLedger:
    """Database-backed store of scheduled loan payments."""

    def __init__(self, url: str) -> None:
        self._engine = create_engine(url, future=True)
        Base.metadata.create_all(self._engine)
        self._session_factory = sessionmaker(self._engine, expire_on_commit=False, future=True)

    def add_loan_schedule(self, loan_id: str, installments: Iterable[Installment]) -> List[str]:
        """Record every installment of a loan and return the payment ids.

        Any payments previously recorded for ``loan_id`` are replaced.
        """
        rows = [
            ScheduledPaymentModel(
                id=uuid4().hex,
                loan_id=loan_id,
                due_date=inst.due_date,
                amount=Decimal(inst.amount).quantize(Decimal("0.01")),
                is_paid=False,
            )
            for inst in installments
        ]
        with self._session_factory() as session:
            session.execute(
                ScheduledPaymentModel.__table__.delete().where(ScheduledPaymentModel.loan_id == loan_id)
            )
            session.add_all(rows)
            session.commit()
        logger.info(f"Recorded {len(rows)} scheduled payments for loan {loan_id}")
        return [row.id for row in rows]

    def mark_paid(self, payment_id: str, paid_on: Optional[date] = None) -> bool:
        """Mark a payment as paid. Returns ``False`` when it does not exist."""
        with self._session_factory() as session:
            row = session.get(ScheduledPaymentModel, payment_id)
            if row is None:
                return False
            row.is_paid = True
            row.paid_on = paid_on or date.today()
            session.commit()
        logger.info(f"Payment {payment_id} marked as paid")
        return True

    def remove_loan(self, loan_id: str) -> None:
        with self._session_factory() as session:
            session.execute(
                ScheduledPaymentModel.__table__.delete().where(ScheduledPaymentModel.loan_id == loan_id)
            )
            session.commit()

    def unpaid_due_from(self, day: date) -> List[Installment]:
        """Return all unpaid installments due on or after ``day``, earliest first."""
        with self._session_factory() as session:
            rows = session.execute(
                select(ScheduledPaymentModel)
                .where(ScheduledPaymentModel.is_paid.is_(False))
                .where(ScheduledPaymentModel.due_date >= day)
                .order_by(ScheduledPaymentModel.due_date.asc())
            ).scalars()
            return [Installment(due_date=row.due_date, amount=Decimal(row.amount)) for row in rows]

    def list_payments(self, loan_id: Optional[str] = None) -> List[Dict[str, Any]]:
        with self._session_factory() as session:
            query = select(ScheduledPaymentModel).order_by(
                ScheduledPaymentModel.due_date.asc(), ScheduledPaymentModel.loan_id.asc()
            )
            if loan_id:
                query = query.where(ScheduledPaymentModel.loan_id == loan_id)
            return [self._to_dict(row) for row in session.execute(query).scalars()]

    @staticmethod
    def _to_dict(row: ScheduledPaymentModel) -> Dict[str, Any]:
        return {
            "id": row.id,
            "loan_id": row.loan_id,
            "due_date": row.due_date.isoformat(),
            "amount": float(row.amount),
            "is_paid": row.is_paid,
            "paid_on": row.paid_on.isoformat() if row.paid_on else None,
        }


def create_ledger_from_env(url: str | None = None) -> PaymentLedger:
    return PaymentLedger(url or DATABASE_URL)
