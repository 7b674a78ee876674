# DOMESTICA/backend/app/services/reconciliation_service.py : réconciliation financière

import logging
import math
import warnings
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import and_, func, or_
from sqlalchemy.orm import Session

from app.config import DEFAULT_COMMISSION_PERCENT
from app.constants import (
    EXPENSE_TYPES, INCOME_CATEGORIES, INCOME_KINDS, INCOME_MANUAL, PERIOD_ALL, PERIOD_MONTH,
    PERIOD_WEEK, PERIODS, SERVICE_ACTIVE, SERVICE_COMPLETED, VISIT_COMPLETED, VISIT_PENDING,
    WORKER_ACTIVE, WORKER_PENDING
)
from app.errors import IntegrityWarning, NotFound, ValidationError
from app.models import models
from app.utils import utc_now

logger = logging.getLogger(__name__)


def period_window(period: str, now: Optional[datetime] = None) -> Tuple[Optional[datetime], Optional[datetime]]:
    """
    Bornes [début, fin) d'une période:
    - week: 7 jours glissants jusqu'à maintenant
    - month: mois calendaire courant
    - all: pas de filtre
    """
    if period not in PERIODS:
        raise ValidationError(f"Unknown period '{period}'", field="period")
    now = now or utc_now()
    if period == PERIOD_WEEK:
        return now - timedelta(days=7), None
    if period == PERIOD_MONTH:
        start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
        if start.month == 12:
            end = start.replace(year=start.year + 1, month=1)
        else:
            end = start.replace(month=start.month + 1)
        return start, end
    return None, None


class ReconciliationService:
    """Revenus, dépenses, paiements et synthèses par période"""

    def __init__(self, db: Session):
        self.db = db

    # ========== ÉCRITURES (ajout seul) ==========

    def record_manual_income(self, description: str, amount: float, category: str = "other") -> models.IncomeEntry:
        self._validate_amount(amount)
        if not description:
            raise ValidationError("description is required", field="description")
        if category not in INCOME_CATEGORIES:
            raise ValidationError(f"Unknown income category '{category}'", field="category")
        entry = models.IncomeEntry(
            kind=INCOME_MANUAL,
            description=description,
            amount=amount,
            category=category,
        )
        self.db.add(entry)
        self.db.commit()
        self.db.refresh(entry)
        logger.info(f"💵 Revenu manuel enregistré: {amount} ({category})")
        return entry

    def record_expense(
        self,
        description: str,
        amount: float,
        type: str,
        worker_name: Optional[str] = None,
    ) -> models.ExpenseEntry:
        self._validate_amount(amount)
        if not description:
            raise ValidationError("description is required", field="description")
        if type not in EXPENSE_TYPES:
            raise ValidationError(f"Unknown expense type '{type}'", field="type")
        entry = models.ExpenseEntry(
            type=type,
            description=description,
            amount=amount,
            worker_name=worker_name or None,
        )
        self.db.add(entry)
        self.db.commit()
        self.db.refresh(entry)
        logger.info(f"🧾 Dépense enregistrée: {amount} ({type})")
        return entry

    def register_payment(
        self,
        service_id: int,
        total_amount: float,
        commission_percent: Optional[float] = None,
        notes: str = "",
    ) -> models.PaymentRecord:
        """
        Enregistre le paiement d'un service et la part de l'employée.
        Un service non complété déclenche un IntegrityWarning sans bloquer l'écriture.
        """
        self._validate_amount(total_amount, field="total_amount")
        if commission_percent is None:
            commission_percent = DEFAULT_COMMISSION_PERCENT
        if not math.isfinite(commission_percent) or not 0 <= commission_percent <= 100:
            raise ValidationError("commission_percent must be between 0 and 100", field="commission_percent")

        service = self.db.query(models.Service).filter(models.Service.id == service_id).first()
        if not service:
            raise NotFound(f"Service {service_id} not found")
        if service.state != SERVICE_COMPLETED:
            msg = f"Payment registered for service {service.id} which is {service.state}, not completed"
            logger.warning(f"⚠️ {msg}")
            warnings.warn(msg, IntegrityWarning, stacklevel=2)

        earnings = total_amount * commission_percent / 100
        payment = models.PaymentRecord(
            service_id=service.id,
            worker_id=service.worker_id,
            worker_name=service.worker_name,
            client_name=service.client_name,
            total_amount=total_amount,
            commission_percent=commission_percent,
            earnings=earnings,
            worker_payout=total_amount - earnings,
            notes=notes or "",
        )
        self.db.add(payment)
        self.db.commit()
        self.db.refresh(payment)
        logger.info(f"💰 Paiement enregistré pour le service #{service.id}: {total_amount} ({commission_percent}%)")
        return payment

    @staticmethod
    def _validate_amount(amount: Optional[float], field: str = "amount") -> None:
        if amount is None or not math.isfinite(amount) or amount <= 0:
            raise ValidationError(f"{field} must be > 0", field=field)

    # ========== LECTURES ==========

    def _in_period(self, column, period: str, now: Optional[datetime]):
        """Filtre SQL d'une période; les lignes sans horodatage sont toujours incluses"""
        start, end = period_window(period, now)
        conditions = []
        if start is not None:
            conditions.append(column >= start)
        if end is not None:
            conditions.append(column < end)
        if not conditions:
            return None
        return or_(column.is_(None), and_(*conditions))

    def list_income(self, period: str = PERIOD_ALL, now: Optional[datetime] = None) -> List[models.IncomeEntry]:
        query = self.db.query(models.IncomeEntry)
        condition = self._in_period(models.IncomeEntry.created_at, period, now)
        if condition is not None:
            query = query.filter(condition)
        return query.order_by(models.IncomeEntry.created_at.desc(), models.IncomeEntry.id.desc()).all()

    def list_expenses(self, period: str = PERIOD_ALL, now: Optional[datetime] = None) -> List[models.ExpenseEntry]:
        query = self.db.query(models.ExpenseEntry)
        condition = self._in_period(models.ExpenseEntry.created_at, period, now)
        if condition is not None:
            query = query.filter(condition)
        return query.order_by(models.ExpenseEntry.created_at.desc(), models.ExpenseEntry.id.desc()).all()

    def list_payments(self, worker_id: Optional[int] = None) -> List[models.PaymentRecord]:
        query = self.db.query(models.PaymentRecord)
        if worker_id is not None:
            query = query.filter(models.PaymentRecord.worker_id == worker_id)
        return query.order_by(models.PaymentRecord.created_at.desc(), models.PaymentRecord.id.desc()).all()

    def summarize(self, period: str = PERIOD_MONTH, now: Optional[datetime] = None) -> Dict[str, Any]:
        """Synthèse revenus/dépenses/bénéfice net sur la période"""
        income_query = self.db.query(
            models.IncomeEntry.kind,
            func.sum(models.IncomeEntry.amount).label('total'),
        )
        condition = self._in_period(models.IncomeEntry.created_at, period, now)
        if condition is not None:
            income_query = income_query.filter(condition)
        income_rows = income_query.group_by(models.IncomeEntry.kind).all()

        expense_query = self.db.query(
            models.ExpenseEntry.type,
            func.sum(models.ExpenseEntry.amount).label('total'),
        )
        condition = self._in_period(models.ExpenseEntry.created_at, period, now)
        if condition is not None:
            expense_query = expense_query.filter(condition)
        expense_rows = expense_query.group_by(models.ExpenseEntry.type).all()

        income_by_kind = {kind: 0.0 for kind in INCOME_KINDS}
        for kind, total in income_rows:
            income_by_kind[kind] = float(total or 0)
        expense_by_type = {expense_type: 0.0 for expense_type in EXPENSE_TYPES}
        for expense_type, total in expense_rows:
            expense_by_type[expense_type] = float(total or 0)

        total_income = sum(income_by_kind.values())
        total_expense = sum(expense_by_type.values())
        return {
            "period": period,
            "total_income": total_income,
            "total_expense": total_expense,
            "net_profit": total_income - total_expense,
            "income_by_kind": income_by_kind,
            "expense_by_type": expense_by_type,
        }

    def payment_totals(self, worker_id: Optional[int] = None) -> Dict[str, Any]:
        query = self.db.query(
            func.count(models.PaymentRecord.id),
            func.sum(models.PaymentRecord.total_amount),
            func.sum(models.PaymentRecord.earnings),
            func.sum(models.PaymentRecord.worker_payout),
        )
        if worker_id is not None:
            query = query.filter(models.PaymentRecord.worker_id == worker_id)
        count, total, earnings, payout = query.one()
        return {
            "count": count or 0,
            "total_amount": float(total or 0),
            "total_earnings": float(earnings or 0),
            "total_worker_payout": float(payout or 0),
        }

    def operations_summary(self) -> Dict[str, Any]:
        """Indicateurs d'activité: services actifs, visites, heures effectuées"""
        active_services = self.db.query(func.count(models.Service.id)).filter(
            models.Service.state == SERVICE_ACTIVE
        ).scalar() or 0
        completed_visits, completed_hours = self.db.query(
            func.count(models.Visit.id),
            func.sum(models.Visit.hours),
        ).filter(models.Visit.state == VISIT_COMPLETED).one()
        pending_visits = self.db.query(func.count(models.Visit.id)).filter(
            models.Visit.state == VISIT_PENDING
        ).scalar() or 0
        return {
            "active_services": active_services,
            "completed_visits": completed_visits or 0,
            "pending_visits": pending_visits,
            "completed_hours": float(completed_hours or 0),
        }

    def worker_summary(self, worker_id: int) -> Dict[str, Any]:
        """Chiffres du portail employée"""
        service_counts = dict(self.db.query(
            models.Service.state,
            func.count(models.Service.id),
        ).filter(models.Service.worker_id == worker_id).group_by(models.Service.state).all())
        visit_counts = dict(self.db.query(
            models.Visit.state,
            func.count(models.Visit.id),
        ).filter(models.Visit.worker_id == worker_id).group_by(models.Visit.state).all())
        hours = self.db.query(func.sum(models.Visit.hours)).filter(
            models.Visit.worker_id == worker_id,
            models.Visit.state == VISIT_COMPLETED,
        ).scalar()
        payments = self.payment_totals(worker_id=worker_id)
        return {
            "worker_id": worker_id,
            "active_services": service_counts.get(SERVICE_ACTIVE, 0),
            "completed_services": service_counts.get(SERVICE_COMPLETED, 0),
            "pending_visits": visit_counts.get(VISIT_PENDING, 0),
            "completed_visits": visit_counts.get(VISIT_COMPLETED, 0),
            "hours_worked": float(hours or 0),
            "payouts_received": payments["total_worker_payout"],
            "payments_count": payments["count"],
        }

    def dashboard(self, recent_limit: int = 10) -> Dict[str, Any]:
        """Tableau de bord administrateur"""
        worker_counts = dict(self.db.query(
            models.Worker.approval_state,
            func.count(models.Worker.id),
        ).group_by(models.Worker.approval_state).all())
        recent = self.db.query(models.Service).order_by(
            models.Service.created_at.desc(), models.Service.id.desc()
        ).limit(recent_limit).all()
        return {
            "workers": {
                "active": worker_counts.get(WORKER_ACTIVE, 0),
                "pending": worker_counts.get(WORKER_PENDING, 0),
            },
            "recent_services": recent,
            "total_earnings": self.payment_totals()["total_earnings"],
            "operations": self.operations_summary(),
        }
