# DOMESTICA/backend/app/services/export_service.py : vues tabulaires pour l'export

"""
Feuilles en lecture seule destinées au composant d'export (tableur/PDF).
Les noms de colonnes et les types numériques sont stables; la mise en page ne l'est pas.
"""

import csv
import io
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from app.constants import PERIOD_ALL, PERIOD_MONTH
from app.models import models
from app.services.ledger_service import LedgerService
from app.services.reconciliation_service import ReconciliationService

SHEETS = ("services", "visits", "income", "expenses", "summary", "payments", "workers")


def _iso(value) -> Optional[str]:
    return value.isoformat() if value is not None else None


class ExportService:
    def __init__(self, db: Session):
        self.db = db
        self.ledger = LedgerService(db)
        self.finance = ReconciliationService(db)

    def services_sheet(self) -> List[Dict[str, Any]]:
        services = self.ledger.list_services()
        progress = self.ledger.progress_map([s.id for s in services])
        rows = []
        for s in services:
            p = progress[s.id]
            rows.append({
                "service_id": s.id,
                "client": s.client_name,
                "worker": s.worker_name,
                "service_type": s.service_type,
                "total_price": float(s.total_price),
                "price_per_visit": int(s.price_per_visit),
                "state": s.state,
                "weeks": s.weeks,
                "visits_per_week": s.visits_per_week,
                "hours_per_visit": float(s.hours_per_visit),
                "total_visits": s.total_visits,
                "total_hours": float(s.total_hours),
                "completed_visits": p.completed,
                "progress_percent": p.percent,
                "start_date": _iso(s.start_date),
            })
        return rows

    def visits_sheet(self) -> List[Dict[str, Any]]:
        return [
            {
                "visit_id": v.id,
                "service_id": v.service_id,
                "service_type": v.service_type,
                "client": v.client_name,
                "worker": v.worker_name,
                "sequence": v.sequence,
                "state": v.state,
                "paid": bool(v.paid),
                "price": int(v.price),
                "hours": float(v.hours),
                "scheduled_date": _iso(v.scheduled_date),
                "completed_at": _iso(v.completed_at),
            }
            for v in self.ledger.list_visits()
        ]

    def income_sheet(self, period: str = PERIOD_ALL, now: Optional[datetime] = None) -> List[Dict[str, Any]]:
        return [
            {
                "income_id": i.id,
                "kind": i.kind,
                "category": i.category,
                "description": i.description,
                "amount": float(i.amount),
                "service_id": i.service_id,
                "visit_id": i.visit_id,
                "created_at": _iso(i.created_at),
            }
            for i in self.finance.list_income(period, now)
        ]

    def expense_sheet(self, period: str = PERIOD_ALL, now: Optional[datetime] = None) -> List[Dict[str, Any]]:
        return [
            {
                "expense_id": e.id,
                "type": e.type,
                "description": e.description,
                "amount": float(e.amount),
                "worker_name": e.worker_name,
                "created_at": _iso(e.created_at),
            }
            for e in self.finance.list_expenses(period, now)
        ]

    def summary_sheet(self, period: str = PERIOD_MONTH, now: Optional[datetime] = None) -> List[Dict[str, Any]]:
        summary = self.finance.summarize(period, now)
        operations = self.finance.operations_summary()
        rows = [
            {"concept": "total_income", "amount": summary["total_income"]},
            {"concept": "total_expense", "amount": summary["total_expense"]},
            {"concept": "net_profit", "amount": summary["net_profit"]},
        ]
        rows += [{"concept": f"income_{k}", "amount": v} for k, v in summary["income_by_kind"].items()]
        rows += [{"concept": f"expense_{k}", "amount": v} for k, v in summary["expense_by_type"].items()]
        rows += [{"concept": k, "amount": v} for k, v in operations.items()]
        return rows

    def payments_sheet(self) -> List[Dict[str, Any]]:
        return [
            {
                "payment_id": p.id,
                "service_id": p.service_id,
                "worker": p.worker_name,
                "client": p.client_name,
                "total_amount": float(p.total_amount),
                "commission_percent": float(p.commission_percent),
                "earnings": float(p.earnings),
                "worker_payout": float(p.worker_payout),
                "notes": p.notes,
                "created_at": _iso(p.created_at),
            }
            for p in self.finance.list_payments()
        ]

    def workers_sheet(self) -> List[Dict[str, Any]]:
        workers = self.db.query(models.Worker).order_by(models.Worker.name).all()
        return [
            {
                "worker_id": w.id,
                "name": w.name,
                "phone": w.phone,
                "sector": w.sector,
                "experience": w.experience,
                "transport_difficulty": w.transport_difficulty,
                "age": w.age,
                "nationality": w.nationality,
                "available": bool(w.available),
                "approval_state": w.approval_state,
            }
            for w in workers
        ]

    def sheet(self, name: str, period: str = PERIOD_MONTH) -> List[Dict[str, Any]]:
        builders = {
            "services": self.services_sheet,
            "visits": self.visits_sheet,
            "income": lambda: self.income_sheet(period),
            "expenses": lambda: self.expense_sheet(period),
            "summary": lambda: self.summary_sheet(period),
            "payments": self.payments_sheet,
            "workers": self.workers_sheet,
        }
        return builders[name]()


def rows_to_csv(rows: List[Dict[str, Any]]) -> str:
    if not rows:
        return ""
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=list(rows[0].keys()))
    writer.writeheader()
    writer.writerows(rows)
    return buffer.getvalue()
