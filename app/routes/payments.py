# DOMESTICA/backend/app/routes/payments.py

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List, Optional
from app.schemas import schemas
from app.database import get_db
from app.auth import CurrentUser, require_admin, require_worker
from app.services.reconciliation_service import ReconciliationService
from app.utils import collect_integrity_warnings

router = APIRouter(prefix="/payments", tags=["payments"])

@router.get("/", response_model=List[schemas.PaymentOut])
def list_payments(
    worker_id: Optional[int] = None,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin)
):
    return ReconciliationService(db).list_payments(worker_id=worker_id)

@router.post("/", response_model=schemas.PaymentRegistered)
def register_payment(
    payment: schemas.PaymentCreate,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin)
):
    """Enregistre le paiement d'un service (commission 25% par défaut)"""
    with collect_integrity_warnings() as notices:
        record = ReconciliationService(db).register_payment(
            service_id=payment.service_id,
            total_amount=payment.total_amount,
            commission_percent=payment.commission_percent,
            notes=payment.notes or "",
        )
    out = schemas.PaymentRegistered.model_validate(record)
    out.warnings = notices
    return out

@router.get("/mine", response_model=List[schemas.PaymentOut])
def my_payments(
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_worker)
):
    return ReconciliationService(db).list_payments(worker_id=current_user.id)

@router.get("/totals", response_model=schemas.PaymentTotals)
def payment_totals(
    worker_id: Optional[int] = None,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin)
):
    return ReconciliationService(db).payment_totals(worker_id=worker_id)
