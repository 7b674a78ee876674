# DOMESTICA/backend/app/routes/visits.py

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List, Optional
from app.schemas import schemas
from app.database import get_db
from app.auth import CurrentUser, require_active_user, require_admin
from app.services.ledger_service import LedgerService

router = APIRouter(prefix="/visits", tags=["visits"])

@router.get("/", response_model=List[schemas.VisitOut])
def list_visits(
    service_id: Optional[int] = None,
    state: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_active_user)
):
    """Admin: toutes les visites (ou celles d'un service); employée: uniquement les siennes"""
    worker_id = current_user.id if current_user.is_worker else None
    return LedgerService(db).list_visits(service_id=service_id, worker_id=worker_id, state=state)

@router.post("/{visit_id}/complete", response_model=schemas.VisitCompletionOut)
def complete_visit(
    visit_id: int,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_active_user)
):
    """Marque la visite comme effectuée et enregistre son revenu (une seule fois)"""
    worker_id = current_user.id if current_user.is_worker else None
    completion = LedgerService(db).complete_visit(visit_id, worker_id=worker_id)
    return schemas.VisitCompletionOut(
        visit=schemas.VisitOut.model_validate(completion.visit),
        income=schemas.IncomeOut.model_validate(completion.income),
    )

@router.post("/{visit_id}/cancel", response_model=schemas.VisitOut)
def cancel_visit(
    visit_id: int,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin)
):
    return LedgerService(db).cancel_visit(visit_id)

@router.put("/{visit_id}/paid", response_model=schemas.VisitOut)
def set_visit_paid(
    visit_id: int,
    update: schemas.PaidUpdate,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin)
):
    return LedgerService(db).set_visit_paid(visit_id, update.paid)
