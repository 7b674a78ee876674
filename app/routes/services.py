# DOMESTICA/backend/app/routes/services.py

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List, Optional
from app.schemas import schemas
from app.database import get_db
from app.auth import CurrentUser, require_active_user, require_admin, require_worker
from app.errors import Forbidden
from app.models import models as db_models
from app.services.ledger_service import LedgerService, NewClient, Progress
from app.utils import collect_integrity_warnings

router = APIRouter(prefix="/services", tags=["services"])


def _service_out(service: db_models.Service, progress: Progress) -> schemas.ServiceOut:
    out = schemas.ServiceOut.model_validate(service)
    out.progress = schemas.ProgressOut(**progress.to_dict())
    return out


def _with_progress(ledger: LedgerService, services: List[db_models.Service]) -> List[schemas.ServiceOut]:
    progress = ledger.progress_map([s.id for s in services])
    return [_service_out(s, progress[s.id]) for s in services]


def _readable_service(ledger: LedgerService, service_id: int, current_user: CurrentUser) -> db_models.Service:
    service = ledger.get_service(service_id)
    if current_user.is_worker and service.worker_id != current_user.id:
        raise Forbidden(f"Service {service_id} is not assigned to you")
    return service


@router.get("/", response_model=List[schemas.ServiceOut])
def list_services(
    state: Optional[str] = None,
    worker_id: Optional[int] = None,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin)
):
    ledger = LedgerService(db)
    return _with_progress(ledger, ledger.list_services(state=state, worker_id=worker_id))

@router.get("/mine", response_model=List[schemas.ServiceOut])
def my_services(
    state: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_worker)
):
    """Services assignés à l'employée connectée"""
    ledger = LedgerService(db)
    return _with_progress(ledger, ledger.list_services(state=state, worker_id=current_user.id))

@router.post("/", response_model=schemas.ServiceAssignmentOut)
def create_service(
    payload: schemas.ServiceCreate,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin)
):
    """
    Crée un service et toutes ses visites, et prépare le message d'assignation.
    Les avertissements non bloquants (ex: employée sans téléphone) sont renvoyés dans "warnings".
    """
    ledger = LedgerService(db)
    new_client = NewClient(**payload.client.model_dump()) if payload.client else None
    with collect_integrity_warnings() as notices:
        assignment = ledger.create_service(
            worker_id=payload.worker_id,
            service_type_id=payload.service_type_id,
            weeks=payload.weeks,
            visits_per_week=payload.visits_per_week,
            hours_per_visit=payload.hours_per_visit,
            start_date=payload.start_date,
            total_price=payload.total_price,
            client_id=payload.client_id,
            new_client=new_client,
            notes=payload.notes or "",
        )
    progress = Progress(completed=0, total=len(assignment.visits))
    return schemas.ServiceAssignmentOut(
        service=_service_out(assignment.service, progress),
        visits=[schemas.VisitOut.model_validate(v) for v in assignment.visits],
        message=assignment.message,
        whatsapp_link=assignment.whatsapp_link,
        warnings=notices,
    )

@router.get("/{service_id}", response_model=schemas.ServiceOut)
def get_service(
    service_id: int,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_active_user)
):
    ledger = LedgerService(db)
    service = _readable_service(ledger, service_id, current_user)
    return _service_out(service, ledger.progress(service.id))

@router.get("/{service_id}/progress", response_model=schemas.ProgressOut)
def service_progress(
    service_id: int,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_active_user)
):
    ledger = LedgerService(db)
    service = _readable_service(ledger, service_id, current_user)
    return ledger.progress(service.id).to_dict()

@router.put("/{service_id}/state", response_model=schemas.ServiceOut)
def set_service_state(
    service_id: int,
    update: schemas.StateUpdate,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin)
):
    ledger = LedgerService(db)
    service = ledger.set_service_state(service_id, update.state)
    return _service_out(service, ledger.progress(service.id))

@router.post("/{service_id}/resume", response_model=List[schemas.VisitOut])
def resume_service(
    service_id: int,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin)
):
    """Recrée les visites manquantes après une création interrompue"""
    return LedgerService(db).resume_visit_generation(service_id)

@router.delete("/{service_id}", response_model=schemas.DeletionReportOut)
def delete_service(
    service_id: int,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin)
):
    """Supprime le service et ses visites (revenus et paiements conservés)"""
    report = LedgerService(db).delete_service(service_id)
    return schemas.DeletionReportOut(
        service_id=report.service_id,
        visits_deleted=report.visits_deleted,
        visit_ids=report.visit_ids,
    )
