# DOMESTICA/backend/app/routes/dashboard.py

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.schemas import schemas
from app.database import get_db
from app.auth import CurrentUser, require_admin, require_worker
from app.services.ledger_service import LedgerService
from app.services.reconciliation_service import ReconciliationService

router = APIRouter(prefix="/dashboard", tags=["dashboard"])

@router.get("/", response_model=schemas.AdminDashboard)
def dashboard_summary(
    recent: int = 10,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin)
):
    """Tableau de bord: employées actives/en attente, services récents, gains totaux"""
    data = ReconciliationService(db).dashboard(recent_limit=recent)

    # Progression des services récents en une requête
    ledger = LedgerService(db)
    services = data["recent_services"]
    progress = ledger.progress_map([s.id for s in services])
    recent_services = []
    for service in services:
        out = schemas.ServiceOut.model_validate(service)
        out.progress = schemas.ProgressOut(**progress[service.id].to_dict())
        recent_services.append(out)

    return schemas.AdminDashboard(
        workers=schemas.WorkerCounts(**data["workers"]),
        recent_services=recent_services,
        total_earnings=data["total_earnings"],
        operations=schemas.OperationsSummary(**data["operations"]),
    )

@router.get("/me", response_model=schemas.WorkerDashboard)
def my_dashboard(
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_worker)
):
    """Portail employée: services, visites, heures travaillées et paiements reçus"""
    return ReconciliationService(db).worker_summary(current_user.id)
