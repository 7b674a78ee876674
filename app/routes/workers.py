# DOMESTICA/backend/app/routes/workers.py

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List, Optional
from app.schemas import schemas
from app.database import get_db
from app.auth import CurrentUser, TokenClaims, get_token_claims, require_admin, require_worker
from app.constants import ROLE_WORKER
from app.errors import Forbidden
from app.services.directory_service import DirectoryService

router = APIRouter(prefix="/workers", tags=["workers"])

@router.get("/", response_model=List[schemas.WorkerOut])
def list_workers(
    state: Optional[str] = None,
    search: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin)
):
    return DirectoryService(db).list_workers(state=state, search=search)

@router.get("/requests", response_model=List[schemas.WorkerOut])
def pending_requests(
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin)
):
    """Demandes d'inscription en attente d'approbation"""
    return DirectoryService(db).pending_requests()

@router.post("/register", response_model=schemas.WorkerOut)
def self_register(
    worker: schemas.WorkerCreate,
    db: Session = Depends(get_db),
    claims: TokenClaims = Depends(get_token_claims)
):
    """
    Auto-inscription: l'employée authentifiée crée son propre profil (état pending),
    qui apparaît ensuite dans les demandes d'inscription.
    """
    if claims.role != ROLE_WORKER:
        raise Forbidden("Only worker accounts can self-register")
    return DirectoryService(db).register_worker(worker_id=claims.id, **worker.model_dump())

# Déclarée avant /{worker_id} pour ne pas être capturée par le paramètre
@router.put("/me/profile", response_model=schemas.WorkerOut)
def update_my_profile(
    changes: schemas.WorkerProfileUpdate,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_worker)
):
    return DirectoryService(db).update_worker_profile(current_user.id, **changes.model_dump(exclude_unset=True))

@router.get("/{worker_id}", response_model=schemas.WorkerOut)
def get_worker(
    worker_id: int,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin)
):
    return DirectoryService(db).get_worker(worker_id)

@router.post("/", response_model=schemas.WorkerOut)
def register_worker(
    worker: schemas.WorkerCreate,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin)
):
    """Inscrit une employée (état pending jusqu'à approbation)"""
    return DirectoryService(db).register_worker(**worker.model_dump())

@router.put("/{worker_id}/state", response_model=schemas.WorkerOut)
def set_worker_state(
    worker_id: int,
    update: schemas.StateUpdate,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin)
):
    """Approuver (active), bloquer ou réactiver une employée"""
    return DirectoryService(db).set_worker_state(worker_id, update.state)
