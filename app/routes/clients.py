# DOMESTICA/backend/app/routes/clients.py

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List, Optional
from app.schemas import schemas
from app.database import get_db
from app.auth import CurrentUser, require_admin
from app.services.directory_service import DirectoryService

router = APIRouter(prefix="/clients", tags=["clients"])

@router.get("/", response_model=List[schemas.ClientOut])
def list_clients(
    search: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin)
):
    return DirectoryService(db).list_clients(search=search)

@router.post("/", response_model=schemas.ClientOut)
def create_client(
    client: schemas.ClientCreate,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin)
):
    return DirectoryService(db).create_client(**client.model_dump())

@router.put("/{client_id}", response_model=schemas.ClientOut)
def update_client(
    client_id: int,
    changes: schemas.ClientUpdate,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin)
):
    return DirectoryService(db).update_client(client_id, **changes.model_dump(exclude_unset=True))

@router.delete("/{client_id}")
def delete_client(
    client_id: int,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin)
):
    """Supprime la fiche; les services gardent leur copie des coordonnées"""
    DirectoryService(db).delete_client(client_id)
    return {"success": True, "message": f"Client {client_id} supprimé"}
