# DOMESTICA/backend/app/routes/catalog.py

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List
from app.schemas import schemas
from app.database import get_db
from app.auth import CurrentUser, require_active_user, require_admin
from app.services.catalog_service import CatalogService

router = APIRouter(prefix="/catalog", tags=["catalog"])

@router.get("/", response_model=List[schemas.ServiceTypeOut])
def list_catalog(
    include_inactive: bool = True,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_active_user)
):
    """Catalogue des services; les employées ne voient que les entrées actives"""
    if not current_user.is_admin:
        include_inactive = False
    return CatalogService(db).list(include_inactive=include_inactive)

@router.post("/", response_model=schemas.ServiceTypeOut)
def create_service_type(
    entry: schemas.ServiceTypeCreate,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin)
):
    return CatalogService(db).create(**entry.model_dump())

@router.put("/{service_type_id}", response_model=schemas.ServiceTypeOut)
def update_service_type(
    service_type_id: int,
    changes: schemas.ServiceTypeUpdate,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin)
):
    return CatalogService(db).update(service_type_id, **changes.model_dump(exclude_unset=True))

@router.post("/{service_type_id}/toggle", response_model=schemas.ServiceTypeOut)
def toggle_service_type(
    service_type_id: int,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin)
):
    """Active/désactive une entrée (les services existants ne sont pas touchés)"""
    return CatalogService(db).toggle_active(service_type_id)

@router.delete("/{service_type_id}")
def delete_service_type(
    service_type_id: int,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin)
):
    CatalogService(db).delete(service_type_id)
    return {"success": True, "message": f"Type de service {service_type_id} supprimé"}
