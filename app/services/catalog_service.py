# DOMESTICA/backend/app/services/catalog_service.py : catalogue des services proposés

import logging
import math
from typing import List, Optional

from sqlalchemy.orm import Session

from app.constants import DEFAULT_CATALOG, DEFAULT_ICON
from app.errors import NotFound, ValidationError
from app.models import models

logger = logging.getLogger(__name__)


class CatalogService:
    """Gestion du catalogue (types de service et prix de base)"""

    def __init__(self, db: Session):
        self.db = db

    def ensure_seeded(self) -> int:
        """Insère le catalogue par défaut si la table est vide. Idempotent."""
        if self.db.query(models.ServiceType.id).first() is not None:
            return 0
        for entry in DEFAULT_CATALOG:
            self.db.add(models.ServiceType(active=True, **entry))
        self.db.commit()
        logger.info(f"🌱 Catalogue initialisé avec {len(DEFAULT_CATALOG)} entrées")
        return len(DEFAULT_CATALOG)

    def list(self, include_inactive: bool = True) -> List[models.ServiceType]:
        query = self.db.query(models.ServiceType)
        if not include_inactive:
            query = query.filter(models.ServiceType.active.is_(True))
        return query.order_by(models.ServiceType.created_at.desc(), models.ServiceType.id.desc()).all()

    def get(self, service_type_id: int) -> models.ServiceType:
        entry = self.db.query(models.ServiceType).filter(
            models.ServiceType.id == service_type_id
        ).first()
        if not entry:
            raise NotFound(f"Service type {service_type_id} not found")
        return entry

    def get_assignable(self, service_type_id: int) -> models.ServiceType:
        """Une entrée désactivée n'est plus proposée pour de nouvelles assignations"""
        entry = self.get(service_type_id)
        if not entry.active:
            raise ValidationError(f"Service type '{entry.name}' is inactive", field="service_type_id")
        return entry

    def create(
        self,
        name: str,
        base_price: float = 0,
        icon: Optional[str] = None,
        description: str = "",
        active: bool = True,
    ) -> models.ServiceType:
        self._validate(name, base_price)
        entry = models.ServiceType(
            name=name.strip(),
            icon=icon or DEFAULT_ICON,
            base_price=base_price or 0,
            description=description or "",
            active=active,
        )
        self.db.add(entry)
        self.db.commit()
        self.db.refresh(entry)
        return entry

    def update(self, service_type_id: int, **changes) -> models.ServiceType:
        entry = self.get(service_type_id)
        name = changes.get("name", entry.name)
        base_price = changes.get("base_price", entry.base_price)
        self._validate(name, base_price)
        for key, value in changes.items():
            if value is not None and hasattr(entry, key):
                setattr(entry, key, value)
        self.db.commit()
        self.db.refresh(entry)
        return entry

    def toggle_active(self, service_type_id: int) -> models.ServiceType:
        # Désactiver n'affecte pas les services existants (le nom y est copié)
        entry = self.get(service_type_id)
        entry.active = not entry.active
        self.db.commit()
        self.db.refresh(entry)
        return entry

    def delete(self, service_type_id: int) -> None:
        entry = self.get(service_type_id)
        self.db.delete(entry)
        self.db.commit()

    @staticmethod
    def _validate(name: Optional[str], base_price: Optional[float]) -> None:
        if not name or not name.strip():
            raise ValidationError("name is required", field="name")
        if base_price is not None and (not math.isfinite(base_price) or base_price < 0):
            raise ValidationError("base_price must be >= 0", field="base_price")
