# DOMESTICA/backend/app/services/directory_service.py : employées et clients

import logging
import warnings
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.constants import (
    EXPERIENCE_LEVELS, TRANSPORT_DIFFICULTY, WORKER_PENDING, WORKER_STATES, WORKER_TRANSITIONS
)
from app.errors import IntegrityWarning, NotFound, PreconditionFailed, ValidationError
from app.models import models

logger = logging.getLogger(__name__)

WORKER_PROFILE_FIELDS = (
    "name", "phone", "sector", "lat", "lng", "available", "experience", "transport_difficulty",
    "age", "nationality", "references",
)
CLIENT_FIELDS = ("name", "phone", "address")


class DirectoryService:
    """Annuaire: inscription et approbation des employées, fiches clients"""

    def __init__(self, db: Session):
        self.db = db

    # ========== EMPLOYÉES ==========

    def register_worker(
        self,
        name: str,
        phone: Optional[str] = None,
        email: Optional[str] = None,
        sector: Optional[str] = None,
        experience: str = "none",
        transport_difficulty: str = "none",
        lat: Optional[float] = None,
        lng: Optional[float] = None,
        age: Optional[int] = None,
        nationality: Optional[str] = None,
        references: Optional[str] = None,
        worker_id: Optional[int] = None,
    ) -> models.Worker:
        """
        Nouvelle inscription: en attente d'approbation, disponible par défaut.
        worker_id est fourni lors de l'auto-inscription (id du compte authentifié).
        """
        if not name or not name.strip():
            raise ValidationError("name is required", field="name")
        self._validate_tiers(experience, transport_difficulty)
        self._validate_age(age)
        existing = None
        if worker_id is not None:
            existing = self.db.query(models.Worker).filter(models.Worker.id == worker_id).first()
        if existing:
            raise PreconditionFailed(
                f"Worker {worker_id} is already registered", current_state=existing.approval_state
            )
        worker = models.Worker(
            id=worker_id,
            name=name.strip(),
            phone=phone,
            email=email,
            sector=sector,
            experience=experience,
            transport_difficulty=transport_difficulty,
            lat=lat,
            lng=lng,
            age=age,
            nationality=nationality,
            references=references,
            available=True,
            approval_state=WORKER_PENDING,
        )
        self.db.add(worker)
        self.db.commit()
        self.db.refresh(worker)
        logger.info(f"📝 Nouvelle employée inscrite: {worker.name} (#{worker.id})")
        return worker

    def get_worker(self, worker_id: int) -> models.Worker:
        worker = self.db.query(models.Worker).filter(models.Worker.id == worker_id).first()
        if not worker:
            raise NotFound(f"Worker {worker_id} not found")
        return worker

    def list_workers(self, state: Optional[str] = None, search: Optional[str] = None) -> List[models.Worker]:
        query = self.db.query(models.Worker)
        if state:
            query = query.filter(models.Worker.approval_state == state)
        if search:
            pattern = f"%{search.lower()}%"
            query = query.filter(or_(
                models.Worker.name.ilike(pattern),
                models.Worker.sector.ilike(pattern),
            ))
        return query.order_by(models.Worker.name).all()

    def pending_requests(self) -> List[models.Worker]:
        """Demandes d'inscription en attente, les plus récentes d'abord"""
        return self.db.query(models.Worker).filter(
            models.Worker.approval_state == WORKER_PENDING
        ).order_by(models.Worker.created_at.desc(), models.Worker.id.desc()).all()

    def set_worker_state(self, worker_id: int, new_state: str) -> models.Worker:
        if new_state not in WORKER_STATES:
            raise ValidationError(f"Unknown worker state '{new_state}'", field="state")
        worker = self.get_worker(worker_id)
        allowed = WORKER_TRANSITIONS.get(worker.approval_state, set())
        if new_state not in allowed:
            raise PreconditionFailed(
                f"Cannot move worker from {worker.approval_state} to {new_state}",
                current_state=worker.approval_state,
            )
        previous = worker.approval_state
        worker.approval_state = new_state
        self.db.commit()
        self.db.refresh(worker)
        logger.info(f"👩 Employée #{worker.id}: {previous} → {new_state}")
        return worker

    def update_worker_profile(self, worker_id: int, **changes) -> models.Worker:
        worker = self.get_worker(worker_id)
        self._validate_tiers(
            changes.get("experience") or worker.experience,
            changes.get("transport_difficulty") or worker.transport_difficulty,
        )
        self._validate_age(changes.get("age"))
        if "name" in changes and changes["name"] is not None and not changes["name"].strip():
            raise ValidationError("name cannot be empty", field="name")
        for key in WORKER_PROFILE_FIELDS:
            if changes.get(key) is not None:
                setattr(worker, key, changes[key])
        self.db.commit()
        self.db.refresh(worker)
        return worker

    @staticmethod
    def _validate_age(age: Optional[int]) -> None:
        if age is not None and not 16 <= age <= 99:
            raise ValidationError("age must be between 16 and 99", field="age")

    @staticmethod
    def _validate_tiers(experience: str, transport_difficulty: str) -> None:
        if experience not in EXPERIENCE_LEVELS:
            raise ValidationError(f"Unknown experience tier '{experience}'", field="experience")
        if transport_difficulty not in TRANSPORT_DIFFICULTY:
            raise ValidationError(
                f"Unknown transport difficulty '{transport_difficulty}'", field="transport_difficulty"
            )

    # ========== CLIENTS ==========

    def get_client(self, client_id: int) -> models.Client:
        client = self.db.query(models.Client).filter(models.Client.id == client_id).first()
        if not client:
            raise NotFound(f"Client {client_id} not found")
        return client

    def list_clients(self, search: Optional[str] = None) -> List[models.Client]:
        query = self.db.query(models.Client)
        if search:
            query = query.filter(or_(
                models.Client.name.ilike(f"%{search}%"),
                models.Client.phone.contains(search),
            ))
        return query.order_by(models.Client.created_at.desc(), models.Client.id.desc()).all()

    def create_client(self, name: str, phone: Optional[str] = None, address: Optional[str] = None) -> models.Client:
        if not name or not name.strip():
            raise ValidationError("client name is required", field="client.name")
        client = models.Client(name=name.strip(), phone=phone, address=address)
        self.db.add(client)
        self.db.commit()
        self.db.refresh(client)
        return client

    def update_client(self, client_id: int, **changes) -> models.Client:
        client = self.get_client(client_id)
        if "name" in changes and changes["name"] is not None and not changes["name"].strip():
            raise ValidationError("client name cannot be empty", field="name")
        for key in CLIENT_FIELDS:
            if changes.get(key) is not None:
                setattr(client, key, changes[key])
        self.db.commit()
        self.db.refresh(client)
        return client

    def delete_client(self, client_id: int) -> None:
        # Les services gardent leur copie du nom/téléphone/adresse
        client = self.get_client(client_id)
        self.db.query(models.Service).filter(models.Service.client_id == client_id).update(
            {models.Service.client_id: None}, synchronize_session=False
        )
        self.db.delete(client)
        self.db.commit()

    def resolve_client(
        self,
        client_id: Optional[int] = None,
        name: Optional[str] = None,
        phone: Optional[str] = None,
        address: Optional[str] = None,
    ) -> models.Client:
        """
        Client existant (par id), sinon upsert: un client déjà connu avec le même
        téléphone et le même nom est réutilisé, autrement il est enregistré avant d'être référencé.
        Même téléphone mais nom différent: nouvelle fiche et IntegrityWarning.
        """
        if client_id is not None:
            return self.get_client(client_id)
        if not name or not name.strip():
            raise ValidationError("client name is required", field="client.name")
        if phone:
            existing = self.db.query(models.Client).filter(models.Client.phone == phone).all()
            for client in existing:
                if client.name.strip().casefold() == name.strip().casefold():
                    return client
            if existing:
                msg = f"Phone {phone} already belongs to client '{existing[0].name}', registering '{name.strip()}' separately"
                logger.warning(f"⚠️ {msg}")
                warnings.warn(msg, IntegrityWarning, stacklevel=2)
        return self.create_client(name, phone=phone, address=address)
