# DOMESTICA/backend/app/services/ledger_service.py : cycle de vie des services et des visites

"""
Grand livre des services.

Le stockage n'offre pas de transaction multi-documents exploitable ici:
- la création service + visites est une suite d'écritures séquentielles (au moins une fois);
  une interruption lève PartialWriteError et resume_visit_generation() complète les trous;
- la complétion d'une visite est une mise à jour conditionnelle (pending -> completed),
  suivie de l'écriture du revenu dédupliquée par id de visite.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional

from sqlalchemy import case, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.constants import (
    INCOME_AUTOMATIC, SERVICE_STATES, VISIT_CANCELLED, VISIT_COMPLETED, VISIT_PENDING, WORKER_ACTIVE
)
from app.errors import Forbidden, NotFound, PartialWriteError, PreconditionFailed, ValidationError
from app.models import models
from app.services.catalog_service import CatalogService
from app.services.directory_service import DirectoryService
from app.services.notification_service import build_assignment_message, build_whatsapp_link
from app.services.scheduler import ScheduleConfig, VisitDraft, generate_visits, validate_config
from app.utils import round_half_up, utc_now

logger = logging.getLogger(__name__)


@dataclass
class Progress:
    completed: int
    total: int

    @property
    def percent(self) -> int:
        if self.total == 0:
            return 0
        return round_half_up(100 * self.completed / self.total)

    def to_dict(self) -> Dict[str, int]:
        return {"completed": self.completed, "total": self.total, "percent": self.percent}


@dataclass
class ServiceAssignment:
    service: models.Service
    visits: List[models.Visit]
    message: str
    whatsapp_link: Optional[str] = None


@dataclass
class VisitCompletion:
    visit: models.Visit
    income: models.IncomeEntry


@dataclass
class NewClient:
    name: str
    phone: Optional[str] = None
    address: Optional[str] = None


@dataclass
class DeletionReport:
    service_id: int
    visits_deleted: int
    visit_ids: List[int] = field(default_factory=list)


def config_from_service(service: models.Service) -> ScheduleConfig:
    return ScheduleConfig(
        weeks=service.weeks,
        visits_per_week=service.visits_per_week,
        hours_per_visit=service.hours_per_visit,
        start_date=service.start_date,
        total_price=service.total_price,
    )


class LedgerService:
    """Services, visites et progression"""

    def __init__(self, db: Session):
        self.db = db
        self.catalog = CatalogService(db)
        self.directory = DirectoryService(db)

    # ========== CRÉATION ==========

    def create_service(
        self,
        worker_id: int,
        service_type_id: int,
        weeks: int,
        visits_per_week: int,
        hours_per_visit: float,
        start_date: date,
        total_price: float,
        client_id: Optional[int] = None,
        new_client: Optional[NewClient] = None,
        notes: str = "",
    ) -> ServiceAssignment:
        config = ScheduleConfig(
            weeks=weeks,
            visits_per_week=visits_per_week,
            hours_per_visit=hours_per_visit,
            start_date=start_date,
            total_price=total_price,
        )
        # Toutes les validations passent avant la première écriture
        validate_config(config)
        worker = self.directory.get_worker(worker_id)
        if worker.approval_state != WORKER_ACTIVE:
            raise ValidationError(
                f"Worker {worker.id} is {worker.approval_state} and cannot be assigned",
                field="worker_id",
            )
        service_type = self.catalog.get_assignable(service_type_id)
        if client_id is None and (new_client is None or not (new_client.name or "").strip()):
            raise ValidationError("client name is required", field="client.name")

        client = self.directory.resolve_client(
            client_id=client_id,
            name=new_client.name if new_client else None,
            phone=new_client.phone if new_client else None,
            address=new_client.address if new_client else None,
        )
        # Instantané des coordonnées saisies, pas de la fiche retrouvée
        if client_id is None:
            client_name, client_phone, client_address = new_client.name.strip(), new_client.phone, new_client.address
        else:
            client_name, client_phone, client_address = client.name, client.phone, client.address

        service = models.Service(
            worker_id=worker.id,
            client_id=client.id,
            worker_name=worker.name,
            client_name=client_name,
            client_phone=client_phone,
            client_address=client_address,
            service_type=service_type.name,
            total_price=total_price,
            price_per_visit=config.price_per_visit,
            weeks=config.weeks,
            visits_per_week=config.visits_per_week,
            hours_per_visit=config.hours_per_visit,
            start_date=config.start_date,
            total_visits=config.total_visits,
            total_hours=config.total_hours,
            notes=notes or "",
        )
        self.db.add(service)
        self.db.commit()
        self.db.refresh(service)

        visits = self._write_visits(service, generate_visits(config))
        logger.info(
            f"✅ Service #{service.id} créé pour {worker.name}: {len(visits)} visites, "
            f"{service.price_per_visit}/visite"
        )

        message = build_assignment_message(
            worker_name=worker.name,
            service_label=f"{service_type.icon} {service_type.name}".strip(),
            client_name=client_name,
            client_address=client_address,
            client_phone=client_phone,
            config=config,
            notes=notes,
        )
        return ServiceAssignment(
            service=service,
            visits=visits,
            message=message,
            whatsapp_link=build_whatsapp_link(worker.phone, message),
        )

    def _write_visits(self, service: models.Service, drafts: List[VisitDraft]) -> List[models.Visit]:
        """Écrit les visites une par une; signale précisément lesquelles manquent en cas d'échec"""
        written = []
        for position, draft in enumerate(drafts):
            visit = models.Visit(
                service_id=service.id,
                worker_id=service.worker_id,
                worker_name=service.worker_name,
                client_name=service.client_name,
                service_type=service.service_type,
                sequence=draft.sequence,
                total_visits=service.total_visits,
                scheduled_date=draft.scheduled_date,
                hours=draft.hours,
                price=draft.price,
                state=VISIT_PENDING,
                paid=False,
            )
            try:
                self.db.add(visit)
                self.db.commit()
            except SQLAlchemyError as e:
                self.db.rollback()
                missing = [d.sequence for d in drafts[position:]]
                logger.error(
                    f"❌ Service #{service.id}: écriture interrompue après {len(written)} visites ({e})"
                )
                raise PartialWriteError(
                    f"Service {service.id} created but only {len(written)} of {len(drafts)} visits were written",
                    entity_id=service.id,
                    written=len(written),
                    expected=len(drafts),
                    pending=missing,
                )
            written.append(visit)
        for visit in written:
            self.db.refresh(visit)
        return written

    def resume_visit_generation(self, service_id: int) -> List[models.Visit]:
        """Recrée les numéros de visite manquants après une création partielle"""
        service = self.get_service(service_id)
        self.db.expire(service, ["visits"])
        existing = {visit.sequence for visit in service.visits}
        drafts = [d for d in generate_visits(config_from_service(service)) if d.sequence not in existing]
        if not drafts:
            return []
        created = self._write_visits(service, drafts)
        logger.info(f"🔁 Service #{service.id}: {len(created)} visites manquantes recréées")
        return created

    # ========== LECTURE ==========

    def get_service(self, service_id: int) -> models.Service:
        service = self.db.query(models.Service).filter(models.Service.id == service_id).first()
        if not service:
            raise NotFound(f"Service {service_id} not found")
        return service

    def get_visit(self, visit_id: int) -> models.Visit:
        visit = self.db.query(models.Visit).filter(models.Visit.id == visit_id).first()
        if not visit:
            raise NotFound(f"Visit {visit_id} not found")
        return visit

    def list_services(self, state: Optional[str] = None, worker_id: Optional[int] = None) -> List[models.Service]:
        query = self.db.query(models.Service)
        if state:
            query = query.filter(models.Service.state == state)
        if worker_id is not None:
            query = query.filter(models.Service.worker_id == worker_id)
        return query.order_by(models.Service.created_at.desc(), models.Service.id.desc()).all()

    def list_visits(
        self,
        service_id: Optional[int] = None,
        worker_id: Optional[int] = None,
        state: Optional[str] = None,
    ) -> List[models.Visit]:
        query = self.db.query(models.Visit)
        if service_id is not None:
            query = query.filter(models.Visit.service_id == service_id)
        if worker_id is not None:
            query = query.filter(models.Visit.worker_id == worker_id)
        if state:
            query = query.filter(models.Visit.state == state)
        return query.order_by(models.Visit.service_id, models.Visit.sequence).all()

    def progress(self, service_id: int) -> Progress:
        service = self.get_service(service_id)
        return self.progress_map([service.id])[service.id]

    def progress_map(self, service_ids: List[int]) -> Dict[int, Progress]:
        """Progression de plusieurs services en une seule requête groupée"""
        result = {sid: Progress(completed=0, total=0) for sid in service_ids}
        if not service_ids:
            return result
        rows = self.db.query(
            models.Visit.service_id,
            func.count(models.Visit.id),
            func.sum(case((models.Visit.state == VISIT_COMPLETED, 1), else_=0)),
        ).filter(
            models.Visit.service_id.in_(service_ids)
        ).group_by(models.Visit.service_id).all()
        for sid, total, completed in rows:
            result[sid] = Progress(completed=int(completed or 0), total=int(total))
        return result

    # ========== TRANSITIONS ==========

    def set_service_state(self, service_id: int, new_state: str) -> models.Service:
        """Transition libre entre active/completed/cancelled (aucun ordre imposé)"""
        if new_state not in SERVICE_STATES:
            raise ValidationError(f"Unknown service state '{new_state}'", field="state")
        service = self.get_service(service_id)
        previous = service.state
        service.state = new_state
        self.db.commit()
        self.db.refresh(service)
        logger.info(f"🔄 Service #{service.id}: {previous} → {new_state}")
        return service

    def complete_visit(self, visit_id: int, worker_id: Optional[int] = None) -> VisitCompletion:
        """
        pending -> completed puis un revenu automatique unique pour la visite.

        worker_id limite l'opération aux visites de l'employée appelante.
        Un second appel lève PreconditionFailed(already_completed=True) sans dupliquer
        le revenu; il rattrape toutefois un revenu manquant si le premier appel a été
        interrompu entre les deux écritures.
        """
        visit = self.get_visit(visit_id)
        if worker_id is not None and visit.worker_id != worker_id:
            raise Forbidden(f"Visit {visit_id} is not assigned to worker {worker_id}")

        updated = self.db.query(models.Visit).filter(
            models.Visit.id == visit_id,
            models.Visit.state == VISIT_PENDING,
        ).update(
            {models.Visit.state: VISIT_COMPLETED, models.Visit.completed_at: utc_now()},
            synchronize_session=False,
        )
        self.db.commit()
        self.db.refresh(visit)

        if not updated:
            if visit.state == VISIT_COMPLETED:
                self._ensure_visit_income(visit)
                logger.warning(f"⚠️ Visite #{visit.id} déjà complétée")
                raise PreconditionFailed(
                    f"Visit {visit.id} already completed",
                    current_state=visit.state,
                    already_completed=True,
                )
            logger.warning(f"⚠️ Visite #{visit.id} non complétable (état {visit.state})")
            raise PreconditionFailed(f"Visit {visit.id} is {visit.state}", current_state=visit.state)

        income = self._ensure_visit_income(visit)
        logger.info(f"✅ Visite #{visit.sequence} du service #{visit.service_id} complétée ({visit.price})")
        return VisitCompletion(visit=visit, income=income)

    def _ensure_visit_income(self, visit: models.Visit) -> models.IncomeEntry:
        """Revenu automatique d'une visite, dédupliqué par id de visite"""
        existing = self.db.query(models.IncomeEntry).filter(
            models.IncomeEntry.visit_id == visit.id
        ).first()
        if existing:
            return existing
        income = models.IncomeEntry(
            kind=INCOME_AUTOMATIC,
            service_id=visit.service_id,
            visit_id=visit.id,
            description=f"Visita #{visit.sequence} - {visit.client_name} ({visit.service_type})",
            amount=visit.price or 0,
        )
        self.db.add(income)
        try:
            self.db.commit()
        except IntegrityError:
            # Écrit entre-temps par un appel concurrent
            self.db.rollback()
            return self.db.query(models.IncomeEntry).filter(
                models.IncomeEntry.visit_id == visit.id
            ).one()
        self.db.refresh(income)
        return income

    def repair_missing_income(self) -> int:
        """Redélivre le revenu des visites complétées qui n'en ont pas"""
        recorded = select(models.IncomeEntry.visit_id).where(models.IncomeEntry.visit_id.isnot(None))
        orphans = self.db.query(models.Visit).filter(
            models.Visit.state == VISIT_COMPLETED,
            models.Visit.id.notin_(recorded),
        ).all()
        for visit in orphans:
            self._ensure_visit_income(visit)
        if orphans:
            logger.warning(f"🩹 {len(orphans)} revenus de visite rattrapés")
        return len(orphans)

    def cancel_visit(self, visit_id: int) -> models.Visit:
        visit = self.get_visit(visit_id)
        updated = self.db.query(models.Visit).filter(
            models.Visit.id == visit_id,
            models.Visit.state == VISIT_PENDING,
        ).update({models.Visit.state: VISIT_CANCELLED}, synchronize_session=False)
        self.db.commit()
        self.db.refresh(visit)
        if not updated:
            raise PreconditionFailed(f"Visit {visit.id} is {visit.state}", current_state=visit.state)
        logger.info(f"❌ Visite #{visit.sequence} du service #{visit.service_id} annulée")
        return visit

    def set_visit_paid(self, visit_id: int, paid: bool) -> models.Visit:
        # Indépendant de l'état de la visite
        visit = self.get_visit(visit_id)
        visit.paid = bool(paid)
        self.db.commit()
        self.db.refresh(visit)
        return visit

    # ========== SUPPRESSION ==========

    def delete_service(self, service_id: int) -> DeletionReport:
        """
        Supprime les visites une à une puis le service.
        Relancer après une interruption reprend là où on s'est arrêté.
        """
        service = self.get_service(service_id)
        visit_ids = [
            row[0] for row in self.db.query(models.Visit.id).filter(
                models.Visit.service_id == service.id
            ).order_by(models.Visit.sequence).all()
        ]
        deleted = []
        for visit_id in visit_ids:
            try:
                self.db.query(models.Visit).filter(models.Visit.id == visit_id).delete(
                    synchronize_session=False
                )
                self.db.commit()
            except SQLAlchemyError as e:
                self.db.rollback()
                remaining = [vid for vid in visit_ids if vid not in deleted]
                logger.error(f"❌ Suppression du service #{service.id} interrompue ({e})")
                raise PartialWriteError(
                    f"Service {service.id} not deleted: {len(remaining)} visits remain",
                    entity_id=service.id,
                    written=len(deleted),
                    expected=len(visit_ids),
                    pending=remaining,
                )
            deleted.append(visit_id)

        self.db.expire(service)
        self.db.delete(service)
        self.db.commit()
        logger.info(f"🗑️ Service #{service_id} supprimé avec {len(deleted)} visites")
        return DeletionReport(service_id=service_id, visits_deleted=len(deleted), visit_ids=deleted)
