# DOMESTICA/backend/tests/test_ledger.py : services, visites, complétion et suppression

from datetime import date

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker

from app.constants import (
    INCOME_AUTOMATIC, SERVICE_COMPLETED, VISIT_CANCELLED, VISIT_COMPLETED, WORKER_PENDING
)
from app.errors import (
    Forbidden, IntegrityWarning, NotFound, PartialWriteError, PreconditionFailed, ValidationError
)
from app.models import models
from app.services.ledger_service import LedgerService, NewClient


def _create(ledger, worker, service_type, **overrides):
    values = {
        "worker_id": worker.id,
        "service_type_id": service_type.id,
        "weeks": 2,
        "visits_per_week": 3,
        "hours_per_visit": 4,
        "start_date": date(2024, 1, 1),
        "total_price": 3600,
        "new_client": NewClient(name="Familia Castillo", phone="8095551001", address="Calle 5 #12"),
    }
    values.update(overrides)
    return ledger.create_service(**values)


class TestCreateService:

    def test_creates_service_and_visits(self, db_session, make_worker, service_type):
        worker = make_worker()
        assignment = _create(LedgerService(db_session), worker, service_type)

        service = assignment.service
        assert service.total_visits == 6
        assert service.price_per_visit == 600
        assert service.total_hours == 24
        assert service.state == "active"
        assert [v.sequence for v in assignment.visits] == [1, 2, 3, 4, 5, 6]
        assert [v.scheduled_date.day for v in assignment.visits] == [1, 3, 5, 8, 10, 12]
        assert all(v.state == "pending" and not v.paid for v in assignment.visits)
        assert db_session.query(models.Visit).count() == 6

    def test_assignment_message_and_link(self, db_session, make_worker, service_type):
        worker = make_worker(phone="809-555-2000")
        assignment = _create(LedgerService(db_session), worker, service_type, notes="Traer guantes")

        assert "María Pérez" in assignment.message
        assert "Familia Castillo" in assignment.message
        assert "Traer guantes" in assignment.message
        assert assignment.whatsapp_link.startswith("https://wa.me/18095552000?text=")

    def test_pending_worker_is_rejected_without_writes(self, db_session, make_worker, service_type):
        worker = make_worker(approval_state=WORKER_PENDING)
        with pytest.raises(ValidationError):
            _create(LedgerService(db_session), worker, service_type)
        assert db_session.query(models.Service).count() == 0
        assert db_session.query(models.Client).count() == 0

    def test_invalid_config_is_rejected_without_writes(self, db_session, make_worker, service_type):
        worker = make_worker()
        with pytest.raises(ValidationError):
            _create(LedgerService(db_session), worker, service_type, visits_per_week=8)
        assert db_session.query(models.Service).count() == 0

    def test_missing_client_name_is_rejected(self, db_session, make_worker, service_type):
        worker = make_worker()
        with pytest.raises(ValidationError):
            _create(LedgerService(db_session), worker, service_type, new_client=NewClient(name="  "))

    def test_inactive_service_type_is_rejected(self, db_session, make_worker, service_type):
        worker = make_worker()
        service_type.active = False
        db_session.commit()
        with pytest.raises(ValidationError):
            _create(LedgerService(db_session), worker, service_type)

    def test_unknown_worker(self, db_session, service_type):
        ledger = LedgerService(db_session)
        with pytest.raises(NotFound):
            ledger.create_service(
                worker_id=999, service_type_id=service_type.id, weeks=1, visits_per_week=1,
                hours_per_visit=2, start_date=date(2024, 1, 1), total_price=500,
                new_client=NewClient(name="X"),
            )

    def test_new_client_is_reused_by_phone(self, db_session, make_worker, service_type):
        worker = make_worker()
        ledger = LedgerService(db_session)
        first = _create(ledger, worker, service_type).service
        second = _create(ledger, worker, service_type).service
        assert first.client_id == second.client_id
        assert db_session.query(models.Client).count() == 1

    def test_snapshot_keeps_typed_client_on_phone_collision(self, db_session, make_worker, service_type):
        """Même téléphone, autre nom: le service garde le nom saisi"""
        worker = make_worker()
        ledger = LedgerService(db_session)
        first = _create(ledger, worker, service_type).service

        with pytest.warns(IntegrityWarning):
            assignment = _create(
                ledger, worker, service_type,
                new_client=NewClient(name="Pedro Gómez", phone="8095551001", address="Av. Duarte 10"),
            )

        second = assignment.service
        assert second.client_name == "Pedro Gómez"
        assert second.client_address == "Av. Duarte 10"
        assert "Pedro Gómez" in assignment.message
        assert second.client_id != first.client_id
        assert db_session.query(models.Client).count() == 2
        assert ledger.get_service(first.id).client_name == "Familia Castillo"

    @pytest.mark.parametrize("overrides", [
        {"total_price": float("nan")},
        {"total_price": float("inf")},
        {"hours_per_visit": float("nan")},
    ])
    def test_non_finite_numbers_are_rejected_without_writes(self, db_session, make_worker, service_type, overrides):
        worker = make_worker()
        with pytest.raises(ValidationError):
            _create(LedgerService(db_session), worker, service_type, **overrides)
        assert db_session.query(models.Client).count() == 0
        assert db_session.query(models.Service).count() == 0

    def test_names_are_snapshots(self, db_session, make_worker, service_type):
        worker = make_worker()
        ledger = LedgerService(db_session)
        service = _create(ledger, worker, service_type).service

        worker.name = "María P. de Castillo"
        service_type.name = "Limpieza básica"
        db_session.commit()

        service = ledger.get_service(service.id)
        assert service.worker_name == "María Pérez"
        assert service.service_type == "Limpieza general"
        assert ledger.list_visits(service_id=service.id)[0].worker_name == "María Pérez"


class TestPartialWrite:

    def _fail_on_sequence(self, monkeypatch, db_session, sequence):
        real_commit = db_session.commit

        def flaky_commit():
            if any(isinstance(obj, models.Visit) and obj.sequence == sequence for obj in db_session.new):
                raise OperationalError("INSERT INTO visits", {}, Exception("connection lost"))
            return real_commit()

        monkeypatch.setattr(db_session, "commit", flaky_commit)

    def test_interrupted_generation_reports_missing_visits(self, db_session, make_worker, service_type, monkeypatch):
        worker = make_worker()
        ledger = LedgerService(db_session)
        self._fail_on_sequence(monkeypatch, db_session, 3)

        with pytest.raises(PartialWriteError) as exc:
            _create(ledger, worker, service_type)

        error = exc.value
        assert error.written == 2
        assert error.expected == 6
        assert error.pending == [3, 4, 5, 6]
        assert db_session.query(models.Visit).filter(models.Visit.service_id == error.entity_id).count() == 2

    def test_resume_fills_the_gaps(self, db_session, make_worker, service_type, monkeypatch):
        worker = make_worker()
        ledger = LedgerService(db_session)
        self._fail_on_sequence(monkeypatch, db_session, 3)
        with pytest.raises(PartialWriteError) as exc:
            _create(ledger, worker, service_type)
        monkeypatch.undo()

        created = ledger.resume_visit_generation(exc.value.entity_id)

        assert [v.sequence for v in created] == [3, 4, 5, 6]
        visits = ledger.list_visits(service_id=exc.value.entity_id)
        assert [v.sequence for v in visits] == [1, 2, 3, 4, 5, 6]
        assert [v.scheduled_date.day for v in visits] == [1, 3, 5, 8, 10, 12]
        assert ledger.resume_visit_generation(exc.value.entity_id) == []


class TestCompleteVisit:

    def test_completion_writes_one_income(self, db_session, make_worker, service_type):
        worker = make_worker()
        ledger = LedgerService(db_session)
        assignment = _create(ledger, worker, service_type)
        visit = assignment.visits[0]

        completion = ledger.complete_visit(visit.id)

        assert completion.visit.state == VISIT_COMPLETED
        assert completion.visit.completed_at is not None
        assert completion.income.kind == INCOME_AUTOMATIC
        assert completion.income.amount == 600
        assert completion.income.visit_id == visit.id
        assert completion.income.description == "Visita #1 - Familia Castillo (Limpieza general)"

    def test_second_completion_is_rejected_without_duplicate(self, db_session, make_worker, service_type):
        worker = make_worker()
        ledger = LedgerService(db_session)
        visit = _create(ledger, worker, service_type).visits[0]
        ledger.complete_visit(visit.id)

        with pytest.raises(PreconditionFailed) as exc:
            ledger.complete_visit(visit.id)

        assert exc.value.extra["already_completed"] is True
        assert db_session.query(models.IncomeEntry).filter(models.IncomeEntry.visit_id == visit.id).count() == 1

    def test_concurrent_completion_writes_one_income(self, db_session, db_engine, make_worker, service_type):
        """Deux sessions lisent la visite en attente; seule la première la complète"""
        worker = make_worker()
        visit = _create(LedgerService(db_session), worker, service_type).visits[0]
        other = sessionmaker(bind=db_engine)()
        try:
            assert other.get(models.Visit, visit.id).state == "pending"

            LedgerService(db_session).complete_visit(visit.id)
            with pytest.raises(PreconditionFailed) as exc:
                LedgerService(other).complete_visit(visit.id)
        finally:
            other.close()

        assert exc.value.extra["already_completed"] is True
        assert db_session.query(models.IncomeEntry).filter(models.IncomeEntry.visit_id == visit.id).count() == 1

    def test_retry_restores_missing_income(self, db_session, make_worker, service_type):
        """Visite complétée mais revenu jamais écrit: le second appel le rattrape"""
        worker = make_worker()
        ledger = LedgerService(db_session)
        visit = _create(ledger, worker, service_type).visits[0]
        visit.state = VISIT_COMPLETED
        db_session.commit()

        with pytest.raises(PreconditionFailed):
            ledger.complete_visit(visit.id)

        assert db_session.query(models.IncomeEntry).filter(models.IncomeEntry.visit_id == visit.id).count() == 1

    def test_repair_missing_income(self, db_session, make_worker, service_type):
        worker = make_worker()
        ledger = LedgerService(db_session)
        visits = _create(ledger, worker, service_type).visits
        ledger.complete_visit(visits[0].id)
        visits[1].state = VISIT_COMPLETED
        db_session.commit()

        assert ledger.repair_missing_income() == 1
        assert ledger.repair_missing_income() == 0
        assert db_session.query(models.IncomeEntry).count() == 2

    def test_cancelled_visit_cannot_be_completed(self, db_session, make_worker, service_type):
        worker = make_worker()
        ledger = LedgerService(db_session)
        visit = _create(ledger, worker, service_type).visits[0]
        ledger.cancel_visit(visit.id)

        with pytest.raises(PreconditionFailed) as exc:
            ledger.complete_visit(visit.id)
        assert exc.value.current_state == VISIT_CANCELLED
        assert db_session.query(models.IncomeEntry).count() == 0

    def test_other_worker_cannot_complete(self, db_session, make_worker, service_type):
        worker = make_worker()
        other = make_worker(name="Ana Rodríguez", phone="8095552001")
        ledger = LedgerService(db_session)
        visit = _create(ledger, worker, service_type).visits[0]

        with pytest.raises(Forbidden):
            ledger.complete_visit(visit.id, worker_id=other.id)
        assert ledger.complete_visit(visit.id, worker_id=worker.id).visit.state == VISIT_COMPLETED

    def test_missing_visit(self, db_session):
        with pytest.raises(NotFound):
            LedgerService(db_session).complete_visit(12345)


class TestCancelAndPaid:

    def test_cancel_is_terminal(self, db_session, make_worker, service_type):
        worker = make_worker()
        ledger = LedgerService(db_session)
        visit = _create(ledger, worker, service_type).visits[0]

        assert ledger.cancel_visit(visit.id).state == VISIT_CANCELLED
        with pytest.raises(PreconditionFailed):
            ledger.cancel_visit(visit.id)

    def test_completed_visit_cannot_be_cancelled(self, db_session, make_worker, service_type):
        worker = make_worker()
        ledger = LedgerService(db_session)
        visit = _create(ledger, worker, service_type).visits[0]
        ledger.complete_visit(visit.id)
        with pytest.raises(PreconditionFailed):
            ledger.cancel_visit(visit.id)

    def test_paid_flag_is_independent_of_state(self, db_session, make_worker, service_type):
        worker = make_worker()
        ledger = LedgerService(db_session)
        visit = _create(ledger, worker, service_type).visits[0]

        assert ledger.set_visit_paid(visit.id, True).paid is True
        assert ledger.get_visit(visit.id).state == "pending"


class TestProgressAndState:

    def test_progress(self, db_session, make_worker, service_type):
        worker = make_worker()
        ledger = LedgerService(db_session)
        assignment = _create(ledger, worker, service_type)
        ledger.complete_visit(assignment.visits[0].id)
        ledger.complete_visit(assignment.visits[1].id)
        ledger.cancel_visit(assignment.visits[2].id)

        progress = ledger.progress(assignment.service.id)
        assert progress.completed == 2
        assert progress.total == 6
        assert progress.percent == 33

    def test_progress_bounds(self, db_session, make_worker, service_type):
        worker = make_worker()
        ledger = LedgerService(db_session)
        assignment = _create(ledger, worker, service_type, weeks=1, visits_per_week=2, total_price=1000)
        assert ledger.progress(assignment.service.id).percent == 0
        for visit in assignment.visits:
            ledger.complete_visit(visit.id)
        assert ledger.progress(assignment.service.id).percent == 100

    def test_service_state_is_permissive(self, db_session, make_worker, service_type):
        worker = make_worker()
        ledger = LedgerService(db_session)
        service = _create(ledger, worker, service_type).service

        assert ledger.set_service_state(service.id, SERVICE_COMPLETED).state == SERVICE_COMPLETED
        assert ledger.set_service_state(service.id, "active").state == "active"
        with pytest.raises(ValidationError):
            ledger.set_service_state(service.id, "archived")


class TestDeleteService:

    def test_delete_cascades_to_visits(self, db_session, make_worker, service_type):
        worker = make_worker()
        ledger = LedgerService(db_session)
        assignment = _create(ledger, worker, service_type)
        service_id = assignment.service.id
        ledger.complete_visit(assignment.visits[0].id)

        report = ledger.delete_service(service_id)

        assert report.visits_deleted == 6
        assert db_session.query(models.Visit).count() == 0
        with pytest.raises(NotFound):
            ledger.progress(service_id)
        # Les revenus déjà enregistrés restent dans le grand livre
        assert db_session.query(models.IncomeEntry).count() == 1

    def test_delete_missing_service(self, db_session):
        with pytest.raises(NotFound):
            LedgerService(db_session).delete_service(404)

    def test_interrupted_delete_can_be_rerun(self, db_session, make_worker, service_type, monkeypatch):
        worker = make_worker()
        ledger = LedgerService(db_session)
        assignment = _create(ledger, worker, service_type)
        service_id = assignment.service.id
        visit_ids = [v.id for v in sorted(assignment.visits, key=lambda v: v.sequence)]

        real_commit = db_session.commit
        calls = []

        def flaky_commit():
            calls.append(1)
            if len(calls) == 3:
                raise OperationalError("DELETE FROM visits", {}, Exception("connection lost"))
            return real_commit()

        monkeypatch.setattr(db_session, "commit", flaky_commit)
        with pytest.raises(PartialWriteError) as exc:
            ledger.delete_service(service_id)
        monkeypatch.undo()

        error = exc.value
        assert error.entity_id == service_id
        assert error.written == 2
        assert error.expected == 6
        assert error.pending == visit_ids[2:]
        assert db_session.query(models.Visit).count() == 4

        report = ledger.delete_service(service_id)

        assert report.visits_deleted == 4
        assert db_session.query(models.Visit).count() == 0
        with pytest.raises(NotFound):
            ledger.get_service(service_id)
