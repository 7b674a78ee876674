# DOMESTICA/backend/tests/conftest.py : configuration pour les tests

import sys
from pathlib import Path

# Ajoute le dossier parent au PYTHONPATH
BASE_DIR = Path(__file__).parent.parent
sys.path.insert(0, str(BASE_DIR))

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from app.main import app
from app.auth import create_access_token
from app.constants import ROLE_ADMIN, ROLE_WORKER, WORKER_ACTIVE
from app.database import Base, get_db
from app.models import models


@pytest.fixture(scope="function")
def db_engine():
    """Base SQLite en mémoire, recréée pour chaque test"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()

@pytest.fixture(scope="function")
def db_session(db_engine):
    """Créer une session de base de données pour chaque test"""
    session = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)()
    yield session
    session.close()

@pytest.fixture
def client(db_session):
    """Client de test avec la base de données de test"""
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


# ---------- JETONS ----------

def auth_headers(user_id: int, role: str) -> dict:
    token = create_access_token({"sub": str(user_id), "role": role})
    return {"Authorization": f"Bearer {token}"}

@pytest.fixture
def admin_headers():
    return auth_headers(1, ROLE_ADMIN)


# ---------- DONNÉES ----------

@pytest.fixture
def make_worker(db_session):
    """Fabrique d'employées (active par défaut)"""
    def _make(name="María Pérez", phone="8095552000", approval_state=WORKER_ACTIVE, **fields):
        worker = models.Worker(name=name, phone=phone, approval_state=approval_state, available=True, **fields)
        db_session.add(worker)
        db_session.commit()
        db_session.refresh(worker)
        return worker
    return _make

@pytest.fixture
def service_type(db_session):
    entry = models.ServiceType(name="Limpieza general", icon="🧹", base_price=1500, description="", active=True)
    db_session.add(entry)
    db_session.commit()
    db_session.refresh(entry)
    return entry

@pytest.fixture
def service_payload(service_type):
    """Corps JSON de création d'un service: 2 semaines × 3 visites à partir du 1er janvier 2024"""
    def _payload(worker_id, **overrides):
        payload = {
            "worker_id": worker_id,
            "service_type_id": service_type.id,
            "weeks": 2,
            "visits_per_week": 3,
            "hours_per_visit": 4,
            "start_date": "2024-01-01",
            "total_price": 3600,
            "client": {"name": "Familia Castillo", "phone": "8095551001", "address": "Calle 5 #12"},
        }
        payload.update(overrides)
        return payload
    return _payload

@pytest.fixture
def worker_headers():
    def _headers(worker_id):
        return auth_headers(worker_id, ROLE_WORKER)
    return _headers
