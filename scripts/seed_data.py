# DOMESTICA/backend/scripts/seed_data.py : script pour générer des données de démo

#!/usr/bin/env python
"""Script pour générer des données de démo réalistes (catalogue, employées, services, finances)"""

import random
import sys
import os
import warnings
from datetime import date, timedelta
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.auth import create_access_token
from app.constants import EXPENSE_TYPES, INCOME_CATEGORIES, ROLE_ADMIN, ROLE_WORKER, WORKER_ACTIVE
from app.database import SessionLocal, create_tables
from app.errors import IntegrityWarning
from app.services.catalog_service import CatalogService
from app.services.directory_service import DirectoryService
from app.services.ledger_service import LedgerService, NewClient
from app.services.reconciliation_service import ReconciliationService

WORKER_NAMES = ["María Pérez", "Ana Rodríguez", "Rosa Martínez", "Carmen Gómez", "Luisa Santana"]
SECTORS = ["Piantini", "Naco", "Los Prados", "Bella Vista", "Gazcue"]
CLIENTS = [
    ("Familia Castillo", "8095551001", "Calle 5 #12, Piantini"),
    ("Sra. Almonte", "8095551002", "Av. Lope de Vega 45, Naco"),
    ("Familia Reyes", "8095551003", None),
]


def generate_test_data():
    """Génère des données de démo"""
    create_tables()
    db = SessionLocal()
    try:
        catalog = CatalogService(db)
        catalog.ensure_seeded()
        service_types = catalog.list(include_inactive=False)

        directory = DirectoryService(db)
        workers = []
        for i, name in enumerate(WORKER_NAMES):
            worker = directory.register_worker(
                name=name,
                phone=f"809555{2000 + i}",
                sector=SECTORS[i % len(SECTORS)],
                experience=random.choice(["lt_1", "1_3", "3_5", "gt_5"]),
            )
            # La dernière reste en attente pour la démo des demandes
            if i < len(WORKER_NAMES) - 1:
                directory.set_worker_state(worker.id, WORKER_ACTIVE)
                workers.append(worker)
        demo_worker = (workers[0].id, workers[0].name)

        ledger = LedgerService(db)
        finance = ReconciliationService(db)
        # Les avertissements de démo (paiement sur service actif) ne sont pas utiles ici
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", IntegrityWarning)
            for name, phone, address in CLIENTS:
                service_type = random.choice(service_types)
                weeks = random.randint(1, 4)
                visits_per_week = random.choice([1, 2, 3, 5])
                assignment = ledger.create_service(
                    worker_id=random.choice(workers).id,
                    service_type_id=service_type.id,
                    weeks=weeks,
                    visits_per_week=visits_per_week,
                    hours_per_visit=random.choice([4, 6, 8]),
                    start_date=date.today() - timedelta(days=7),
                    total_price=service_type.base_price * weeks * visits_per_week,
                    new_client=NewClient(name=name, phone=phone, address=address),
                )
                # Les visites déjà passées sont complétées
                for visit in assignment.visits:
                    if visit.scheduled_date < date.today():
                        ledger.complete_visit(visit.id)
                finance.register_payment(assignment.service.id, assignment.service.total_price)

        for _ in range(5):
            finance.record_manual_income(
                description="Ingreso de demostración",
                amount=random.randint(200, 1500),
                category=random.choice(list(INCOME_CATEGORIES)),
            )
            finance.record_expense(
                description="Gasto de demostración",
                amount=random.randint(300, 3000),
                type=random.choice(list(EXPENSE_TYPES)),
            )
    finally:
        db.close()

    print("✅ Données de démo générées avec succès!")
    print(f"🔑 Jeton admin: {create_access_token({'sub': '1', 'role': ROLE_ADMIN}, expires_minutes=24 * 60)}")
    token = create_access_token({"sub": str(demo_worker[0]), "role": ROLE_WORKER}, expires_minutes=24 * 60)
    print(f"🔑 Jeton employée ({demo_worker[1]}): {token}")

if __name__ == "__main__":
    generate_test_data()
