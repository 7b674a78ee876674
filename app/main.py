# DOMESTICA/backend/app/main.py

from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from app.routes import catalog, workers, clients, services, visits, finance, payments, dashboard, exports
from app.database import SessionLocal, check_connection, create_tables
from app.config import (
    ALLOWED_ORIGINS, BUSINESS_NAME, CATALOG_SEED_ON_STARTUP, CREATE_TABLES_ON_STARTUP, ENVIRONMENT, LOG_LEVEL,
    is_production
)
from app.errors import DomainError
from app.services.catalog_service import CatalogService
import logging
import datetime
import sys
import fastapi
import sqlalchemy

# Configuration du logging
logging.basicConfig(level=getattr(logging, LOG_LEVEL, logging.INFO))
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    # --- STARTUP ---
    logger.info("🚀 Démarrage de l'API Domestica...")

    if check_connection():
        logger.info("✅ Connexion à la base de données établie")

        # En production, utiliser des migrations plutôt que create_all
        if CREATE_TABLES_ON_STARTUP:
            create_tables()

        if CATALOG_SEED_ON_STARTUP:
            db = SessionLocal()
            try:
                CatalogService(db).ensure_seeded()
            finally:
                db.close()
    else:
        logger.error("❌ Impossible de se connecter à la base de données")

    yield

    # --- SHUTDOWN ---
    logger.info("👋 Arrêt de l'API Domestica")

app = FastAPI(
    title="Domestica API",
    description=f"Planification des services, visites et finances de {BUSINESS_NAME}",
    version="1.0.0",
    docs_url=None if is_production() else "/docs",  # Swagger UI masqué en production
    redoc_url=None if is_production() else "/redoc",
    lifespan=lifespan,
    openapi_tags=[
        {"name": "catalog", "description": "Catalogue des types de service"},
        {"name": "workers", "description": "Employées: inscription, approbation, profil"},
        {"name": "clients", "description": "Fiches clients"},
        {"name": "services", "description": "Création des services et génération des visites"},
        {"name": "visits", "description": "Complétion, annulation et paiement des visites"},
        {"name": "finance", "description": "Revenus, dépenses et synthèses par période"},
        {"name": "payments", "description": "Paiements des services et part des employées"},
        {"name": "dashboard", "description": "Tableaux de bord admin et employée"},
        {"name": "exports", "description": "Exports CSV"},
    ]
)

@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError):
    """Convertit les erreurs métier en réponses JSON avec leur code HTTP"""
    if exc.status_code >= 500:
        logger.error(f"❌ {exc.kind}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

# Configuration CORS pour permettre au frontend d'accéder à l'API
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Inclusion des routeurs
app.include_router(catalog.router)
app.include_router(workers.router)
app.include_router(clients.router)
app.include_router(services.router)
app.include_router(visits.router)
app.include_router(finance.router)
app.include_router(payments.router)
app.include_router(dashboard.router)
app.include_router(exports.router)

@app.get("/")
def root():
    """
    Racine de l'API - Informations générales
    """
    return {
        "success": True,
        "message": "Domestica backend opérationnel 🚀",
        "version": app.version,
        "environment": ENVIRONMENT,
        "documentation": {
            "swagger": "/docs",
            "redoc": "/redoc"
        },
        "endpoints": {
            "catalog": "/catalog",
            "workers": "/workers",
            "clients": "/clients",
            "services": "/services",
            "visits": "/visits",
            "finance": "/finance",
            "payments": "/payments",
            "dashboard": "/dashboard",
            "exports": "/exports",
            "docs": "/docs"
        },
        "health_check": "/health"
    }

@app.get("/health")
def health_check():
    """
    Endpoint de santé pour le monitoring
    """
    db_status = check_connection()

    return {
        "status": "healthy" if db_status else "unhealthy",
        "database": "connected" if db_status else "disconnected",
        "version": app.version,
        "timestamp": datetime.datetime.now().isoformat()
    }

@app.get("/info")
def info():
    """
    Informations détaillées sur l'API
    """
    return {
        "name": app.title,
        "description": app.description,
        "version": app.version,
        "python_version": sys.version,
        "fastapi_version": fastapi.__version__,
        "sqlalchemy_version": sqlalchemy.__version__,
        "environment": ENVIRONMENT
    }
