# DOMESTICA/backend/app/config.py

import os
import logging
from dotenv import load_dotenv
from pathlib import Path

logger = logging.getLogger(__name__)

# Trouve le chemin absolu du dossier contenant ce fichier (app/)
BASE_DIR = Path(__file__).parent.absolute()
env_path = BASE_DIR / '.env'

# Charge les variables depuis le fichier .env (sinon on garde l'environnement du process)
if env_path.exists():
    load_dotenv(dotenv_path=env_path)
    logger.info(f"✅ Fichier .env chargé depuis: {env_path}")
else:
    load_dotenv()


def _get_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name, "true" if default else "false").strip().lower()
    if raw in {"1", "true", "yes", "on"}:
        return True
    if raw in {"0", "false", "no", "off"}:
        return False
    return default


# ============================================
# CONFIGURATION ENVIRONNEMENT
# ============================================
ENVIRONMENT = os.getenv("ENVIRONMENT", "development")
DEBUG = _get_bool("DEBUG", False)

# ============================================
# CONFIGURATION BASE DE DONNÉES
# ============================================
DATABASE_URL = os.getenv("DATABASE_URL")
if not DATABASE_URL:
    # En production, on veut lever une erreur
    if ENVIRONMENT == "production":
        raise ValueError("DATABASE_URL must be set in production")
    DATABASE_URL = "sqlite:///./domestica.db"

CREATE_TABLES_ON_STARTUP = _get_bool("CREATE_TABLES_ON_STARTUP", True)

# ============================================
# CONFIGURATION JWT (jetons émis par le fournisseur d'identité externe)
# ============================================
SECRET_KEY = os.getenv("SECRET_KEY", "change_this_secret_key_in_production")
if SECRET_KEY == "change_this_secret_key_in_production" and ENVIRONMENT == "production":
    raise ValueError("SECRET_KEY must be changed in production")

ALGORITHM = os.getenv("ALGORITHM", "HS256")

# ============================================
# CONFIGURATION MÉTIER
# ============================================
BUSINESS_NAME = os.getenv("BUSINESS_NAME", "Doméstica Personal RD")
CURRENCY_SYMBOL = os.getenv("CURRENCY_SYMBOL", "RD$")
WHATSAPP_COUNTRY_CODE = os.getenv("WHATSAPP_COUNTRY_CODE", "1")
DEFAULT_COMMISSION_PERCENT = float(os.getenv("DEFAULT_COMMISSION_PERCENT", "25"))
CATALOG_SEED_ON_STARTUP = _get_bool("CATALOG_SEED_ON_STARTUP", True)

# ============================================
# CONFIGURATION CORS (Frontend)
# ============================================
ALLOWED_ORIGINS = os.getenv(
    "ALLOWED_ORIGINS", "http://localhost:5173,http://localhost:3000"
).split(",")

# ============================================
# LOGGING
# ============================================
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


# ============================================
# FONCTIONS UTILITAIRES
# ============================================
def is_production():
    """Vérifie si on est en production"""
    return ENVIRONMENT == "production"
