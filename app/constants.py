# DOMESTICA/backend/app/constants.py

# Constantes métier de l'application

# ---------- EMPLOYÉES ----------
WORKER_PENDING = "pending"
WORKER_ACTIVE = "active"
WORKER_BLOCKED = "blocked"
WORKER_STATES = [WORKER_PENDING, WORKER_ACTIVE, WORKER_BLOCKED]

# Transitions autorisées pour l'approbation (bloquée peut être réactivée)
WORKER_TRANSITIONS = {
    WORKER_PENDING: {WORKER_ACTIVE, WORKER_BLOCKED},
    WORKER_ACTIVE: {WORKER_BLOCKED},
    WORKER_BLOCKED: {WORKER_ACTIVE},
}

EXPERIENCE_LEVELS = {
    "none": "Sin experiencia",
    "lt_1": "< 1 año",
    "1_3": "1-3 años",
    "3_5": "3-5 años",
    "gt_5": "5+ años",
}

TRANSPORT_DIFFICULTY = {
    "none": "Sin problema",
    "some": "Con dificultad",
    "depends": "Depende",
}

# ---------- RÔLES ----------
ROLE_ADMIN = "admin"
ROLE_WORKER = "worker"
ROLES = [ROLE_ADMIN, ROLE_WORKER]

# ---------- SERVICES ----------
SERVICE_ACTIVE = "active"
SERVICE_COMPLETED = "completed"
SERVICE_CANCELLED = "cancelled"
SERVICE_STATES = [SERVICE_ACTIVE, SERVICE_COMPLETED, SERVICE_CANCELLED]

# ---------- VISITES ----------
VISIT_PENDING = "pending"
VISIT_COMPLETED = "completed"
VISIT_CANCELLED = "cancelled"
VISIT_STATES = [VISIT_PENDING, VISIT_COMPLETED, VISIT_CANCELLED]

DAYS_IN_WEEK = 7
MAX_VISITS_PER_WEEK = 7

# ---------- FINANCES ----------
INCOME_AUTOMATIC = "automatic"
INCOME_MANUAL = "manual"
INCOME_KINDS = [INCOME_AUTOMATIC, INCOME_MANUAL]

INCOME_CATEGORIES = {
    "bonus": "Bonus del cliente",
    "commission": "Comisión variable",
    "extra_payment": "Pago extra",
    "tip": "Regalo/Propina",
    "other": "Otro",
}

EXPENSE_TYPES = {
    "worker_payout": "Pago a empleada",
    "transport": "Transporte",
    "materials": "Materiales/Insumos",
    "advertising": "Publicidad",
    "operations": "Gasto operativo",
    "other": "Otro",
}

PERIOD_WEEK = "week"
PERIOD_MONTH = "month"
PERIOD_ALL = "all"
PERIODS = [PERIOD_WEEK, PERIOD_MONTH, PERIOD_ALL]

# ---------- CATALOGUE PAR DÉFAUT ----------
DEFAULT_CATALOG = [
    {"name": "Limpieza general", "icon": "🧹", "base_price": 1500, "description": "Limpieza completa del hogar"},
    {"name": "Cocina", "icon": "🍳", "base_price": 2000, "description": "Preparación de alimentos y limpieza de cocina"},
    {"name": "Lavado y planchado", "icon": "👕", "base_price": 1200, "description": "Lavado, secado y planchado de ropa"},
    {"name": "Cuidado de niños", "icon": "👶", "base_price": 2500, "description": "Cuidado y supervisión de niños"},
    {"name": "Limpieza profunda", "icon": "🧼", "base_price": 3000, "description": "Limpieza exhaustiva de todas las áreas"},
    {"name": "Jardinería", "icon": "🌿", "base_price": 1800, "description": "Mantenimiento de jardín y áreas verdes"},
    {"name": "Solo planchado", "icon": "👔", "base_price": 800, "description": "Servicio exclusivo de planchado"},
]

DEFAULT_ICON = "🧹"
