# DOMESTICA/backend/app/schemas/schemas.py

from pydantic import BaseModel, ConfigDict, Field, field_serializer
from typing import Optional, List, Dict
from datetime import date, datetime

# ---------- CATALOG SCHEMAS ----------
class ServiceTypeCreate(BaseModel):
    name: str
    base_price: float = 0
    icon: Optional[str] = None
    description: Optional[str] = ""
    active: bool = True

class ServiceTypeUpdate(BaseModel):
    name: Optional[str] = None
    base_price: Optional[float] = None
    icon: Optional[str] = None
    description: Optional[str] = None

class ServiceTypeOut(BaseModel):
    id: int
    name: str
    icon: Optional[str] = None
    base_price: float
    description: Optional[str] = ""
    active: bool

    model_config = ConfigDict(from_attributes=True)

# ---------- WORKER SCHEMAS ----------
class WorkerCreate(BaseModel):
    name: str
    phone: Optional[str] = None
    email: Optional[str] = None
    sector: Optional[str] = None
    experience: str = "none"
    transport_difficulty: str = "none"
    lat: Optional[float] = None
    lng: Optional[float] = None
    age: Optional[int] = None
    nationality: Optional[str] = None
    references: Optional[str] = None

class WorkerProfileUpdate(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    sector: Optional[str] = None
    experience: Optional[str] = None
    transport_difficulty: Optional[str] = None
    available: Optional[bool] = None
    lat: Optional[float] = None
    lng: Optional[float] = None
    age: Optional[int] = None
    nationality: Optional[str] = None
    references: Optional[str] = None

class WorkerOut(BaseModel):
    id: int
    name: str
    phone: Optional[str] = None
    email: Optional[str] = None
    sector: Optional[str] = None
    experience: Optional[str] = None
    transport_difficulty: Optional[str] = None
    lat: Optional[float] = None
    lng: Optional[float] = None
    age: Optional[int] = None
    nationality: Optional[str] = None
    references: Optional[str] = None
    available: bool
    approval_state: str
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @field_serializer('created_at')
    def serialize_datetime(self, value: Optional[datetime]) -> Optional[str]:
        """Sérialise un datetime en chaîne ISO 8601 pour JSON."""
        return value.isoformat() if value else None

# ---------- CLIENT SCHEMAS ----------
class ClientCreate(BaseModel):
    name: str
    phone: Optional[str] = None
    address: Optional[str] = None

class ClientUpdate(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None

class ClientOut(BaseModel):
    id: int
    name: str
    phone: Optional[str] = None
    address: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

# ---------- STATE SCHEMAS ----------
class StateUpdate(BaseModel):
    state: str

class PaidUpdate(BaseModel):
    paid: bool

# ---------- SERVICE SCHEMAS ----------
class ServiceCreate(BaseModel):
    worker_id: int
    service_type_id: int
    weeks: int
    visits_per_week: int
    hours_per_visit: float
    start_date: date
    total_price: float
    client_id: Optional[int] = None
    client: Optional[ClientCreate] = None  # nouveau client si client_id absent
    notes: Optional[str] = ""

class ProgressOut(BaseModel):
    completed: int
    total: int
    percent: int

class ServiceOut(BaseModel):
    id: int
    worker_id: int
    client_id: Optional[int] = None
    worker_name: str
    client_name: str
    client_phone: Optional[str] = None
    client_address: Optional[str] = None
    service_type: str
    total_price: float
    price_per_visit: int
    weeks: int
    visits_per_week: int
    hours_per_visit: float
    start_date: date
    total_visits: int
    total_hours: float
    state: str
    notes: Optional[str] = ""
    created_at: Optional[datetime] = None
    progress: Optional[ProgressOut] = None

    model_config = ConfigDict(from_attributes=True)

    @field_serializer('created_at')
    def serialize_datetime(self, value: Optional[datetime]) -> Optional[str]:
        return value.isoformat() if value else None

class VisitOut(BaseModel):
    id: int
    service_id: int
    worker_id: int
    worker_name: str
    client_name: str
    service_type: str
    sequence: int
    total_visits: int
    scheduled_date: date
    hours: float
    price: int
    state: str
    paid: bool
    completed_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @field_serializer('completed_at')
    def serialize_datetime(self, value: Optional[datetime]) -> Optional[str]:
        return value.isoformat() if value else None

class ServiceAssignmentOut(BaseModel):
    service: ServiceOut
    visits: List[VisitOut]
    message: str
    whatsapp_link: Optional[str] = None
    warnings: List[str] = []

class DeletionReportOut(BaseModel):
    service_id: int
    visits_deleted: int
    visit_ids: List[int] = []

# ---------- INCOME / EXPENSE SCHEMAS ----------
class IncomeCreate(BaseModel):
    description: str
    amount: float
    category: str = "other"

class IncomeOut(BaseModel):
    id: int
    kind: str
    service_id: Optional[int] = None
    visit_id: Optional[int] = None
    description: Optional[str] = ""
    amount: float
    category: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @field_serializer('created_at')
    def serialize_datetime(self, value: Optional[datetime]) -> Optional[str]:
        """Sérialise un datetime en chaîne ISO 8601 pour JSON."""
        return value.isoformat() if value else None

class VisitCompletionOut(BaseModel):
    visit: VisitOut
    income: IncomeOut

class ExpenseCreate(BaseModel):
    description: str
    amount: float
    type: str
    worker_name: Optional[str] = None

class ExpenseOut(BaseModel):
    id: int
    type: str
    description: Optional[str] = ""
    amount: float
    worker_name: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @field_serializer('created_at')
    def serialize_datetime(self, value: Optional[datetime]) -> Optional[str]:
        """Sérialise un datetime en chaîne ISO 8601 pour JSON."""
        return value.isoformat() if value else None

class FinanceSummary(BaseModel):
    period: str
    total_income: float
    total_expense: float
    net_profit: float
    income_by_kind: Dict[str, float]
    expense_by_type: Dict[str, float]

class OperationsSummary(BaseModel):
    active_services: int
    completed_visits: int
    pending_visits: int
    completed_hours: float

# ---------- PAYMENT SCHEMAS ----------
class PaymentCreate(BaseModel):
    service_id: int
    total_amount: float
    commission_percent: Optional[float] = Field(default=None, description="25 par défaut")
    notes: Optional[str] = ""

class PaymentOut(BaseModel):
    id: int
    service_id: int
    worker_id: Optional[int] = None
    worker_name: str
    client_name: str
    total_amount: float
    commission_percent: float
    earnings: float
    worker_payout: float
    notes: Optional[str] = ""
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @field_serializer('created_at')
    def serialize_datetime(self, value: Optional[datetime]) -> Optional[str]:
        return value.isoformat() if value else None

class PaymentRegistered(PaymentOut):
    warnings: List[str] = []

class PaymentTotals(BaseModel):
    count: int
    total_amount: float
    total_earnings: float
    total_worker_payout: float

# ---------- DASHBOARD SCHEMAS ----------
class WorkerCounts(BaseModel):
    active: int
    pending: int

class AdminDashboard(BaseModel):
    workers: WorkerCounts
    recent_services: List[ServiceOut]
    total_earnings: float
    operations: OperationsSummary

class WorkerDashboard(BaseModel):
    worker_id: int
    active_services: int
    completed_services: int
    pending_visits: int
    completed_visits: int
    hours_worked: float
    payouts_received: float
    payments_count: int
