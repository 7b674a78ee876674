# DOMESTICA/backend/app/models/models.py

from sqlalchemy import (
    Boolean, Column, Date, DateTime, Float, ForeignKey, Integer, String, Text, UniqueConstraint
)
from sqlalchemy.orm import relationship
from app.database import Base
from app.constants import (
    INCOME_MANUAL, SERVICE_ACTIVE, VISIT_PENDING, WORKER_PENDING, DEFAULT_ICON
)
from app.utils import utc_now


class ServiceType(Base):
    """Entrée du catalogue de services proposés"""
    __tablename__ = "service_types"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    icon = Column(String, default=DEFAULT_ICON)
    base_price = Column(Float, nullable=False, default=0)
    description = Column(String, default="")
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=utc_now)


class Worker(Base):
    __tablename__ = "workers"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    phone = Column(String, nullable=True)
    email = Column(String, nullable=True, index=True)
    sector = Column(String, nullable=True)
    lat = Column(Float, nullable=True)
    lng = Column(Float, nullable=True)
    experience = Column(String, default="none")
    transport_difficulty = Column(String, default="none")
    age = Column(Integer, nullable=True)
    nationality = Column(String, nullable=True)
    references = Column(Text, nullable=True)
    available = Column(Boolean, nullable=False, default=True)
    approval_state = Column(String, nullable=False, default=WORKER_PENDING, index=True)
    created_at = Column(DateTime, default=utc_now)


class Client(Base):
    __tablename__ = "clients"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    phone = Column(String, nullable=True, index=True)
    address = Column(String, nullable=True)
    created_at = Column(DateTime, default=utc_now)


class Service(Base):
    """Engagement entre une employée et un client, découpé en visites"""
    __tablename__ = "services"
    id = Column(Integer, primary_key=True, index=True)
    worker_id = Column(Integer, ForeignKey("workers.id"), nullable=False, index=True)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=True)

    # Instantanés pris à la création: les modifications ultérieures ne les touchent pas
    worker_name = Column(String, nullable=False)
    client_name = Column(String, nullable=False)
    client_phone = Column(String, nullable=True)
    client_address = Column(String, nullable=True)
    service_type = Column(String, nullable=False)

    total_price = Column(Float, nullable=False)
    price_per_visit = Column(Integer, nullable=False)

    weeks = Column(Integer, nullable=False)
    visits_per_week = Column(Integer, nullable=False)
    hours_per_visit = Column(Float, nullable=False)
    start_date = Column(Date, nullable=False)
    total_visits = Column(Integer, nullable=False)
    total_hours = Column(Float, nullable=False)

    state = Column(String, nullable=False, default=SERVICE_ACTIVE, index=True)
    notes = Column(Text, default="")
    created_at = Column(DateTime, default=utc_now)

    visits = relationship("Visit", order_by="Visit.sequence")


class Visit(Base):
    __tablename__ = "visits"
    __table_args__ = (
        UniqueConstraint("service_id", "sequence", name="uq_visit_service_sequence"),
    )
    id = Column(Integer, primary_key=True, index=True)
    service_id = Column(Integer, ForeignKey("services.id"), nullable=False, index=True)

    worker_id = Column(Integer, nullable=False, index=True)
    worker_name = Column(String, nullable=False)
    client_name = Column(String, nullable=False)
    service_type = Column(String, nullable=False)

    sequence = Column(Integer, nullable=False)
    total_visits = Column(Integer, nullable=False)
    scheduled_date = Column(Date, nullable=False)
    hours = Column(Float, nullable=False)
    price = Column(Integer, nullable=False)

    state = Column(String, nullable=False, default=VISIT_PENDING, index=True)
    paid = Column(Boolean, nullable=False, default=False)
    completed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utc_now)


# Les lignes du grand livre référencent services/visites sans clé étrangère:
# supprimer un service ne doit ni les supprimer ni être bloqué par elles.

class IncomeEntry(Base):
    __tablename__ = "income_entries"
    id = Column(Integer, primary_key=True)
    kind = Column(String, nullable=False, default=INCOME_MANUAL, index=True)
    service_id = Column(Integer, nullable=True, index=True)
    visit_id = Column(Integer, nullable=True, unique=True)
    description = Column(String, default="")
    amount = Column(Float, nullable=False)
    category = Column(String, nullable=True)
    created_at = Column(DateTime, default=utc_now, index=True)


class ExpenseEntry(Base):
    __tablename__ = "expense_entries"
    id = Column(Integer, primary_key=True)
    type = Column(String, nullable=False)
    description = Column(String, default="")
    amount = Column(Float, nullable=False)
    worker_name = Column(String, nullable=True)
    created_at = Column(DateTime, default=utc_now, index=True)


class PaymentRecord(Base):
    __tablename__ = "payment_records"
    id = Column(Integer, primary_key=True)
    service_id = Column(Integer, nullable=False, index=True)
    worker_id = Column(Integer, nullable=True, index=True)
    worker_name = Column(String, nullable=False)
    client_name = Column(String, nullable=False)
    total_amount = Column(Float, nullable=False)
    commission_percent = Column(Float, nullable=False)
    earnings = Column(Float, nullable=False)
    worker_payout = Column(Float, nullable=False)
    notes = Column(Text, default="")
    created_at = Column(DateTime, default=utc_now, index=True)
