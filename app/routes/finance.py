# DOMESTICA/backend/app/routes/finance.py

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List
from app.schemas import schemas
from app.database import get_db
from app.auth import CurrentUser, require_admin
from app.constants import PERIOD_ALL, PERIOD_MONTH
from app.services.reconciliation_service import ReconciliationService

router = APIRouter(prefix="/finance", tags=["finance"])

@router.get("/income", response_model=List[schemas.IncomeOut])
def list_income(
    period: str = PERIOD_ALL,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin)
):
    return ReconciliationService(db).list_income(period)

@router.post("/income", response_model=schemas.IncomeOut)
def record_income(
    income: schemas.IncomeCreate,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin)
):
    """Revenu manuel (bonus, commission, pourboire...)"""
    return ReconciliationService(db).record_manual_income(**income.model_dump())

@router.get("/expenses", response_model=List[schemas.ExpenseOut])
def list_expenses(
    period: str = PERIOD_ALL,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin)
):
    return ReconciliationService(db).list_expenses(period)

@router.post("/expenses", response_model=schemas.ExpenseOut)
def record_expense(
    expense: schemas.ExpenseCreate,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin)
):
    return ReconciliationService(db).record_expense(**expense.model_dump())

@router.get("/summary", response_model=schemas.FinanceSummary)
def finance_summary(
    period: str = PERIOD_MONTH,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin)
):
    """Revenus, dépenses et bénéfice net sur la période (week, month, all)"""
    return ReconciliationService(db).summarize(period)

@router.get("/operations", response_model=schemas.OperationsSummary)
def operations_summary(
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin)
):
    return ReconciliationService(db).operations_summary()
