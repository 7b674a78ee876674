# DOMESTICA/backend/app/routes/exports.py

from fastapi import APIRouter, Depends
from fastapi.responses import Response
from sqlalchemy.orm import Session
from app.database import get_db
from app.auth import CurrentUser, require_admin
from app.constants import PERIOD_MONTH
from app.errors import NotFound
from app.services.export_service import SHEETS, ExportService, rows_to_csv

router = APIRouter(prefix="/exports", tags=["exports"])

@router.get("/{sheet}.csv")
def export_sheet(
    sheet: str,
    period: str = PERIOD_MONTH,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin)
):
    """Feuille CSV (services, visits, income, expenses, summary, payments, workers)"""
    if sheet not in SHEETS:
        raise NotFound(f"Unknown sheet '{sheet}'")
    content = rows_to_csv(ExportService(db).sheet(sheet, period=period))
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{sheet}.csv"'},
    )
