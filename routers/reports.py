from datetime import datetime

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from config import settings
from database import get_db
from rbac import require_admin
from reporting import build_csv_download, build_report, to_summary
from schemas import Identity, ReportResponse
from services import list_movements

router = APIRouter()


@router.get("", response_model=ReportResponse)
async def balance_report(
        db: Session = Depends(get_db),
        session: Identity = Depends(require_admin)
):
    """Current balance and the cumulative balance series, oldest first"""
    movements = [to_summary(m) for m in list_movements(db, ascending=True)]
    return build_report(movements, currency=settings.CURRENCY)


@router.get("/csv")
async def export_csv(
        db: Session = Depends(get_db),
        session: Identity = Depends(require_admin)
):
    """Export all movements to CSV"""
    movements = [to_summary(m) for m in list_movements(db, ascending=True)]

    return StreamingResponse(
        iter([build_csv_download(movements)]),
        media_type="text/csv; charset=utf-8",
        headers={
            "Content-Disposition": f"attachment; filename=report_{datetime.now().strftime('%Y-%m-%d')}.csv"
        }
    )
