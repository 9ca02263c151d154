from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from ..db.session import get_db
from ..deps.auth import require_api_key
from ..schemas.report import CrewReport, DatabaseSummary, InventoryReport
from ..services.csv_export import crew_report_csv, inventory_report_csv
from ..services.reporting import crew_distribution_report, database_summary, inventory_stock_report

router = APIRouter(prefix="/api/v1/reports", tags=["reports"], dependencies=[Depends(require_api_key)])


def _csv_response(content: str, filename: str) -> Response:
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/inventory/{month_id}", response_model=InventoryReport)
def api_inventory_report(month_id: str, format: Literal["json", "csv"] = "json", db: Session = Depends(get_db)):
    report = inventory_stock_report(db, month_id)
    if format == "csv":
        return _csv_response(inventory_report_csv(report), f"inventory-{report['month']}.csv")
    return report


@router.get("/crew/{month_id}", response_model=CrewReport)
def api_crew_report(month_id: str, format: Literal["json", "csv"] = "json", db: Session = Depends(get_db)):
    report = crew_distribution_report(db, month_id)
    if format == "csv":
        return _csv_response(crew_report_csv(report), f"crew-{report['month']}.csv")
    return report


@router.get("/summary", response_model=DatabaseSummary)
def api_database_summary(db: Session = Depends(get_db)):
    return database_summary(db)
