from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..core.errors import value_errors_as_422
from ..crud.months import create_month, delete_month, list_months, require_month
from ..crud.seafarers import create_seafarer, list_seafarers
from ..db.session import get_db
from ..deps.auth import require_api_key
from ..schemas.month import MonthCreate, MonthOut
from ..schemas.seafarer import SeafarerCreate, SeafarerOut

router = APIRouter(prefix="/api/v1/months", tags=["months"], dependencies=[Depends(require_api_key)])


def _month_to_schema(month) -> MonthOut:
    return MonthOut.model_validate(month, from_attributes=True).model_copy(
        update={"seafarer_count": len(month.seafarers or [])}
    )


@router.get("", response_model=list[MonthOut])
def api_list_months(db: Session = Depends(get_db)):
    return [_month_to_schema(month) for month in list_months(db)]


@router.post("", response_model=MonthOut, status_code=201)
def api_create_month(payload: MonthCreate, db: Session = Depends(get_db)):
    """Create a month, carrying regular crew over from the latest earlier month."""

    month = create_month(db, payload.month_id)
    return _month_to_schema(require_month(db, month.month_id))


@router.get("/{month_id}", response_model=MonthOut)
def api_get_month(month_id: str, db: Session = Depends(get_db)):
    return _month_to_schema(require_month(db, month_id))


@router.delete("/{month_id}")
def api_delete_month(month_id: str, db: Session = Depends(get_db)):
    delete_month(db, require_month(db, month_id))
    return {"status": "deleted"}


@router.get("/{month_id}/seafarers", response_model=list[SeafarerOut])
def api_list_month_seafarers(month_id: str, db: Session = Depends(get_db)):
    return list_seafarers(db, require_month(db, month_id))


@router.post("/{month_id}/seafarers", response_model=SeafarerOut, status_code=201)
def api_create_seafarer(month_id: str, payload: SeafarerCreate, db: Session = Depends(get_db)):
    month = require_month(db, month_id)
    with value_errors_as_422():
        return create_seafarer(db, month, payload.model_dump())
