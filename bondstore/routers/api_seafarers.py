from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..core.errors import value_errors_as_422
from ..core.exceptions import NotFound
from ..crud.distributions import (
    add_distribution,
    delete_distribution,
    issue_scanned_items,
    list_distributions,
    require_distribution,
    update_distribution,
)
from ..crud.inventory import get_item_by_barcode, require_item
from ..crud.seafarers import (
    delete_seafarer,
    recalculate_total_spent,
    require_seafarer,
    update_seafarer,
)
from ..db.session import get_db
from ..deps.auth import require_api_key
from ..models.seafarer import Seafarer
from ..schemas.distribution import DistributionCreate, DistributionOut, DistributionUpdate, ScanBatch
from ..schemas.seafarer import SeafarerOut, SeafarerUpdate, TotalRecalculation
from ..services.pricing import line_total

router = APIRouter(prefix="/api/v1/seafarers", tags=["seafarers"], dependencies=[Depends(require_api_key)])


def _distribution_to_schema(dist, seafarer: Seafarer) -> DistributionOut:
    return DistributionOut.model_validate(dist, from_attributes=True).model_copy(
        update={
            "line_total": line_total(dist.quantity, dist.unit_price, representative=seafarer.is_representative)
        }
    )


def _require_owned_distribution(db: Session, seafarer: Seafarer, distribution_id: int):
    dist = require_distribution(db, distribution_id)
    if dist.seafarer_id != seafarer.id:
        raise NotFound("Distribution", distribution_id)
    return dist


@router.get("/{seafarer_id}", response_model=SeafarerOut)
def api_get_seafarer(seafarer_id: int, db: Session = Depends(get_db)):
    return require_seafarer(db, seafarer_id)


@router.patch("/{seafarer_id}", response_model=SeafarerOut)
def api_update_seafarer(seafarer_id: int, payload: SeafarerUpdate, db: Session = Depends(get_db)):
    seafarer = require_seafarer(db, seafarer_id)
    with value_errors_as_422():
        return update_seafarer(db, seafarer, payload.model_dump(exclude_unset=True))


@router.delete("/{seafarer_id}")
def api_delete_seafarer(seafarer_id: int, db: Session = Depends(get_db)):
    delete_seafarer(db, require_seafarer(db, seafarer_id))
    return {"status": "deleted"}


@router.post("/{seafarer_id}/recalculate", response_model=TotalRecalculation)
def api_recalculate_total(seafarer_id: int, db: Session = Depends(get_db)):
    seafarer = require_seafarer(db, seafarer_id)
    previous = seafarer.total_spent
    total = recalculate_total_spent(db, seafarer)
    return TotalRecalculation(seafarer_id=seafarer_id, previous_total=previous, total_spent=float(total))


@router.get("/{seafarer_id}/distributions", response_model=list[DistributionOut])
def api_list_distributions(seafarer_id: int, db: Session = Depends(get_db)):
    seafarer = require_seafarer(db, seafarer_id)
    return [_distribution_to_schema(dist, seafarer) for dist in list_distributions(db, seafarer)]


@router.post("/{seafarer_id}/distributions", response_model=DistributionOut, status_code=201)
def api_add_distribution(seafarer_id: int, payload: DistributionCreate, db: Session = Depends(get_db)):
    seafarer = require_seafarer(db, seafarer_id)
    if payload.item_id:
        item = require_item(db, payload.item_id)
    else:
        item = get_item_by_barcode(db, payload.barcode)
        if item is None:
            raise NotFound("Inventory item with barcode", payload.barcode)
    with value_errors_as_422():
        dist = add_distribution(
            db,
            seafarer,
            item,
            quantity=payload.quantity,
            distribution_date=payload.date or date.today(),
        )
    return _distribution_to_schema(dist, seafarer)


@router.post("/{seafarer_id}/scan", response_model=list[DistributionOut], status_code=201)
def api_issue_scanned(seafarer_id: int, payload: ScanBatch, db: Session = Depends(get_db)):
    """Issue a whole scanning session at once; any bad line rejects the batch."""

    seafarer = require_seafarer(db, seafarer_id)
    with value_errors_as_422():
        created = issue_scanned_items(db, seafarer, [line.model_dump() for line in payload.lines])
    return [_distribution_to_schema(dist, seafarer) for dist in created]


@router.patch("/{seafarer_id}/distributions/{distribution_id}", response_model=DistributionOut)
def api_update_distribution(
    seafarer_id: int,
    distribution_id: int,
    payload: DistributionUpdate,
    db: Session = Depends(get_db),
):
    seafarer = require_seafarer(db, seafarer_id)
    dist = _require_owned_distribution(db, seafarer, distribution_id)
    with value_errors_as_422():
        dist = update_distribution(db, dist, payload.model_dump(exclude_unset=True))
    return _distribution_to_schema(dist, seafarer)


@router.delete("/{seafarer_id}/distributions/{distribution_id}")
def api_delete_distribution(seafarer_id: int, distribution_id: int, db: Session = Depends(get_db)):
    seafarer = require_seafarer(db, seafarer_id)
    delete_distribution(db, _require_owned_distribution(db, seafarer, distribution_id))
    return {"status": "deleted"}
