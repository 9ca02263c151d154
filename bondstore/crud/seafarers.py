"""Seafarer CRUD and the ``total_spent`` recalculation."""

from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from ..core.exceptions import DuplicateIdentifier, NotFound
from ..db.session import commit_or_rollback
from ..models.month import Month
from ..models.seafarer import Seafarer
from ..services.pricing import ZERO, line_total

logger = logging.getLogger(__name__)


def _utcnow() -> str:
    return datetime.utcnow().isoformat(timespec="seconds") + "Z"


def _clean(value: object) -> str:
    return str(value or "").strip()


def list_seafarers(db: Session, month: Month) -> list[Seafarer]:
    stmt = (
        select(Seafarer)
        .options(selectinload(Seafarer.distributions))
        .where(Seafarer.month_pk == month.id)
        .order_by(Seafarer.display_id, Seafarer.id)
    )
    return db.execute(stmt).scalars().all()


def get_seafarer(db: Session, seafarer_id: int) -> Seafarer | None:
    return db.get(Seafarer, seafarer_id)


def require_seafarer(db: Session, seafarer_id: int) -> Seafarer:
    seafarer = get_seafarer(db, seafarer_id)
    if seafarer is None:
        raise NotFound("Seafarer", seafarer_id)
    return seafarer


def _ensure_unique_display_id(db: Session, month_pk: int, display_id: str, exclude_id: int | None = None) -> None:
    stmt = select(Seafarer.id).where(Seafarer.month_pk == month_pk, Seafarer.display_id == display_id)
    if exclude_id is not None:
        stmt = stmt.where(Seafarer.id != exclude_id)
    if db.execute(stmt).first() is not None:
        raise DuplicateIdentifier("display_id", display_id)


def create_seafarer(db: Session, month: Month, payload: dict) -> Seafarer:
    display_id = _clean(payload.get("display_id"))
    if not display_id:
        raise ValueError("display_id is required")
    name = _clean(payload.get("name"))
    if not name:
        raise ValueError("name is required")
    _ensure_unique_display_id(db, month.id, display_id)
    seafarer = Seafarer(
        month_pk=month.id,
        display_id=display_id,
        name=name,
        rank=_clean(payload.get("rank")),
        is_representative=bool(payload.get("is_representative", False)),
        total_spent=0.0,
        created_at=_utcnow(),
    )
    db.add(seafarer)
    commit_or_rollback(db, "Could not save seafarer", display_id=display_id)
    db.refresh(seafarer)
    return seafarer


def update_seafarer(db: Session, seafarer: Seafarer, payload: dict) -> Seafarer:
    """Apply edits. Switching the representative flag re-prices the cached total."""

    if "display_id" in payload:
        display_id = _clean(payload.get("display_id"))
        if not display_id:
            raise ValueError("display_id is required")
        if display_id != seafarer.display_id:
            _ensure_unique_display_id(db, seafarer.month_pk, display_id, exclude_id=seafarer.id)
        seafarer.display_id = display_id
    if "name" in payload:
        name = _clean(payload.get("name"))
        if not name:
            raise ValueError("name is required")
        seafarer.name = name
    if "rank" in payload:
        seafarer.rank = _clean(payload.get("rank"))
    if "is_representative" in payload and payload["is_representative"] is not None:
        flag = bool(payload["is_representative"])
        if flag != seafarer.is_representative:
            seafarer.is_representative = flag
            seafarer.total_spent = float(compute_total_spent(seafarer))
    commit_or_rollback(db, "Could not update seafarer", seafarer_id=seafarer.id)
    db.refresh(seafarer)
    return seafarer


def delete_seafarer(db: Session, seafarer: Seafarer) -> None:
    seafarer_id = seafarer.id
    db.delete(seafarer)
    commit_or_rollback(db, "Could not delete seafarer", seafarer_id=seafarer_id)


def compute_total_spent(seafarer: Seafarer) -> Decimal:
    """Sum of all line totals from scratch; the reference value for ``total_spent``."""

    total = ZERO
    for dist in seafarer.distributions:
        total += line_total(dist.quantity, dist.unit_price, representative=seafarer.is_representative)
    return total


def recalculate_total_spent(db: Session, seafarer: Seafarer) -> Decimal:
    """Repair the cached ``total_spent`` from the seafarer's distributions."""

    total = compute_total_spent(seafarer)
    previous = seafarer.total_spent
    seafarer.total_spent = float(total)
    commit_or_rollback(db, "Could not update seafarer total", seafarer_id=seafarer.id)
    if previous != seafarer.total_spent:
        logger.warning(
            "total_spent repaired",
            extra={"extra_data": {"seafarer_id": seafarer.id, "cached": previous, "recalculated": float(total)}},
        )
    return total


__all__ = [
    "compute_total_spent",
    "create_seafarer",
    "delete_seafarer",
    "get_seafarer",
    "list_seafarers",
    "recalculate_total_spent",
    "require_seafarer",
    "update_seafarer",
]
