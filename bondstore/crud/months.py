"""Month CRUD and the month rollover."""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import desc, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from ..core.exceptions import DuplicateIdentifier, NotFound, PersistenceError
from ..core.months import month_range, normalize_month_token
from ..models.inventory import InventoryItem
from ..models.month import Month
from ..models.seafarer import Seafarer

logger = logging.getLogger(__name__)


def _utcnow() -> str:
    return datetime.utcnow().isoformat(timespec="seconds") + "Z"


def list_months(db: Session) -> list[Month]:
    stmt = select(Month).options(selectinload(Month.seafarers)).order_by(Month.month_id)
    return db.execute(stmt).scalars().all()


def get_month(db: Session, month_token: str) -> Month | None:
    token = normalize_month_token(month_token)
    stmt = select(Month).options(selectinload(Month.seafarers)).where(Month.month_id == token)
    return db.execute(stmt).scalars().first()


def require_month(db: Session, month_token: str) -> Month:
    month = get_month(db, month_token)
    if month is None:
        raise NotFound("Month", month_token)
    return month


def find_previous_month(db: Session, month_token: str) -> Month | None:
    """Latest existing month strictly before ``month_token``.

    Tokens are fixed-width ``YYYY-MM`` strings, so string order is calendar order.
    """

    token = normalize_month_token(month_token)
    stmt = select(Month).where(Month.month_id < token).order_by(desc(Month.month_id)).limit(1)
    return db.execute(stmt).scalars().first()


def create_month(db: Session, month_token: str) -> Month:
    """Open a new ledger period and seed it from the latest earlier month.

    Every regular crew member of the source month is copied with a fresh
    identity, ``total_spent`` reset to zero and no distributions.
    Representatives are period specific and are not carried forward. Items are
    not copied: the catalog is shared and filtered by received date.

    The month and its seeded seafarers are committed together; on failure the
    session is rolled back and ``PersistenceError`` is raised.
    """

    token = normalize_month_token(month_token)
    month_range(token)
    if db.execute(select(Month.id).where(Month.month_id == token)).first() is not None:
        raise DuplicateIdentifier("month_id", token)

    source = find_previous_month(db, token)
    now = _utcnow()
    month = Month(month_id=token, created_at=now)
    copied = 0
    if source is not None:
        for previous in source.seafarers:
            if previous.is_representative:
                continue
            month.seafarers.append(
                Seafarer(
                    display_id=previous.display_id,
                    name=previous.name,
                    rank=previous.rank,
                    total_spent=0.0,
                    is_representative=False,
                    created_at=now,
                )
            )
            copied += 1

    db.add(month)
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("month rollover failed for %s: %s", token, exc)
        raise PersistenceError(f"Could not create month '{token}'.", month=token) from exc
    db.refresh(month)
    logger.info(
        "month created",
        extra={
            "extra_data": {
                "month": token,
                "source_month": source.month_id if source else None,
                "seafarers_copied": copied,
            }
        },
    )
    return month


def delete_month(db: Session, month: Month) -> None:
    """Delete a month, its seafarers and their distributions, and the items received in it."""

    token = month.month_id
    period = month_range(token)
    items = db.execute(
        select(InventoryItem).where(
            InventoryItem.received_date >= period.start,
            InventoryItem.received_date < period.next_start,
        )
    ).scalars().all()
    try:
        for item in items:
            db.delete(item)
        db.delete(month)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise PersistenceError(f"Could not delete month '{token}'.", month=token) from exc
    logger.info(
        "month deleted",
        extra={"extra_data": {"month": token, "items_deleted": len(items)}},
    )


__all__ = [
    "create_month",
    "delete_month",
    "find_previous_month",
    "get_month",
    "list_months",
    "require_month",
]
