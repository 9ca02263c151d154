import os
import sys
from datetime import date
from decimal import Decimal
from pathlib import Path

import pytest
from sqlalchemy.orm import sessionmaker

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("DATA_DIR", str(ROOT / "data"))

from bondstore.db.base import Base
from bondstore.db.session import build_engine
from bondstore.core.exceptions import InsufficientStock, NotFound
from bondstore.crud.distributions import (
    add_distribution,
    delete_distribution,
    issue_scanned_items,
    list_distributions,
    update_distribution,
)
from bondstore.crud.inventory import create_item, delete_item, update_item
from bondstore.crud.months import create_month
from bondstore.crud.seafarers import (
    compute_total_spent,
    create_seafarer,
    recalculate_total_spent,
    update_seafarer,
)
from bondstore.services.ledger import quantity_on_hand


@pytest.fixture()
def db_session():
    engine = build_engine("sqlite://")
    TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture()
def month(db_session):
    return create_month(db_session, "2025-06")


@pytest.fixture()
def crew(db_session, month):
    return create_seafarer(db_session, month, {"display_id": "1", "name": "Ana", "rank": "AB"})


@pytest.fixture()
def rice(db_session):
    return create_item(
        db_session,
        {
            "name": "Rice",
            "unit_price": "2.00",
            "received_date": "2025-06-01",
            "barcodes": ["036000291452"],
            "initial_quantity": 10,
        },
    )


def test_crew_pay_markup_and_total_is_tracked(db_session, crew, rice):
    dist = add_distribution(db_session, crew, rice, quantity=3, distribution_date=date(2025, 6, 5))

    assert dist.item_name == "Rice"
    assert dist.unit_price == pytest.approx(2.0)
    assert dist.original_item_id == rice.original_item_id
    assert crew.total_spent == pytest.approx(6.6)
    assert quantity_on_hand(db_session, rice.original_item_id, date(2025, 6, 30)) == 7


def test_representative_pays_plain_price(db_session, month, rice):
    rep = create_seafarer(db_session, month, {"display_id": "REP-A", "name": "Agent", "is_representative": True})
    add_distribution(db_session, rep, rice, quantity=3, distribution_date=date(2025, 6, 5))
    assert rep.total_spent == pytest.approx(6.0)


def test_insufficient_stock_rejected_without_changes(db_session, crew, rice):
    with pytest.raises(InsufficientStock) as excinfo:
        add_distribution(db_session, crew, rice, quantity=11, distribution_date=date(2025, 6, 5))

    assert excinfo.value.requested == 11
    assert excinfo.value.available == 10
    assert list_distributions(db_session, crew) == []
    assert crew.total_spent == 0


def test_stock_is_checked_as_of_the_distribution_date(db_session, crew, rice):
    with pytest.raises(InsufficientStock) as excinfo:
        add_distribution(db_session, crew, rice, quantity=1, distribution_date=date(2025, 5, 31))
    assert excinfo.value.available == 0


def test_snapshot_survives_item_rename_and_delete(db_session, crew, rice):
    dist = add_distribution(db_session, crew, rice, quantity=2, distribution_date=date(2025, 6, 5))
    update_item(db_session, rice, {"name": "Basmati", "unit_price": 3})
    original_id = rice.original_item_id
    assert rice.original_item_id == original_id

    delete_item(db_session, rice)
    db_session.refresh(dist)
    assert dist.item_id is None
    assert dist.item_name == "Rice"
    assert dist.unit_price == pytest.approx(2.0)
    assert dist.original_item_id == original_id


def test_update_increase_checks_stock_excluding_itself(db_session, crew, rice):
    dist = add_distribution(db_session, crew, rice, quantity=6, distribution_date=date(2025, 6, 5))

    update_distribution(db_session, dist, {"quantity": 10})
    assert dist.quantity == 10
    assert crew.total_spent == pytest.approx(22.0)

    with pytest.raises(InsufficientStock) as excinfo:
        update_distribution(db_session, dist, {"quantity": 11})
    assert excinfo.value.available == 10
    db_session.refresh(dist)
    assert dist.quantity == 10


def test_moving_before_the_supply_is_rejected(db_session, crew, rice):
    dist = add_distribution(db_session, crew, rice, quantity=2, distribution_date=date(2025, 6, 5))
    with pytest.raises(InsufficientStock):
        update_distribution(db_session, dist, {"date": date(2025, 5, 20)})


def test_decrease_and_delete_keep_total_in_step(db_session, crew, rice):
    first = add_distribution(db_session, crew, rice, quantity=5, distribution_date=date(2025, 6, 5))
    second = add_distribution(db_session, crew, rice, quantity=1, distribution_date=date(2025, 6, 6))
    assert crew.total_spent == pytest.approx(13.2)

    update_distribution(db_session, first, {"quantity": 2})
    assert crew.total_spent == pytest.approx(6.6)

    delete_distribution(db_session, second)
    assert crew.total_spent == pytest.approx(4.4)
    assert Decimal(str(crew.total_spent)) == compute_total_spent(crew)


def test_incremental_total_equals_recalculation(db_session, crew):
    item = create_item(
        db_session,
        {"name": "Chocolate", "unit_price": "1.99", "received_date": "2025-06-01", "initial_quantity": 50},
    )
    for day, qty in [(2, 3), (3, 7), (9, 1), (15, 4)]:
        add_distribution(db_session, crew, item, quantity=qty, distribution_date=date(2025, 6, day))

    cached = crew.total_spent
    assert recalculate_total_spent(db_session, crew) == Decimal(str(cached))
    assert recalculate_total_spent(db_session, crew) == Decimal(str(cached))
    assert crew.total_spent == cached


def test_recalculation_repairs_a_drifted_total(db_session, crew, rice):
    add_distribution(db_session, crew, rice, quantity=1, distribution_date=date(2025, 6, 5))
    crew.total_spent = 999.0
    db_session.commit()

    assert recalculate_total_spent(db_session, crew) == Decimal("2.20")
    assert crew.total_spent == pytest.approx(2.2)


def test_switching_representative_flag_reprices(db_session, crew, rice):
    add_distribution(db_session, crew, rice, quantity=5, distribution_date=date(2025, 6, 5))
    update_seafarer(db_session, crew, {"is_representative": True})
    assert crew.total_spent == pytest.approx(10.0)


def test_scan_batch_is_all_or_nothing(db_session, crew, rice):
    lines = [
        {"barcode": "036000291452", "quantity": 6, "date": "2025-06-05"},
        {"barcode": "0036000291452", "quantity": 5, "date": "2025-06-06"},
    ]
    with pytest.raises(InsufficientStock):
        issue_scanned_items(db_session, crew, lines)
    assert list_distributions(db_session, crew) == []
    assert crew.total_spent == 0

    with pytest.raises(NotFound):
        issue_scanned_items(db_session, crew, [{"barcode": "999", "quantity": 1, "date": "2025-06-05"}])

    created = issue_scanned_items(db_session, crew, [dict(lines[0], quantity=4), lines[1]])
    assert [d.quantity for d in created] == [4, 5]
    assert quantity_on_hand(db_session, rice.original_item_id, date(2025, 6, 30)) == 1
    assert crew.total_spent == pytest.approx(19.8)


def test_quantity_must_be_positive(db_session, crew, rice):
    with pytest.raises(ValueError):
        add_distribution(db_session, crew, rice, quantity=0, distribution_date=date(2025, 6, 5))
