import csv
import io
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
from bondstore.core.exceptions import NotFound
from bondstore.crud.distributions import add_distribution
from bondstore.crud.inventory import add_supply, create_item, delete_item
from bondstore.crud.months import create_month
from bondstore.crud.seafarers import create_seafarer
from bondstore.services.csv_export import crew_report_csv, inventory_report_csv
from bondstore.services.ledger import quantity_on_hand
from bondstore.services.reporting import (
    crew_distribution_report,
    database_summary,
    inventory_stock_report,
)


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
def rice_month(db_session):
    """Rice at 2.00: 100 received on June 1st, 30 issued to crew member 1 on June 10th."""

    month = create_month(db_session, "2025-06")
    crew = create_seafarer(db_session, month, {"display_id": "1", "name": "Ana", "rank": "AB"})
    create_seafarer(db_session, month, {"display_id": "REP-A", "name": "Agent", "is_representative": True})
    rice = create_item(
        db_session,
        {"name": "Rice", "unit_price": "2.00", "received_date": "2025-06-01", "initial_quantity": 100},
    )
    add_distribution(db_session, crew, rice, quantity=30, distribution_date=date(2025, 6, 10))
    return {"month": month, "crew": crew, "rice": rice}


def test_rice_scenario(db_session, rice_month):
    crew, rice = rice_month["crew"], rice_month["rice"]

    assert crew.total_spent == pytest.approx(66.0)
    assert quantity_on_hand(db_session, rice.original_item_id, date(2025, 6, 30)) == 70

    report = inventory_stock_report(db_session, "2025-06")
    assert report["rows"] == [
        {
            "original_item_id": rice.original_item_id,
            "name": "Rice",
            "opening_stock": 0,
            "supplies_received": 100,
            "distributed_stock": 30,
            "closing_stock": 70,
            "price_per_item": Decimal("2.00"),
            "total_value": Decimal("140.00"),
        }
    ]
    assert report["total_value"] == Decimal("140.00")


def test_inventory_report_carries_opening_stock_and_omits_idle_items(db_session, rice_month):
    create_item(db_session, {"name": "Tea", "unit_price": 1, "received_date": "2025-07-02"})
    soap = create_item(db_session, {"name": "Soap", "unit_price": "0.75", "received_date": "2025-07-01"})
    add_supply(db_session, soap, quantity=4, supply_date=date(2025, 7, 1))

    report = inventory_stock_report(db_session, "2025-07")
    names = [row["name"] for row in report["rows"]]
    assert names == ["Rice", "Soap"]

    rice_row = report["rows"][0]
    assert rice_row["opening_stock"] == 70
    assert rice_row["supplies_received"] == 0
    assert rice_row["closing_stock"] == 70

    # No history at all before June.
    assert inventory_stock_report(db_session, "2025-05")["rows"] == []


def test_inventory_report_closing_balances(db_session, rice_month):
    report = inventory_stock_report(db_session, "2025-06")
    for row in report["rows"]:
        assert row["closing_stock"] == row["opening_stock"] + row["supplies_received"] - row["distributed_stock"]
        assert row["total_value"] == row["price_per_item"] * row["closing_stock"]


def test_inventory_report_names_deleted_items_from_snapshots(db_session, rice_month):
    delete_item(db_session, rice_month["rice"])
    report = inventory_stock_report(db_session, "2025-06")
    assert [row["name"] for row in report["rows"]] == ["Rice"]
    assert report["rows"][0]["distributed_stock"] == 30


def test_crew_report_lists_spenders_with_taxed_prices(db_session, rice_month):
    report = crew_distribution_report(db_session, "2025-06")

    assert report["month"] == "2025-06"
    assert [entry["display_id"] for entry in report["seafarers"]] == ["1"]
    entry = report["seafarers"][0]
    assert entry["distributions"][0]["unit_price_with_tax"] == Decimal("2.20")
    assert entry["distributions"][0]["line_total"] == Decimal("66.00")
    assert entry["total"] == Decimal("66.00")
    assert report["grand_total"] == Decimal("66.00")


def test_crew_line_total_uses_unrounded_marked_up_price(db_session):
    month = create_month(db_session, "2025-06")
    crew = create_seafarer(db_session, month, {"display_id": "1", "name": "Ana"})
    gum = create_item(
        db_session,
        {"name": "Gum", "unit_price": "0.15", "received_date": "2025-06-01", "initial_quantity": 10},
    )
    add_distribution(db_session, crew, gum, quantity=3, distribution_date=date(2025, 6, 2))

    line = crew_distribution_report(db_session, "2025-06")["seafarers"][0]["distributions"][0]
    assert line["unit_price_with_tax"] == Decimal("0.17")
    assert line["line_total"] == Decimal("0.50")
    assert crew.total_spent == pytest.approx(0.5)


def test_crew_report_sorts_seafarers_and_lines(db_session, rice_month):
    month, rice = rice_month["month"], rice_month["rice"]
    other = create_seafarer(db_session, month, {"display_id": "0", "name": "Zed"})
    add_distribution(db_session, other, rice, quantity=1, distribution_date=date(2025, 6, 20))
    add_distribution(db_session, other, rice, quantity=2, distribution_date=date(2025, 6, 3))

    report = crew_distribution_report(db_session, "2025-06")
    assert [entry["display_id"] for entry in report["seafarers"]] == ["0", "1"]
    assert [line["date"] for line in report["seafarers"][0]["distributions"]] == [
        date(2025, 6, 3),
        date(2025, 6, 20),
    ]
    assert report["grand_total"] == Decimal("72.60")


def test_crew_report_for_unknown_month(db_session):
    with pytest.raises(NotFound):
        crew_distribution_report(db_session, "2030-01")


def test_inventory_csv_round_trip(db_session, rice_month):
    create_item(
        db_session,
        {"name": 'Crackers, "salted"', "unit_price": "1.5", "received_date": "2025-06-02", "initial_quantity": 3},
    )
    report = inventory_stock_report(db_session, "2025-06")

    parsed = list(csv.reader(io.StringIO(inventory_report_csv(report))))
    assert parsed[0] == ["Item Name", "Open", "Supplied", "Dist.", "Close", "Price", "Total Value"]
    assert len(parsed) == len(report["rows"]) + 1
    for row, values in zip(report["rows"], parsed[1:]):
        assert values[0] == row["name"]
        assert [int(v) for v in values[1:5]] == [
            row["opening_stock"],
            row["supplies_received"],
            row["distributed_stock"],
            row["closing_stock"],
        ]
        assert Decimal(values[5]) == row["price_per_item"]
        assert Decimal(values[6]) == row["total_value"]
    assert parsed[1][5] == "1.50"


def test_crew_csv_round_trip(db_session, rice_month):
    report = crew_distribution_report(db_session, "2025-06")
    parsed = list(csv.reader(io.StringIO(crew_report_csv(report))))

    assert len(parsed) == 2
    assert parsed[1] == ["1", "Ana", "2025-06-10", "Rice", "30", "2.20", "66.00"]


def test_database_summary_counts(db_session, rice_month):
    assert database_summary(db_session) == {
        "months": 1,
        "seafarers": 2,
        "items": 1,
        "supplies": 1,
        "distributions": 1,
    }
