"""CSV serialisation of the monthly reports.

Counts are written bare; text and currency are quoted, currency always with two
decimals so a spreadsheet shows ``12.10`` rather than ``12.1``.
"""

from __future__ import annotations

import csv
import io
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Iterable, Sequence

from .pricing import quantize_currency

INVENTORY_COLUMNS: list[tuple[str, str]] = [
    ("name", "Item Name"),
    ("opening_stock", "Open"),
    ("supplies_received", "Supplied"),
    ("distributed_stock", "Dist."),
    ("closing_stock", "Close"),
    ("price_per_item", "Price"),
    ("total_value", "Total Value"),
]

CREW_COLUMNS: list[tuple[str, str]] = [
    ("display_id", "Seafarer ID"),
    ("name", "Name"),
    ("date", "Date"),
    ("item_name", "Item"),
    ("quantity", "Quantity"),
    ("unit_price_with_tax", "Unit Price"),
    ("line_total", "Line Total"),
]


def _serialize_value(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, int):
        return value
    if isinstance(value, Decimal):
        return format(quantize_currency(value), "f")
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


def rows_to_csv(rows: Iterable[dict], columns: Sequence[tuple[str, str]]) -> str:
    output = io.StringIO()
    writer = csv.writer(output, quoting=csv.QUOTE_NONNUMERIC, lineterminator="\n")
    writer.writerow([header for _, header in columns])
    for row in rows:
        writer.writerow([_serialize_value(row.get(field)) for field, _ in columns])
    return output.getvalue()


def inventory_report_csv(report: dict) -> str:
    return rows_to_csv(report["rows"], INVENTORY_COLUMNS)


def crew_report_csv(report: dict) -> str:
    """One row per distribution, each carrying the seafarer's id and name."""

    rows = []
    for entry in report["seafarers"]:
        for line in entry["distributions"]:
            rows.append({"display_id": entry["display_id"], "name": entry["name"], **line})
    return rows_to_csv(rows, CREW_COLUMNS)


__all__ = ["crew_report_csv", "inventory_report_csv", "rows_to_csv"]
