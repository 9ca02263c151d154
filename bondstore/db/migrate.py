"""Additive SQLite migrations for stores created by older releases."""

from __future__ import annotations

import logging

from sqlalchemy import text
from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)

# Only ADD columns and backfill values. Nothing here drops data.


def _table_columns(engine: Engine, table: str) -> list[dict[str, object]]:
    with engine.connect() as conn:
        return conn.execute(text(f"PRAGMA table_info({table})")).mappings().all()


def _column_names(engine: Engine, table: str) -> set[str]:
    return {record["name"] for record in _table_columns(engine, table)}


def _add_column_sqlite(engine: Engine, table: str, col_def: str) -> None:
    with engine.begin() as conn:
        conn.execute(text(f"ALTER TABLE {table} ADD COLUMN {col_def}"))
    logger.info("migration: added column", extra={"extra_data": {"table": table, "column": col_def}})


def run_migrations(engine: Engine) -> None:
    """Bring an existing SQLite store up to the current schema."""

    if engine.dialect.name != "sqlite":
        return

    seafarer_cols = _column_names(engine, "seafarers")
    if seafarer_cols and "is_representative" not in seafarer_cols:
        _add_column_sqlite(engine, "seafarers", "is_representative BOOLEAN DEFAULT 0 NOT NULL")

    item_cols = _column_names(engine, "inventory_items")
    if item_cols:
        if "original_item_id" not in item_cols:
            _add_column_sqlite(engine, "inventory_items", "original_item_id TEXT")
        # Items created before logical ids existed are their own logical item.
        with engine.begin() as conn:
            conn.execute(
                text(
                    "UPDATE inventory_items SET original_item_id = 'legacy-' || id "
                    "WHERE original_item_id IS NULL OR original_item_id = ''"
                )
            )

    dist_cols = _column_names(engine, "distributions")
    if dist_cols:
        if "original_item_id" not in dist_cols:
            _add_column_sqlite(engine, "distributions", "original_item_id TEXT")
        with engine.begin() as conn:
            conn.execute(
                text(
                    """
                    UPDATE distributions
                    SET original_item_id = (
                        SELECT inventory_items.original_item_id
                        FROM inventory_items
                        WHERE inventory_items.id = distributions.item_id
                    )
                    WHERE original_item_id IS NULL AND item_id IS NOT NULL
                    """
                )
            )
