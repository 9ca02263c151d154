import os
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("DATA_DIR", str(ROOT / "data"))

from bondstore.core.exceptions import StoreError
from bondstore.crud.months import create_month, delete_month, get_month
from bondstore.db import session as db_session
from bondstore.services.stores import StoreManager


@pytest.fixture()
def manager(tmp_path):
    store_manager = StoreManager(
        stores_dir=tmp_path / "stores",
        backups_dir=tmp_path / "backups",
        state_file=tmp_path / "active_store",
        default_store="default",
    )
    yield store_manager
    db_session.engine.dispose()


def test_switch_creates_and_remembers_store(manager):
    assert manager.active_store() == "default"
    assert manager.switch_store("ship-a") == "ship-a"

    assert manager.path_for("ship-a").exists()
    assert manager.active_store() == "ship-a"
    assert [(info.name, info.active) for info in manager.list_stores()] == [("ship-a", True)]


def test_store_names_are_validated(manager):
    for bad in ["", "   ", "../escape", "a/b"]:
        with pytest.raises(StoreError):
            manager.switch_store(bad)


def test_backup_and_restore_round_trip(manager):
    manager.switch_store("main")
    with db_session.SessionLocal() as db:
        create_month(db, "2025-06")

    backup = manager.backup_store("main")
    assert backup.parent == manager.backups_dir
    assert backup.name.startswith("main-")
    assert manager.list_backups() == [backup.name]

    with db_session.SessionLocal() as db:
        delete_month(db, get_month(db, "2025-06"))

    assert manager.restore_store(manager.backup_path(backup.name), "main") == "main"
    with db_session.SessionLocal() as db:
        assert get_month(db, "2025-06") is not None


def test_restore_rejects_non_sqlite_upload(manager):
    with pytest.raises(StoreError):
        manager.restore_store(b"not a database", "main")


def test_restore_from_bytes_switches_to_target(manager):
    manager.switch_store("source")
    with db_session.SessionLocal() as db:
        create_month(db, "2025-01")
    content = manager.path_for("source").read_bytes()
    manager.switch_store("other")

    assert manager.restore_store(content, "copy") == "copy"
    assert manager.active_store() == "copy"
    with db_session.SessionLocal() as db:
        assert get_month(db, "2025-01") is not None


def test_backup_of_missing_store(manager):
    with pytest.raises(StoreError):
        manager.backup_store("ghost")


def test_rename_rules(manager):
    manager.switch_store("one")
    manager.switch_store("two")

    with pytest.raises(StoreError):
        manager.rename_store("one", "two")
    with pytest.raises(StoreError):
        manager.rename_store("one", "  ")

    assert manager.rename_store("one", "first") == "first"
    assert sorted(info.name for info in manager.list_stores()) == ["first", "two"]

    # Renaming the active store keeps it active under the new name.
    manager.rename_store("two", "second")
    assert manager.active_store() == "second"


def test_active_store_cannot_be_deleted(manager):
    manager.switch_store("keep")
    manager.switch_store("spare")
    manager.switch_store("keep")

    with pytest.raises(StoreError):
        manager.delete_store("keep")
    manager.delete_store("spare")
    assert [info.name for info in manager.list_stores()] == ["keep"]
