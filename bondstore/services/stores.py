"""Named SQLite stores.

Each store is a ``<name>.db`` file under the stores directory. Exactly one
store is active at a time; its name is remembered in ``DATA_DIR/active_store``
so a restart reopens the same file.
"""

from __future__ import annotations

import logging
import re
import shutil
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from ..core.config import settings
from ..core.exceptions import StoreError
from ..db import session as db_session
from ..db.base import Base
from ..db.migrate import run_migrations

logger = logging.getLogger(__name__)

STORE_SUFFIX = ".db"
_NAME_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9 _.-]{0,63}$")
# SQLite side files that belong to a store and move with it.
_SIDE_SUFFIXES = ("-journal", "-wal", "-shm")


@dataclass
class StoreInfo:
    name: str
    size_bytes: int
    modified_at: str
    active: bool


def _clean_name(name: object) -> str:
    cleaned = str(name or "").strip()
    if not cleaned:
        raise StoreError("Store name cannot be empty.")
    if cleaned.endswith(STORE_SUFFIX):
        cleaned = cleaned[: -len(STORE_SUFFIX)]
    if not _NAME_RE.match(cleaned):
        raise StoreError(f"Invalid store name '{cleaned}'.", name=cleaned)
    return cleaned


class StoreManager:
    def __init__(
        self,
        stores_dir: Path | None = None,
        backups_dir: Path | None = None,
        state_file: Path | None = None,
        default_store: str | None = None,
    ) -> None:
        self.stores_dir = Path(stores_dir or settings.stores_dir)
        self.backups_dir = Path(backups_dir or settings.backups_dir)
        self.state_file = Path(state_file or settings.DATA_DIR / "active_store")
        self.default_store = default_store or settings.ACTIVE_STORE
        self.stores_dir.mkdir(parents=True, exist_ok=True)
        self.backups_dir.mkdir(parents=True, exist_ok=True)

    def path_for(self, name: str) -> Path:
        return self.stores_dir / f"{_clean_name(name)}{STORE_SUFFIX}"

    def _remove_files(self, path: Path) -> None:
        path.unlink(missing_ok=True)
        for suffix in _SIDE_SUFFIXES:
            Path(f"{path}{suffix}").unlink(missing_ok=True)

    def active_store(self) -> str:
        if self.state_file.exists():
            name = self.state_file.read_text(encoding="utf-8").strip()
            if name:
                return name
        return self.default_store

    def list_stores(self) -> list[StoreInfo]:
        active = self.active_store()
        stores = []
        for path in sorted(self.stores_dir.glob(f"*{STORE_SUFFIX}")):
            stat = path.stat()
            stores.append(
                StoreInfo(
                    name=path.stem,
                    size_bytes=stat.st_size,
                    modified_at=datetime.fromtimestamp(stat.st_mtime).isoformat(timespec="seconds"),
                    active=path.stem == active,
                )
            )
        return stores

    def switch_store(self, name: str) -> str:
        """Make ``name`` the active store, creating an empty one if it does not exist."""

        cleaned = _clean_name(name)
        path = self.path_for(cleaned)
        engine = db_session.bind_engine(f"sqlite:///{path}")
        Base.metadata.create_all(bind=engine)
        run_migrations(engine)
        self.state_file.parent.mkdir(parents=True, exist_ok=True)
        self.state_file.write_text(cleaned, encoding="utf-8")
        logger.info("store activated", extra={"extra_data": {"store": cleaned, "path": str(path)}})
        return cleaned

    def backup_store(self, name: str | None = None) -> Path:
        cleaned = _clean_name(name or self.active_store())
        source = self.path_for(cleaned)
        if not source.exists():
            raise StoreError(f"Store '{cleaned}' does not exist.", name=cleaned)
        stamp = datetime.now().strftime("%Y%m%d-%H%M%S")
        target = self.backups_dir / f"{cleaned}-{stamp}{STORE_SUFFIX}"
        counter = 1
        while target.exists():
            target = self.backups_dir / f"{cleaned}-{stamp}-{counter}{STORE_SUFFIX}"
            counter += 1
        shutil.copy2(source, target)
        logger.info("store backed up", extra={"extra_data": {"store": cleaned, "backup": target.name}})
        return target

    def restore_store(self, source: bytes | Path, name: str) -> str:
        """Replace store ``name`` with a backup (file path or raw bytes) and switch to it."""

        cleaned = _clean_name(name)
        if isinstance(source, (bytes, bytearray)):
            if not bytes(source[:16]).startswith(b"SQLite format 3"):
                raise StoreError("Uploaded file is not a SQLite database.", name=cleaned)
        else:
            source = Path(source)
            if not source.is_file():
                raise StoreError(f"Backup '{source.name}' does not exist.", name=cleaned)

        target = self.path_for(cleaned)
        if cleaned == self.active_store():
            # Release pooled connections before the file underneath them is replaced.
            db_session.engine.dispose()
        self._remove_files(target)
        if isinstance(source, Path):
            shutil.copy2(source, target)
        else:
            target.write_bytes(bytes(source))
        logger.info("store restored", extra={"extra_data": {"store": cleaned}})
        return self.switch_store(cleaned)

    def rename_store(self, old_name: str, new_name: str) -> str:
        old = _clean_name(old_name)
        new = _clean_name(new_name)
        old_path = self.path_for(old)
        new_path = self.path_for(new)
        if not old_path.exists():
            raise StoreError(f"Store '{old}' does not exist.", name=old)
        if new_path.exists():
            raise StoreError(f"A store named '{new}' already exists.", name=new)

        was_active = old == self.active_store()
        if was_active:
            db_session.engine.dispose()
        old_path.rename(new_path)
        for suffix in _SIDE_SUFFIXES:
            side = Path(f"{old_path}{suffix}")
            if side.exists():
                side.rename(Path(f"{new_path}{suffix}"))
        logger.info("store renamed", extra={"extra_data": {"from": old, "to": new}})
        if was_active:
            self.switch_store(new)
        return new

    def delete_store(self, name: str) -> None:
        cleaned = _clean_name(name)
        if cleaned == self.active_store():
            raise StoreError("You cannot delete the store that is currently in use.", name=cleaned)
        path = self.path_for(cleaned)
        if not path.exists():
            raise StoreError(f"Store '{cleaned}' does not exist.", name=cleaned)
        self._remove_files(path)
        logger.info("store deleted", extra={"extra_data": {"store": cleaned}})

    def list_backups(self) -> list[str]:
        return sorted(path.name for path in self.backups_dir.glob(f"*{STORE_SUFFIX}"))

    def backup_path(self, filename: str) -> Path:
        candidate = self.backups_dir / Path(filename).name
        if not candidate.is_file():
            raise StoreError(f"Backup '{filename}' does not exist.", name=filename)
        return candidate


_manager: StoreManager | None = None


def get_store_manager() -> StoreManager:
    global _manager
    if _manager is None:
        _manager = StoreManager()
    return _manager


__all__ = ["StoreInfo", "StoreManager", "get_store_manager"]
