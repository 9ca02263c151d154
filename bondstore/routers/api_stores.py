from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends, File, UploadFile

from ..deps.auth import require_api_key
from ..schemas.store import BackupOut, RestoreFromBackup, StoreName, StoreOut, StoreRename
from ..services.stores import StoreManager, get_store_manager

router = APIRouter(prefix="/api/v1/stores", tags=["stores"], dependencies=[Depends(require_api_key)])


@router.get("", response_model=list[StoreOut])
def api_list_stores(manager: StoreManager = Depends(get_store_manager)):
    return [asdict(info) for info in manager.list_stores()]


@router.get("/active", response_model=StoreName)
def api_active_store(manager: StoreManager = Depends(get_store_manager)):
    return StoreName(name=manager.active_store())


@router.post("/active", response_model=StoreName)
def api_switch_store(payload: StoreName, manager: StoreManager = Depends(get_store_manager)):
    """Switch to a store, creating an empty one when the name is new."""

    return StoreName(name=manager.switch_store(payload.name))


@router.get("/backups", response_model=list[str])
def api_list_backups(manager: StoreManager = Depends(get_store_manager)):
    return manager.list_backups()


@router.post("/{name}/backup", response_model=BackupOut, status_code=201)
def api_backup_store(name: str, manager: StoreManager = Depends(get_store_manager)):
    path = manager.backup_store(name)
    return BackupOut(store=name, filename=path.name)


@router.post("/{name}/restore", response_model=StoreName)
async def api_restore_upload(
    name: str,
    file: UploadFile = File(...),
    manager: StoreManager = Depends(get_store_manager),
):
    content = await file.read()
    return StoreName(name=manager.restore_store(content, name))


@router.post("/{name}/restore-backup", response_model=StoreName)
def api_restore_backup(name: str, payload: RestoreFromBackup, manager: StoreManager = Depends(get_store_manager)):
    return StoreName(name=manager.restore_store(manager.backup_path(payload.backup), name))


@router.patch("/{name}", response_model=StoreName)
def api_rename_store(name: str, payload: StoreRename, manager: StoreManager = Depends(get_store_manager)):
    return StoreName(name=manager.rename_store(name, payload.new_name))


@router.delete("/{name}")
def api_delete_store(name: str, manager: StoreManager = Depends(get_store_manager)):
    manager.delete_store(name)
    return {"status": "deleted"}
