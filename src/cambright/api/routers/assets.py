"""
cambright.api.routers.assets

File upload endpoints backed by local disk storage.

Responsibilities:
- Accept multipart uploads and hand them to `AssetService` for validation.
- Serve stored bytes with their recorded MIME type.
- List and delete assets for their uploader (admins see everything).
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, File, Form, Query, Response, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from cambright.api.deps import asset_store, db_session, settings_dep
from cambright.auth.deps import get_principal
from cambright.auth.models import Principal
from cambright.db.models import Asset
from cambright.services.asset_store import AssetStore
from cambright.services.assets import AssetService, Upload, parse_asset_type, too_large
from cambright.settings import Settings

router = APIRouter(prefix="/api/assets", tags=["assets"])


def assets(
    session: AsyncSession = Depends(db_session),
    store: AssetStore = Depends(asset_store),
    settings: Settings = Depends(settings_dep),
) -> AssetService:
    return AssetService(session=session, store=store, max_bytes=settings.asset_max_bytes)


async def read_upload(file: UploadFile, asset_type: str, *, max_bytes: int) -> Upload:
    # Never pulls more than `max_bytes + 1` bytes; a declared oversize body is not read at all.
    parse_asset_type(asset_type)
    if file.size is not None and file.size > max_bytes:
        raise too_large(max_bytes)
    data = await file.read(max_bytes + 1)
    return Upload(
        file_name=file.filename or "",
        mime_type=file.content_type or "",
        data=data,
        asset_type=asset_type,
    )


def asset_out(asset: Asset, base_url: str) -> dict[str, Any]:
    return {
        "key": asset.key,
        "url": f"{base_url.rstrip('/')}/{asset.key}",
        "fileName": asset.file_name,
        "mimeType": asset.mime_type,
        "size": asset.size,
        "assetType": asset.asset_type.value,
        "uploadedBy": asset.uploaded_by,
        "createdAt": asset.created_at.isoformat(),
    }


@router.post("/upload")
async def upload_asset(
    file: UploadFile = File(...),
    asset_type: str | None = Form(default=None, alias="assetType"),
    principal: Principal = Depends(get_principal),
    svc: AssetService = Depends(assets),
    settings: Settings = Depends(settings_dep),
) -> dict[str, Any]:
    upload = await read_upload(file, asset_type or "", max_bytes=settings.asset_max_bytes)
    asset = await svc.upload(upload, uploaded_by=principal.user_id)
    return asset_out(asset, settings.asset_public_base_url)


@router.get("")
async def list_assets(
    asset_type: str | None = Query(default=None, alias="assetType"),
    principal: Principal = Depends(get_principal),
    svc: AssetService = Depends(assets),
    settings: Settings = Depends(settings_dep),
) -> list[dict[str, Any]]:
    found = await svc.list_for(principal, asset_type=asset_type)
    return [asset_out(a, settings.asset_public_base_url) for a in found]


@router.get("/{key}")
async def get_asset(key: str, svc: AssetService = Depends(assets)) -> Response:
    asset, data = await svc.get(key)
    return Response(content=data, media_type=asset.mime_type)


@router.delete("/{key}")
async def delete_asset(
    key: str,
    principal: Principal = Depends(get_principal),
    svc: AssetService = Depends(assets),
) -> dict[str, str]:
    await svc.delete(key, principal)
    return {"message": "Asset deleted successfully"}


# --- Module Notes -----------------------------------------------------------
# Asset reads are public by key; keys carry 256 bits of randomness.
