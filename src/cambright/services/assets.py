"""
cambright.services.assets

Upload validation and asset bookkeeping (transaction owner).

Responsibilities:
- Validate uploads (type, size, MIME, file name, dangerous extensions).
- Persist bytes through `AssetStore` and metadata through `AssetRepo`.
- Enforce uploader/admin access for listing and deletion.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from cambright.auth.models import Principal
from cambright.db.models import Asset, AssetType
from cambright.db.repositories.assets import AssetRepo
from cambright.errors import InvalidInputError, NotFoundError, PermissionDeniedError
from cambright.observability.logging import get_logger
from cambright.services.asset_store import AssetStore, generate_key

log = get_logger(__name__)

_IMAGES = ("image/jpeg", "image/jpg", "image/png", "image/webp")
_VIDEOS = ("video/mp4", "video/webm", "video/ogg", "video/quicktime")
_DOCUMENTS = (
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "text/plain",
)

ALLOWED_MIME_TYPES: dict[AssetType, tuple[str, ...]] = {
    AssetType.school_image: _IMAGES,
    AssetType.school_banner: _IMAGES,
    AssetType.post_image: _IMAGES,
    AssetType.course_image: _IMAGES,
    AssetType.note_image: _IMAGES + ("image/gif",),
    AssetType.chapter_video: _VIDEOS,
    AssetType.message_file: _DOCUMENTS + _IMAGES,
    AssetType.general_file: _DOCUMENTS + ("image/jpeg", "image/jpg", "image/png") + _VIDEOS,
}

DANGEROUS_EXTENSIONS = (".exe", ".bat", ".cmd", ".scr", ".pif", ".com", ".js", ".vbs", ".jar")
MAX_FILE_NAME_LENGTH = 255


@dataclass(frozen=True, slots=True)
class Upload:
    file_name: str
    mime_type: str
    data: bytes
    asset_type: str


def parse_asset_type(value: str | None) -> AssetType:
    if not value:
        raise InvalidInputError("Asset type is required")
    try:
        return AssetType(value)
    except ValueError:
        valid = ", ".join(t.value for t in AssetType)
        raise InvalidInputError(f"Invalid asset type. Valid types: {valid}") from None


def too_large(max_bytes: int) -> InvalidInputError:
    return InvalidInputError(f"File size must be less than {max_bytes // (1024 * 1024)}MB")


def validate_upload(upload: Upload, *, max_bytes: int) -> AssetType:
    asset_type = parse_asset_type(upload.asset_type)
    if len(upload.data) > max_bytes:
        raise too_large(max_bytes)
    allowed = ALLOWED_MIME_TYPES[asset_type]
    if upload.mime_type not in allowed:
        raise InvalidInputError(f"Invalid file type. Allowed types: {', '.join(allowed)}")
    if not upload.file_name or len(upload.file_name) > MAX_FILE_NAME_LENGTH:
        raise InvalidInputError("Invalid file name")
    if upload.file_name.lower().endswith(DANGEROUS_EXTENSIONS):
        raise InvalidInputError("File type not allowed for security reasons")
    return asset_type


class AssetService:
    def __init__(self, *, session: AsyncSession, store: AssetStore, max_bytes: int) -> None:
        self._session = session
        self._store = store
        self._max_bytes = max_bytes
        self._assets = AssetRepo(session)

    async def upload(self, upload: Upload, *, uploaded_by: str) -> Asset:
        asset_type = validate_upload(upload, max_bytes=self._max_bytes)
        key = generate_key()
        await run_in_threadpool(self._store.save, asset_type, key, upload.file_name, upload.data)
        try:
            asset = await self._assets.create(
                key=key,
                file_name=upload.file_name,
                mime_type=upload.mime_type,
                size=len(upload.data),
                asset_type=asset_type,
                uploaded_by=uploaded_by,
            )
            await self._session.commit()
        except Exception:
            # Keep disk and database consistent when the row cannot be written.
            await run_in_threadpool(self._store.delete, asset_type, key, upload.file_name)
            raise
        log.info("asset_uploaded", key=key, asset_type=asset_type.value, size=asset.size)
        return asset

    async def get(self, key: str) -> tuple[Asset, bytes]:
        asset = await self._assets.get_by_key(key)
        if asset is None:
            raise NotFoundError("Asset not found")
        data = await run_in_threadpool(self._store.read, asset.asset_type, asset.key, asset.file_name)
        if data is None:
            log.warning("asset_bytes_missing", key=key)
            raise NotFoundError("Asset content not found")
        return asset, data

    async def list_for(self, principal: Principal, *, asset_type: str | None = None) -> list[Asset]:
        kind = parse_asset_type(asset_type) if asset_type else None
        uploaded_by = None if principal.is_admin else principal.user_id
        return await self._assets.search(uploaded_by=uploaded_by, asset_type=kind)

    async def delete(self, key: str, principal: Principal) -> None:
        asset = await self._assets.get_by_key(key)
        if asset is None:
            raise NotFoundError("Asset not found")
        if asset.uploaded_by != principal.user_id and not principal.is_admin:
            raise PermissionDeniedError("Forbidden")
        await self._assets.delete(asset)
        await self._session.commit()
        await run_in_threadpool(self._store.delete, asset.asset_type, asset.key, asset.file_name)
        log.info("asset_deleted", key=key)
