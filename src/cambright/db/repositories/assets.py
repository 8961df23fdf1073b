from __future__ import annotations

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from cambright.db.models import Asset, AssetType


class AssetRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(
        self,
        *,
        key: str,
        file_name: str,
        mime_type: str,
        size: int,
        asset_type: AssetType,
        uploaded_by: str,
    ) -> Asset:
        asset = Asset(
            key=key,
            file_name=file_name,
            mime_type=mime_type,
            size=size,
            asset_type=asset_type,
            uploaded_by=uploaded_by,
        )
        self._session.add(asset)
        await self._session.flush()
        return asset

    async def get_by_key(self, key: str) -> Asset | None:
        stmt = select(Asset).where(Asset.key == key)
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def search(
        self, *, uploaded_by: str | None = None, asset_type: AssetType | None = None
    ) -> list[Asset]:
        stmt = select(Asset)
        if uploaded_by is not None:
            stmt = stmt.where(Asset.uploaded_by == uploaded_by)
        if asset_type is not None:
            stmt = stmt.where(Asset.asset_type == asset_type)
        stmt = stmt.order_by(desc(Asset.created_at))
        return list((await self._session.execute(stmt)).scalars().all())

    async def delete(self, asset: Asset) -> None:
        await self._session.delete(asset)
        await self._session.flush()
