from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_404_NOT_FOUND

from cambright.api.deps import db_session
from cambright.auth.deps import get_principal
from cambright.auth.models import Principal
from cambright.services.leaderboard import LeaderboardService

router = APIRouter(prefix="/api", tags=["leaderboard"])


@router.get("/leaderboard")
async def leaderboard(session: AsyncSession = Depends(db_session)) -> dict[str, Any]:
    profiles = await LeaderboardService(session=session).board()
    return {
        "leaderboard": [
            {
                "id": str(p.id),
                "userId": p.user_id,
                "name": p.name,
                "imageUrl": p.image_url,
                "followers": p.followers,
                "following": p.following,
                "biog": p.biog,
                "XP": p.xp,
            }
            for p in profiles
        ],
        "total": len(profiles),
        "timestamp": datetime.now(UTC).isoformat(),
    }


@router.get("/rankget")
async def rank(
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_session),
) -> dict[str, Any]:
    result = await LeaderboardService(session=session).rank_of(principal.user_id)
    if result is None:
        raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail="User not found")
    return {"userRank": result.rank, "rankColor": result.color}
