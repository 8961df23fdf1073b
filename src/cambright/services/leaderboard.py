"""
cambright.services.leaderboard

Leaderboard ordering and rank lookup.

Responsibilities:
- Compute a user's 1-based rank in an XP-descending ordering.
- Map a rank to its display color band.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from cambright.db.models import Profile
from cambright.db.repositories.profiles import ProfileRepo

TOP_COLOR = "text-yellow-400"
HIGH_COLOR = "text-green-400"
DEFAULT_COLOR = "text-purple-400"


@dataclass(frozen=True, slots=True)
class RankResult:
    rank: int
    color: str


def rank_color(rank: int) -> str:
    if rank <= 3:
        return TOP_COLOR
    if rank <= 10:
        return HIGH_COLOR
    return DEFAULT_COLOR


def compute_rank(sorted_user_ids: Sequence[str], user_id: str) -> RankResult | None:
    """
    Return the rank of `user_id` in `sorted_user_ids` (already XP-descending).

    Linear scan; `None` when the user is not on the board.
    """
    for index, candidate in enumerate(sorted_user_ids):
        if candidate == user_id:
            rank = index + 1
            return RankResult(rank=rank, color=rank_color(rank))
    return None


class LeaderboardService:
    def __init__(self, *, session: AsyncSession) -> None:
        self._profiles = ProfileRepo(session)

    async def board(self) -> list[Profile]:
        return await self._profiles.list_by_xp()

    async def rank_of(self, user_id: str) -> RankResult | None:
        return compute_rank(await self._profiles.ranked_user_ids(), user_id)
