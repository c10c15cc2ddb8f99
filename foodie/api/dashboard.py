"""
Combined dashboard router
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from foodie.api.deps import get_current_user
from foodie.database import get_db
from foodie.models import User
from foodie.realtime.metrics import collect_snapshot
from foodie.schemas import TopStates, TopStatesEnvelope

router = APIRouter(prefix="/api/combined", tags=["Dashboard"])


@router.get("/top-states", response_model=TopStatesEnvelope)
async def top_states(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> TopStatesEnvelope:
    """The six headline metrics, computed now. Nothing is broadcast."""
    snapshot = await collect_snapshot(db)
    return TopStatesEnvelope(
        message="Top states fetched successfully",
        data=TopStates(**snapshot),
    )
