"""
Dashboard routes.
"""
from typing import Annotated
from fastapi import APIRouter, Depends

from app.features.dashboard.schemas import StatsResponse
from app.features.hierarchy.roles import Actor
from app.features.hierarchy.stats import aggregate
from app.features.users.dependencies import get_current_actor, get_directory
from app.features.users.directory import SqlUserDirectory
from app.utils import get_logger


log = get_logger(__name__)
router = APIRouter(tags=["dashboard"])


@router.get("/stats", response_model=StatsResponse)
async def get_dashboard_stats(
    actor: Annotated[Actor, Depends(get_current_actor)],
    directory: Annotated[SqlUserDirectory, Depends(get_directory)]
):
    """Counters for the caller's dashboard."""
    stats = await aggregate(actor, directory)
    log.debug("Stats for %s (%s): %s", actor.id, actor.role.value, stats)
    return StatsResponse(stats=stats)
