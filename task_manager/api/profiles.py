"""
Notifications about profiles managed elsewhere.
"""
import logging

from fastapi import APIRouter, BackgroundTasks, Depends, status

from task_manager.api.deps import get_peers
from task_manager.services import cascade
from task_manager.services.peers import PeerServices

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/profiles", tags=["profiles"])


@router.delete("/{profile_id}", status_code=status.HTTP_204_NO_CONTENT)
def profile_deleted(
    profile_id: str,
    background_tasks: BackgroundTasks,
    peers: PeerServices = Depends(get_peers),
):
    """Accept the notice at once and clean up the profile's data afterwards."""
    logger.info(f"Profile '{profile_id}' deleted, scheduling the clean up of its data")
    background_tasks.add_task(cascade.profile_deleted, profile_id, peers=peers)
    return None
