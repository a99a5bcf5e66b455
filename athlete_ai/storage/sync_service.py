"""
Upstream sync of queued results.

The submitter is any callable that accepts the queued results and returns
a SubmissionResponse (or raises). A failed or raising submission leaves the
queue untouched so the next attempt retries everything.
"""

from dataclasses import dataclass
from typing import Callable, List, Optional
import logging

from athlete_ai.schemas import AssessmentResultResponse
from athlete_ai.storage.result_store import ResultStore

logger = logging.getLogger(__name__)


@dataclass
class SubmissionResponse:
    success: bool
    reference_id: Optional[str] = None
    message: str = ""


@dataclass
class SyncReport:
    success: bool
    message: str
    synced_count: int = 0
    reference_id: Optional[str] = None


Submitter = Callable[[List[AssessmentResultResponse]], SubmissionResponse]


def sync_results(store: ResultStore, submitter: Submitter, online: bool = True) -> SyncReport:
    """
    Attempt to transmit every queued result.

    Returns:
        SyncReport describing the outcome; never raises for submitter failures
    """
    if not online:
        return SyncReport(
            success=False,
            message="No internet connection. Results will sync automatically when online.",
        )

    queue = store.get_sync_queue()
    if not queue:
        return SyncReport(success=True, message="All results are already synced.")

    try:
        response = submitter(queue)
    except Exception as e:
        logger.error(f"Sync submission failed: {e}")
        return SyncReport(success=False, message=f"Sync error: {e}")

    if not response.success:
        logger.warning(f"Sync rejected: {response.message}")
        return SyncReport(success=False, message="Sync failed. Will retry automatically.")

    store.mark_results_synced([result.id for result in queue])
    store.clear_sync_queue()
    logger.info(f"Synced {len(queue)} result(s), reference {response.reference_id}")
    return SyncReport(
        success=True,
        message=f"Successfully synced {len(queue)} result(s).",
        synced_count=len(queue),
        reference_id=response.reference_id,
    )
