"""Persistence collaborator: local result store and upstream sync."""

from athlete_ai.storage.result_store import ResultStore
from athlete_ai.storage.sync_service import SubmissionResponse, SyncReport, sync_results

__all__ = [
    "ResultStore",
    "SubmissionResponse",
    "SyncReport",
    "sync_results",
]
