"""
Local result store.

Durably stores one record per finished session, queues records produced
while offline, and marks records as transmitted by id once the sync
service has delivered them.
"""

from contextlib import contextmanager
from typing import Iterator, List, Optional, Sequence
import logging

from sqlalchemy import delete, desc, select, update
from sqlalchemy.orm import Session, sessionmaker

from athlete_ai.database import SessionLocal
from athlete_ai.models import PRIMARY_PROFILE_ID, AssessmentResult, AthleteProfile, SyncQueueEntry
from athlete_ai.schemas import (
    AssessmentResultResponse,
    AthleteProfileResponse,
    AthleteProfileUpdate,
    SessionResultCreate,
)
from athlete_ai.scoring.calculators import get_level

logger = logging.getLogger(__name__)


class ResultStore:
    """SQLAlchemy-backed persistence for results, the sync queue and the athlete profile."""

    def __init__(self, session_factory: Optional[sessionmaker] = None):
        self.session_factory = session_factory or SessionLocal

    @contextmanager
    def _session(self) -> Iterator[Session]:
        """Session that commits on success and rolls back on error."""
        session = self.session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    # -------------------------------------------------------------------------
    # Results
    # -------------------------------------------------------------------------

    def save_result(self, record: SessionResultCreate, online: bool = True) -> int:
        """
        Store one result.

        Args:
            record: Result record from a finished session
            online: Whether the record counts as transmitted; offline records are queued

        Returns:
            Id of the stored result
        """
        with self._session() as session:
            result = AssessmentResult(
                session_id=record.session_id,
                activity=record.activity,
                score=record.score,
                reps=record.reps,
                duration_seconds=record.duration_seconds,
                distance_cm=record.distance_cm,
                xp_earned=record.xp_earned,
                synced=online,
            )
            result.score_breakdown = record.score_breakdown
            result.form_scores = record.form_scores
            session.add(result)
            session.flush()

            if not online:
                session.add(SyncQueueEntry(result_id=result.id))
                logger.info(f"Result {result.id} ({record.activity}) queued for sync")
            else:
                logger.info(f"Result {result.id} ({record.activity}) stored")
            return result.id

    def list_results(self, activity: Optional[str] = None) -> List[AssessmentResultResponse]:
        """All stored results, newest first, optionally for one activity."""
        query = select(AssessmentResult)
        if activity is not None:
            query = query.where(AssessmentResult.activity == activity)
        query = query.order_by(desc(AssessmentResult.recorded_at), desc(AssessmentResult.id))

        with self._session() as session:
            results = session.execute(query).scalars().all()
            return [AssessmentResultResponse.model_validate(r) for r in results]

    def get_result(self, result_id: int) -> Optional[AssessmentResultResponse]:
        with self._session() as session:
            result = session.get(AssessmentResult, result_id)
            return AssessmentResultResponse.model_validate(result) if result else None

    # -------------------------------------------------------------------------
    # Sync queue
    # -------------------------------------------------------------------------

    def get_sync_queue(self) -> List[AssessmentResultResponse]:
        """Results waiting for transmission, oldest first."""
        query = (
            select(AssessmentResult)
            .join(SyncQueueEntry, SyncQueueEntry.result_id == AssessmentResult.id)
            .order_by(SyncQueueEntry.queued_at, SyncQueueEntry.id)
        )
        with self._session() as session:
            results = session.execute(query).scalars().all()
            return [AssessmentResultResponse.model_validate(r) for r in results]

    def mark_results_synced(self, result_ids: Sequence[int]) -> int:
        """Flag results as transmitted; unknown ids are ignored. Returns the number updated."""
        if not result_ids:
            return 0
        with self._session() as session:
            updated = session.execute(
                update(AssessmentResult)
                .where(AssessmentResult.id.in_(list(result_ids)))
                .values(synced=True)
            )
            logger.info(f"Marked {updated.rowcount} result(s) as synced")
            return updated.rowcount

    def clear_sync_queue(self) -> None:
        with self._session() as session:
            session.execute(delete(SyncQueueEntry))

    # -------------------------------------------------------------------------
    # Athlete profile
    # -------------------------------------------------------------------------

    def _get_or_create_profile(self, session: Session) -> AthleteProfile:
        profile = session.get(AthleteProfile, PRIMARY_PROFILE_ID)
        if profile is None:
            profile = AthleteProfile(id=PRIMARY_PROFILE_ID, total_xp=0)
            session.add(profile)
            session.flush()
        return profile

    @staticmethod
    def _profile_response(profile: AthleteProfile) -> AthleteProfileResponse:
        return AthleteProfileResponse(
            id=profile.id,
            full_name=profile.full_name,
            age=profile.age,
            sport=profile.sport,
            region=profile.region,
            total_xp=profile.total_xp,
            level=get_level(profile.total_xp),
        )

    def save_profile(self, update_data: AthleteProfileUpdate) -> AthleteProfileResponse:
        """Upsert the athlete profile with the provided fields."""
        with self._session() as session:
            profile = self._get_or_create_profile(session)
            for field_name, value in update_data.model_dump(exclude_unset=True).items():
                setattr(profile, field_name, value)
            session.flush()
            return self._profile_response(profile)

    def get_profile(self) -> Optional[AthleteProfileResponse]:
        with self._session() as session:
            profile = session.get(AthleteProfile, PRIMARY_PROFILE_ID)
            return self._profile_response(profile) if profile else None

    def add_xp(self, xp: int) -> AthleteProfileResponse:
        """Add earned XP to the athlete's cumulative total."""
        with self._session() as session:
            profile = self._get_or_create_profile(session)
            profile.total_xp += xp
            session.flush()
            logger.info(f"Athlete XP +{xp} → {profile.total_xp} (level {get_level(profile.total_xp)})")
            return self._profile_response(profile)
