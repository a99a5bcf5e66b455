"""
Assessment session orchestration.

One AssessmentSession per live assessment:

1. Validity guard on the raw frame (own ValidityState, never shared)
2. Landmark normalization (33 keypoints → NamedPose, or "no pose")
3. Activity state machine step (pure reducer) folded into ActivitySession
4. On stop: summary → scoring → one result record for the store

The caller feeds frames at its own pace; the session never blocks or
schedules work. Stopping simply builds the record; the instance is then
discarded.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence
import logging
import random
import time
import uuid

import numpy as np

from athlete_ai.config import Settings, get_settings
from athlete_ai.cv.activities.base import (
    ACTIVITIES, ActivityEvent, ActivityKind, ActivitySession, ActivityType, FrameContext
)
from athlete_ai.cv.activities.registry import create_state_machine
from athlete_ai.cv.landmarks import coerce_landmarks, extract_named
from athlete_ai.cv.validity_guard import CheatDetectionResult, ValidityGuard
from athlete_ai.numeric import clamp, round_half_up
from athlete_ai.schemas.result import SessionResultCreate
from athlete_ai.scoring.calculators import (
    calculate_agility_score,
    calculate_consistency,
    calculate_form_score,
    calculate_jump_score,
    calculate_kick_score,
    calculate_punch_score,
    calculate_push_up_score,
    calculate_reaction_score,
    calculate_sprint_score,
    calculate_xp,
)

logger = logging.getLogger(__name__)


@dataclass
class FrameOutput:
    """Everything the caller needs to render one frame."""
    pose_detected: bool
    metrics: Dict[str, Any]
    validity: CheatDetectionResult
    event: Optional[ActivityEvent] = None


class AssessmentSession:
    """
    Live assessment for one activity.

    Owns exactly one ActivitySession and one ValidityGuard; concurrent
    assessments must each create their own AssessmentSession.
    """

    # Endurance component of the form-based score
    TARGET_REPS = 20
    TARGET_HOLD_SECONDS = 60.0
    TARGET_JUMP_CM = 300.0

    def __init__(
        self,
        activity: Any,
        settings: Optional[Settings] = None,
        store: Optional[Any] = None,
        rng: Optional[random.Random] = None,
        sprint_distance: int = 20,
        session_id: Optional[str] = None,
    ):
        """
        Initialize an assessment session.

        Args:
            activity: ActivityKind or selector string (unknown → default activity)
            settings: Application settings (defaults to get_settings())
            store: Optional result store; stop() hands the record to it
            rng: Random source for the reaction challenge
            sprint_distance: 20 or 40 (sprint only)
            session_id: Identifier for the result record (generated if omitted)
        """
        self.settings = settings or get_settings()
        self.kind = ActivityKind.parse(activity, settings=self.settings)
        self.config = ACTIVITIES[self.kind]
        self.machine = create_state_machine(
            self.kind, settings=self.settings, rng=rng, sprint_distance=sprint_distance
        )
        self.activity = ActivitySession(self.machine)
        self.guard = ValidityGuard(self.kind, self.settings)
        self.store = store
        self.session_id = session_id or str(uuid.uuid4())

        self.frame_number = 0
        self.frames_with_pose = 0
        self.last_timestamp: Optional[float] = None
        self._confidence_total = 0.0
        self.stopped = False
        self._record: Optional[SessionResultCreate] = None

        logger.info(f"Session {self.session_id} started: {self.config.name}")

    # -------------------------------------------------------------------------
    # Per-frame
    # -------------------------------------------------------------------------

    def _context(self, timestamp: Optional[float]) -> FrameContext:
        now = timestamp if timestamp is not None else time.monotonic()
        dt = now - self.last_timestamp if self.last_timestamp is not None else 0.0
        ctx = FrameContext(timestamp=now, frame_number=self.frame_number, dt=dt)
        self.frame_number += 1
        self.last_timestamp = now
        return ctx

    def process_frame(
        self,
        landmarks: Optional[Sequence[Any]],
        timestamp: Optional[float] = None,
        frame_image: Any = None,
    ) -> FrameOutput:
        """
        Process one frame.

        Args:
            landmarks: Ordered keypoints ({x, y, visibility}); fewer than 33 means no pose
            timestamp: Frame time in seconds (monotonic); defaults to now
            frame_image: Optional pixel array for the brightness checks

        Returns:
            FrameOutput with display metrics, validity verdict and any completed event
        """
        if self.stopped:
            logger.warning(f"Session {self.session_id} already stopped, ignoring frame")
            return FrameOutput(
                pose_detected=False,
                metrics={"phase": self.activity.phase, "rep_count": self.activity.rep_count},
                validity=CheatDetectionResult(),
            )
        ctx = self._context(timestamp)
        validity = self.guard.run_cheat_detection(landmarks, frame_image, ctx.timestamp)

        pose = extract_named(landmarks)
        if pose is None:
            result = self.machine.on_missing_pose(self.activity.state, ctx)
        else:
            self.frames_with_pose += 1
            self._confidence_total += float(np.mean([lm.visibility for lm in coerce_landmarks(landmarks)]))
            result = self.machine.step(self.activity.state, pose, ctx)

        self.activity.apply(result)

        metrics = dict(result.display_metrics)
        metrics.setdefault("phase", self.activity.phase)
        metrics["rep_count"] = self.activity.rep_count
        metrics.setdefault("form_score", self.activity.average_form_score)
        if result.event is not None and result.event.form_score is not None:
            metrics["last_form_score"] = result.event.form_score

        logger.debug(
            f"frame {ctx.frame_number}: pose={pose is not None} phase={self.activity.phase} "
            f"valid={validity.is_valid}"
        )
        return FrameOutput(
            pose_detected=pose is not None,
            metrics=metrics,
            validity=validity,
            event=result.event,
        )

    def send_command(self, command: str, timestamp: Optional[float] = None) -> str:
        """Forward a manual command (start, ready, next_round); returns the resulting phase."""
        now = timestamp if timestamp is not None else time.monotonic()
        ctx = FrameContext(timestamp=now, frame_number=self.frame_number)
        self.activity.state = self.machine.handle_command(self.activity.state, command, ctx)
        return self.activity.phase

    # -------------------------------------------------------------------------
    # Session end
    # -------------------------------------------------------------------------

    @property
    def ai_confidence(self) -> int:
        """Average landmark visibility over frames with a pose, as a percentage."""
        if not self.frames_with_pose:
            return 0
        return round_half_up(clamp(self._confidence_total / self.frames_with_pose * 100))

    def _endurance(self, summary: Dict[str, Any]) -> int:
        if self.kind is ActivityKind.WALL_SIT:
            ratio = summary.get("duration_seconds", 0.0) / self.TARGET_HOLD_SECONDS
        elif self.kind is ActivityKind.BROAD_JUMP:
            ratio = summary.get("distance_cm", 0.0) / self.TARGET_JUMP_CM
        else:
            ratio = self.activity.rep_count / self.TARGET_REPS
        return round_half_up(min(100.0, ratio * 100))

    def _score(self, summary: Dict[str, Any]) -> Dict[str, Any]:
        """Score breakdown for the activity; the 'score' key is the headline score."""
        form_scores = self.activity.form_score_history
        form_accuracy = self.activity.average_form_score

        if self.kind is ActivityKind.WALL_SIT:
            form_accuracy = summary.get("stability_score", 0)

        if self.kind in (
            ActivityKind.SQUATS, ActivityKind.SIT_UPS, ActivityKind.WALL_SIT,
            ActivityKind.BROAD_JUMP, ActivityKind.PUSH_UPS,
        ):
            endurance = self._endurance(summary)
            consistency = calculate_consistency(form_scores)
            breakdown = {
                "form_accuracy": form_accuracy,
                "endurance": endurance,
                "consistency": consistency,
                "ai_confidence": self.ai_confidence,
                "score": calculate_form_score(form_accuracy, endurance, consistency, self.ai_confidence),
            }
            if self.kind is ActivityKind.PUSH_UPS:
                breakdown["form_based_score"] = breakdown["score"]
                breakdown["score"] = calculate_push_up_score(
                    self.activity.rep_count, form_accuracy, summary.get("fatigue_rate", 0)
                )
            return breakdown

        if self.kind is ActivityKind.SPRINT:
            return {"score": calculate_sprint_score(summary["duration_seconds"], summary["distance_m"])}
        if self.kind is ActivityKind.T_TEST:
            return {"score": calculate_agility_score(summary["duration_seconds"])}
        if self.kind is ActivityKind.VERTICAL_JUMP:
            return {"score": calculate_jump_score(summary["distance_cm"]), "landing_stability": form_accuracy}
        if self.kind is ActivityKind.PUNCH:
            return {"score": calculate_punch_score(summary["average_speed"])}
        if self.kind is ActivityKind.KICK:
            return {"score": calculate_kick_score(summary["average_height"])}
        return {"score": calculate_reaction_score(summary["average_ms"])}

    def build_result(self) -> SessionResultCreate:
        """Aggregate the session into one result record."""
        ctx = FrameContext(timestamp=self.last_timestamp or 0.0, frame_number=self.frame_number)
        summary = self.machine.summarize(self.activity.state, ctx)
        breakdown = self._score(summary)
        # Summary measurements are reported alongside the scores
        breakdown.update({k: v for k, v in summary.items() if k not in breakdown})

        reps = duration = distance = None
        if self.config.type in (ActivityType.REPS, ActivityType.COMBAT):
            reps = self.activity.rep_count
        elif self.config.type in (ActivityType.TIMED, ActivityType.TIMING):
            duration = summary.get("duration_seconds", 0.0)
        elif self.config.type == ActivityType.DISTANCE:
            distance = summary.get("distance_cm", 0.0)

        xp = calculate_xp(self.activity.rep_count or 1, self.activity.average_form_score)
        return SessionResultCreate(
            session_id=self.session_id,
            activity=self.kind.value,
            score=breakdown["score"],
            score_breakdown=breakdown,
            reps=reps,
            duration_seconds=duration,
            distance_cm=distance,
            xp_earned=xp,
            form_scores=list(self.activity.form_score_history),
        )

    def stop(self, online: bool = True) -> SessionResultCreate:
        """
        End the session and hand the result record to the store (if attached).

        Repeated calls return the same record without storing it again.

        Args:
            online: Whether the record can be transmitted now; offline records are queued

        Returns:
            The result record
        """
        if self._record is not None:
            return self._record

        record = self.build_result()
        self._record = record
        self.stopped = True
        logger.info(
            f"Session {self.session_id} stopped: {self.kind.value} "
            f"reps={self.activity.rep_count} score={record.score} xp={record.xp_earned}"
        )
        if self.store is not None:
            self.store.save_result(record, online=online)
            self.store.add_xp(record.xp_earned)
        return record

