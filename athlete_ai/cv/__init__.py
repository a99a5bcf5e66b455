"""
Frame-by-frame inference core for athlete assessments.

PIPELINE COMPONENTS:
1. Geometry: angle-at-vertex, distance, midpoint, quality bands
2. Landmarks: 33-keypoint list → NamedPose (or "no pose")
3. Activities: one pure-reducer state machine per activity
4. ValidityGuard: framing, extra person, video cut, malpractice, lighting
5. AssessmentSession: per-session orchestration and the final result record

Usage:
    from athlete_ai.cv import AssessmentSession

    session = AssessmentSession("squats")
    for landmarks, timestamp in frames:
        output = session.process_frame(landmarks, timestamp)
        if output.event:
            print(f"Rep {output.metrics['rep_count']}: form {output.event.form_score}")
    record = session.stop()
"""

from athlete_ai.cv.geometry import (
    QUALITY_BAD, QUALITY_GOOD, QUALITY_WARNING,
    Vec2, angle_at_vertex, distance, midpoint, quality_band,
)
from athlete_ai.cv.landmarks import Landmark, NamedPose, PoseLandmark, extract_named
from athlete_ai.cv.activities import (
    ActivityEvent,
    ActivityKind,
    ActivitySession,
    ActivityStateMachine,
    FrameContext,
    PhaseTransitionError,
    StepResult,
    create_state_machine,
)
from athlete_ai.cv.validity_guard import (
    AlertEvent, CheatDetectionResult, ValidityGuard, ValidityState
)
from athlete_ai.cv.session import AssessmentSession, FrameOutput

__all__ = [
    # Geometry
    "QUALITY_BAD",
    "QUALITY_GOOD",
    "QUALITY_WARNING",
    "Vec2",
    "angle_at_vertex",
    "distance",
    "midpoint",
    "quality_band",

    # Landmarks
    "Landmark",
    "NamedPose",
    "PoseLandmark",
    "extract_named",

    # State machines
    "ActivityEvent",
    "ActivityKind",
    "ActivitySession",
    "ActivityStateMachine",
    "FrameContext",
    "PhaseTransitionError",
    "StepResult",
    "create_state_machine",

    # Validity
    "AlertEvent",
    "CheatDetectionResult",
    "ValidityGuard",
    "ValidityState",

    # Session
    "AssessmentSession",
    "FrameOutput",
]
