"""
Landmark normalization.

Maps the external pose model's ordered 33-keypoint output onto the 17 named
joints the detectors use. Frames with fewer than 33 keypoints are "no pose":
the caller skips them and the session continues with the next frame.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Mapping, Optional, Sequence, Union
import logging

logger = logging.getLogger(__name__)


NUM_LANDMARKS = 33


class PoseLandmark(IntEnum):
    """Keypoint indices in the pose model's fixed topology."""
    NOSE = 0
    LEFT_EYE = 2
    RIGHT_EYE = 5
    LEFT_SHOULDER = 11
    RIGHT_SHOULDER = 12
    LEFT_ELBOW = 13
    RIGHT_ELBOW = 14
    LEFT_WRIST = 15
    RIGHT_WRIST = 16
    LEFT_HIP = 23
    RIGHT_HIP = 24
    LEFT_KNEE = 25
    RIGHT_KNEE = 26
    LEFT_ANKLE = 27
    RIGHT_ANKLE = 28
    LEFT_HEEL = 29
    RIGHT_HEEL = 30
    LEFT_FOOT_INDEX = 31
    RIGHT_FOOT_INDEX = 32


@dataclass(frozen=True)
class Landmark:
    """One tracked keypoint: normalized position plus visibility confidence."""
    x: float
    y: float
    visibility: float = 1.0

    @classmethod
    def coerce(cls, raw: Union["Landmark", Mapping[str, Any], Any]) -> "Landmark":
        """Accept Landmark, mapping ({'x','y','visibility'}) or any object with x/y attributes."""
        if isinstance(raw, Landmark):
            return raw
        if isinstance(raw, Mapping):
            return cls(float(raw["x"]), float(raw["y"]), float(raw.get("visibility", 1.0)))
        return cls(float(raw.x), float(raw.y), float(getattr(raw, "visibility", 1.0)))


@dataclass(frozen=True)
class NamedPose:
    """Read-only per-frame projection of the joints the detectors use."""
    nose: Landmark
    left_shoulder: Landmark
    right_shoulder: Landmark
    left_elbow: Landmark
    right_elbow: Landmark
    left_wrist: Landmark
    right_wrist: Landmark
    left_hip: Landmark
    right_hip: Landmark
    left_knee: Landmark
    right_knee: Landmark
    left_ankle: Landmark
    right_ankle: Landmark
    left_heel: Landmark
    right_heel: Landmark
    left_foot_index: Landmark
    right_foot_index: Landmark

    @property
    def hip_mid_y(self) -> float:
        return (self.left_hip.y + self.right_hip.y) / 2

    @property
    def hip_mid_x(self) -> float:
        return (self.left_hip.x + self.right_hip.x) / 2


def coerce_landmarks(landmarks: Optional[Sequence[Any]]) -> Optional[list]:
    """Convert raw keypoints to Landmark objects; None when there is nothing usable."""
    if not landmarks:
        return None
    return [Landmark.coerce(lm) for lm in landmarks]


def extract_named(landmarks: Optional[Sequence[Any]]) -> Optional[NamedPose]:
    """
    Build a NamedPose from a raw keypoint list.

    Returns:
        NamedPose, or None ("no pose") when fewer than 33 keypoints were supplied
    """
    if not landmarks or len(landmarks) < NUM_LANDMARKS:
        logger.debug(f"No pose: {len(landmarks) if landmarks else 0} landmarks supplied")
        return None

    lm = [Landmark.coerce(raw) for raw in landmarks[:NUM_LANDMARKS]]
    return NamedPose(
        nose=lm[PoseLandmark.NOSE],
        left_shoulder=lm[PoseLandmark.LEFT_SHOULDER],
        right_shoulder=lm[PoseLandmark.RIGHT_SHOULDER],
        left_elbow=lm[PoseLandmark.LEFT_ELBOW],
        right_elbow=lm[PoseLandmark.RIGHT_ELBOW],
        left_wrist=lm[PoseLandmark.LEFT_WRIST],
        right_wrist=lm[PoseLandmark.RIGHT_WRIST],
        left_hip=lm[PoseLandmark.LEFT_HIP],
        right_hip=lm[PoseLandmark.RIGHT_HIP],
        left_knee=lm[PoseLandmark.LEFT_KNEE],
        right_knee=lm[PoseLandmark.RIGHT_KNEE],
        left_ankle=lm[PoseLandmark.LEFT_ANKLE],
        right_ankle=lm[PoseLandmark.RIGHT_ANKLE],
        left_heel=lm[PoseLandmark.LEFT_HEEL],
        right_heel=lm[PoseLandmark.RIGHT_HEEL],
        left_foot_index=lm[PoseLandmark.LEFT_FOOT_INDEX],
        right_foot_index=lm[PoseLandmark.RIGHT_FOOT_INDEX],
    )
