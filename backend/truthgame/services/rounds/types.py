from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class Verdict(str, Enum):
    TRUE = 'TRUE'
    FALSE = 'FALSE'
    MIXED = 'MIXED'


class Difficulty(str, Enum):
    EASY = 'easy'
    MEDIUM = 'medium'
    HARD = 'hard'
    EXPERT = 'expert'


class CompletionTrigger(str, Enum):
    MANUAL_SUBMIT = 'submit'
    CLOCK_EXPIRED = 'expired'
    FORCED_FORFEIT = 'forfeit'


class ForfeitReason(str, Enum):
    TIME_OUT = 'time-out'
    TAB_SWITCH = 'tab-switch'


class RoundState(str, Enum):
    IDLE = 'idle'
    ACTIVE = 'active'
    COMPLETING = 'completing'
    TERMINAL = 'terminal'


CONFIDENCE_LEVELS = (1, 2, 3)


@dataclass(frozen=True)
class ClaimRef:
    """The slice of a claim the engine needs; content lives with the host."""

    id: Any
    correct_answer: Verdict
    difficulty: Difficulty = Difficulty.MEDIUM


@dataclass(frozen=True)
class DifficultySettings:
    discuss_time_sec: int
    multiplier: float


@dataclass(frozen=True)
class SpeedBonus:
    tier: str
    label: str
    multiplier: float
    bonus: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            'tier': self.tier,
            'label': self.label,
            'multiplier': self.multiplier,
            'bonus': self.bonus,
        }


@dataclass(frozen=True)
class ScoreResult:
    points: int
    speed_bonus: Optional[SpeedBonus] = None
    nominal: int = 0


@dataclass(frozen=True)
class RoundOutcome:
    """Terminal record of one round. Produced exactly once per round."""

    round_id: int
    claim_id: Any
    correct: bool
    points: int
    confidence: int
    verdict: Optional[Verdict]
    trigger: CompletionTrigger
    time_elapsed_seconds: int
    speed_bonus: Optional[SpeedBonus] = None
    forfeited: bool = False
    forfeit_reason: Optional[ForfeitReason] = None
    calibration: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'round_id': self.round_id,
            'claim_id': self.claim_id,
            'correct': self.correct,
            'points': self.points,
            'confidence': self.confidence,
            'verdict': self.verdict.value if self.verdict else None,
            'trigger': self.trigger.value,
            'time_elapsed_seconds': self.time_elapsed_seconds,
            'speed_bonus': self.speed_bonus.to_dict() if self.speed_bonus else None,
            'forfeited': self.forfeited,
            'forfeit_reason': self.forfeit_reason.value if self.forfeit_reason else None,
            'calibration': self.calibration,
        }
