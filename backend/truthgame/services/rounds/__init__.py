"""Round evaluation engine.

Framework-agnostic: nothing here imports Flask or Socket.IO. The host
wires a RoundController to its transport and persistence through the
controller's callbacks (see ``truthgame.services.games.sessions``).
"""

from .clock import RoundClock
from .controller import RoundController, parse_confidence, parse_verdict
from .errors import InvalidRoundInput, RoundError, RoundStateError
from .gate import SubmissionGate
from .integrity import IntegrityMonitor
from .scoring import calibration_label, forfeit_score, score, speed_bonus_tier
from .types import (
    ClaimRef,
    CompletionTrigger,
    Difficulty,
    DifficultySettings,
    ForfeitReason,
    RoundOutcome,
    RoundState,
    ScoreResult,
    SpeedBonus,
    Verdict,
)

__all__ = [
    'ClaimRef',
    'CompletionTrigger',
    'Difficulty',
    'DifficultySettings',
    'ForfeitReason',
    'IntegrityMonitor',
    'InvalidRoundInput',
    'RoundClock',
    'RoundController',
    'RoundError',
    'RoundOutcome',
    'RoundState',
    'RoundStateError',
    'ScoreResult',
    'SpeedBonus',
    'SubmissionGate',
    'Verdict',
    'calibration_label',
    'forfeit_score',
    'parse_confidence',
    'parse_verdict',
    'score',
    'speed_bonus_tier',
]
