"""Round scoring.

Pure functions only: identical inputs always give identical results, so
the controller can be tested without mocking timers.
"""

import math
from typing import Optional

from .types import ScoreResult, SpeedBonus


# confidence -> (correct, incorrect)
POINTS_MATRIX = {
    1: (1, -1),
    2: (3, -3),
    3: (5, -6),
}

# (max fraction of time used, multiplier, tier, label); checked fastest first
SPEED_BONUS_TIERS = (
    (0.10, 2.0, 'ultra-lightning', 'ULTRA LIGHTNING!'),
    (0.20, 1.5, 'lightning', 'LIGHTNING FAST!'),
    (0.35, 1.3, 'very-fast', 'VERY FAST!'),
    (0.50, 1.1, 'fast', 'FAST!'),
)


def round_half_away(value: float) -> int:
    """Round to the nearest integer, halves away from zero (4.5 -> 5, -4.5 -> -5)."""
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def base_payoff(correct: bool, confidence: int) -> int:
    win, loss = POINTS_MATRIX[confidence]
    return win if correct else loss


def speed_bonus_tier(elapsed_seconds: float, total_allowed_seconds: float):
    """Return the matching tier tuple, or None when too slow to earn one."""
    if total_allowed_seconds <= 0:
        return None
    elapsed = min(max(elapsed_seconds, 0), total_allowed_seconds)
    used = elapsed / total_allowed_seconds
    for tier in SPEED_BONUS_TIERS:
        if used <= tier[0]:
            return tier
    return None


def score(correct: bool,
          confidence: int,
          difficulty_multiplier: float,
          elapsed_seconds: float,
          total_allowed_seconds: float,
          integrity_penalty: int = 0,
          speed_bonus_enabled: bool = True) -> ScoreResult:
    """Score a decided round.

    `confidence` must already be validated; the controller rejects values
    outside 1-3 before they reach here. The speed bonus is derived from the
    nominal (difficulty-adjusted) payoff and only applies to correct answers.
    `integrity_penalty` is non-positive and always added.
    """
    nominal = round_half_away(base_payoff(correct, confidence) * difficulty_multiplier)
    points = nominal
    bonus: Optional[SpeedBonus] = None
    if correct and speed_bonus_enabled:
        tier = speed_bonus_tier(elapsed_seconds, total_allowed_seconds)
        if tier is not None:
            _, multiplier, name, label = tier
            extra = round_half_away(nominal * (multiplier - 1))
            bonus = SpeedBonus(tier=name, label=label, multiplier=multiplier, bonus=extra)
            points += extra
    points += min(int(integrity_penalty), 0)
    return ScoreResult(points=points, speed_bonus=bonus, nominal=nominal)


def forfeit_score(penalty: int) -> ScoreResult:
    """Forfeited rounds score a flat penalty and nothing else."""
    return ScoreResult(points=min(int(penalty), 0), speed_bonus=None, nominal=0)


def calibration_label(correct: bool, confidence: int) -> str:
    if correct and confidence == 1:
        return 'underconfident'
    if not correct and confidence == 3:
        return 'overconfident'
    return 'calibrated'
