from truthgame.services.rounds.scoring import (
    POINTS_MATRIX,
    base_payoff,
    calibration_label,
    forfeit_score,
    round_half_away,
    score,
    speed_bonus_tier,
)


def test_fast_correct_high_confidence_doubles():
    result = score(True, 3, 1.0, 5, 120)
    assert result.nominal == 5
    assert result.speed_bonus.tier == 'ultra-lightning'
    assert result.speed_bonus.bonus == 5
    assert result.points == 10


def test_incorrect_low_confidence():
    result = score(False, 1, 1.0, 30, 150)
    assert result.points == -1
    assert result.speed_bonus is None


def test_no_speed_bonus_when_incorrect():
    result = score(False, 3, 1.0, 1, 120)
    assert result.points == -6
    assert result.speed_bonus is None


def test_difficulty_multiplier_rounds_half_away_from_zero():
    # 3 * 1.5 = 4.5 and -3 * 1.5 = -4.5
    assert score(True, 2, 1.5, 120, 120).points == 5
    assert score(False, 2, 1.5, 120, 120).points == -5
    assert round_half_away(2.5) == 3
    assert round_half_away(-2.5) == -3
    assert round_half_away(0.0) == 0


def test_speed_bonus_bands():
    assert speed_bonus_tier(12, 120)[2] == 'ultra-lightning'
    assert speed_bonus_tier(13, 120)[2] == 'lightning'
    assert speed_bonus_tier(24, 120)[2] == 'lightning'
    assert speed_bonus_tier(42, 120)[2] == 'very-fast'
    assert speed_bonus_tier(60, 120)[2] == 'fast'
    assert speed_bonus_tier(61, 120) is None
    assert speed_bonus_tier(0, 120)[2] == 'ultra-lightning'


def test_speed_bonus_needs_positive_total():
    assert speed_bonus_tier(0, 0) is None
    assert score(True, 3, 1.0, 0, 0).speed_bonus is None


def test_elapsed_beyond_total_is_clamped():
    assert score(True, 2, 1.0, 500, 120).points == 3


def test_bonus_is_non_increasing_with_elapsed_time():
    for multiplier in (1.0, 1.5, 2.0, 2.5):
        previous = None
        for elapsed in range(0, 121):
            result = score(True, 3, multiplier, elapsed, 120)
            bonus = result.speed_bonus.bonus if result.speed_bonus else 0
            if previous is not None:
                assert bonus <= previous
            if elapsed > 60:
                assert bonus == 0
            previous = bonus


def test_confidence_raises_stakes_both_ways():
    wins = [POINTS_MATRIX[c][0] for c in (1, 2, 3)]
    losses = [abs(POINTS_MATRIX[c][1]) for c in (1, 2, 3)]
    assert wins == sorted(wins) and len(set(wins)) == 3
    assert losses == sorted(losses) and len(set(losses)) == 3
    assert base_payoff(False, 3) == -6


def test_integrity_penalty_always_applied():
    assert score(True, 2, 1.0, 120, 120, integrity_penalty=-2).points == 1
    assert score(False, 2, 1.0, 120, 120, integrity_penalty=-2).points == -5
    # positive values are never treated as a reward
    assert score(True, 2, 1.0, 120, 120, integrity_penalty=4).points == 3


def test_speed_bonus_can_be_disabled():
    result = score(True, 3, 1.0, 1, 120, speed_bonus_enabled=False)
    assert result.points == 5
    assert result.speed_bonus is None


def test_score_is_deterministic():
    args = (True, 2, 1.5, 17, 90, -1)
    first = score(*args)
    assert all(score(*args) == first for _ in range(20))


def test_forfeit_score_is_flat():
    result = forfeit_score(-10)
    assert result.points == -10
    assert result.speed_bonus is None


def test_calibration_label():
    assert calibration_label(True, 1) == 'underconfident'
    assert calibration_label(False, 3) == 'overconfident'
    assert calibration_label(True, 3) == 'calibrated'
    assert calibration_label(False, 1) == 'calibrated'
