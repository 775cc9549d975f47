import os


def _env_bool(name, default):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


def _difficulty(tier, discuss_time, multiplier):
    prefix = tier.upper()
    return {
        'discuss_time_sec': int(os.environ.get(f'{prefix}_DISCUSS_TIME_SEC', str(discuss_time))),
        'multiplier': float(os.environ.get(f'{prefix}_MULTIPLIER', str(multiplier))),
    }


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///truthgame.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    # Discussion time (seconds) and point multiplier per difficulty tier
    DIFFICULTY_SETTINGS = {
        'easy': _difficulty('easy', 150, 1.0),
        'medium': _difficulty('medium', 120, 1.5),
        'hard': _difficulty('hard', 90, 2.0),
        'expert': _difficulty('expert', 75, 2.5),
    }
    ROUNDS_PER_GAME = int(os.environ.get('ROUNDS_PER_GAME', '5'))
    # Flat penalty for a forfeited round (time-out without verdict, or tab switch)
    ROUND_FORFEIT_PENALTY = int(os.environ.get('ROUND_FORFEIT_PENALTY', '-10'))
    # Focus losses allowed before forfeit; 1 = any tab switch forfeits
    FOCUS_VIOLATION_THRESHOLD = int(os.environ.get('FOCUS_VIOLATION_THRESHOLD', '1'))
    # Deduction per focus loss below the threshold. 0 disables.
    FOCUS_VIOLATION_PENALTY = int(os.environ.get('FOCUS_VIOLATION_PENALTY', '0'))
    DEFAULT_CONFIDENCE = int(os.environ.get('DEFAULT_CONFIDENCE', '2'))
    SPEED_BONUS_ENABLED = _env_bool('SPEED_BONUS_ENABLED', True)
    ROUND_TICK_INTERVAL_SEC = float(os.environ.get('ROUND_TICK_INTERVAL_SEC', '1'))
