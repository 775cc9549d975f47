import json
import random
import threading
from typing import Dict, Optional

from flask import has_app_context
from sqlalchemy.exc import SQLAlchemyError

from truthgame import db, socketio
from truthgame.models import Claim, GameSession, RoundResult
from truthgame.services.rounds import (
    ClaimRef,
    Difficulty,
    DifficultySettings,
    RoundController,
    RoundOutcome,
    RoundState,
    RoundStateError,
    Verdict,
)


# Live controllers keyed by game code (runtime-only, one per running game)
_controllers: Dict[str, RoundController] = {}
_controllers_lock = threading.Lock()
_advance_locks: Dict[str, threading.Lock] = {}


def _room(game_code: str) -> str:
    return f"game:{game_code}"


def _emit(event: str, payload: dict, game_code: str) -> None:
    socketio.emit(event, payload, to=_room(game_code), namespace='/ws')


def _noop_spawn(target, *args):
    return None


def difficulty_settings(app, difficulty: str) -> DifficultySettings:
    table = app.config.get('DIFFICULTY_SETTINGS') or {}
    entry = table.get(difficulty) or table.get('medium') or {'discuss_time_sec': 120, 'multiplier': 1.0}
    return DifficultySettings(
        discuss_time_sec=int(entry['discuss_time_sec']),
        multiplier=float(entry['multiplier']),
    )


def get_controller(app, game_code: str) -> RoundController:
    """Return the controller for a game, creating it on first use."""
    with _controllers_lock:
        controller = _controllers.get(game_code)
        if controller is None:
            controller = _build_controller(app, game_code)
            _controllers[game_code] = controller
        return controller


def find_controller(game_code: str) -> Optional[RoundController]:
    return _controllers.get(game_code)


def release_controller(game_code: str) -> None:
    with _controllers_lock:
        controller = _controllers.pop(game_code, None)
        _advance_locks.pop(game_code, None)
    if controller is not None:
        controller.reset()


def _build_controller(app, game_code: str) -> RoundController:
    cfg = app.config
    # No real countdowns in TESTING unless explicitly enabled
    if cfg.get('TESTING') and not cfg.get('ENABLE_CLOCK_IN_TESTS'):
        spawn = _noop_spawn
    else:
        spawn = socketio.start_background_task

    def on_tick(remaining: int) -> None:
        _emit('tick', {'game_code': game_code, 'round_id': controller.round_id, 'remaining': remaining}, game_code)

    def on_warn(violation_count: int) -> None:
        app.logger.info(f"[integrity-warn] game={game_code} round={controller.round_id} violations={violation_count}")
        _emit('integrity_warning', {
            'game_code': game_code,
            'round_id': controller.round_id,
            'violation_count': violation_count,
        }, game_code)

    def on_outcome(outcome: RoundOutcome) -> None:
        record_outcome(app, game_code, outcome)

    controller = RoundController(
        on_tick=on_tick,
        on_warn=on_warn,
        on_outcome=on_outcome,
        forfeit_penalty=int(cfg.get('ROUND_FORFEIT_PENALTY', -10)),
        violation_threshold=int(cfg.get('FOCUS_VIOLATION_THRESHOLD', 1)),
        violation_penalty=int(cfg.get('FOCUS_VIOLATION_PENALTY', 0)),
        default_confidence=int(cfg.get('DEFAULT_CONFIDENCE', 2)),
        speed_bonus_enabled=bool(cfg.get('SPEED_BONUS_ENABLED', True)),
        tick_interval=float(cfg.get('ROUND_TICK_INTERVAL_SEC', 1)),
        spawn=spawn,
        sleep=socketio.sleep,
    )
    return controller


class OutcomePersistError(RuntimeError):
    """A finished round's outcome could not be written to the database."""


def round_recorded(game: GameSession) -> bool:
    """True when the game's current round already has a stored result."""
    return RoundResult.query.filter_by(
        session_id=game.id, round_number=int(game.current_round or 0)
    ).first() is not None


def record_outcome(app, game_code: str, outcome: RoundOutcome) -> bool:
    """Persist an outcome and push it to the room.

    Called from request handlers and from clock workers; the latter run
    without an app context, so one is pushed for them. Returns False when
    the commit failed; the outcome stays on the controller for a retry.
    """
    if has_app_context():
        return _persist_outcome(app, game_code, outcome)
    with app.app_context():
        return _persist_outcome(app, game_code, outcome)


def _persist_outcome(app, game_code: str, outcome: RoundOutcome) -> bool:
    game = GameSession.query.filter_by(game_code=game_code).first()
    if not game:
        app.logger.warning(f"[outcome-orphan] game={game_code} round={outcome.round_id}")
        return False
    if round_recorded(game):
        app.logger.info(f"[outcome-duplicate] game={game_code} round={game.current_round}")
        return True
    result = RoundResult(
        session_id=game.id,
        round_number=int(game.current_round or 0),
        claim_id=outcome.claim_id,
        verdict=outcome.verdict.value if outcome.verdict else None,
        confidence=outcome.confidence,
        correct=outcome.correct,
        points=outcome.points,
        speed_bonus=json.dumps(outcome.speed_bonus.to_dict()) if outcome.speed_bonus else None,
        forfeited=outcome.forfeited,
        forfeit_reason=outcome.forfeit_reason.value if outcome.forfeit_reason else None,
        trigger=outcome.trigger.value,
        time_elapsed=outcome.time_elapsed_seconds,
        calibration=outcome.calibration,
    )
    game.score = (game.score or 0) + outcome.points
    try:
        db.session.add(result)
        db.session.add(game)
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        app.logger.exception(f"[outcome-persist-failed] game={game_code} round={outcome.round_id}")
        _emit('outcome_persist_failed', {'game_code': game_code, 'round_id': outcome.round_id}, game_code)
        return False
    app.logger.info(
        f"[round-outcome] game={game_code} round={game.current_round} trigger={outcome.trigger.value} "
        f"points={outcome.points} score={game.score}"
    )
    _emit('round_outcome', {'game_code': game_code, 'outcome': outcome.to_dict(), 'score': game.score}, game_code)
    _emit('state_update', {'game_code': game_code}, game_code)
    return True


def pick_claims(difficulty: str, count: int) -> list:
    """Choose claim ids for a game: the requested tier first, topped up from others."""
    preferred = [c.id for c in Claim.query.filter_by(difficulty=difficulty).all()]
    others = [c.id for c in Claim.query.filter(Claim.difficulty != difficulty).all()]
    random.shuffle(preferred)
    random.shuffle(others)
    return (preferred + others)[:max(0, count)]


def start_round(app, game: GameSession) -> int:
    """Present the game's current claim to its controller."""
    claim = game.current_claim
    if claim is None:
        raise RoundStateError(f"No claim for round {game.current_round}")
    try:
        tier = Difficulty(claim.difficulty)
    except ValueError:
        tier = Difficulty.MEDIUM
    settings = difficulty_settings(app, tier.value)
    controller = get_controller(app, game.game_code)
    round_id = controller.present_claim(
        ClaimRef(id=claim.id, correct_answer=Verdict(claim.answer), difficulty=tier),
        settings,
    )
    app.logger.info(
        f"[round-start] game={game.game_code} round={game.current_round} claim={claim.id} "
        f"duration={settings.discuss_time_sec}s"
    )
    _emit('round_started', {
        'game_code': game.game_code,
        'round_id': round_id,
        'round': game.current_round,
        'claim': claim.to_dict(),
        'duration': settings.discuss_time_sec,
    }, game.game_code)
    return round_id


def resume_round(app, game: GameSession) -> bool:
    """Re-present the current claim when its controller was lost before the round ended."""
    with _advance_lock(game.game_code):
        controller = get_controller(app, game.game_code)
        if controller.state != RoundState.IDLE or round_recorded(game):
            return False
        app.logger.info(f"[round-resume] game={game.game_code} round={game.current_round}")
        start_round(app, game)
        return True


def _advance_lock(game_code: str) -> threading.Lock:
    with _controllers_lock:
        return _advance_locks.setdefault(game_code, threading.Lock())


def advance(app, game: GameSession) -> GameSession:
    """Acknowledge the finished round and move to the next claim, or finish the game.

    A round is left only once its result is stored: a Terminal controller
    whose first write failed gets one more attempt here, and an Idle
    controller (lost registry entry) is accepted only for a recorded round.
    """
    with _advance_lock(game.game_code):
        db.session.refresh(game)
        if game.status == 'finished':
            return game
        controller = get_controller(app, game.game_code)
        if controller.state == RoundState.TERMINAL and not round_recorded(game):
            if not record_outcome(app, game.game_code, controller.outcome):
                raise OutcomePersistError(f"Round {game.current_round} result could not be saved")
        if not controller.acknowledge():
            if controller.state != RoundState.IDLE or not round_recorded(game):
                raise RoundStateError('The current round has not finished yet')
        prev_round = int(game.current_round or 0)
        if prev_round < (game.total_rounds or 0):
            game.current_round = prev_round + 1
            db.session.add(game)
            db.session.commit()
            app.logger.info(f"[next_round] game={game.game_code} advance round {prev_round} -> {game.current_round}")
            start_round(app, game)
        else:
            game.status = 'finished'
            db.session.add(game)
            db.session.commit()
            release_controller(game.game_code)
            app.logger.info(f"[finish] game={game.game_code} finished at round={prev_round} score={game.score}")
    _emit('state_update', {'game_code': game.game_code}, game.game_code)
    return game
