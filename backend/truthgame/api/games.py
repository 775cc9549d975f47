from flask import Blueprint, jsonify, request, current_app
from truthgame import db, socketio
from truthgame.models import GameSession
from truthgame.services.games.sessions import (
    OutcomePersistError,
    advance,
    find_controller,
    get_controller,
    pick_claims,
    resume_round,
    round_recorded,
    start_round,
)
from truthgame.services.rounds import Difficulty, InvalidRoundInput, RoundState, RoundStateError
import json


games = Blueprint('games', __name__)


@games.errorhandler(InvalidRoundInput)
def _invalid_input(exc):
    return jsonify({'error': str(exc)}), 400


@games.errorhandler(RoundStateError)
def _bad_state(exc):
    return jsonify({'error': str(exc)}), 409


@games.errorhandler(OutcomePersistError)
def _persist_failed(exc):
    return jsonify({'error': str(exc)}), 503


def _get_game(game_code: str) -> GameSession:
    return GameSession.query.filter_by(game_code=game_code.upper()).first_or_404()


def _round_payload(game: GameSession) -> dict:
    controller = find_controller(game.game_code)
    return controller.snapshot() if controller else None


def _round_id_from(data: dict):
    round_id = data.get('round_id')
    if round_id is None:
        return None
    try:
        return int(round_id)
    except (TypeError, ValueError):
        raise InvalidRoundInput(f"Invalid round_id: {round_id!r}")


@games.route('/create', methods=['POST'])
def create_game():
    data = request.get_json(silent=True) or {}
    team_name = (data.get('team_name') or '').strip()
    if not team_name:
        return jsonify({'error': 'Team name is required'}), 400
    difficulty = data.get('difficulty') or 'medium'
    if difficulty not in {d.value for d in Difficulty}:
        return jsonify({'error': f'Unknown difficulty: {difficulty}'}), 400
    total = data.get('total_rounds')
    try:
        total = int(total) if total is not None else int(current_app.config.get('ROUNDS_PER_GAME', 5))
    except (TypeError, ValueError):
        return jsonify({'error': 'total_rounds must be an integer'}), 400
    if not 1 <= total <= 50:
        return jsonify({'error': 'total_rounds must be between 1 and 50'}), 400

    new_game = GameSession(team_name=team_name, difficulty=difficulty, total_rounds=total)
    db.session.add(new_game)
    db.session.commit()
    return jsonify({
        'message': 'New game created!',
        'game_code': new_game.game_code
    }), 201


@games.route('/<string:game_code>/state', methods=['GET'])
def get_game_state(game_code):
    game = _get_game(game_code)
    # Include round durations so clients can show countdowns
    table = current_app.config.get('DIFFICULTY_SETTINGS') or {}
    payload = game.to_dict()
    payload['durations'] = {tier: int(entry['discuss_time_sec']) for tier, entry in table.items()}
    payload['round'] = _round_payload(game)
    return jsonify(payload)


@games.route('/<string:game_code>/start', methods=['POST'])
def start_game(game_code):
    game = _get_game(game_code)
    if game.status == 'in_progress':
        # Idempotent start; re-presents the claim if its round was lost unfinished
        resume_round(current_app._get_current_object(), game)
        payload = game.to_dict()
        payload['round'] = _round_payload(game)
        return jsonify(payload)
    if game.status != 'lobby':
        return jsonify({'error': 'Game is not in lobby'}), 400

    claim_ids = pick_claims(game.difficulty, int(game.total_rounds or 0))
    if not claim_ids:
        return jsonify({'error': 'No claims available'}), 400

    game.status = 'in_progress'
    game.claim_order = json.dumps(claim_ids)
    game.total_rounds = len(claim_ids)
    game.current_round = 1
    db.session.add(game)
    db.session.commit()

    start_round(current_app._get_current_object(), game)
    socketio.emit('state_update', {'game_code': game.game_code}, to=f"game:{game.game_code}", namespace='/ws')
    payload = game.to_dict()
    payload['round'] = _round_payload(game)
    return jsonify(payload)


def _check_recorded(game: GameSession, completed: bool) -> None:
    if completed and not round_recorded(game):
        raise OutcomePersistError(f"Round {game.current_round} result could not be saved; retry with /next")


def _active_controller(game: GameSession):
    if game.status != 'in_progress':
        raise RoundStateError('Game is not in progress')
    return get_controller(current_app._get_current_object(), game.game_code)


@games.route('/<string:game_code>/verdict', methods=['POST'])
def set_verdict(game_code):
    data = request.get_json(silent=True) or {}
    game = _get_game(game_code)
    controller = _active_controller(game)
    accepted = controller.set_verdict(data.get('verdict'))
    return jsonify({'accepted': accepted, 'round': controller.snapshot()})


@games.route('/<string:game_code>/confidence', methods=['POST'])
def set_confidence(game_code):
    data = request.get_json(silent=True) or {}
    game = _get_game(game_code)
    controller = _active_controller(game)
    accepted = controller.set_confidence(data.get('confidence'))
    return jsonify({'accepted': accepted, 'round': controller.snapshot()})


@games.route('/<string:game_code>/submit', methods=['POST'])
def submit_verdict(game_code):
    data = request.get_json(silent=True) or {}
    game = _get_game(game_code)
    controller = _active_controller(game)
    # Redundant submits (double click, racing the timer) are absorbed, not errors
    round_id = _round_id_from(data)
    accepted = controller.submit(round_id)
    snapshot = controller.snapshot()
    if (not accepted and round_id in (None, snapshot['round_id'])
            and snapshot['state'] == 'active' and snapshot['verdict'] is None):
        return jsonify({'error': 'Choose a verdict before submitting', 'accepted': False, 'round': snapshot}), 400
    db.session.refresh(game)
    _check_recorded(game, accepted)
    return jsonify({'accepted': accepted, 'round': snapshot, 'score': game.score})


@games.route('/<string:game_code>/focus-lost', methods=['POST'])
def focus_lost(game_code):
    data = request.get_json(silent=True) or {}
    game = _get_game(game_code)
    controller = _active_controller(game)
    recorded = controller.focus_lost(_round_id_from(data))
    if recorded and controller.state == RoundState.TERMINAL:
        db.session.refresh(game)
        _check_recorded(game, True)
    return jsonify({'recorded': recorded, 'round': controller.snapshot()})


@games.route('/<string:game_code>/next', methods=['POST'])
def next_round(game_code):
    game = _get_game(game_code)
    if game.status == 'finished':
        return jsonify(game.to_dict())
    _active_controller(game)
    advance(current_app._get_current_object(), game)
    payload = game.to_dict()
    payload['round'] = _round_payload(game)
    return jsonify(payload)
