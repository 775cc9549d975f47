from flask_socketio import join_room, leave_room, emit
from flask import current_app
from truthgame import socketio
from truthgame.services.games.sessions import find_controller


def handle_connect():
    emit('connected', {'message': 'Connected to /ws'})


def _game_code(data):
    """Normalized game code from an event payload, or None when missing or not a string."""
    game_code = data.get('game_code') if isinstance(data, dict) else None
    if not isinstance(game_code, str) or not game_code.strip():
        emit('error', {'message': 'game_code is required'})
        return None
    return game_code.strip().upper()


def handle_join_game(data):
    game_code = _game_code(data)
    if game_code is None:
        return
    room = f"game:{game_code}"
    join_room(room)
    emit('joined', {'room': room})


def handle_leave_game(data):
    game_code = _game_code(data)
    if game_code is None:
        return
    room = f"game:{game_code}"
    leave_room(room)
    emit('left', {'room': room})


def handle_focus_lost(data):
    """Visibility-change/blur forwarded by the playing client."""
    game_code = _game_code(data)
    if game_code is None:
        return
    controller = find_controller(game_code)
    if controller is None:
        emit('error', {'message': 'No round in progress'})
        return
    round_id = data.get('round_id')
    if round_id is not None and not isinstance(round_id, int):
        emit('error', {'message': 'round_id must be an integer'})
        return
    recorded = controller.focus_lost(round_id)
    current_app.logger.info(f"[focus-lost] game={game_code} round={controller.round_id} recorded={recorded}")
    emit('focus_lost_ack', {'recorded': recorded, 'violation_count': controller.violation_count})


def handle_ping(data):
    emit('pong', data or {})


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    # Primary namespace
    socketio.on_event('connect', handle_connect, namespace='/ws')
    socketio.on_event('join_game', handle_join_game, namespace='/ws')
    socketio.on_event('leave_game', handle_leave_game, namespace='/ws')
    socketio.on_event('focus_lost', handle_focus_lost, namespace='/ws')
    socketio.on_event('ping', handle_ping, namespace='/ws')

    if testing:
        # Test-only mirror on default namespace
        socketio.on_event('connect', handle_connect, namespace='/')
        socketio.on_event('join_game', handle_join_game, namespace='/')
        socketio.on_event('leave_game', handle_leave_game, namespace='/')
        socketio.on_event('focus_lost', handle_focus_lost, namespace='/')
        socketio.on_event('ping', handle_ping, namespace='/')
