from flask import current_app, request
from flask_socketio import emit, join_room

from redlight import socketio
from redlight.services.game import AUDIENCE_TV, GameEngine


def _engine() -> GameEngine:
    return current_app.extensions['redlight']


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def handle_connect(auth=None):
    current_app.logger.debug(f"[connect] sid={_get_sid()}")
    emit('connected', {'id': _get_sid()})


def handle_disconnect(*args):
    _engine().disconnect(_get_sid())


def handle_join_tv(*args):
    join_room(AUDIENCE_TV)
    _engine().add_tv()


def handle_join_game(name=None):
    # Player snapshots are addressed to the sid, which is already its own room
    _engine().join(_get_sid(), name)


def handle_hold_start(*args):
    _engine().hold_start(_get_sid())


def handle_hold_end(*args):
    _engine().hold_end(_get_sid())


def handle_start_game(*args):
    _engine().start_round()


def handle_reset_lobby(*args):
    _engine().reset_lobby()


def handle_kick_player(player_id=None):
    if not isinstance(player_id, str) or not player_id:
        emit('error', {'message': 'player_id is required'})
        return
    _engine().kick(player_id)


def register_socketio_handlers(namespace: str = '/') -> None:
    """Register Socket.IO event handlers on the configured namespace."""
    socketio.on_event('connect', handle_connect, namespace=namespace)
    socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
    socketio.on_event('join_tv', handle_join_tv, namespace=namespace)
    socketio.on_event('join_game', handle_join_game, namespace=namespace)
    socketio.on_event('hold_start', handle_hold_start, namespace=namespace)
    socketio.on_event('hold_end', handle_hold_end, namespace=namespace)
    socketio.on_event('start_game', handle_start_game, namespace=namespace)
    socketio.on_event('reset_lobby', handle_reset_lobby, namespace=namespace)
    socketio.on_event('kick_player', handle_kick_player, namespace=namespace)
