from functools import wraps
from typing import Dict

from flask import current_app, request
from flask_socketio import emit

from beauty_contest import socketio
from beauty_contest.exceptions import InvalidName, InvalidNumber, NotJoined, RejectedInput


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _lifecycle():
    return current_app.extensions['round_lifecycle']


def _connections() -> Dict[str, str]:
    """sid -> player id for sockets that joined the game."""
    return current_app.extensions['ws_connections']


def _player_id_for_sid(sid):
    """Player id bound to this socket, dropping bindings left over from a finished game."""
    player_id = _connections().get(sid)
    if player_id and player_id not in _lifecycle().session.players:
        _connections().pop(sid, None)
        return None
    return player_id


def _reply_errors(handler):
    """Report refused input to the sender only; the session is untouched."""
    @wraps(handler)
    def wrapper(*args, **kwargs):
        try:
            return handler(*args, **kwargs)
        except RejectedInput as exc:
            current_app.logger.info(f"[rejected] sid={_get_sid()} event={handler.__name__} reason={exc}")
            emit('error', {'message': str(exc)})
    return wrapper


def handle_connect():
    emit('connected', {'message': 'Connected to /ws'})


def handle_disconnect(reason=None):
    player_id = _connections().pop(_get_sid(), None)
    if not player_id:
        return
    current_app.logger.info(f"[disconnect] sid={_get_sid()} player={player_id} reason={reason}")
    _lifecycle().disconnect(player_id)


@_reply_errors
def handle_join_game(data):
    sid = _get_sid()
    if _player_id_for_sid(sid):
        raise RejectedInput('You already joined this game')
    if not isinstance(data, dict):
        raise InvalidName()
    player = _lifecycle().join(data.get('name'))
    _connections()[sid] = player.id
    emit('joined', {'player_id': player.id, 'name': player.name})


@_reply_errors
def handle_start_game(data=None):
    player_id = _player_id_for_sid(_get_sid())
    if not player_id:
        raise NotJoined()
    _lifecycle().start(player_id)


@_reply_errors
def handle_submit_choice(data):
    player_id = _player_id_for_sid(_get_sid())
    if not player_id:
        raise NotJoined()
    if not isinstance(data, dict):
        raise InvalidNumber()
    _lifecycle().submit(player_id, data.get('number'))


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    namespaces = ['/ws', '/'] if testing else ['/ws']
    for namespace in namespaces:
        socketio.on_event('connect', handle_connect, namespace=namespace)
        socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
        socketio.on_event('join_game', handle_join_game, namespace=namespace)
        socketio.on_event('start_game', handle_start_game, namespace=namespace)
        socketio.on_event('submit_choice', handle_submit_choice, namespace=namespace)
