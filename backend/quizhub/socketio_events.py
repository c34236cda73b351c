from flask import current_app, request
from flask_socketio import emit
from typing import Any, Dict, Optional

from quizhub import socketio
from quizhub.services.rooms.outcomes import Outcome, Reason

NAMESPACE = '/ws'

# startGame payload key -> game option name
_GAME_OPTION_KEYS = {
    'numberOfQuestions': 'number_of_questions',
    'roundTimeMs': 'round_time_ms',
    'questionsPerPlayer': 'questions_per_player',
}


def _lobby():
    return current_app.extensions['quizhub']['lobby']


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _payload(data) -> Dict[str, Any]:
    return data if isinstance(data, dict) else {}


def _room_id(data: Dict[str, Any]) -> Optional[str]:
    room_id = data.get('roomId')
    if not isinstance(room_id, str) or not room_id.strip():
        return None
    return room_id.strip()


def _invalid(message: str):
    return Outcome.rejected(Reason.INVALID_PAYLOAD, message).to_ack()


def handle_connect(auth=None):
    emit('connected', {'message': 'Connected to /ws', 'playerId': _get_sid()})


def handle_disconnect(reason=None):
    current_app.logger.info(f"[disconnect] player={_get_sid()} reason={reason}")
    _lobby().disconnect(_get_sid())


def handle_join_room(data):
    data = _payload(data)
    room_id = _room_id(data)
    if room_id is None:
        return _invalid("Invalid room ID provided.")
    username = data.get('username')
    if username is not None and not isinstance(username, str):
        return _invalid("username must be a string.")
    outcome = _lobby().join_or_create(room_id, _get_sid(), username, data.get('maxPlayers'))
    return outcome.to_ack()


def handle_leave_room(data):
    room_id = _room_id(_payload(data))
    if room_id is None:
        return _invalid("Invalid room ID provided.")
    return _lobby().leave(room_id, _get_sid()).to_ack()


def handle_kick_player(data):
    data = _payload(data)
    room_id = _room_id(data)
    target_id = data.get('playerId')
    if room_id is None or not isinstance(target_id, str) or not target_id:
        return _invalid("roomId and playerId are required.")
    return _lobby().kick(room_id, _get_sid(), target_id).to_ack()


def handle_start_game(data):
    data = _payload(data)
    room_id = _room_id(data)
    if room_id is None:
        return _invalid("Invalid room ID provided.")
    options = {}
    for key, option in _GAME_OPTION_KEYS.items():
        if key not in data:
            continue
        value = data[key]
        if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
            return _invalid(f"{key} must be a positive integer.")
        options[option] = value
    outcome = _lobby().start_game(room_id, _get_sid(), data.get('gameType'), options)
    return outcome.to_ack()


def handle_start_questions(data):
    room_id = _room_id(_payload(data))
    if room_id is None:
        return _invalid("Invalid room ID provided.")
    return _lobby().start_questions(room_id, _get_sid()).to_ack()


def handle_submit_answer(data):
    data = _payload(data)
    room_id = _room_id(data)
    if room_id is None:
        return _invalid("Invalid room ID provided.")
    action = {
        'type': 'submitAnswer',
        'questionRef': data.get('questionRef'),
        'optionIndex': data.get('optionIndex'),
    }
    return _lobby().submit_action(room_id, _get_sid(), action).to_ack()


def handle_request_question(data):
    room_id = _room_id(_payload(data))
    if room_id is None:
        return _invalid("Invalid room ID provided.")
    return _lobby().submit_action(room_id, _get_sid(), {'type': 'requestQuestion'}).to_ack()


def handle_send_message(data):
    data = _payload(data)
    room_id = _room_id(data)
    if room_id is None:
        return _invalid("Invalid room ID provided.")
    return _lobby().send_message(room_id, _get_sid(), data.get('message')).to_ack()


def register_socketio_handlers() -> None:
    """Register Socket.IO event handlers on namespace '/ws'."""
    socketio.on_event('connect', handle_connect, namespace=NAMESPACE)
    socketio.on_event('disconnect', handle_disconnect, namespace=NAMESPACE)
    socketio.on_event('joinRoom', handle_join_room, namespace=NAMESPACE)
    socketio.on_event('leaveRoom', handle_leave_room, namespace=NAMESPACE)
    socketio.on_event('kickPlayer', handle_kick_player, namespace=NAMESPACE)
    socketio.on_event('startGame', handle_start_game, namespace=NAMESPACE)
    socketio.on_event('startQuestions', handle_start_questions, namespace=NAMESPACE)
    socketio.on_event('submitAnswer', handle_submit_answer, namespace=NAMESPACE)
    socketio.on_event('requestQuestion', handle_request_question, namespace=NAMESPACE)
    socketio.on_event('sendMessage', handle_send_message, namespace=NAMESPACE)
