from flask import Blueprint, current_app, jsonify

rooms = Blueprint('rooms', __name__)


def _lobby():
    return current_app.extensions['quizhub']['lobby']


@rooms.route('', methods=['GET'])
def list_rooms():
    summaries = _lobby().room_summaries()
    return jsonify({'rooms': summaries, 'count': len(summaries)})


@rooms.route('/<string:room_id>', methods=['GET'])
def get_room(room_id):
    state = _lobby().room_state(room_id)
    if state is None:
        return jsonify({'error': 'room_not_found', 'message': f'Room "{room_id}" does not exist.'}), 404
    return jsonify(state)
