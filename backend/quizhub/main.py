from flask import Blueprint, current_app, jsonify

main = Blueprint('main', __name__)


@main.route('/')
def index():
    return jsonify({'message': 'Quizhub session server. Connect a Socket.IO client to /ws to play.'})


@main.route('/health')
def health():
    registry = current_app.extensions['quizhub']['registry']
    return jsonify({'status': 'ok', 'rooms': len(registry)})
