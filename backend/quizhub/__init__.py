from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
import click
from config import Config

socketio = SocketIO(async_mode=None)


def create_app(config_class=Config, timers=None):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    flask_app.logger.setLevel(flask_app.config.get('LOG_LEVEL', 'INFO'))

    allowed_origins = flask_app.config.get('CORS_ORIGINS', [])
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # Session engine: one registry, one lobby, one timer source per app
    from quizhub.broadcast import SocketIOBroadcaster
    from quizhub.services.games.scheduler import BackgroundTimers
    from quizhub.services.rooms import Lobby, RoomRegistry

    registry = RoomRegistry()
    if timers is None:
        timers = BackgroundTimers(
            socketio,
            registry.lock,
            heartbeat_sec=flask_app.config.get('TIMER_HEARTBEAT_SEC', 0),
        )
    broadcaster = SocketIOBroadcaster(socketio, namespace='/ws')
    lobby = Lobby.from_config(flask_app.config, registry, broadcaster, timers)
    flask_app.extensions['quizhub'] = {
        'registry': registry,
        'lobby': lobby,
        'timers': timers,
    }

    # Import and register blueprints here
    from quizhub.main import main
    flask_app.register_blueprint(main)

    from quizhub.api.rooms import rooms
    flask_app.register_blueprint(rooms, url_prefix='/api/rooms')

    # Importing here ensures the handlers bind to the initialized socketio instance
    from quizhub.socketio_events import register_socketio_handlers
    register_socketio_handlers()

    @click.command('question-bank')
    def question_bank_command():
        """Validates the built-in question bank and prints a summary."""
        from quizhub.services.games.questions import QUESTION_BANK, validate_bank

        problems = validate_bank(QUESTION_BANK)
        for problem in problems:
            click.echo(f"  ! {problem}")
        option_counts = sorted({len(q.options) for q in QUESTION_BANK})
        click.echo(f"{len(QUESTION_BANK)} questions, option counts {option_counts}")
        if problems:
            raise click.ClickException(f"{len(problems)} problem(s) found in the question bank")
        click.echo('Question bank OK')

    flask_app.cli.add_command(question_bank_command)

    return flask_app
