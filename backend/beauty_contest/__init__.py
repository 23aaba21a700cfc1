from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
import click
from config import Config

socketio = SocketIO(async_mode=None)


def create_app(config_class=Config, scheduler=None, rng=None):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    allowed_origins = flask_app.config.get('CORS_ORIGINS', [])

    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from beauty_contest.services.games.lifecycle import RoundLifecycle
    from beauty_contest.services.games.scheduler import BackgroundScheduler

    def broadcast(event, payload):
        socketio.emit(event, payload, namespace='/ws')

    # One game per process; handlers reach it through current_app
    flask_app.extensions['round_lifecycle'] = RoundLifecycle.from_config(
        flask_app.config,
        emit=broadcast,
        scheduler=scheduler or BackgroundScheduler(socketio, logger=flask_app.logger),
        logger=flask_app.logger,
        rng=rng,
    )
    flask_app.extensions['ws_connections'] = {}

    from beauty_contest.main import main
    flask_app.register_blueprint(main)

    from beauty_contest.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    @click.command('rules')
    def rules_command():
        """Prints the special rule catalog and the eliminations that unlock each rule."""
        from beauty_contest.services.games.rules import SPECIAL_RULES, STANDARD_RULE_TEXT
        click.echo(f"0+ eliminations: {STANDARD_RULE_TEXT}")
        for rule in SPECIAL_RULES:
            click.echo(f"{rule.threshold}+ eliminations: {rule.text}")

    flask_app.cli.add_command(rules_command)

    return flask_app
