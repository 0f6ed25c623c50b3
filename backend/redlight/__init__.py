import logging

import click
from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO

from config import Config

socketio = SocketIO(async_mode=None)


def _cors_origins(raw):
    if not raw or raw == '*':
        return '*'
    return [origin.strip() for origin in raw.split(',') if origin.strip()]


def create_app(config_class=Config, scheduler=None, gateway=None, rng=None):
    """Build the Flask app, the Socket.IO server and the single game engine.

    ``scheduler``/``gateway``/``rng`` may be injected (tests drive time with
    a manual scheduler); by default timers run as Socket.IO background tasks
    and state is emitted over Socket.IO.
    """
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    flask_app.logger.setLevel(getattr(logging, str(flask_app.config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO))

    allowed_origins = _cors_origins(flask_app.config.get('CORS_ORIGINS'))
    CORS(flask_app, origins=allowed_origins)
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins, ping_interval=10, ping_timeout=5)

    from redlight.services.game import GameEngine, SocketIOGateway, TaskScheduler

    namespace = flask_app.config.get('SOCKETIO_NAMESPACE', '/')
    engine = GameEngine(
        scheduler=scheduler or TaskScheduler(socketio, logger=flask_app.logger),
        gateway=gateway or SocketIOGateway(socketio, namespace=namespace),
        config=flask_app.config,
        logger=flask_app.logger,
        rng=rng,
    )
    flask_app.extensions['redlight'] = engine

    from redlight.routes import main
    flask_app.register_blueprint(main)

    from redlight.api.game import game
    flask_app.register_blueprint(game, url_prefix='/api/game')

    from redlight.socketio_events import register_socketio_handlers
    register_socketio_handlers(namespace=namespace)

    @click.command('rounds')
    def rounds_command():
        """Prints the round catalog."""
        for number, rc in enumerate(engine.catalog, start=1):
            if rc.is_race:
                detail = f"progress_rate={rc.progress_rate}"
            else:
                detail = f"duration={rc.duration_sec}s"
            click.echo(
                f"{number}. {rc.label} [{rc.kind}] {detail} grace={rc.grace_period_ms}ms "
                f"green={rc.green_duration[0]}-{rc.green_duration[1]}ms "
                f"red={rc.red_duration[0]}-{rc.red_duration[1]}ms"
            )

    flask_app.cli.add_command(rounds_command)

    return flask_app
