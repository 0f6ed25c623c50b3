from flask import Blueprint, current_app, jsonify

game = Blueprint('game', __name__)


def _engine():
    return current_app.extensions['redlight']


@game.route('/state', methods=['GET'])
def get_state():
    """Current TV snapshot; read-only, the socket stays the only way to act."""
    engine = _engine()
    with engine.lock:
        return jsonify(engine.tv_snapshot())


@game.route('/rounds', methods=['GET'])
def get_rounds():
    engine = _engine()
    return jsonify([
        dict(rc.to_dict(), round=number)
        for number, rc in enumerate(engine.catalog, start=1)
    ])
