from typing import Any

AUDIENCE_TV = 'tv'


class BroadcastGateway:
    """Abstract outbound fan-out used by the engine.

    Subclasses implement both methods; delivery is best effort.
    """

    def send_to_audience(self, audience_id: str, event: str, payload: Any = None) -> None:
        raise NotImplementedError

    def send_to_player(self, player_id: str, event: str, payload: Any = None) -> None:
        raise NotImplementedError


class SocketIOGateway(BroadcastGateway):
    """Emit over Flask-SocketIO; every connection sid doubles as a room."""

    def __init__(self, socketio, namespace: str = '/'):
        self.socketio = socketio
        self.namespace = namespace

    def send_to_audience(self, audience_id, event, payload=None):
        # socketio.emit works outside a request context, e.g. from timer tasks
        self.socketio.emit(event, payload, to=audience_id, namespace=self.namespace)

    def send_to_player(self, player_id, event, payload=None):
        self.socketio.emit(event, payload, to=player_id, namespace=self.namespace)
