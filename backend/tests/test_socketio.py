from redlight import socketio


def _names(received):
    return [pkt['name'] for pkt in received]


def _args(received, name):
    return [pkt['args'][0] if pkt['args'] else None for pkt in received if pkt['name'] == name]


def test_socket_connect_and_join(sio_client):
    assert sio_client.is_connected()
    received = sio_client.get_received()
    assert 'connected' in _names(received)

    sio_client.emit('join_game', 'Alice')
    received = sio_client.get_received()
    assert _args(received, 'joined')[0]['name'] == 'Alice'


def test_duplicate_name_gets_join_error(flask_app, sio_client):
    other = socketio.test_client(flask_app)
    sio_client.emit('join_game', 'Alice')
    other.emit('join_game', 'alice')
    received = other.get_received()
    assert _args(received, 'join_error') == ['Name already taken! Pick another.']
    assert len(flask_app.extensions['redlight'].registry) == 1
    other.disconnect()


def test_tv_receives_state_and_joins(flask_app, sio_client):
    tv = socketio.test_client(flask_app)
    tv.emit('join_tv')
    states = _args(tv.get_received(), 'game_state')
    assert states and states[-1]['phase'] == 'lobby'

    sio_client.emit('join_game', 'Bob')
    received = tv.get_received()
    assert _args(received, 'player_joined')[0]['name'] == 'Bob'
    assert [p['name'] for p in _args(received, 'game_state')[-1]['players']] == ['Bob']
    tv.disconnect()


def test_start_and_hold_flow(flask_app, scheduler, sio_client):
    engine = flask_app.extensions['redlight']
    other = socketio.test_client(flask_app)
    sio_client.emit('join_game', 'Ann')
    other.emit('join_game', 'Bob')
    sio_client.emit('start_game')
    assert engine.phase == 'countdown'

    scheduler.advance(3.1)
    assert engine.phase == 'playing'
    sio_client.emit('hold_start')
    ann = [p for p in engine.registry.all() if p.name == 'Ann'][0]
    assert ann.holding
    sio_client.emit('hold_end')
    assert not ann.holding

    sio_client.get_received()
    sio_client.emit('reset_lobby')
    assert engine.phase == 'lobby'
    assert 'lobby_reset' in _names(sio_client.get_received())
    other.disconnect()


def test_disconnect_removes_lobby_player(flask_app, sio_client):
    engine = flask_app.extensions['redlight']
    sio_client.emit('join_game', 'Ann')
    assert len(engine.registry) == 1
    sio_client.disconnect()
    assert len(engine.registry) == 0


def test_kick_player_requires_id(sio_client):
    sio_client.get_received()
    sio_client.emit('kick_player')
    received = sio_client.get_received()
    assert _args(received, 'error') == [{'message': 'player_id is required'}]
