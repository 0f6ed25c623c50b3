from redlight.services.game import ROUNDS


def test_index(client):
    res = client.get('/')
    assert res.status_code == 200
    body = res.get_json()
    assert 'message' in body
    # Static pages are served by the client host, not this server
    assert set(body) == {'message'}


def test_state_reflects_engine(flask_app, client):
    res = client.get('/api/game/state')
    assert res.status_code == 200
    state = res.get_json()
    assert state['phase'] == 'lobby'
    assert state['round'] == 0
    assert state['players'] == []
    assert state['round_label'] == 'WARM-UP'

    flask_app.extensions['redlight'].join('sid-1', 'Alice')
    state = client.get('/api/game/state').get_json()
    assert [p['name'] for p in state['players']] == ['Alice']
    assert state['leaderboard'][0]['status'] == 'alive'


def test_rounds_listing(client):
    res = client.get('/api/game/rounds')
    assert res.status_code == 200
    rounds = res.get_json()
    assert [r['round'] for r in rounds] == [1, 2, 3, 4, 5]
    assert rounds[0]['duration_sec'] == ROUNDS[0].duration_sec
    assert rounds[-1]['type'] == 'race'
    assert rounds[-1]['progress_rate'] == 0.8


def test_rounds_cli(flask_app):
    runner = flask_app.test_cli_runner()
    result = runner.invoke(args=['rounds'])
    assert result.exit_code == 0
    assert 'WARM-UP' in result.output
    assert 'progress_rate=0.8' in result.output
