def test_index_and_health(client):
    res = client.get('/')
    assert res.status_code == 200
    assert 'message' in res.get_json()

    res = client.get('/health')
    assert res.status_code == 200
    assert res.get_json() == {'status': 'ok', 'rooms': 0}


def test_list_rooms_empty(client):
    res = client.get('/api/rooms')
    assert res.status_code == 200
    assert res.get_json() == {'rooms': [], 'count': 0}


def test_room_snapshot_and_summary(app_lobby, client):
    app_lobby.join_or_create('abcd', 'sid-alice', 'Alice')
    app_lobby.join_or_create('abcd', 'sid-bob', 'Bob')

    rooms = client.get('/api/rooms').get_json()
    assert rooms['count'] == 1
    assert rooms['rooms'][0] == {
        'roomId': 'abcd',
        'status': 'ready',
        'playerCount': 2,
        'maxPlayers': 4,
        'gameType': None,
    }

    res = client.get('/api/rooms/abcd')
    assert res.status_code == 200
    room = res.get_json()
    assert room['adminId'] == 'sid-alice'
    assert [p['displayName'] for p in room['players']] == ['Alice', 'Bob']
    assert room['game'] is None


def test_room_snapshot_hides_open_answer(app_lobby, client):
    app_lobby.join_or_create('abcd', 'sid-alice', 'Alice')
    app_lobby.join_or_create('abcd', 'sid-bob', 'Bob')
    app_lobby.start_game('abcd', 'sid-alice')

    room = client.get('/api/rooms/abcd').get_json()
    assert room['status'] == 'in game'
    assert room['game']['phase'] == 'question open'
    assert 'correctOptionIndex' not in room['game']['question']


def test_unknown_room_is_404(client):
    res = client.get('/api/rooms/nope')
    assert res.status_code == 404
    assert res.get_json()['error'] == 'room_not_found'


def test_question_bank_command(flask_app):
    runner = flask_app.test_cli_runner()
    result = runner.invoke(args=['question-bank'])
    assert result.exit_code == 0
    assert 'Question bank OK' in result.output
