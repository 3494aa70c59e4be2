from varachess.services import persistence


def test_index(client):
    res = client.get('/')
    assert res.status_code == 200
    assert 'message' in res.get_json()


def test_health(client):
    res = client.get('/api/health')
    assert res.status_code == 200
    assert res.get_json() == {'status': 'ok', 'online': 0}


def test_upsert_user_creates_then_updates(client):
    res = client.post('/api/user', json={'identity': 'wallet-a', 'displayName': 'Alice'})
    assert res.status_code == 200
    user = res.get_json()
    assert user['identity'] == 'wallet-a'
    assert user['displayName'] == 'Alice'
    assert user['rating'] == 1000

    res = client.post('/api/user', json={'wallet': 'wallet-a', 'username': 'Alicia'})
    assert res.get_json()['displayName'] == 'Alicia'

    res = client.get('/api/user/wallet-a')
    assert res.status_code == 200
    assert res.get_json()['displayName'] == 'Alicia'


def test_upsert_user_requires_identity(client):
    res = client.post('/api/user', json={'displayName': 'Nobody'})
    assert res.status_code == 400


def test_unknown_user(client):
    res = client.get('/api/user/missing')
    assert res.status_code == 404


def test_leaderboard_orders_by_rating(client):
    persistence.increment_user_stats('low', losses=1, rating=-15, games_played=1)
    persistence.increment_user_stats('high', wins=1, rating=25, games_played=1)
    persistence.upsert_user('idle', 'Idle')

    board = client.get('/api/leaderboard').get_json()
    assert [u['identity'] for u in board] == ['high', 'low']
    assert board[0]['rating'] == 1025


def test_game_history_lists_finished_games(client):
    persistence.create_game_record('S1', 'wallet-a', 'wallet-b', 'random', 'playing')
    persistence.append_move('S1', 'e2', 'e4')
    persistence.finish_game('S1', 'finished', 'wallet-a')
    persistence.create_game_record('S2', 'wallet-c', 'wallet-a', 'invited', 'playing')

    games = client.get('/api/games/wallet-a').get_json()
    assert len(games) == 1
    assert games[0]['sessionId'] == 'S1'
    assert games[0]['winner'] == 'wallet-a'
    assert games[0]['moves'][0]['from'] == 'e2'
    assert client.get('/api/games/wallet-z').get_json() == []
