from datetime import datetime, timezone

from varachess import db


def utcnow():
    return datetime.now(timezone.utc)


def _iso(value):
    return value.isoformat() if value else None


class User(db.Model):
    __tablename__ = 'user'
    id = db.Column(db.Integer, primary_key=True)
    identity = db.Column(db.String(128), unique=True, nullable=False, index=True)
    display_name = db.Column(db.String(64), nullable=False, default='Player')
    wins = db.Column(db.Integer, nullable=False, default=0)
    losses = db.Column(db.Integer, nullable=False, default=0)
    draws = db.Column(db.Integer, nullable=False, default=0)
    rating = db.Column(db.Integer, nullable=False, default=1000)
    games_played = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow)
    last_seen = db.Column(db.DateTime(timezone=True), default=utcnow)

    def to_dict(self):
        return {
            'identity': self.identity,
            'displayName': self.display_name,
            'wins': self.wins,
            'losses': self.losses,
            'draws': self.draws,
            'rating': self.rating,
            'gamesPlayed': self.games_played,
            'createdAt': _iso(self.created_at),
            'lastSeen': _iso(self.last_seen),
        }


class GameRecord(db.Model):
    __tablename__ = 'game'
    id = db.Column(db.Integer, primary_key=True)
    # Live ids are short and may be reused once a session is retired
    session_id = db.Column(db.String(32), nullable=False, index=True)
    player1 = db.Column(db.String(128), index=True)
    player2 = db.Column(db.String(128), index=True)
    winner = db.Column(db.String(128), nullable=True)
    status = db.Column(db.String(16), nullable=False, default='waiting')  # waiting, playing, finished
    kind = db.Column(db.String(16), nullable=False, default='random')  # random, invited
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow)
    finished_at = db.Column(db.DateTime(timezone=True), nullable=True)
    moves = db.relationship(
        'MoveRecord', back_populates='game', order_by='MoveRecord.id', cascade='all, delete-orphan'
    )

    def to_dict(self, include_moves=True):
        data = {
            'sessionId': self.session_id,
            'player1': self.player1,
            'player2': self.player2,
            'winner': self.winner,
            'status': self.status,
            'kind': self.kind,
            'createdAt': _iso(self.created_at),
            'finishedAt': _iso(self.finished_at),
        }
        if include_moves:
            data['moves'] = [m.to_dict() for m in self.moves]
        return data


class MoveRecord(db.Model):
    __tablename__ = 'move'
    id = db.Column(db.Integer, primary_key=True)
    game_id = db.Column(db.Integer, db.ForeignKey('game.id'), nullable=False, index=True)
    from_square = db.Column(db.String(32), nullable=False)
    to_square = db.Column(db.String(32), nullable=False)
    timestamp = db.Column(db.DateTime(timezone=True), default=utcnow)
    game = db.relationship('GameRecord', back_populates='moves')

    def to_dict(self):
        return {
            'from': self.from_square,
            'to': self.to_square,
            'timestamp': _iso(self.timestamp),
        }
