from truthgame import db
import json
import string
import random


class Claim(db.Model):
    __tablename__ = 'claim'
    id = db.Column(db.Integer, primary_key=True)
    text = db.Column(db.Text, nullable=False)
    answer = db.Column(db.String(8), nullable=False)  # TRUE, FALSE, MIXED
    difficulty = db.Column(db.String(16), nullable=False, default='medium', index=True)
    explanation = db.Column(db.Text, nullable=True)

    def to_dict(self, reveal=False):
        data = {
            'id': self.id,
            'text': self.text,
            'difficulty': self.difficulty,
        }
        if reveal:
            data['answer'] = self.answer
            data['explanation'] = self.explanation
        return data


def generate_game_code(length=4):
    """Generate a unique, short game code."""
    while True:
        code = ''.join(random.choices(string.ascii_uppercase + string.digits, k=length))
        if not GameSession.query.filter_by(game_code=code).first():
            return code


class GameSession(db.Model):
    __tablename__ = 'game_session'
    id = db.Column(db.Integer, primary_key=True)
    game_code = db.Column(db.String(4), unique=True, index=True)
    team_name = db.Column(db.String(64), nullable=False)
    difficulty = db.Column(db.String(16), nullable=False, default='medium')
    status = db.Column(db.String(64), default='lobby')  # lobby, in_progress, finished
    score = db.Column(db.Integer, default=0, nullable=False)
    current_round = db.Column(db.Integer, nullable=True)
    total_rounds = db.Column(db.Integer, nullable=True)
    claim_order = db.Column(db.Text, nullable=True)  # JSON-encoded list of claim ids
    results = db.relationship('RoundResult', back_populates='session', order_by='RoundResult.round_number',
                              cascade='all, delete-orphan')

    def __init__(self, **kwargs):
        super(GameSession, self).__init__(**kwargs)
        if not self.game_code:
            self.game_code = generate_game_code()

    @property
    def claim_ids(self):
        try:
            return json.loads(self.claim_order) if self.claim_order else []
        except ValueError:
            return []

    @property
    def current_claim(self):
        ids = self.claim_ids
        idx = (self.current_round or 0) - 1
        if 0 <= idx < len(ids):
            return db.session.get(Claim, ids[idx])
        return None

    def to_dict(self):
        from truthgame.services.games.stats import summarize_results

        claim = self.current_claim if self.status == 'in_progress' else None
        return {
            'id': self.id,
            'game_code': self.game_code,
            'team_name': self.team_name,
            'difficulty': self.difficulty,
            'status': self.status,
            'score': self.score,
            'current_round': self.current_round,
            'total_rounds': self.total_rounds,
            'current_claim': claim.to_dict() if claim else None,
            'results': [r.to_dict() for r in self.results],
            'stats': summarize_results(self.results),
        }


class RoundResult(db.Model):
    __tablename__ = 'round_result'
    id = db.Column(db.Integer, primary_key=True)
    session_id = db.Column(db.Integer, db.ForeignKey('game_session.id'), nullable=False)
    round_number = db.Column(db.Integer, nullable=False)
    claim_id = db.Column(db.Integer, db.ForeignKey('claim.id'), nullable=True)
    verdict = db.Column(db.String(8), nullable=True)
    confidence = db.Column(db.Integer, nullable=False)
    correct = db.Column(db.Boolean, default=False, nullable=False)
    points = db.Column(db.Integer, default=0, nullable=False)
    speed_bonus = db.Column(db.Text, nullable=True)  # JSON-encoded descriptor
    forfeited = db.Column(db.Boolean, default=False, nullable=False)
    forfeit_reason = db.Column(db.String(16), nullable=True)
    trigger = db.Column(db.String(16), nullable=False)
    time_elapsed = db.Column(db.Integer, default=0, nullable=False)
    calibration = db.Column(db.String(16), nullable=True)
    session = db.relationship('GameSession', back_populates='results')
    __table_args__ = (db.UniqueConstraint('session_id', 'round_number', name='uq_round_result_session_round'),)

    def to_dict(self):
        return {
            'round': self.round_number,
            'claim_id': self.claim_id,
            'verdict': self.verdict,
            'confidence': self.confidence,
            'correct': self.correct,
            'points': self.points,
            'speed_bonus': json.loads(self.speed_bonus) if self.speed_bonus else None,
            'forfeited': self.forfeited,
            'forfeit_reason': self.forfeit_reason,
            'trigger': self.trigger,
            'time_elapsed': self.time_elapsed,
            'calibration': self.calibration,
        }
