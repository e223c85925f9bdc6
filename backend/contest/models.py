from contest import db
import secrets
import string


class Event(db.Model):
    __tablename__ = 'event'
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=True)
    registration_deadline = db.Column(db.DateTime, nullable=True)
    voting_deadline = db.Column(db.DateTime, nullable=True)
    results_open = db.Column(db.Boolean, default=False, nullable=False)
    codes = db.relationship('Code', back_populates='event', lazy='dynamic')

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'registration_deadline': self.registration_deadline.isoformat() if self.registration_deadline else None,
            'voting_deadline': self.voting_deadline.isoformat() if self.voting_deadline else None,
            'results_open': bool(self.results_open),
        }


def generate_auth_code(length=8):
    """Generate a unique, hard to guess auth code."""
    alphabet = string.ascii_uppercase + string.digits
    while True:
        code = ''.join(secrets.choice(alphabet) for _ in range(length))
        if not Code.query.filter_by(auth_code=code).first():
            return code


class Code(db.Model):
    __tablename__ = 'code'
    id = db.Column(db.Integer, primary_key=True)
    auth_code = db.Column(db.String(32), unique=True, nullable=False, index=True)
    event_id = db.Column(db.Integer, db.ForeignKey('event.id'), nullable=False, index=True)
    is_admin = db.Column(db.Boolean, default=False, nullable=False)
    has_voted = db.Column(db.Boolean, default=False, nullable=False)
    event = db.relationship('Event', back_populates='codes')
    candidate = db.relationship('Candidate', back_populates='code', uselist=False)
    image = db.relationship('Image', back_populates='code', uselist=False)

    def __init__(self, **kwargs):
        super(Code, self).__init__(**kwargs)
        if not self.auth_code:
            self.auth_code = generate_auth_code()

    def to_dict(self):
        return {
            'id': self.id,
            'auth_code': self.auth_code,
            'event_id': self.event_id,
            'is_admin': bool(self.is_admin),
            'has_voted': bool(self.has_voted),
        }


class Candidate(db.Model):
    __tablename__ = 'candidate'
    # Autoincrement id doubles as registration order for tie breaks
    id = db.Column(db.Integer, primary_key=True)
    code_id = db.Column(db.Integer, db.ForeignKey('code.id'), unique=True, nullable=False)
    name = db.Column(db.String(128), nullable=False)
    costume = db.Column(db.String(256), nullable=False)
    image_id = db.Column(db.String(64), nullable=True)
    votes = db.Column(db.Integer, default=0, nullable=False)
    code = db.relationship('Code', back_populates='candidate')

    __table_args__ = (
        db.CheckConstraint('votes >= 0', name='ck_candidate_votes_non_negative'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'costume': self.costume,
            'image_id': self.image_id,
            'votes': self.votes,
        }


class Image(db.Model):
    __tablename__ = 'image'
    id = db.Column(db.Integer, primary_key=True)
    code_id = db.Column(db.Integer, db.ForeignKey('code.id'), unique=True, nullable=False)
    image_id = db.Column(db.String(64), nullable=False)
    code = db.relationship('Code', back_populates='image')
