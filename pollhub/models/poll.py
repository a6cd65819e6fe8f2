from pollhub.extensions import db
from pollhub.utils import utcnow


class Poll(db.Model):
    __tablename__ = "polls"

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(255), nullable=False)
    category = db.Column(db.String(100), nullable=False)
    presidential = db.Column(db.String(100), nullable=True)
    region = db.Column(db.String(100), nullable=False)
    county = db.Column(db.String(100), nullable=True)
    constituency = db.Column(db.String(100), nullable=True)
    ward = db.Column(db.String(100), nullable=True)
    voting_expires_at = db.Column(db.DateTime, nullable=True)
    total_votes = db.Column(db.Integer, nullable=False, default=0)
    spoiled_votes = db.Column(db.Integer, nullable=False, default=0)
    published = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    competitors = db.relationship(
        "Competitor",
        backref="poll",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="Competitor.id",
    )
    votes = db.relationship(
        "Vote", backref="poll", lazy=True, cascade="all, delete-orphan"
    )
