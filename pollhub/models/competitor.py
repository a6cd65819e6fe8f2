from pollhub.extensions import db
from pollhub.utils import utcnow


class Competitor(db.Model):
    __tablename__ = "competitors"

    id = db.Column(db.Integer, primary_key=True)
    poll_id = db.Column(
        db.Integer, db.ForeignKey("polls.id", ondelete="CASCADE"), nullable=False
    )
    name = db.Column(db.String(255), nullable=False)
    party = db.Column(db.String(255), nullable=True)
    profile_image = db.Column(db.LargeBinary, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    votes = db.relationship(
        "Vote", backref="competitor", lazy=True, cascade="all, delete-orphan"
    )
