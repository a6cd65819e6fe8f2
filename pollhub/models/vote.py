from pollhub.extensions import db
from pollhub.utils import utcnow


class Vote(db.Model):
    __tablename__ = "votes"
    __table_args__ = (
        db.UniqueConstraint("poll_id", "voter_id", name="uq_votes_poll_voter"),
    )

    id = db.Column(db.Integer, primary_key=True)
    poll_id = db.Column(
        db.Integer, db.ForeignKey("polls.id", ondelete="CASCADE"), nullable=False
    )
    competitor_id = db.Column(
        db.Integer,
        db.ForeignKey("competitors.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    voter_id = db.Column(db.String(255), nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
