import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from pollhub.models import Competitor, Poll, Vote
from pollhub.services.errors import (
    DuplicateVoteError,
    InternalError,
    InvalidCompetitorError,
    NotFoundError,
    PollError,
    ValidationError,
)

logger = logging.getLogger(__name__)


def parse_id(value, field):
    if value is None or value == "" or isinstance(value, bool):
        raise ValidationError(f"{field} is required.")
    try:
        parsed = int(value)
    except (TypeError, ValueError, OverflowError):
        raise ValidationError(f"{field} must be an integer.") from None
    if isinstance(value, float) and value != parsed:
        raise ValidationError(f"{field} must be an integer.")
    return parsed


def normalize_voter_id(value, max_length=255):
    voter_id = value.strip() if isinstance(value, str) else ""
    if not voter_id:
        raise ValidationError("voterId is required.")
    if len(voter_id) > max_length:
        raise ValidationError(f"voterId must be at most {max_length} characters.")
    return voter_id


class VoteService:
    """Records single votes against a poll.

    The session is the storage handle for one unit of work; the caller owns
    its lifetime. ``cast_vote`` either commits the vote together with the
    poll's counter increment or rolls the session back before raising.

    The ``(poll_id, voter_id)`` unique constraint on ``votes`` is what keeps a
    voter to a single vote per poll. ``has_voted`` runs first only so the
    common duplicate is rejected without attempting the insert.
    """

    def __init__(self, session, voter_id_max_length=255):
        self.session = session
        self.voter_id_max_length = voter_id_max_length

    def has_voted(self, poll_id, voter_id):
        poll_id = parse_id(poll_id, "pollId")
        voter_id = normalize_voter_id(voter_id, self.voter_id_max_length)
        try:
            return self._vote_exists(poll_id, voter_id)
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.exception("Vote status lookup for poll %s failed", poll_id)
            raise InternalError("Server error checking vote status.") from exc

    def cast_vote(self, poll_id, competitor_id, voter_id):
        poll_id = parse_id(poll_id, "pollId")
        competitor_id = parse_id(competitor_id, "competitorId")
        voter_id = normalize_voter_id(voter_id, self.voter_id_max_length)

        try:
            poll = self.session.get(Poll, poll_id)
            if poll is None:
                raise NotFoundError("Poll not found.")

            if self._vote_exists(poll_id, voter_id):
                raise DuplicateVoteError()

            competitor = (
                self.session.query(Competitor.id)
                .filter_by(id=competitor_id, poll_id=poll_id)
                .first()
            )
            if competitor is None:
                raise InvalidCompetitorError()

            vote = Vote(
                poll_id=poll_id, competitor_id=competitor_id, voter_id=voter_id
            )
            self.session.add(vote)
            self.session.flush()

            self._increment_total(poll_id)
            self.session.commit()
        except PollError as exc:
            self.session.rollback()
            if isinstance(exc, DuplicateVoteError):
                logger.info("Duplicate vote rejected for poll %s", poll_id)
            raise
        except IntegrityError as exc:
            self.session.rollback()
            self._raise_for_integrity_error(poll_id, voter_id, exc)
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.exception("Vote transaction for poll %s rolled back", poll_id)
            raise InternalError() from exc

        logger.info(
            "Vote recorded for poll %s competitor %s", poll_id, competitor_id
        )
        return vote

    def _raise_for_integrity_error(self, poll_id, voter_id, exc):
        # Only a committed ballot from the same voter makes this a duplicate;
        # anything else (a competitor deleted mid-flight) is a storage failure.
        try:
            duplicate = self._vote_exists(poll_id, voter_id)
        except SQLAlchemyError:
            self.session.rollback()
            duplicate = False

        if duplicate:
            logger.warning(
                "Concurrent vote for poll %s lost the uniqueness race", poll_id
            )
            raise DuplicateVoteError() from None

        logger.error("Vote insert for poll %s violated a constraint: %s", poll_id, exc)
        raise InternalError() from exc

    def _vote_exists(self, poll_id, voter_id):
        existing = (
            self.session.query(Vote.id)
            .filter_by(poll_id=poll_id, voter_id=voter_id)
            .first()
        )
        return existing is not None

    def _increment_total(self, poll_id):
        self.session.query(Poll).filter_by(id=poll_id).update(
            {Poll.total_votes: Poll.total_votes + 1}, synchronize_session=False
        )
