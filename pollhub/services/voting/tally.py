from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import func

from pollhub.models import Competitor, Poll, Vote
from pollhub.services.errors import NotFoundError
from pollhub.utils import utcnow


def format_percentage(count, total):
    if total <= 0:
        return "0.00"
    percentage = Decimal(count / total * 100).quantize(
        Decimal("0.01"), rounding=ROUND_HALF_UP
    )
    return str(percentage)


def _vote_counts(session):
    return (
        session.query(
            Vote.competitor_id.label("competitor_id"),
            func.count(Vote.id).label("vote_count"),
        )
        .group_by(Vote.competitor_id)
        .subquery()
    )


def tally_poll(session, poll_id):
    poll = session.get(Poll, poll_id)
    if poll is None:
        raise NotFoundError("Poll not found.")

    counts = _vote_counts(session)
    vote_count = func.coalesce(counts.c.vote_count, 0)

    rows = (
        session.query(Competitor, vote_count)
        .outerjoin(counts, counts.c.competitor_id == Competitor.id)
        .filter(Competitor.poll_id == poll.id)
        .order_by(vote_count.desc(), Competitor.id)
        .all()
    )

    total_votes = sum(int(count) for _, count in rows)

    results = []
    for competitor, count in rows:
        count = int(count)
        results.append(
            {
                "competitor": competitor,
                "count": count,
                "percentage": format_percentage(count, total_votes),
            }
        )

    return {
        "poll": poll,
        "total_votes": total_votes,
        "results": results,
    }


def live_leaderboard(session, now=None, size=2):
    """Top ``size`` competitors of every poll still open for voting.

    Polls come back soonest-expiring first. Within a poll competitors are
    ranked by vote count, ties going to the lower competitor id.
    """
    now = now or utcnow()

    polls = (
        session.query(Poll)
        .filter(Poll.voting_expires_at.isnot(None))
        .filter(Poll.voting_expires_at > now)
        .filter(Poll.published.is_(True))
        .order_by(Poll.voting_expires_at, Poll.id)
        .all()
    )
    if not polls:
        return []

    counts = _vote_counts(session)
    vote_count = func.coalesce(counts.c.vote_count, 0)
    ranked = (
        session.query(
            Competitor.id.label("id"),
            Competitor.poll_id.label("poll_id"),
            Competitor.name.label("name"),
            vote_count.label("vote_count"),
            func.row_number()
            .over(
                partition_by=Competitor.poll_id,
                order_by=(vote_count.desc(), Competitor.id),
            )
            .label("vote_rank"),
        )
        .outerjoin(counts, counts.c.competitor_id == Competitor.id)
        .filter(Competitor.poll_id.in_([poll.id for poll in polls]))
        .subquery()
    )

    top_by_poll = {poll.id: [] for poll in polls}
    rows = (
        session.query(ranked)
        .filter(ranked.c.vote_rank <= size)
        .order_by(ranked.c.poll_id, ranked.c.vote_rank)
        .all()
    )
    for row in rows:
        top_by_poll[row.poll_id].append(
            {"id": row.id, "name": row.name, "count": int(row.vote_count)}
        )

    return [
        {
            "poll": poll,
            "total_votes": poll.total_votes or 0,
            "top_candidates": top_by_poll[poll.id],
        }
        for poll in polls
    ]
