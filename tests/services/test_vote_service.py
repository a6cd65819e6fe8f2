import threading
from datetime import timedelta

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session

from pollhub.extensions import db
from pollhub.models import Poll, Vote
from pollhub.services.errors import (
    DuplicateVoteError,
    InternalError,
    InvalidCompetitorError,
    NotFoundError,
    ValidationError,
)
from pollhub.services.voting import VoteService


def _vote_count(session, poll_id):
    return session.query(Vote).filter_by(poll_id=poll_id).count()


def test_cast_vote_records_vote_and_increments_counter(db_session, make_poll):
    poll = make_poll()
    alice = poll.competitors[0]

    vote = VoteService(db_session).cast_vote(poll.id, alice.id, "voter-1")

    assert vote.id is not None
    assert vote.competitor_id == alice.id
    assert _vote_count(db_session, poll.id) == 1
    assert db_session.get(Poll, poll.id).total_votes == 1


def test_cast_vote_accepts_numeric_strings(db_session, make_poll):
    poll = make_poll()
    bob = poll.competitors[1]

    VoteService(db_session).cast_vote(str(poll.id), str(bob.id), "  voter-2  ")

    vote = db_session.query(Vote).filter_by(poll_id=poll.id).one()
    assert vote.voter_id == "voter-2"


def test_second_vote_from_same_voter_is_rejected(db_session, make_poll):
    poll = make_poll()
    alice, bob = poll.competitors[:2]
    service = VoteService(db_session)

    service.cast_vote(poll.id, alice.id, "voter-1")
    with pytest.raises(DuplicateVoteError):
        service.cast_vote(poll.id, bob.id, "voter-1")

    assert _vote_count(db_session, poll.id) == 1
    assert db_session.get(Poll, poll.id).total_votes == 1


def test_same_voter_may_vote_in_different_polls(db_session, make_poll):
    first = make_poll(title="First")
    second = make_poll(title="Second")
    service = VoteService(db_session)

    service.cast_vote(first.id, first.competitors[0].id, "voter-1")
    service.cast_vote(second.id, second.competitors[0].id, "voter-1")

    assert _vote_count(db_session, first.id) == 1
    assert _vote_count(db_session, second.id) == 1


def test_competitor_from_another_poll_is_rejected(db_session, make_poll):
    poll = make_poll(title="Target")
    other = make_poll(title="Other")

    with pytest.raises(InvalidCompetitorError):
        VoteService(db_session).cast_vote(poll.id, other.competitors[0].id, "voter-1")

    assert _vote_count(db_session, poll.id) == 0
    assert _vote_count(db_session, other.id) == 0
    assert db_session.get(Poll, poll.id).total_votes == 0
    assert db_session.get(Poll, other.id).total_votes == 0


def test_unknown_poll_is_not_found(db_session, make_poll):
    poll = make_poll()

    with pytest.raises(NotFoundError):
        VoteService(db_session).cast_vote(poll.id + 100, poll.competitors[0].id, "v")


@pytest.mark.parametrize(
    "poll_id, competitor_id, voter_id",
    [
        (None, 1, "voter"),
        (1, None, "voter"),
        ("abc", 1, "voter"),
        (1, True, "voter"),
        (1, 1, ""),
        (1, 1, "   "),
        (1, 1, None),
        (1, 1, "x" * 256),
        (float("inf"), 1, "voter"),
        (1, float("-inf"), "voter"),
        (1.5, 1, "voter"),
    ],
)
def test_malformed_input_is_a_validation_error(
    db_session, make_poll, poll_id, competitor_id, voter_id
):
    make_poll()

    with pytest.raises(ValidationError):
        VoteService(db_session).cast_vote(poll_id, competitor_id, voter_id)

    assert db_session.query(Vote).count() == 0


def test_expiry_and_publication_do_not_block_votes(db_session, make_poll):
    expired = make_poll(title="Expired", expires_in=timedelta(minutes=-5))
    hidden = make_poll(title="Hidden", published=False)
    open_ended = make_poll(title="Open ended", expires_in=None)
    service = VoteService(db_session)

    for poll in (expired, hidden, open_ended):
        service.cast_vote(poll.id, poll.competitors[0].id, "voter-1")

    for poll in (expired, hidden, open_ended):
        assert _vote_count(db_session, poll.id) == 1
        assert db_session.get(Poll, poll.id).total_votes == 1


def test_storage_failure_rolls_back_vote_and_counter(db_session, make_poll, monkeypatch):
    poll = make_poll()
    service = VoteService(db_session)

    def failing_increment(poll_id):
        raise OperationalError("UPDATE polls", {}, Exception("disk I/O error"))

    monkeypatch.setattr(service, "_increment_total", failing_increment)

    with pytest.raises(InternalError):
        service.cast_vote(poll.id, poll.competitors[0].id, "voter-1")

    assert _vote_count(db_session, poll.id) == 0
    assert db_session.get(Poll, poll.id).total_votes == 0
    assert service.has_voted(poll.id, "voter-1") is False


def test_unique_constraint_rejects_duplicate_when_precheck_misses(
    db_session, make_poll, monkeypatch
):
    poll = make_poll()
    alice, bob = poll.competitors[:2]
    service = VoteService(db_session)
    service.cast_vote(poll.id, alice.id, "voter-1")

    lookups = []

    def stale_lookup(poll_id, voter_id):
        # The first lookup misses the committed ballot, as a racing
        # request would; later lookups see it.
        lookups.append(poll_id)
        return len(lookups) > 1

    monkeypatch.setattr(service, "_vote_exists", stale_lookup)

    with pytest.raises(DuplicateVoteError):
        service.cast_vote(poll.id, bob.id, "voter-1")

    assert _vote_count(db_session, poll.id) == 1
    assert db_session.get(Poll, poll.id).total_votes == 1


def test_other_constraint_violations_are_internal_errors(
    db_session, make_poll, monkeypatch
):
    poll = make_poll()
    service = VoteService(db_session)

    def failing_flush(*args, **kwargs):
        raise IntegrityError(
            "INSERT INTO votes", {}, Exception("FOREIGN KEY constraint failed")
        )

    monkeypatch.setattr(db_session, "flush", failing_flush)

    with pytest.raises(InternalError):
        service.cast_vote(poll.id, poll.competitors[0].id, "voter-1")

    monkeypatch.undo()
    assert _vote_count(db_session, poll.id) == 0
    assert db_session.get(Poll, poll.id).total_votes == 0


def test_has_voted_storage_failure_is_internal_error(db_session, make_poll, monkeypatch):
    poll = make_poll()
    service = VoteService(db_session)

    def failing_lookup(poll_id, voter_id):
        raise OperationalError("SELECT votes", {}, Exception("disk I/O error"))

    monkeypatch.setattr(service, "_vote_exists", failing_lookup)

    with pytest.raises(InternalError) as excinfo:
        service.has_voted(poll.id, "voter-1")

    assert excinfo.value.message == "Server error checking vote status."


def test_concurrent_votes_from_one_voter_persist_at_most_once(db_session, make_poll):
    poll = make_poll()
    poll_id = poll.id
    competitor_ids = [competitor.id for competitor in poll.competitors]
    engine = db.engine
    db_session.close()

    outcomes = []
    lock = threading.Lock()
    barrier = threading.Barrier(8)

    def worker(index):
        with Session(engine) as session:
            barrier.wait()
            try:
                VoteService(session).cast_vote(
                    poll_id, competitor_ids[index % len(competitor_ids)], "same-voter"
                )
                outcome = "ok"
            except DuplicateVoteError:
                outcome = "duplicate"
            except InternalError:
                outcome = "error"
        with lock:
            outcomes.append(outcome)

    threads = [threading.Thread(target=worker, args=(index,)) for index in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(outcomes) == 8
    assert outcomes.count("ok") <= 1

    with Session(engine) as session:
        persisted = _vote_count(session, poll_id)
        total = session.get(Poll, poll_id).total_votes

    assert persisted == outcomes.count("ok")
    assert persisted <= 1
    assert total == persisted


def test_has_voted_is_stable_between_votes(db_session, make_poll):
    poll = make_poll()
    service = VoteService(db_session)

    assert [service.has_voted(poll.id, "voter-1") for _ in range(3)] == [False] * 3

    service.cast_vote(poll.id, poll.competitors[0].id, "voter-1")

    assert [service.has_voted(poll.id, "voter-1") for _ in range(3)] == [True] * 3
    assert service.has_voted(poll.id, "voter-2") is False


def test_has_voted_requires_both_keys(db_session):
    service = VoteService(db_session)

    with pytest.raises(ValidationError):
        service.has_voted(None, "voter-1")
    with pytest.raises(ValidationError):
        service.has_voted(1, "")
